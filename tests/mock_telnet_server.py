"""Scripted shell server for probe tests."""

import socket
import struct
import threading
import time
from typing import Iterable


def send(data: bytes | str) -> tuple[str, bytes]:
    """Step: write ``data`` to the client."""
    if isinstance(data, str):
        data = data.encode()
    return ("send", data)


def expect(marker: bytes | str) -> tuple[str, bytes]:
    """Step: read until the client has sent ``marker``."""
    if isinstance(marker, str):
        marker = marker.encode()
    return ("expect", marker)


def pause(seconds: float) -> tuple[str, float]:
    """Step: wait before the next step."""
    return ("pause", seconds)


def reset() -> tuple[str, None]:
    """Step: abort the connection with a TCP reset and end the script."""
    return ("reset", None)


class MockShellServer:
    """Single-connection server that plays a fixed script.

    After the script ends the connection is held open until the client
    closes it, so tests can check that the probe always hangs up.
    """

    def __init__(
        self,
        script: Iterable[tuple],
        host: str = "127.0.0.1",
        port: int = 0,  # 0 = random port
        step_timeout: float = 5.0,
        hangup: bool = False,
    ) -> None:
        """Initialize mock server.

        Parameters
        ----------
        script : Iterable[tuple]
            Steps built with ``send``, ``expect``, ``pause`` and ``reset``
        host : str, optional
            Bind host, by default "127.0.0.1"
        port : int, optional
            Bind port (0 for random), by default 0
        step_timeout : float, optional
            Seconds to wait for client data in one step, by default 5.0
        hangup : bool, optional
            Close the connection as soon as the script ends, by default False
        """
        self.script = list(script)
        self.host = host
        self.port = port
        self.step_timeout = step_timeout
        self.hangup = hangup

        self.socket: socket.socket | None = None
        self.server_thread: threading.Thread | None = None
        self.actual_port: int | None = None
        self.received = bytearray()
        self.accepted = threading.Event()
        self.client_closed = threading.Event()
        self.script_done = threading.Event()
        self._pending = bytearray()

    def start(self) -> int:
        """Start the server.

        Returns
        -------
        int
            Actual port number
        """
        self.socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.socket.bind((self.host, self.port))
        self.socket.listen(1)
        self.socket.settimeout(10.0)
        self.actual_port = self.socket.getsockname()[1]

        self.server_thread = threading.Thread(target=self._serve, daemon=True)
        self.server_thread.start()

        return self.actual_port

    def stop(self) -> None:
        """Stop the server."""
        if self.socket:
            try:
                self.socket.close()
            except OSError:
                pass

        if self.server_thread:
            self.server_thread.join(timeout=2.0)

    def wait_closed(self, timeout: float = 2.0) -> bool:
        """Wait until the client hangs up."""
        return self.client_closed.wait(timeout)

    def _serve(self) -> None:
        try:
            conn, _ = self.socket.accept()
        except OSError:
            return

        self.accepted.set()
        conn.settimeout(self.step_timeout)
        try:
            aborted = self._play(conn)
            self.script_done.set()
            if not (self.hangup or aborted):
                self._drain(conn)
        except socket.timeout:
            pass
        except OSError:
            # reset by the client
            self.client_closed.set()
        finally:
            conn.close()

    def _play(self, conn: socket.socket) -> bool:
        for action, value in self.script:
            if action == "reset":
                conn.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
                conn.close()
                return True
            if action == "send":
                conn.sendall(value)
            elif action == "pause":
                time.sleep(value)
            elif action == "expect":
                while value not in self._pending:
                    if not self._recv(conn):
                        raise ConnectionResetError("client closed during script")
                end = self._pending.index(value) + len(value)
                del self._pending[:end]
        return False

    def _drain(self, conn: socket.socket) -> None:
        conn.settimeout(0.1)
        deadline = time.monotonic() + 30.0
        while time.monotonic() < deadline:
            try:
                if not self._recv(conn):
                    self.client_closed.set()
                    return
            except socket.timeout:
                continue

    def _recv(self, conn: socket.socket) -> bool:
        data = conn.recv(1024)
        if not data:
            return False
        self.received += data
        self._pending += data
        return True

    def __enter__(self) -> "MockShellServer":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
