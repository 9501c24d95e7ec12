"""Deadline-bound TCP transport built on pexpect."""

import socket
import time

from pexpect.fdpexpect import fdspawn

from lib.shellprobe.exceptions import DialError, SendError


def deadline_after(seconds: float) -> float:
    """Return an absolute deadline ``seconds`` from now.

    Deadlines are points on the ``time.monotonic()`` clock.
    """
    return time.monotonic() + seconds


def join_host_port(host: str, port: int) -> str:
    """Format ``host:port``, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class Transport:
    """A single TCP connection with one absolute deadline.

    Every blocking read derives its timeout from the deadline, so the time
    left shrinks across stages instead of restarting at each one.
    """

    def __init__(
        self,
        spawn: fdspawn,
        address: str,
        deadline: float,
        budget: float | None = None,
    ) -> None:
        self._spawn = spawn
        self.address = address
        self.deadline = deadline
        # seconds available when the probe started dialing
        self.budget = budget if budget is not None else max(0.0, deadline - time.monotonic())

    @classmethod
    def dial(
        cls,
        host: str,
        port: int,
        deadline: float,
        encoding: str | None = None,
    ) -> "Transport":
        """Connect to ``host:port`` before ``deadline``.

        Parameters
        ----------
        host : str
            Server host name or address
        port : int
            TCP port
        deadline : float
            Absolute monotonic deadline for the whole connection
        encoding : str | None, optional
            Text encoding for line reads, by default None (raw bytes)

        Returns
        -------
        Transport
            Connected transport

        Raises
        ------
        DialError
            If the deadline already passed or the connection fails
        """
        address = join_host_port(host, port)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DialError(f"tcp dial to {address} failed: deadline exceeded", host, address)

        try:
            sock = socket.create_connection((host, port), timeout=remaining)
        except OSError as e:
            raise DialError(f"tcp dial to {address} failed: {e}", host, address) from e

        # pexpect waits with select(); the fd itself stays blocking and is
        # owned (and closed) by the spawn from here on
        sock.setblocking(True)
        fd = sock.detach()
        spawn = fdspawn(fd, timeout=remaining, encoding=encoding, codec_errors="replace")
        return cls(spawn, address, deadline, budget=remaining)

    def remaining(self, deadline: float | None = None) -> float:
        """Seconds left before ``deadline`` (the transport deadline by default)."""
        if deadline is None:
            deadline = self.deadline
        return max(0.0, deadline - time.monotonic())

    def set_deadline(self, deadline: float) -> None:
        """Replace the deadline applied to subsequent reads."""
        self.deadline = deadline

    def read_byte(self) -> bytes:
        """Read one raw byte.

        Raises
        ------
        pexpect.TIMEOUT
            If the deadline passes first
        pexpect.EOF
            If the peer closed the connection
        """
        return self._spawn.read_nonblocking(size=1, timeout=self.remaining())

    def read_line(self, deadline: float | None = None) -> str:
        """Read text up to and including the next LF.

        Parameters
        ----------
        deadline : float | None, optional
            Deadline for this read only, by default the transport deadline

        Returns
        -------
        str
            The line, terminator included

        Raises
        ------
        pexpect.TIMEOUT
            If no complete line arrives in time
        pexpect.EOF
            If the peer closed the connection
        """
        self._spawn.expect_exact("\n", timeout=self.remaining(deadline))
        return self._spawn.before + self._spawn.after

    def write(self, data: bytes | str) -> None:
        """Write raw data to the connection.

        Raises
        ------
        SendError
            If the connection was reset or closed by the peer
        """
        try:
            self._spawn.send(data)
        except OSError as e:
            raise SendError(f"write to {self.address} failed: {e}", address=self.address) from e

    def send_line(self, text: str, terminator: str = "\r\n") -> None:
        """Write ``text`` followed by ``terminator``."""
        self.write(text + terminator)

    @property
    def pending(self) -> str:
        """Text received but not consumed by the last failed line read."""
        before = self._spawn.before
        return before if isinstance(before, str) else ""

    @property
    def closed(self) -> bool:
        return self._spawn.closed

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if not self._spawn.closed:
            self._spawn.close()

    def __enter__(self) -> "Transport":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
