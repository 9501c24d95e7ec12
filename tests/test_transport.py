"""Tests for the deadline-bound transport."""

import time

import pexpect
import pytest

from lib.shellprobe.exceptions import DialError, SendError
from lib.shellprobe.transport import Transport, deadline_after, join_host_port
from tests.mock_telnet_server import MockShellServer, expect, pause, reset, send


def test_join_host_port() -> None:
    """Test address formatting."""
    assert join_host_port("10.0.0.1", 23) == "10.0.0.1:23"
    assert join_host_port("::1", 23) == "[::1]:23"


def test_deadline_after() -> None:
    """Test deadlines are absolute monotonic times."""
    before = time.monotonic()
    deadline = deadline_after(2.0)
    assert before + 2.0 <= deadline <= time.monotonic() + 2.0


def test_dial_refused(unused_port: int) -> None:
    """Test a refused connection."""
    with pytest.raises(DialError) as excinfo:
        Transport.dial("127.0.0.1", unused_port, deadline_after(2.0))

    assert excinfo.value.server == "127.0.0.1"
    assert isinstance(excinfo.value.__cause__, OSError)


def test_read_write_and_close() -> None:
    """Test byte reads, writes and idempotent close."""
    with MockShellServer([send(b"hi"), expect(b"ok\r\n")]) as server:
        transport = Transport.dial("127.0.0.1", server.actual_port, deadline_after(5.0))
        with transport:
            assert transport.read_byte() == b"h"
            assert transport.read_byte() == b"i"
            transport.send_line("ok")
            assert server.script_done.wait(2.0)

        assert transport.closed
        transport.close()
        assert server.wait_closed()


def test_read_byte_times_out_at_deadline() -> None:
    """Test the deadline bounds a silent read."""
    with MockShellServer([]) as server:
        with Transport.dial("127.0.0.1", server.actual_port, deadline_after(0.3)) as transport:
            start = time.monotonic()
            with pytest.raises(pexpect.TIMEOUT):
                transport.read_byte()
            assert time.monotonic() - start < 1.0


def test_read_line_keeps_pending_text() -> None:
    """Test line reads and the unterminated remainder."""
    with MockShellServer([send(b"first\nsecond")]) as server:
        with Transport.dial(
            "127.0.0.1", server.actual_port, deadline_after(2.0), encoding="utf-8"
        ) as transport:
            assert transport.read_line() == "first\n"
            with pytest.raises(pexpect.TIMEOUT):
                transport.read_line(deadline_after(0.2))
            assert transport.pending == "second"


def test_read_byte_eof() -> None:
    """Test a server hangup surfaces as EOF."""
    with MockShellServer([send(b"x")], hangup=True) as server:
        with Transport.dial("127.0.0.1", server.actual_port, deadline_after(2.0)) as transport:
            assert transport.read_byte() == b"x"
            with pytest.raises(pexpect.EOF):
                transport.read_byte()


def test_set_deadline_shortens_reads() -> None:
    """Test a replaced deadline bounds the next read."""
    with MockShellServer([]) as server:
        with Transport.dial("127.0.0.1", server.actual_port, deadline_after(5.0)) as transport:
            budget = transport.budget
            transport.set_deadline(deadline_after(0.2))
            start = time.monotonic()
            with pytest.raises(pexpect.TIMEOUT):
                transport.read_byte()
            assert time.monotonic() - start < 1.0
            assert transport.budget == budget


def test_budget_is_time_left_at_dial() -> None:
    """Test each transport records its own dial budget."""
    with MockShellServer([]) as first, MockShellServer([]) as second:
        with Transport.dial("127.0.0.1", first.actual_port, deadline_after(5.0)) as long_lived:
            with Transport.dial("127.0.0.1", second.actual_port, deadline_after(1.0)) as short:
                assert 4.0 < long_lived.budget <= 5.0
                assert 0.0 < short.budget <= 1.0


def test_write_after_reset() -> None:
    """Test a write to a reset connection raises a send error."""
    with MockShellServer([send(b"x"), pause(0.05), reset()]) as server:
        with Transport.dial("127.0.0.1", server.actual_port, deadline_after(2.0)) as transport:
            assert transport.read_byte() == b"x"
            assert server.script_done.wait(2.0)
            time.sleep(0.1)
            with pytest.raises(SendError) as excinfo:
                transport.send_line("late")

            assert excinfo.value.address == f"127.0.0.1:{server.actual_port}"
            assert isinstance(excinfo.value.__cause__, OSError)
