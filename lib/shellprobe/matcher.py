"""Wait for any of several prompts on a connection."""

from typing import TYPE_CHECKING, Sequence

import pexpect

from lib.shellprobe.exceptions import BufferLimitError, MatchError
from lib.shellprobe.negotiation import NegotiationPolicy, PassThrough

if TYPE_CHECKING:
    from lib.shellprobe.transport import Transport

DEFAULT_MAX_BUFFER = 1024 * 1024


def decode(buffer: bytes | bytearray) -> str:
    """Decode received bytes, replacing anything that is not UTF-8."""
    return bytes(buffer).decode("utf-8", errors="replace")


def read_until_any(
    transport: "Transport",
    targets: Sequence[str],
    negotiation: NegotiationPolicy | None = None,
    max_buffer: int = DEFAULT_MAX_BUFFER,
) -> str:
    """Read until the received text contains one of ``targets``.

    Bytes are read one at a time and offered to ``negotiation`` first; bytes
    it consumes never reach the buffer. Targets are checked in order after
    every appended byte.

    Parameters
    ----------
    transport : Transport
        Open connection
    targets : Sequence[str]
        Substrings to wait for
    negotiation : NegotiationPolicy | None, optional
        Control sequence policy, by default PassThrough
    max_buffer : int, optional
        Bytes gathered before giving up, by default 1 MiB

    Returns
    -------
    str
        Everything received during the call, up to and including the match

    Raises
    ------
    ValueError
        If ``targets`` is empty
    MatchError
        On timeout, end of stream or socket error; carries the partial text
    BufferLimitError
        If more than ``max_buffer`` bytes arrive without a match
    """
    if not targets:
        raise ValueError("at least one target is required")

    policy = negotiation or PassThrough()
    patterns = [target.encode("utf-8") for target in targets]
    buffer = bytearray()

    while True:
        try:
            byte = transport.read_byte()
            if policy.handle(byte, transport):
                continue
        except pexpect.TIMEOUT as e:
            raise MatchError(
                f"timed out waiting for {list(targets)!r}",
                targets,
                decode(buffer),
            ) from e
        except pexpect.EOF as e:
            raise MatchError(
                f"connection closed while waiting for {list(targets)!r}",
                targets,
                decode(buffer),
            ) from e
        except OSError as e:
            raise MatchError(
                f"read failed while waiting for {list(targets)!r}: {e}",
                targets,
                decode(buffer),
            ) from e

        buffer += byte
        # no earlier byte completed a match, so a new one must end here
        for pattern in patterns:
            if buffer.endswith(pattern):
                return decode(buffer)

        if len(buffer) >= max_buffer:
            raise BufferLimitError(
                f"received {len(buffer)} bytes without seeing {list(targets)!r}",
                targets,
                decode(buffer),
                limit=max_buffer,
            )
