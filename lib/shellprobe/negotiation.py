"""Telnet option refusal.

The probe never agrees to a telnet option. Every ``DO`` is answered with
``WONT`` and every ``WILL`` with ``DONT``; everything else is dropped so the
prompt matcher only sees application text.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

import pexpect

from lib.shellprobe.logging import log_debug

if TYPE_CHECKING:
    from lib.shellprobe.transport import Transport

IAC = 0xFF  # Interpret As Command
DONT = 0xFE
DO = 0xFD
WONT = 0xFC
WILL = 0xFB
SB = 0xFA  # Subnegotiation Begin
SE = 0xF0  # Subnegotiation End

COMMAND_NAMES = {DO: "DO", DONT: "DONT", WILL: "WILL", WONT: "WONT"}


class NegotiationState(Enum):
    """Position inside a control sequence."""

    NORMAL = "normal"
    ESCAPE = "escape"
    COMMAND = "command"
    SUBNEGOTIATION = "subnegotiation"
    SUBNEGOTIATION_ESCAPE = "subnegotiation_escape"


class OptionNegotiator:
    """Byte-at-a-time state machine that strips and refuses telnet options."""

    def __init__(self) -> None:
        self.state = NegotiationState.NORMAL
        self.command: int | None = None

    @property
    def idle(self) -> bool:
        """True when no control sequence is in progress."""
        return self.state is NegotiationState.NORMAL

    def feed(self, byte: int) -> tuple[bytes, bytes]:
        """Advance by one inbound byte.

        Parameters
        ----------
        byte : int
            Inbound byte value

        Returns
        -------
        tuple[bytes, bytes]
            Application data to forward (zero or one byte) and the reply to
            send to the peer (empty or one refusal triple)
        """
        state = self.state

        if state is NegotiationState.NORMAL:
            if byte == IAC:
                self.state = NegotiationState.ESCAPE
                return b"", b""
            return bytes([byte]), b""

        if state is NegotiationState.ESCAPE:
            if byte in COMMAND_NAMES:
                self.state = NegotiationState.COMMAND
                self.command = byte
            elif byte == SB:
                self.state = NegotiationState.SUBNEGOTIATION
            else:
                # two byte command, IAC IAC included
                self.state = NegotiationState.NORMAL
            return b"", b""

        if state is NegotiationState.COMMAND:
            command, self.command = self.command, None
            self.state = NegotiationState.NORMAL
            if command == DO:
                return b"", bytes([IAC, WONT, byte])
            if command == WILL:
                return b"", bytes([IAC, DONT, byte])
            return b"", b""

        if state is NegotiationState.SUBNEGOTIATION:
            if byte == IAC:
                self.state = NegotiationState.SUBNEGOTIATION_ESCAPE
            return b"", b""

        # SUBNEGOTIATION_ESCAPE: only IAC SE ends the block. An escaped IAC
        # inside the data is not special and consumes the following byte.
        if byte == SE:
            self.state = NegotiationState.NORMAL
        else:
            self.state = NegotiationState.SUBNEGOTIATION
        return b"", b""

    def filter_bytes(self, data: bytes) -> tuple[bytes, list[bytes]]:
        """Run a whole chunk through the machine.

        Returns
        -------
        tuple[bytes, list[bytes]]
            Application payload and the replies in emission order
        """
        payload = bytearray()
        replies: list[bytes] = []
        for byte in data:
            out, reply = self.feed(byte)
            payload += out
            if reply:
                replies.append(reply)
        return bytes(payload), replies


class NegotiationPolicy(ABC):
    """Decides what happens to each raw byte before prompt matching."""

    name: str = "unknown"

    @abstractmethod
    def handle(self, byte: bytes, transport: "Transport") -> bool:
        """Offer one raw byte to the policy.

        Parameters
        ----------
        byte : bytes
            The byte just read
        transport : Transport
            Connection the byte came from; replies are written to it

        Returns
        -------
        bool
            True if the byte was consumed and must not reach the buffer
        """


class PassThrough(NegotiationPolicy):
    """Leave every byte to the matcher."""

    name = "pass-through"

    def handle(self, byte: bytes, transport: "Transport") -> bool:
        return False


class RefuseOptions(NegotiationPolicy):
    """Strip telnet control sequences and refuse every option inline."""

    name = "refuse"

    def handle(self, byte: bytes, transport: "Transport") -> bool:
        if byte[0] != IAC:
            return False

        negotiator = OptionNegotiator()
        negotiator.feed(IAC)
        while not negotiator.idle:
            try:
                raw = transport.read_byte()
            except (pexpect.TIMEOUT, pexpect.EOF, OSError):
                # the matcher's next read reports the failure
                return True

            _, reply = negotiator.feed(raw[0])
            if reply:
                # replies go out before the next read, never batched
                transport.write(reply)
                log_debug(
                    f"replied IAC {COMMAND_NAMES[reply[1]]} {reply[2]}",
                    server=getattr(transport, "address", None),
                )
        return True
