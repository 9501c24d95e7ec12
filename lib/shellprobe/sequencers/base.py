"""Base probe sequencer."""

from abc import ABC, abstractmethod
from typing import Sequence

from lib.shellprobe.config import ProbeConfig, ProbeSettings, ProbeVariant
from lib.shellprobe.exceptions import (
    BufferLimitError,
    MatchError,
    OutputMismatchError,
    PromptTimeoutError,
    SendError,
)
from lib.shellprobe.logging import log_debug, log_info
from lib.shellprobe.matcher import read_until_any
from lib.shellprobe.negotiation import NegotiationPolicy, PassThrough
from lib.shellprobe.transport import Transport


class ProbeSequencer(ABC):
    """Runs one login, command and verification exchange.

    Subclasses choose how raw bytes are negotiated, how lines end, how the
    exchange proceeds and how output is judged.
    """

    name: str = "unknown"
    variant: ProbeVariant
    line_ending: str = "\r\n"
    encoding: str | None = None
    negotiation_class: type[NegotiationPolicy] = PassThrough

    def __init__(self, settings: ProbeSettings | None = None) -> None:
        """Initialize sequencer.

        Parameters
        ----------
        settings : ProbeSettings | None, optional
            Tuning values, by default the environment defaults
        """
        self.settings = settings or ProbeSettings()
        self.negotiation = self.negotiation_class()

    @abstractmethod
    def exchange(self, transport: Transport, config: ProbeConfig) -> str:
        """Drive the conversation and return the captured command output."""

    @abstractmethod
    def verify(self, output: str, expected: str) -> bool:
        """Decide whether ``output`` satisfies ``expected``."""

    def mismatch_message(self, output: str, expected: str) -> str:
        return f'expected output "{expected}" but got "{output}"'

    def run(self, config: ProbeConfig, deadline: float) -> str:
        """Probe ``config.server`` once before ``deadline``.

        Parameters
        ----------
        config : ProbeConfig
            Validated probe target
        deadline : float
            Absolute monotonic deadline for the whole probe

        Returns
        -------
        str
            Captured command output

        Raises
        ------
        DialError
            If the connection cannot be established
        PromptTimeoutError
            If a stage does not see its prompt
        BufferLimitError
            If a stage gathers too much output without its prompt
        SendError
            If writing to the server fails
        AuthenticationError
            If the login is rejected
        OutputMismatchError
            If the output does not match
        """
        log_debug(
            f"Dialing {config.server}:{config.port}",
            server=config.server,
            variant=self.name,
        )
        transport = Transport.dial(config.server, config.port, deadline, encoding=self.encoding)
        with transport:
            output = self.exchange(transport, config)

        if not self.verify(output, config.expected_output):
            raise OutputMismatchError(
                self.mismatch_message(output, config.expected_output),
                server=config.server,
                command=config.command,
                expected=config.expected_output,
                output=output,
            )

        log_info("Output matched", server=config.server, variant=self.name)
        return output

    def wait_for(
        self,
        transport: Transport,
        config: ProbeConfig,
        stage: str,
        targets: Sequence[str],
    ) -> str:
        """Wait for one of ``targets`` and map failures to the stage."""
        log_debug(f"Waiting for {stage} prompt {list(targets)!r}", server=config.server, stage=stage)
        try:
            return read_until_any(
                transport,
                targets,
                self.negotiation,
                max_buffer=self.settings.max_buffer,
            )
        except BufferLimitError as e:
            raise BufferLimitError(
                f"{stage} prompt not received: {e.message}",
                targets,
                e.buffer,
                limit=e.limit,
                server=config.server,
                stage=stage,
            ) from e
        except MatchError as e:
            raise PromptTimeoutError(
                f"{stage} prompt not received: {e.message}",
                stage=stage,
                server=config.server,
                targets=targets,
                buffer=e.buffer,
                timeout=transport.budget,
            ) from e
        except SendError as e:
            # a refused option could not be written back
            raise self._send_failed(e, config, stage) from e

    def send(self, transport: Transport, config: ProbeConfig, stage: str, text: str) -> None:
        """Send one line, mapping write failures to the stage."""
        try:
            transport.send_line(text, self.line_ending)
        except SendError as e:
            raise self._send_failed(e, config, stage) from e

    def _send_failed(self, error: SendError, config: ProbeConfig, stage: str) -> SendError:
        return SendError(
            f"{stage} stage: {error.message}",
            server=config.server,
            address=error.address,
            stage=stage,
        )
