"""Plain line-oriented probe."""

import time

import pexpect

from lib.shellprobe.config import ProbeConfig, ProbeVariant
from lib.shellprobe.exceptions import AuthenticationError, PromptTimeoutError
from lib.shellprobe.logging import log_debug
from lib.shellprobe.sequencers.base import ProbeSequencer
from lib.shellprobe.transport import Transport

LOGIN_PROMPT = "login:"
PASSWORD_PROMPT = "Password:"


class LineProbe(ProbeSequencer):
    """Reads whole lines and compares trimmed output exactly.

    Control bytes are passed through untouched. The end of command output is
    the first read that stays silent for ``idle_timeout`` seconds.
    """

    name = "line"
    variant = ProbeVariant.LINE
    line_ending = "\n"
    encoding = "utf-8"

    def exchange(self, transport: Transport, config: ProbeConfig) -> str:
        self.read_lines_until(transport, config, "login", LOGIN_PROMPT)
        self.send(transport, config, "login", config.username)

        self.read_lines_until(transport, config, "password", PASSWORD_PROMPT)
        self.send(transport, config, "password", config.password)

        line = self.read_line(transport, config, "shell")
        if LOGIN_PROMPT in line:
            raise AuthenticationError("Login failed", server=config.server, buffer=line)

        # give the remote shell time to settle
        time.sleep(min(self.settings.settle_delay, transport.remaining()))
        self.send(transport, config, "command", config.command)

        return self.capture(transport, config)

    def read_line(
        self,
        transport: Transport,
        config: ProbeConfig,
        stage: str,
        prompt: str | None = None,
        seen: list[str] | None = None,
    ) -> str:
        """Read one line, mapping read failures to a stage timeout."""
        try:
            return transport.read_line()
        except pexpect.TIMEOUT as e:
            cause: Exception = e
            reason = "timed out"
        except pexpect.EOF as e:
            cause = e
            reason = "connection closed"
        except OSError as e:
            cause = e
            reason = f"read failed: {e}"

        raise PromptTimeoutError(
            f"{stage} prompt not received: {reason}",
            stage=stage,
            server=config.server,
            targets=[prompt] if prompt else [],
            buffer="".join(seen or []) + transport.pending,
            timeout=transport.budget,
        ) from cause

    def read_lines_until(
        self,
        transport: Transport,
        config: ProbeConfig,
        stage: str,
        prompt: str,
    ) -> str:
        """Read lines until one contains ``prompt``."""
        log_debug(f"Waiting for {stage} prompt {prompt!r}", server=config.server, stage=stage)
        seen: list[str] = []
        while True:
            line = self.read_line(transport, config, stage, prompt, seen)
            if prompt in line:
                return line
            seen.append(line)

    def capture(self, transport: Transport, config: ProbeConfig) -> str:
        """Collect lines until the server stays idle."""
        lines: list[str] = []
        while True:
            idle_deadline = min(time.monotonic() + self.settings.idle_timeout, transport.deadline)
            try:
                lines.append(transport.read_line(idle_deadline))
            except (pexpect.TIMEOUT, pexpect.EOF, OSError):
                # an unterminated tail, such as the next prompt, is dropped
                break
        log_debug(f"Captured {len(lines)} output lines", server=config.server, stage="output")
        return "".join(lines)

    def verify(self, output: str, expected: str) -> bool:
        return output.strip() == expected.strip()

    def mismatch_message(self, output: str, expected: str) -> str:
        return f'expected output "{expected.strip()}" but got "{output.strip()}"'
