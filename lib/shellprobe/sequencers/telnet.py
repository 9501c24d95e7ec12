"""Option-aware probe for telnet services."""

from lib.shellprobe.config import ProbeConfig, ProbeVariant
from lib.shellprobe.negotiation import RefuseOptions
from lib.shellprobe.sequencers.base import ProbeSequencer
from lib.shellprobe.transport import Transport

LOGIN_PROMPTS = ["ogin:"]
PASSWORD_PROMPTS = ["assword:"]
SHELL_PROMPTS = ["$ ", "# "]


class TelnetProbe(ProbeSequencer):
    """Refuses telnet options and matches prompts as substrings.

    Passes when the text captured after the command, trailing prompt
    included, contains the expected output.
    """

    name = "telnet"
    variant = ProbeVariant.TELNET
    line_ending = "\r\n"
    encoding = None
    negotiation_class = RefuseOptions

    def exchange(self, transport: Transport, config: ProbeConfig) -> str:
        self.wait_for(transport, config, "login", LOGIN_PROMPTS)
        self.send(transport, config, "login", config.username)

        self.wait_for(transport, config, "password", PASSWORD_PROMPTS)
        # the password prompt is answered with the username (see DESIGN.md)
        self.send(transport, config, "password", config.username)

        self.wait_for(transport, config, "shell", SHELL_PROMPTS)
        self.send(transport, config, "command", config.command)

        return self.wait_for(transport, config, "output", SHELL_PROMPTS)

    def verify(self, output: str, expected: str) -> bool:
        return expected in output

    def mismatch_message(self, output: str, expected: str) -> str:
        return f'expected output "{expected}" not found in "{output}"'
