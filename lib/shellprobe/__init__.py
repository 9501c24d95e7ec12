"""Shell service probes.

Connects to a remote interactive shell, logs in, runs one command and checks
its output. Two exchange variants are available: an option-aware telnet
exchange and a plain line-oriented one.
"""

__version__ = "0.1.0"

from lib.shellprobe.check import ProbeResult, run
from lib.shellprobe.config import ProbeConfig, ProbeSettings, ProbeVariant, validate
from lib.shellprobe.exceptions import (
    AuthenticationError,
    BufferLimitError,
    ConfigurationError,
    DialError,
    MatchError,
    OutputMismatchError,
    ProbeError,
    PromptTimeoutError,
    SendError,
)
from lib.shellprobe.sequencers import LineProbe, TelnetProbe, get_sequencer
from lib.shellprobe.transport import deadline_after

__all__ = [
    "run",
    "validate",
    "deadline_after",
    "get_sequencer",
    "ProbeResult",
    "ProbeConfig",
    "ProbeSettings",
    "ProbeVariant",
    "TelnetProbe",
    "LineProbe",
    "ProbeError",
    "ConfigurationError",
    "DialError",
    "MatchError",
    "BufferLimitError",
    "PromptTimeoutError",
    "SendError",
    "AuthenticationError",
    "OutputMismatchError",
]
