"""Exceptions raised by shell probes."""


class ProbeError(Exception):
    """Base exception for all probe errors."""

    def __init__(self, message: str, server: str | None = None) -> None:
        """Initialize probe error.

        Parameters
        ----------
        message : str
            Error message
        server : str | None, optional
            Probed server if applicable, by default None
        """
        super().__init__(message)
        self.message = message
        self.server = server

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.server:
            return f"[{self.server}] {self.message}"
        return self.message


class ConfigurationError(ProbeError):
    """Raised when a probe configuration is rejected."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DialError(ProbeError):
    """Raised when the connection to the server cannot be established."""

    def __init__(
        self,
        message: str,
        server: str | None = None,
        address: str | None = None,
    ) -> None:
        super().__init__(message, server)
        self.address = address


class MatchError(ProbeError):
    """Raised when waiting for a prompt ends without a match.

    The partial text gathered up to the failure is kept in ``buffer``.
    """

    def __init__(
        self,
        message: str,
        targets: list[str] | tuple[str, ...],
        buffer: str = "",
        server: str | None = None,
    ) -> None:
        """Initialize match error.

        Parameters
        ----------
        message : str
            Error message
        targets : list[str] | tuple[str, ...]
            Substrings that were being awaited
        buffer : str, optional
            Text received before the failure, by default ""
        server : str | None, optional
            Probed server, by default None
        """
        super().__init__(message, server)
        self.targets = list(targets)
        self.buffer = buffer


class BufferLimitError(MatchError):
    """Raised when a peer sends more unmatched output than allowed."""

    def __init__(
        self,
        message: str,
        targets: list[str] | tuple[str, ...],
        buffer: str = "",
        limit: int = 0,
        server: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, targets, buffer, server)
        self.limit = limit
        self.stage = stage


class SendError(ProbeError):
    """Raised when writing to the server fails."""

    def __init__(
        self,
        message: str,
        server: str | None = None,
        address: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, server)
        self.address = address
        self.stage = stage


class PromptTimeoutError(ProbeError):
    """Raised when a probe stage does not see its prompt in time."""

    def __init__(
        self,
        message: str,
        stage: str,
        server: str | None = None,
        targets: list[str] | tuple[str, ...] = (),
        buffer: str = "",
        timeout: float | None = None,
    ) -> None:
        """Initialize prompt timeout error.

        Parameters
        ----------
        message : str
            Error message
        stage : str
            Probe stage: ``login``, ``password``, ``shell`` or ``output``
        server : str | None, optional
            Probed server, by default None
        targets : list[str] | tuple[str, ...], optional
            Prompts that were being awaited, by default ()
        buffer : str, optional
            Text received during the stage, by default ""
        timeout : float | None, optional
            Probe time budget in seconds, by default None
        """
        super().__init__(message, server)
        self.stage = stage
        self.targets = list(targets)
        self.buffer = buffer
        self.timeout = timeout


class AuthenticationError(ProbeError):
    """Raised when the server asks for a login again after the password."""

    def __init__(self, message: str, server: str | None = None, buffer: str = "") -> None:
        super().__init__(message, server)
        self.buffer = buffer


class OutputMismatchError(ProbeError):
    """Raised when the command output does not match the expected output."""

    def __init__(
        self,
        message: str,
        server: str | None = None,
        command: str | None = None,
        expected: str = "",
        output: str = "",
    ) -> None:
        """Initialize output mismatch error.

        Parameters
        ----------
        message : str
            Error message
        server : str | None, optional
            Probed server, by default None
        command : str | None, optional
            Command that was run, by default None
        expected : str, optional
            Expected output, by default ""
        output : str, optional
            Captured output, by default ""
        """
        super().__init__(message, server)
        self.command = command
        self.expected = expected
        self.output = output
