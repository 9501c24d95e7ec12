"""Single-attempt probe entry points."""

import time
from typing import Any

from pydantic import BaseModel, Field

from lib.shellprobe.config import ProbeConfig, ProbeSettings, ProbeVariant, load_settings, validate
from lib.shellprobe.exceptions import ConfigurationError, ProbeError
from lib.shellprobe.logging import log_error, log_info, log_success
from lib.shellprobe.sequencers.registry import get_sequencer
from lib.shellprobe.transport import deadline_after


class ProbeResult(BaseModel):
    """Outcome of a passing probe."""

    server: str = Field(..., description="Probed server")
    port: int = Field(..., description="Probed port")
    variant: ProbeVariant = Field(..., description="Probe variant used")
    output: str = Field(..., description="Captured command output")
    duration: float = Field(..., description="Probe duration in seconds")


def run(
    config: "str | bytes | dict[str, Any] | ProbeConfig",
    deadline: float | None = None,
    timeout: float | None = None,
    variant: "str | ProbeVariant | None" = None,
    settings: ProbeSettings | None = None,
) -> ProbeResult:
    """Probe one target once.

    The configuration is validated before any network activity. Every
    failure is raised to the caller, which owns retries.

    Parameters
    ----------
    config : str | bytes | dict[str, Any] | ProbeConfig
        Probe target as a YAML/JSON document, mapping or validated record
    deadline : float | None, optional
        Absolute ``time.monotonic()`` deadline, by default None
    timeout : float | None, optional
        Budget in seconds, used when ``deadline`` is None
    variant : str | ProbeVariant | None, optional
        Probe variant, by default ``settings.variant``
    settings : ProbeSettings | None, optional
        Probe settings, by default loaded from the environment

    Returns
    -------
    ProbeResult
        Result of the passing probe

    Raises
    ------
    ConfigurationError
        If the configuration, variant or deadline is missing or invalid
    ProbeError
        If the probe fails
    """
    probe_config = validate(config)
    settings = settings or load_settings()

    if deadline is None:
        if timeout is None:
            raise ConfigurationError("deadline is not set")
        deadline = deadline_after(timeout)

    try:
        sequencer = get_sequencer(variant, settings)
    except ValueError as e:
        raise ConfigurationError(str(e), field="variant") from e

    server = probe_config.server
    log_info(
        f"Probing {server}:{probe_config.port}",
        server=server,
        variant=sequencer.name,
    )

    start = time.monotonic()
    try:
        output = sequencer.run(probe_config, deadline)
    except ProbeError as e:
        extra: dict[str, Any] = {"variant": sequencer.name}
        if getattr(e, "stage", None):
            extra["stage"] = e.stage
        log_error(
            f"Probe failed: {e.message}",
            server=server,
            duration=round(time.monotonic() - start, 3),
            **extra,
        )
        raise

    duration = time.monotonic() - start
    log_success(
        f"Probe passed in {duration:.2f}s",
        server=server,
        variant=sequencer.name,
        duration=round(duration, 3),
    )
    return ProbeResult(
        server=server,
        port=probe_config.port,
        variant=sequencer.variant,
        output=output,
        duration=duration,
    )


__all__ = ["ProbeResult", "run", "validate"]
