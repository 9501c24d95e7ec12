"""Configuration for shell probes."""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from lib.shellprobe.exceptions import ConfigurationError


class ProbeVariant(str, Enum):
    """Probe behaviour selected per target."""

    TELNET = "telnet"
    LINE = "line"


class ProbeConfig(BaseModel):
    """Validated, read-only description of one probe target."""

    # YAML turns bare numbers such as a PIN password into ints
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    server: str
    port: int = 22
    username: str
    password: str
    command: str
    expected_output: str = ""

    @field_validator("server", "username", "password", "command")
    @classmethod
    def _required(cls, value: str, info: ValidationInfo) -> str:
        if value == "":
            raise ValueError(f"{info.field_name} is required; got {value!r}")
        return value

    @field_validator("port")
    @classmethod
    def _port_range(cls, value: int) -> int:
        if value <= 0 or value > 65535:
            raise ValueError(f"port must be between 1 and 65535; got {value}")
        return value


class ProbeSettings(BaseSettings):
    """Defaults shared by every probe, read from ``SHELLPROBE_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="SHELLPROBE_",
        case_sensitive=False,
        extra="ignore",
    )

    timeout: float = Field(default=10.0, gt=0, description="Probe time budget in seconds")
    variant: ProbeVariant = Field(default=ProbeVariant.LINE, description="Probe variant")
    max_buffer: int = Field(
        default=1024 * 1024,
        gt=0,
        description="Maximum bytes gathered while waiting for one prompt",
    )
    settle_delay: float = Field(
        default=0.5,
        ge=0,
        description="Pause before sending the command in the line variant",
    )
    idle_timeout: float = Field(
        default=0.25,
        gt=0,
        description="Silence that ends command output in the line variant",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Enable JSON logging")
    log_file: str | None = Field(default=None, description="Log file path")


def _config_error(exc: ValidationError) -> ConfigurationError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or None
    message = error["msg"]
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    elif field:
        message = f"{field}: {message}"
    return ConfigurationError(message, field=field)


def validate(raw: "str | bytes | dict[str, Any] | ProbeConfig") -> ProbeConfig:
    """Validate a probe configuration.

    Parameters
    ----------
    raw : str | bytes | dict[str, Any] | ProbeConfig
        YAML or JSON document, mapping, or an existing configuration

    Returns
    -------
    ProbeConfig
        Validated configuration

    Raises
    ------
    ConfigurationError
        If the document cannot be parsed or a field is invalid
    """
    if isinstance(raw, ProbeConfig):
        return raw

    if isinstance(raw, (str, bytes)):
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid configuration document: {e}") from e
    else:
        data = raw

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"configuration must be a mapping; got {type(data).__name__}"
        )

    try:
        return ProbeConfig(**data)
    except ValidationError as e:
        raise _config_error(e) from e


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read a probe configuration file without validating it.

    A top-level ``probe`` section is used when present.

    Parameters
    ----------
    path : str | Path
        Path to a YAML or JSON file

    Returns
    -------
    dict[str, Any]
        Raw configuration values

    Raises
    ------
    ConfigurationError
        If the file is missing or invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid configuration file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"configuration must be a mapping; got {type(data).__name__}"
        )
    if isinstance(data.get("probe"), dict):
        data = data["probe"]

    return data


def load_probe_config(path: str | Path) -> ProbeConfig:
    """Load and validate a probe configuration file."""
    return validate(read_config_file(path))


def load_settings() -> ProbeSettings:
    """Load probe defaults from the environment."""
    try:
        return ProbeSettings()
    except ValidationError as e:
        raise _config_error(e) from e
