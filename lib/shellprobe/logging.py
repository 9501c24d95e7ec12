"""Structured logging for shell probes."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Default logger
_logger: logging.Logger | None = None
_json_mode = False

_EXTRA_FIELDS = ("server", "stage", "variant", "duration")


def setup_logging(
    level: int = logging.INFO,
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """Set up logging configuration.

    Parameters
    ----------
    level : int, optional
        Logging level, by default logging.INFO
    json_output : bool, optional
        Enable JSON output format, by default False
    log_file : str | None, optional
        Log file path, by default None (stderr only)
    """
    global _logger, _json_mode

    _json_mode = json_output
    _logger = logging.getLogger("lib.shellprobe")
    _logger.setLevel(level)
    _logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if json_output else TextFormatter()

    # stdout carries probe results, keep log lines out of it
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    _logger.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter() if json_output else TextFormatter())
        _logger.addHandler(file_handler)


def get_logger() -> logging.Logger:
    """Get the probe logger.

    Returns
    -------
    logging.Logger
        Logger instance
    """
    global _logger

    if _logger is None:
        setup_logging()

    return _logger


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Log record

        Returns
        -------
        str
            JSON-formatted log entry
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Plain text formatter with a server prefix."""

    def __init__(self) -> None:
        super().__init__(
            fmt="[%(asctime)s] [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as text.

        Parameters
        ----------
        record : logging.LogRecord
            Log record

        Returns
        -------
        str
            Text-formatted log entry
        """
        message = super().format(record)
        if hasattr(record, "server"):
            prefix = f"[{record.levelname}] "
            message = message.replace(prefix, f"{prefix}[{record.server}] ", 1)
        return message


def _log(level: int, message: str, server: str | None, **kwargs: Any) -> None:
    extra = kwargs.copy()
    if server:
        extra["server"] = server
    get_logger().log(level, message, extra=extra)


def log_debug(message: str, server: str | None = None, **kwargs: Any) -> None:
    """Log debug message."""
    _log(logging.DEBUG, message, server, **kwargs)


def log_info(message: str, server: str | None = None, **kwargs: Any) -> None:
    """Log info message.

    Parameters
    ----------
    message : str
        Log message
    server : str | None, optional
        Probed server, by default None
    **kwargs : Any
        Additional log fields
    """
    _log(logging.INFO, message, server, **kwargs)


def log_error(message: str, server: str | None = None, **kwargs: Any) -> None:
    """Log error message.

    Parameters
    ----------
    message : str
        Log message
    server : str | None, optional
        Probed server, by default None
    **kwargs : Any
        Additional log fields
    """
    _log(logging.ERROR, message, server, **kwargs)


def log_success(message: str, server: str | None = None, **kwargs: Any) -> None:
    """Log success message."""
    _log(logging.INFO, f"SUCCESS: {message}", server, **kwargs)
