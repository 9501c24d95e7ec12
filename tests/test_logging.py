"""Tests for probe logging."""

import json
import logging

from lib.shellprobe.logging import JsonFormatter, TextFormatter, get_logger, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("lib.shellprobe", logging.INFO, __file__, 1, "Output matched", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields() -> None:
    """Test extra fields appear in JSON entries."""
    entry = json.loads(JsonFormatter().format(make_record(server="box", stage="login", duration=0.5)))
    assert entry["message"] == "Output matched"
    assert entry["level"] == "INFO"
    assert entry["server"] == "box"
    assert entry["stage"] == "login"
    assert entry["duration"] == 0.5


def test_text_formatter_prefix() -> None:
    """Test the server prefix in text entries."""
    line = TextFormatter().format(make_record(server="box"))
    assert line.endswith("[INFO] [box] Output matched")


def test_text_formatter_without_server() -> None:
    """Test entries without a server."""
    assert TextFormatter().format(make_record()).endswith("[INFO] Output matched")


def test_setup_logging_file(tmp_path) -> None:
    """Test logging to a file."""
    log_file = tmp_path / "probe.log"
    setup_logging(level=logging.DEBUG, json_output=True, log_file=str(log_file))
    try:
        get_logger().debug("dialing", extra={"server": "box"})
        for handler in get_logger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["server"] == "box"
    finally:
        for handler in get_logger().handlers:
            handler.close()
