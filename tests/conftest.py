"""Shared fixtures."""

import socket

import pytest


@pytest.fixture
def unused_port() -> int:
    """Return a local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams of earlier tests."""
    yield
    from lib.shellprobe import logging as probe_logging

    if probe_logging._logger is not None:
        probe_logging._logger.handlers.clear()
    probe_logging._logger = None
