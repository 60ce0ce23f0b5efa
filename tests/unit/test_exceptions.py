"""Tests for error formatting and logging setup."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import pytest

from dnsname.exceptions import (
    DuplicateNameError,
    ErrorHandler,
    FirewallError,
    format_error_message,
)
from dnsname.log_config import setup_logging

pytestmark = pytest.mark.unit


def test_duplicate_name_error_carries_name():
    error = DuplicateNameError("web", kind="Alias")
    assert error.name == "web"
    assert str(error) == "Alias web already exists"
    assert format_error_message(error) == "dnsname error: Alias web already exists (name=web, kind=Alias)"


def test_format_plain_exception():
    assert format_error_message(ValueError("nope")) == "ValueError: nope"


def test_handle_subprocess_error_maps_called_process_error():
    handler = ErrorHandler()
    error = subprocess.CalledProcessError(3, ["iptables", "-C"], stderr="boom")
    with pytest.raises(FirewallError) as exc_info:
        handler.handle_subprocess_error(["iptables", "-C"], error, FirewallError, "iptables")
    assert exc_info.value.details["returncode"] == 3
    assert exc_info.value.details["stderr"] == "boom"
    assert exc_info.value.__cause__ is error


def test_setup_logging_with_file(tmp_path: Path):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    log_file = tmp_path / "logs" / "dnsname.log"
    try:
        setup_logging(verbose=True, log_file=log_file)
        logging.getLogger("dnsname.test").debug("hello")
        for handler in root.handlers:
            handler.flush()
        assert root.level == logging.DEBUG
        assert "hello" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)
