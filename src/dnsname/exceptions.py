"""
dnsname custom exceptions and error handling utilities.

This module provides the exception hierarchy shared by the record store,
the lock manager and the collaborators that drive the resolution service.
"""

from __future__ import annotations

import logging
import subprocess
import traceback
from typing import Optional, Any, Dict


class DnsNameError(Exception):
    """Base exception for all dnsname-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DnsNameConfigError(DnsNameError):
    """Raised when settings are invalid."""

    pass


class DnsNameValidationError(DnsNameError):
    """Raised when input validation fails."""

    pass


class DuplicateNameError(DnsNameError):
    """Raised when an append would admit a name that is already present.

    The hosts file is left untouched when this is raised.
    """

    def __init__(self, name: str, kind: str = "Host"):
        super().__init__(f"{kind} {name} already exists", {"name": name, "kind": kind})
        self.name = name
        self.kind = kind


class LockError(DnsNameError):
    """Raised when the network lock cannot be acquired, released or is not held."""

    pass


class HostsRestoreError(DnsNameError):
    """Raised when a failed remove could not put the original hosts file back.

    ``details["backup"]`` names the backup that still holds the original data.
    """

    pass


class RenderError(DnsNameError):
    """Raised when the dnsmasq configuration template cannot be rendered."""

    pass


class FirewallError(DnsNameError):
    """Raised when iptables operations fail."""

    pass


class ServiceError(DnsNameError):
    """Raised when the dnsmasq process cannot be started or signalled."""

    pass


class ErrorHandler:
    """Centralized error handling utilities."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def log_and_raise(
        self,
        exception_class: type[DnsNameError],
        message: str,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an error and raise a dnsname exception."""
        error_details = details or {}

        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_type"] = type(original_error).__name__

        self.logger.error(message)
        if original_error:
            self.logger.debug(f"Original error: {original_error}")
            self.logger.debug(f"Traceback: {traceback.format_exc()}")

        raise exception_class(message, error_details) from original_error

    def handle_subprocess_error(
        self,
        cmd: list[str],
        error: Exception,
        exception_class: type[DnsNameError] = DnsNameError,
        operation: str = "command execution",
    ) -> None:
        """Handle subprocess errors consistently."""
        if isinstance(error, subprocess.CalledProcessError):
            stderr = error.stderr if error.stderr else "No error output"
            details = {
                "command": " ".join(cmd),
                "returncode": error.returncode,
                "stderr": stderr,
            }
            self.log_and_raise(
                exception_class,
                f"Failed {operation}: {' '.join(cmd)}",
                error,
                details,
            )
        elif isinstance(error, subprocess.TimeoutExpired):
            details = {"command": " ".join(cmd), "timeout": error.timeout}
            self.log_and_raise(
                exception_class,
                f"Command timed out after {error.timeout}s: {' '.join(cmd)}",
                error,
                details,
            )
        elif isinstance(error, FileNotFoundError):
            self.log_and_raise(
                exception_class,
                f"Executable not found for {operation}: {cmd[0]}",
                error,
                {"command": " ".join(cmd)},
            )
        else:
            self.log_and_raise(
                exception_class,
                f"Unexpected error during {operation}",
                error,
                {"command": " ".join(cmd)},
            )


def format_error_message(error: Exception, include_traceback: bool = False) -> str:
    """Format error messages consistently."""
    if isinstance(error, DnsNameError):
        message = f"dnsname error: {error.message}"
        details = {k: v for k, v in error.details.items() if k != "original_type"}
        if details:
            message += " (" + ", ".join(f"{k}={v}" for k, v in details.items()) + ")"
    else:
        message = f"{type(error).__name__}: {str(error)}"

    if include_traceback:
        message += f"\n{traceback.format_exc()}"

    return message
