"""Runtime settings loaded from the environment and an optional dotenv file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from .exceptions import DnsNameConfigError

__all__ = ["Settings"]

DEFAULT_RUNTIME_DIR = "/run/containers/cni/dnsname"
DEFAULT_DNSMASQ_BINARY = "/usr/sbin/dnsmasq"
DEFAULT_DOMAIN = "dns.podman"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class Settings:
    """Where per-network state lives and which binaries drive it."""

    runtime_dir: Path = Path(DEFAULT_RUNTIME_DIR)
    dnsmasq_binary: str = DEFAULT_DNSMASQ_BINARY
    domain: str = DEFAULT_DOMAIN
    iptables_binary: str = "iptables"
    lock_timeout: float = -1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Load settings from ``DNSNAME_*`` variables.

        Values in ``env_file`` (dotenv format) are used when the process
        environment does not set the same variable.
        """
        values: Dict[str, Optional[str]] = {}
        if env_file and Path(env_file).exists():
            values.update(dotenv_values(env_file))
        values.update({k: v for k, v in os.environ.items() if k.startswith("DNSNAME_")})

        def _get(key: str, default: str) -> str:
            value = values.get(key)
            return default if value is None or value == "" else value

        try:
            lock_timeout = float(_get("DNSNAME_LOCK_TIMEOUT", "-1"))
        except ValueError as exc:
            raise DnsNameConfigError(
                f"Invalid DNSNAME_LOCK_TIMEOUT: {values.get('DNSNAME_LOCK_TIMEOUT')}"
            ) from exc

        return cls(
            runtime_dir=Path(_get("DNSNAME_RUNTIME_DIR", DEFAULT_RUNTIME_DIR)),
            dnsmasq_binary=_get("DNSNAME_DNSMASQ_BINARY", DEFAULT_DNSMASQ_BINARY),
            domain=_get("DNSNAME_DOMAIN", DEFAULT_DOMAIN),
            iptables_binary=_get("DNSNAME_IPTABLES_BINARY", "iptables"),
            lock_timeout=lock_timeout,
            log_level=_get("DNSNAME_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        if self.log_level not in _VALID_LOG_LEVELS:
            raise DnsNameConfigError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}",
                {"log_level": self.log_level},
            )
        if not self.domain.strip():
            raise DnsNameConfigError("Domain must not be empty")
        if self.lock_timeout == 0:
            raise DnsNameConfigError(
                "Lock timeout must be positive, or negative to wait forever",
                {"lock_timeout": self.lock_timeout},
            )

    def network_dir(self, interface: str) -> Path:
        """Directory holding the state for the network bridged on ``interface``."""
        return Path(self.runtime_dir) / interface
