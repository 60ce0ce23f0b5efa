"""dnsname - per-network host records for dnsmasq"""
from __future__ import annotations

__version__ = "0.1.0"

from .exceptions import DnsNameError, DuplicateNameError, LockError  # noqa: E402
from .hosts import HostRecord, HostsFile, RemoveResult  # noqa: E402
from .lock import NetworkLock  # noqa: E402
from .dnsmasq_config import ServiceConfig, ensure_config  # noqa: E402

__all__: list[str] = [
    "DnsNameError",
    "DuplicateNameError",
    "LockError",
    "HostRecord",
    "HostsFile",
    "RemoveResult",
    "NetworkLock",
    "ServiceConfig",
    "ensure_config",
]
