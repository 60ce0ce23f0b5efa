"""Attach and detach containers to a network's name resolution.

The lock is held only around file mutations; signalling dnsmasq happens
after it is released.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .config import Settings
from .dnsmasq_config import ServiceConfig, ensure_config
from .firewall import FirewallManager
from .hosts import AddressLike, HostRecord, HostsFile, RemoveResult
from .lock import NetworkLock
from .network import interface_addresses, interface_exists
from .service import DnsmasqService

__all__ = ["DnsNamePlugin"]

logger = logging.getLogger("dnsname.plugin")


class DnsNamePlugin:
    """Entry points used by network attach/detach handlers."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.firewall = FirewallManager(self.settings.iptables_binary)

    def service_config(self, interface: str, domain: Optional[str] = None) -> ServiceConfig:
        return ServiceConfig.for_interface(self.settings, interface, domain)

    def _lock(self, conf: ServiceConfig) -> NetworkLock:
        return NetworkLock(conf.lock_file, timeout=self.settings.lock_timeout)

    def _service(self, conf: ServiceConfig) -> DnsmasqService:
        return DnsmasqService(conf)

    def attach(
        self,
        interface: str,
        name: str,
        aliases: Sequence[str],
        addresses: Iterable[AddressLike],
        domain: Optional[str] = None,
    ) -> List[HostRecord]:
        """Publish ``name`` and ``aliases`` for ``addresses`` on ``interface``."""
        conf = self.service_config(interface, domain)
        conf.directory.mkdir(parents=True, exist_ok=True, mode=0o700)

        with self._lock(conf) as lock:
            ensure_config(conf)
            records = HostsFile(conf.hosts_file, lock).append(name, aliases, addresses)
            self.firewall.ensure_allow_rule(interface)

        service = self._service(conf)
        if service.is_running():
            service.reload()
        else:
            service.start()
        logger.info(f"Attached {name} to {interface} ({len(records)} records)")
        return records

    def detach(self, interface: str, name: str, domain: Optional[str] = None) -> RemoveResult:
        """Withdraw every record whose primary name is ``name``.

        When records remain dnsmasq is reloaded. When the network has none
        left, dnsmasq is stopped and the firewall rule removed.
        """
        conf = self.service_config(interface, domain)

        with self._lock(conf) as lock:
            result = HostsFile(conf.hosts_file, lock).remove(name)

        if not result.found:
            return result

        service = self._service(conf)
        if result.should_reload:
            if service.is_running():
                service.reload()
                result.reloaded = True
            else:
                message = f"dnsmasq for {interface} is not running, nothing to reload"
                logger.warning(message)
                result.warnings.append(message)
        else:
            service.stop()
            self.firewall.ensure_remove_rule(interface)
        logger.info(f"Detached {name} from {interface}")
        return result

    def records(self, interface: str) -> List[HostRecord]:
        conf = self.service_config(interface)
        return HostsFile(conf.hosts_file, self._lock(conf)).records()

    def check(self, interface: str, domain: Optional[str] = None) -> List[str]:
        """Return a list of problems with the network's setup, empty if healthy."""
        conf = self.service_config(interface, domain)
        problems: List[str] = []
        if not interface_exists(interface):
            problems.append(f"interface {interface} does not exist")
        elif not interface_addresses(interface):
            problems.append(f"interface {interface} has no addresses for dnsmasq to bind")
        if not conf.config_file.exists():
            problems.append(f"dnsmasq configuration {conf.config_file} is missing")
        if not conf.hosts_file.exists():
            problems.append(f"hosts file {conf.hosts_file} is missing")
        if not self._service(conf).is_running():
            problems.append(f"dnsmasq for {interface} is not running")
        return problems
