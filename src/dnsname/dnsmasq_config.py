"""dnsmasq configuration for one network.

:class:`ServiceConfig` derives every per-network path from the interface
name; :func:`ensure_config` writes ``dnsmasq.conf`` once and never touches
it again.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Dict, Optional

from .config import Settings
from .exceptions import RenderError

__all__ = ["ServiceConfig", "generate_config", "ensure_config"]

logger = logging.getLogger("dnsname.dnsmasq_config")

HOSTS_FILE_NAME = "addnhosts"
CONFIG_FILE_NAME = "dnsmasq.conf"
LOCAL_SERVERS_FILE_NAME = "localservers.conf"
PID_FILE_NAME = "pidfile"
LOCK_FILE_NAME = "lock"

CONFIG_FILE_MODE = 0o600

DNSMASQ_TEMPLATE = """\
## WARNING: THIS IS AN AUTOGENERATED FILE
## AND SHOULD NOT BE EDITED MANUALLY AS IT
## LIKELY TO AUTOMATICALLY BE REPLACED.
strict-order
local=/${domain}/
domain=${domain}
expand-hosts
pid-file=${pid_file}
except-interface=lo
bind-dynamic
no-hosts
interface=${network_interface}
addn-hosts=${hosts_file}
conf-file=${local_servers_file}"""


@dataclass(frozen=True)
class ServiceConfig:
    """Where dnsmasq for the network on ``network_interface`` keeps its files."""

    network_interface: str
    domain: str
    binary: str
    directory: Path

    @classmethod
    def for_interface(
        cls, settings: Settings, interface: str, domain: Optional[str] = None
    ) -> "ServiceConfig":
        return cls(
            network_interface=interface,
            domain=domain or settings.domain,
            binary=settings.dnsmasq_binary,
            directory=settings.network_dir(interface),
        )

    @property
    def hosts_file(self) -> Path:
        return self.directory / HOSTS_FILE_NAME

    @property
    def config_file(self) -> Path:
        return self.directory / CONFIG_FILE_NAME

    @property
    def local_servers_file(self) -> Path:
        return self.directory / LOCAL_SERVERS_FILE_NAME

    @property
    def pid_file(self) -> Path:
        return self.directory / PID_FILE_NAME

    @property
    def lock_file(self) -> Path:
        return self.directory / LOCK_FILE_NAME

    def template_values(self) -> Dict[str, str]:
        return {
            "domain": self.domain,
            "network_interface": self.network_interface,
            "pid_file": str(self.pid_file),
            "hosts_file": str(self.hosts_file),
            "local_servers_file": str(self.local_servers_file),
        }


def generate_config(conf: ServiceConfig, template: str = DNSMASQ_TEMPLATE) -> str:
    """Fill out the dnsmasq template for ``conf``, with one trailing newline."""
    try:
        rendered = Template(template).substitute(conf.template_values())
    except (KeyError, ValueError) as exc:
        raise RenderError(
            f"Unable to render dnsmasq configuration: {exc}",
            {"interface": conf.network_interface},
        ) from exc
    return rendered + "\n"


def _create_private_file(path: Path, content: str) -> bool:
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, CONFIG_FILE_MODE)
    except FileExistsError:
        return False
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    return True


def ensure_config(conf: ServiceConfig) -> bool:
    """Make sure ``conf.config_file`` exists; return ``True`` if it was written.

    An existing file always wins, even when it no longer matches ``conf``.
    The local-servers file referenced by the config is created empty when
    missing so dnsmasq can start.
    """
    if conf.config_file.exists():
        logger.debug(f"{conf.config_file} already exists, leaving it untouched")
        return False

    content = generate_config(conf)
    conf.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
    written = _create_private_file(conf.config_file, content)
    if written:
        logger.info(f"Wrote dnsmasq configuration {conf.config_file}")
    if _create_private_file(conf.local_servers_file, ""):
        logger.debug(f"Created empty {conf.local_servers_file}")
    return written
