from __future__ import annotations

import logging
from typing import List

from pyroute2 import IPRoute

logger = logging.getLogger("dnsname.network")

__all__ = ["interface_exists", "interface_addresses"]


def interface_exists(name: str) -> bool:
    """Return ``True`` if the kernel knows a link called ``name``."""
    with IPRoute() as ipr:
        return bool(ipr.link_lookup(ifname=name))


def interface_addresses(name: str) -> List[str]:
    """Return the addresses configured on ``name`` in ``addr/prefix`` form."""
    with IPRoute() as ipr:
        indexes = ipr.link_lookup(ifname=name)
        if not indexes:
            logger.debug(f"Interface {name} not found")
            return []
        addresses = []
        for msg in ipr.get_addr(index=indexes[0]):
            address = msg.get_attr("IFA_ADDRESS")
            if address:
                addresses.append(f"{address}/{msg['prefixlen']}")
        return addresses
