"""Pytest configuration and reusable fixtures for dnsname tests."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

import pytest

# ---------------------------------------------------------------------------
# Test path setup – make sure `src/` is importable when tests are invoked from
# the project root without installing the package.
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from dnsname.config import Settings  # noqa: E402
from dnsname.hosts import HostsFile  # noqa: E402
from dnsname.lock import NetworkLock  # noqa: E402


# ---------------------------------------------------------------------------
# Generic fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def network_lock(tmp_path: Path) -> Generator[NetworkLock, None, None]:
    """A held network lock that is released after the test."""
    lock = NetworkLock(tmp_path / "lock", timeout=1)
    lock.acquire()
    try:
        yield lock
    finally:
        if lock.is_held:
            lock.release()


@pytest.fixture()
def hosts_file(tmp_path: Path, network_lock: NetworkLock) -> HostsFile:
    return HostsFile(tmp_path / "addnhosts", network_lock)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        runtime_dir=tmp_path / "run",
        dnsmasq_binary="/usr/sbin/dnsmasq",
        domain="dns.podman",
        lock_timeout=1,
    )
