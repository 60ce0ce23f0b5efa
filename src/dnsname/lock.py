"""Exclusive advisory lock over a network's configuration directory.

Every process that mutates a network's hosts file must go through the same
lock artifact; the lock is advisory, so a writer that skips it can still
corrupt the file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from filelock import FileLock, Timeout

from .exceptions import LockError

__all__ = ["NetworkLock", "acquire", "release"]

logger = logging.getLogger("dnsname.lock")


class NetworkLock:
    """Path-scoped lock backed by ``filelock.FileLock``.

    Parameters
    ----------
    path:
        The lock artifact. It is created on first acquisition and reused
        afterwards.
    timeout:
        Seconds to wait in :meth:`acquire`. A negative value blocks until
        the lock is free.
    """

    def __init__(self, path: Union[str, Path], timeout: float = -1) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self._lock = FileLock(str(self.path), timeout=timeout)

    @property
    def is_held(self) -> bool:
        return self._lock.is_locked

    def acquire(self) -> "NetworkLock":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._lock.acquire()
        except Timeout as exc:
            raise LockError(
                f"Timed out after {self.timeout}s waiting for lock {self.path}",
                {"path": str(self.path), "timeout": self.timeout},
            ) from exc
        except OSError as exc:
            raise LockError(
                f"Unable to acquire lock {self.path}: {exc}",
                {"path": str(self.path)},
            ) from exc
        logger.debug(f"Acquired lock {self.path}")
        return self

    def release(self) -> None:
        if not self.is_held:
            raise LockError(f"Lock {self.path} is not held", {"path": str(self.path)})
        try:
            self._lock.release()
        except OSError as exc:
            raise LockError(
                f"Unable to release lock {self.path}: {exc}",
                {"path": str(self.path)},
            ) from exc
        logger.debug(f"Released lock {self.path}")

    def __enter__(self) -> "NetworkLock":
        return self.acquire()

    def __exit__(self, *args) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "held" if self.is_held else "free"
        return f"NetworkLock({str(self.path)!r}, {state})"


def acquire(path: Union[str, Path], timeout: float = -1) -> NetworkLock:
    """Block (or time out) until the lock at ``path`` is held and return it."""
    return NetworkLock(path, timeout=timeout).acquire()


def release(lock: NetworkLock) -> None:
    """Unlock ``lock`` and close its handle."""
    lock.release()
