"""Transactional maintenance of a network's dnsmasq additional-hosts file.

Each line is ``<address>\\t<primary name>[\\t<alias>]*``. Lines are kept in
append order. Every primary name and alias is unique across the whole file,
except that one primary name may own several lines (one per address, as for
a dual-stack container).

Both mutating operations assume the caller holds the network's
:class:`~dnsname.lock.NetworkLock` for their whole duration and refuse to
run otherwise. They are plain blocking file-system sequences with no
locking of their own.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .exceptions import (
    DnsNameValidationError,
    DuplicateNameError,
    HostsRestoreError,
    LockError,
)
from .lock import NetworkLock

__all__ = ["HostRecord", "HostsFile", "RemoveResult"]

logger = logging.getLogger("dnsname.hosts")

BACKUP_SUFFIX = ".old"
FILE_MODE = 0o644

AddressLike = Union[
    str,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
]


@dataclass(frozen=True)
class HostRecord:
    """One line of the hosts file."""

    address: str
    primary_name: str
    aliases: Tuple[str, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.primary_name, *self.aliases)

    def to_line(self) -> str:
        return "\t".join((self.address, *self.names)) + "\n"

    @classmethod
    def parse(cls, line: str) -> Optional["HostRecord"]:
        """Parse a hosts line; lines with fewer than two fields yield ``None``."""
        fields = line.split()
        if len(fields) < 2:
            return None
        return cls(fields[0], fields[1], tuple(fields[2:]))

    def __str__(self) -> str:
        return f"{' '.join(self.names)} -> {self.address}"


@dataclass
class RemoveResult:
    """Outcome of :meth:`HostsFile.remove`.

    ``should_reload`` tells the caller to make dnsmasq re-read the file.
    ``reloaded`` is set by the caller once dnsmasq has actually been
    signalled. ``warnings`` carries the non-fatal conditions that were also
    logged.
    """

    should_reload: bool = False
    found: bool = False
    kept: int = 0
    reloaded: bool = False
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.should_reload


def _address_of(value: AddressLike) -> str:
    # Interfaces subclass addresses, so test them first.
    if isinstance(value, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return str(value.ip)
    if isinstance(value, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return str(value.network_address)
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(value)
    try:
        return str(ipaddress.ip_interface(str(value).strip()).ip)
    except ValueError as exc:
        raise DnsNameValidationError(
            f"Invalid IP address: {value!r}", {"address": str(value)}
        ) from exc


def _validate_names(primary_name: str, aliases: Sequence[str]) -> None:
    for name in (primary_name, *aliases):
        if not name or any(ch.isspace() for ch in name):
            raise DnsNameValidationError(
                f"Invalid host name: {name!r}", {"name": name}
            )
    seen = {primary_name}
    for alias in aliases:
        if alias in seen:
            raise DuplicateNameError(alias, kind="Alias")
        seen.add(alias)


class HostsFile:
    """The additional-hosts file of one network, guarded by ``lock``.

    Parameters
    ----------
    path:
        Location of the hosts file. The backup used while removing lives
        next to it with an ``.old`` suffix.
    lock:
        The network lock. It must be held whenever :meth:`append` or
        :meth:`remove` is called.
    """

    def __init__(self, path: Union[str, Path], lock: NetworkLock) -> None:
        self.path = Path(path)
        self.lock = lock

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + BACKUP_SUFFIX)

    def _require_lock(self) -> None:
        if not self.lock.is_held:
            raise LockError(
                f"Lock {self.lock.path} must be held to modify {self.path}",
                {"path": str(self.path), "lock": str(self.lock.path)},
            )

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def records(self) -> List[HostRecord]:
        """Return the parsed records, or an empty list if the file is absent."""
        try:
            with open(self.path, "r", encoding="utf-8", errors="surrogateescape") as f:
                lines = f.readlines()
        except FileNotFoundError:
            return []
        return [r for r in (HostRecord.parse(line) for line in lines) if r is not None]

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------

    def append(
        self,
        primary_name: str,
        aliases: Sequence[str],
        addresses: Iterable[AddressLike],
    ) -> List[HostRecord]:
        """Append one line per address for ``primary_name`` and ``aliases``.

        The whole file is scanned before anything is written; if any existing
        primary name or alias equals ``primary_name`` or one of ``aliases``,
        :class:`DuplicateNameError` is raised and the file is not modified.
        The file is created if it does not exist yet.
        """
        self._require_lock()
        aliases = tuple(aliases)
        _validate_names(primary_name, aliases)
        records = [HostRecord(_address_of(a), primary_name, aliases) for a in addresses]
        if not records:
            raise DnsNameValidationError(
                f"No addresses given for {primary_name}", {"name": primary_name}
            )

        fd = os.open(self.path, os.O_CREAT | os.O_RDWR | os.O_APPEND, FILE_MODE)
        with os.fdopen(fd, "a+", encoding="utf-8", errors="surrogateescape") as f:
            f.seek(0)
            existing = f.read()
            self._check_collisions(existing.splitlines(), primary_name, aliases)

            payload = "".join(record.to_line() for record in records)
            if existing and not existing.endswith("\n"):
                payload = "\n" + payload
            f.write(payload)

        for record in records:
            logger.debug(f"appended {self.path}: {record.to_line().rstrip()}")
        return records

    @staticmethod
    def _check_collisions(
        lines: Iterable[str], primary_name: str, aliases: Sequence[str]
    ) -> None:
        for line in lines:
            for item in line.split()[1:]:
                if item in aliases:
                    raise DuplicateNameError(item, kind="Alias")
                if item == primary_name:
                    raise DuplicateNameError(primary_name, kind="Host")

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove(self, name: str) -> RemoveResult:
        """Drop every line whose primary name is ``name``.

        Only the primary-name field is matched: passing an alias removes
        nothing. The file is renamed to its backup, the surviving lines are
        copied into a fresh file at the original path and the backup is then
        deleted. Between the rename and the rewrite the path does not exist.

        If reading the backup or writing the new file fails, the backup is
        renamed back into place and the original error is re-raised.
        If that restore fails too, :class:`HostsRestoreError` is raised and
        the backup is left on disk.
        """
        self._require_lock()
        result = RemoveResult()
        backup = self.backup_path

        try:
            os.rename(self.path, backup)
        except FileNotFoundError:
            logger.debug(f"{self.path} does not exist, nothing to remove for {name}")
            return result

        # Lines are handled as bytes so content that is not valid UTF-8 is
        # carried forward verbatim.
        needle = name.encode("utf-8")
        keepers: List[bytes] = []
        try:
            with open(backup, "rb") as f:
                for raw in f:
                    text = raw.rstrip(b"\n")
                    fields = text.split()
                    if len(fields) > 1 and fields[1] == needle:
                        result.found = True
                        continue
                    keepers.append(text + b"\n")
        except (OSError, ValueError) as exc:
            self._restore(backup, exc)
            raise

        if not result.found:
            message = f"a record for {name} was never found in {self.path}"
            logger.debug(message)
            result.warnings.append(message)
            self._restore(backup, None)
            return result

        try:
            result.kept = self._write_lines(keepers)
        except (OSError, ValueError) as exc:
            self._restore(backup, exc)
            raise

        result.should_reload = result.kept > 0
        logger.debug(f"removed {name} from {self.path}, {result.kept} lines remain")

        try:
            os.remove(backup)
        except OSError as exc:
            message = f"unable to delete {backup}: {exc}"
            logger.error(message)
            result.warnings.append(message)
        return result

    def _write_lines(self, lines: Sequence[bytes]) -> int:
        counter = 0
        fd = os.open(self.path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, FILE_MODE)
        with os.fdopen(fd, "ab") as f:
            for line in lines:
                f.write(line)
                counter += 1
        return counter

    def _restore(self, backup: Path, cause: Optional[BaseException]) -> None:
        try:
            os.rename(backup, self.path)
        except OSError as exc:
            logger.critical(
                f"unable to restore {backup} to {self.path}: {exc}; "
                f"the original records only survive in {backup}"
            )
            raise HostsRestoreError(
                f"Unable to restore {self.path} from {backup}",
                {"path": str(self.path), "backup": str(backup), "restore_error": str(exc)},
            ) from (cause or exc)
