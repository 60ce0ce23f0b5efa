"""iptables rule letting DNS queries from a network bridge reach dnsmasq.

The rule is keyed by interface name and lives in the INPUT chain of the
filter table.
"""

from __future__ import annotations

import logging
import subprocess
from typing import List

from .exceptions import ErrorHandler, FirewallError

__all__ = ["FirewallManager", "DNS_RULE_ARGS"]

logger = logging.getLogger("dnsname.firewall")

DNS_RULE_ARGS = ["-p", "udp", "-m", "udp", "--dport", "53", "-j", "ACCEPT"]

_TABLE = "filter"
_CHAIN = "INPUT"

# iptables -C exits 1 both for a missing rule and for some other errors;
# only this message (legacy and nf_tables builds) means the rule is absent.
_RULE_ABSENT_MARKER = "does a matching rule exist"


class FirewallManager:
    """Allow DNS queries from a network bridge through the INPUT chain.

    Both operations are idempotent: the rule is inserted at the head of the
    chain only when it is missing and deleted only when present.
    """

    def __init__(self, iptables_binary: str = "iptables", timeout: float = 30) -> None:
        self.iptables_binary = iptables_binary
        self.timeout = timeout
        self.error_handler = ErrorHandler(logger)

    def _rule_args(self, interface: str) -> List[str]:
        return ["-i", interface, *DNS_RULE_ARGS]

    def _run(self, action: List[str], interface: str) -> subprocess.CompletedProcess:
        cmd = [self.iptables_binary, "--wait", "-t", _TABLE, *action, *self._rule_args(interface)]
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, check=False, timeout=self.timeout
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            self.error_handler.handle_subprocess_error(
                cmd, e, FirewallError, operation="iptables"
            )
            raise  # unreachable, handle_subprocess_error always raises

    def _check(self, result: subprocess.CompletedProcess) -> None:
        if result.returncode != 0:
            error = subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )
            self.error_handler.handle_subprocess_error(
                list(result.args), error, FirewallError, operation="iptables"
            )

    def rule_exists(self, interface: str) -> bool:
        result = self._run(["-C", _CHAIN], interface)
        if result.returncode == 1 and (
            _RULE_ABSENT_MARKER in (result.stderr or "") or not (result.stderr or "").strip()
        ):
            return False
        self._check(result)
        return True

    def ensure_allow_rule(self, interface: str) -> bool:
        """Insert the DNS allow rule for ``interface``; return ``True`` if added."""
        if self.rule_exists(interface):
            logger.debug(f"DNS allow rule for {interface} already present")
            return False
        self._check(self._run(["-I", _CHAIN, "1"], interface))
        logger.info(f"Inserted DNS allow rule for {interface}")
        return True

    def ensure_remove_rule(self, interface: str) -> bool:
        """Delete the DNS allow rule for ``interface``; return ``True`` if removed."""
        if not self.rule_exists(interface):
            logger.debug(f"No DNS allow rule for {interface}")
            return False
        self._check(self._run(["-D", _CHAIN], interface))
        logger.info(f"Deleted DNS allow rule for {interface}")
        return True
