"""Availability-zone, CIDR and process-name filters applied to discovered instances."""

from __future__ import annotations

import ipaddress
import logging
import re

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


class AZsFilter:
    """Allow-list of availability zones. An empty list lets every zone through."""

    def __init__(self, azs: list[str]):
        self._azs = frozenset(azs)

    def enabled(self, az: str) -> bool:
        if not self._azs:
            return True
        return az in self._azs


class CidrFilter:
    """Selects the first instance address that belongs to one of the configured networks."""

    def __init__(self, cidrs: list[str]):
        self._networks: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = []
        for cidr in cidrs:
            try:
                self._networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
            except ValueError as exc:
                raise ConfigError(f"Invalid CIDR '{cidr}': {exc}") from exc

    def select(self, ips: list[str]) -> tuple[str, bool]:
        """Return ``(ip, True)`` for the first match, trying networks in configured order.

        Returns ``("", False)`` when no address falls inside any network.
        """
        addresses = []
        for ip in ips:
            try:
                addresses.append((ip, ipaddress.ip_address(ip)))
            except ValueError:
                logger.debug("Ignoring unparseable address %r", ip)

        for network in self._networks:
            for ip, address in addresses:
                if address.version == network.version and address in network:
                    return ip, True
        return "", False


class ProcessFilter:
    """Allow-list of process name patterns (regular expression search).

    A plain name matches itself; anchor with ``^...$`` to reject longer names
    containing it. An empty list lets every process through.
    """

    def __init__(self, patterns: list[str]):
        self._patterns: list[re.Pattern] = []
        for pattern in patterns:
            try:
                self._patterns.append(re.compile(pattern))
            except re.error as exc:
                raise ConfigError(f"Invalid process pattern '{pattern}': {exc}") from exc

    def enabled(self, name: str) -> bool:
        if not self._patterns:
            return True
        return any(p.search(name) for p in self._patterns)
