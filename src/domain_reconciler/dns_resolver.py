"""
Ordinary DNS resolution.

Address (A) and nameserver (NS) lookups through the platform resolver via
dnspython. Both lookups are plain awaitable callables so tests can swap them
for stubs.
"""

from typing import Awaitable, Callable, Optional

import dns.asyncresolver
import dns.exception
import dns.resolver

from .activity_log import ActivityLogger
from .enums import FetchErrorCode
from .exceptions import TransportError


LookupFunc = Callable[[str], Awaitable[list[str]]]

# Per-query timeout, matching the HTTP transport timeout
DNS_LIFETIME_SECONDS = 10.0


async def lookup_addresses(hostname: str) -> list[str]:
    """
    Look up the IPv4 addresses of a hostname.

    Returns an empty list when the name does not exist or has no A records.

    Raises:
        TransportError: On timeouts and other resolver failures
    """
    return await _lookup(hostname, "A")


async def lookup_nameservers(hostname: str) -> list[str]:
    """
    Look up the nameservers of a domain, as returned (trailing dots included).

    Raises:
        TransportError: On timeouts and other resolver failures
    """
    return await _lookup(hostname, "NS")


async def _lookup(name: str, record_type: str) -> list[str]:
    resolver = dns.asyncresolver.Resolver(configure=True)
    resolver.lifetime = DNS_LIFETIME_SECONDS

    try:
        answer = await resolver.resolve(name, record_type)
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return []
    except dns.exception.DNSException as e:
        raise TransportError(
            code=FetchErrorCode.DNS_ERROR.value,
            message=f"{record_type} lookup failed for {name}: {e}",
            details={"name": name, "record_type": record_type},
        )

    return [r.to_text() for r in answer]


class DnsResolver:
    """Resolves hostnames to addresses through ordinary DNS."""

    def __init__(
        self,
        lookup: Optional[LookupFunc] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        """
        Args:
            lookup: Address lookup; defaults to lookup_addresses
            logger: Optional activity logger
        """
        self._lookup = lookup or lookup_addresses
        self._logger = logger

    async def resolve(self, hostname: str) -> list[str]:
        """
        Resolve a hostname to its addresses.

        Raises:
            TransportError: If the lookup fails
        """
        if self._logger:
            self._logger.debug("DnsResolver", "Looking up IP addresses", {"hostname": hostname})

        addresses = await self._lookup(hostname)

        if self._logger:
            self._logger.debug(
                "DnsResolver",
                "Resolved IP addresses",
                {"hostname": hostname, "addresses": addresses},
            )
        return addresses
