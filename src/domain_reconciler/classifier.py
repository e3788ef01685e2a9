"""
Delegation Classifier.

Decides, per hostname, whether its base domain is delegated to the DNS/proxy
provider by looking at the base domain's nameservers. Delegated hostnames are
tagged for the provider resolver, all others for ordinary DNS.
"""

from typing import Optional

from .activity_log import ActivityLogger
from .config import ProviderConfig
from .dns_resolver import LookupFunc, lookup_nameservers
from .enums import ResolverKind
from .exceptions import DomainReconcilerError
from .hostnames import base_domain
from .models import HostnameRecord, ProviderMetadata


class DelegationClassifier:
    """
    Classifies hostnames by nameserver delegation.

    Nameserver lookups are made once per base domain and memoized in the
    instance for the rest of the run.
    """

    def __init__(
        self,
        lookup_ns: Optional[LookupFunc] = None,
        config: Optional[ProviderConfig] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        """
        Initialize the classifier.

        Args:
            lookup_ns: Nameserver lookup; defaults to a dnspython NS query
            config: Provider settings carrying the nameserver suffix
            logger: Optional activity logger
        """
        self._lookup_ns = lookup_ns or lookup_nameservers
        self._config = config or ProviderConfig()
        self._logger = logger
        self._nameservers: dict[str, tuple[str, ...]] = {}

    @property
    def lookups_made(self) -> int:
        """Number of distinct base domains looked up so far."""
        return len(self._nameservers)

    def base_domain(self, hostname: str) -> str:
        return base_domain(hostname)

    async def nameservers_for_base(self, hostname: str) -> tuple[str, ...]:
        """
        Return the sorted nameservers of a hostname's base domain.

        A failed lookup yields an empty tuple, so the hostname is treated as
        not delegated.
        """
        domain = self.base_domain(hostname)

        if domain in self._nameservers:
            return self._nameservers[domain]

        try:
            raw = await self._lookup_ns(domain)
        except (DomainReconcilerError, OSError) as e:
            if self._logger:
                self._logger.warn(
                    "DelegationClassifier",
                    "Nameserver lookup failed, treating as not delegated",
                    {"base_domain": domain, "error_message": str(e)},
                )
            raw = []

        nameservers = tuple(sorted(ns.rstrip(".") for ns in raw))
        self._nameservers[domain] = nameservers

        if self._logger:
            self._logger.debug(
                "DelegationClassifier",
                "Nameservers looked up",
                {"base_domain": domain, "nameservers": list(nameservers)},
            )

        return nameservers

    def is_delegated_to(self, nameservers: tuple[str, ...]) -> bool:
        suffix = self._config.nameserver_suffix
        return any(ns.endswith(suffix) for ns in nameservers)

    async def is_delegated(self, hostname: str) -> bool:
        """Check whether any nameserver of the base domain belongs to the provider."""
        return self.is_delegated_to(await self.nameservers_for_base(hostname))

    async def classify_one(self, hostname: str) -> HostnameRecord:
        nameservers = await self.nameservers_for_base(hostname)

        if not self.is_delegated_to(nameservers):
            return HostnameRecord(name=hostname, resolver=ResolverKind.DNS)

        return HostnameRecord(
            name=hostname,
            resolver=ResolverKind.PROVIDER,
            provider=ProviderMetadata(nameservers=nameservers),
        )

    async def classify(self, hostnames: list[str]) -> list[HostnameRecord]:
        """
        Tag each hostname with its resolver, one lookup at a time.

        Args:
            hostnames: Normalized hostnames, in the order they should be reported

        Returns:
            One HostnameRecord per hostname, in input order
        """
        records = []
        for hostname in hostnames:
            records.append(await self.classify_one(hostname))

        if self._logger:
            delegated = sum(1 for r in records if r.resolver is ResolverKind.PROVIDER)
            self._logger.info(
                "DelegationClassifier",
                "Classified hostnames",
                {"total": len(records), "delegated": delegated},
            )

        return records
