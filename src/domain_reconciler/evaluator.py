"""
Status Evaluator for the domain reconciler.

Resolves each classified hostname through the resolver its tag selects and
compares the resolved addresses against the address of the server that owns
the hostname. Resolution errors never abort a batch: they are logged and
reported as UNKNOWN.

Status rules:
- UNKNOWN: resolution failed or returned no addresses
- OK: the expected address is among the resolved addresses
- INACTIVE: addresses were resolved, none of them the expected one
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .activity_log import ActivityLogger
from .config import EvaluationConfig
from .dns_resolver import DnsResolver
from .enums import ResolverKind, Status
from .exceptions import DomainReconcilerError
from .models import AppServer, EvaluationResult, HostnameRecord
from .provider_resolver import ProviderRecordResolver


ProgressCallback = Callable[[EvaluationResult], None]


class HostnameResolver:
    """Dispatches a classified hostname to the resolver its tag names."""

    def __init__(
        self,
        dns_resolver: DnsResolver,
        provider_resolver: ProviderRecordResolver,
    ) -> None:
        self._strategies: dict[ResolverKind, Callable[[HostnameRecord], Awaitable[list[str]]]] = {
            ResolverKind.DNS: lambda record: dns_resolver.resolve(record.name),
            ResolverKind.PROVIDER: provider_resolver.resolve,
        }

    async def resolve(self, record: HostnameRecord) -> list[str]:
        return await self._strategies[record.resolver](record)


def find_owner(hostname: str, owners: list[AppServer]) -> AppServer:
    """Return the first owner listing the hostname, or the zero owner."""
    for owner in owners:
        if hostname in owner.app.domains:
            return owner
    return AppServer()


def filter_results(results: list[EvaluationResult], include_unknown: bool = False) -> list[EvaluationResult]:
    """Keep INACTIVE results, plus UNKNOWN ones when asked to."""
    keep = {Status.INACTIVE, Status.UNKNOWN} if include_unknown else {Status.INACTIVE}
    return [result for result in results if result.status in keep]


class StatusEvaluator:
    """
    Evaluates hostname status, one hostname or a whole batch.

    A batch runs with at most max_in_flight resolutions at a time and returns
    its results in input order regardless of completion order.
    """

    def __init__(
        self,
        resolver: HostnameResolver,
        config: Optional[EvaluationConfig] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            resolver: Tag-dispatching hostname resolver
            config: Concurrency cap
            logger: Optional activity logger
        """
        self._resolver = resolver
        self._config = config or EvaluationConfig()
        self._logger = logger

    async def check_status(self, record: HostnameRecord, expected_address: str) -> Status:
        """
        Classify one hostname against the address it should resolve to.

        Args:
            record: Classified hostname
            expected_address: Address of the owning server

        Returns:
            OK, INACTIVE or UNKNOWN
        """
        try:
            addresses = await self._resolver.resolve(record)
        except DomainReconcilerError as e:
            if self._logger:
                self._logger.warn(
                    "StatusEvaluator",
                    "Could not resolve hostname",
                    {
                        "hostname": record.name,
                        "resolver": record.resolver.value,
                        "error_code": e.code,
                        "error_message": e.message,
                    },
                )
            return Status.UNKNOWN

        if not addresses:
            if self._logger:
                self._logger.debug("StatusEvaluator", "No addresses resolved", {"hostname": record.name})
            return Status.UNKNOWN

        if expected_address in addresses:
            return Status.OK

        if self._logger:
            self._logger.debug(
                "StatusEvaluator",
                "Hostname points elsewhere",
                {"hostname": record.name, "expected": expected_address, "addresses": addresses},
            )
        return Status.INACTIVE

    async def evaluate_batch(
        self,
        records: list[HostnameRecord],
        owners: list[AppServer],
        progress: Optional[ProgressCallback] = None,
    ) -> list[EvaluationResult]:
        """
        Evaluate every record against its owner's server address.

        Args:
            records: Classified hostnames
            owners: Apps paired with their servers
            progress: Called once per completed hostname, in completion order

        Returns:
            One EvaluationResult per record, in input order
        """
        semaphore = asyncio.Semaphore(self._config.max_in_flight)
        results: list[Optional[EvaluationResult]] = [None] * len(records)

        async def evaluate(index: int, record: HostnameRecord) -> None:
            owner = find_owner(record.name, owners)

            async with semaphore:
                status = await self.check_status(record, owner.server.ip_address)

            results[index] = EvaluationResult(
                owner_id=owner.app.id,
                hostname=record.name,
                server_label=owner.server.name,
                status=status,
            )
            if progress:
                progress(results[index])

        await asyncio.gather(*(evaluate(i, record) for i, record in enumerate(records)))

        if self._logger:
            self._logger.info(
                "StatusEvaluator",
                "Batch evaluated",
                {
                    "total": len(records),
                    "ok": sum(1 for r in results if r.status is Status.OK),
                    "inactive": sum(1 for r in results if r.status is Status.INACTIVE),
                    "unknown": sum(1 for r in results if r.status is Status.UNKNOWN),
                },
            )

        return results
