"""
Property-based tests for the Status Evaluator.

Resolution is stubbed through DnsResolver lookups and a MockTransport-backed
provider resolver; nothing leaves the process.
"""

import asyncio
from typing import Dict, List

import httpx
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_reconciler.cache_store import NullCache
from domain_reconciler.config import EvaluationConfig, FetcherConfig
from domain_reconciler.dns_resolver import DnsResolver
from domain_reconciler.enums import ResolverKind, Status
from domain_reconciler.evaluator import (
    HostnameResolver,
    StatusEvaluator,
    filter_results,
    find_owner,
)
from domain_reconciler.exceptions import TransportError
from domain_reconciler.fetcher import CachingFetcher
from domain_reconciler.models import (
    App,
    AppServer,
    Credentials,
    EvaluationResult,
    HostnameRecord,
    ProviderMetadata,
    Server,
)
from domain_reconciler.provider_resolver import ProviderRecordResolver


address_strategy = st.builds(
    lambda a, b: f"10.0.{a}.{b}",
    st.integers(min_value=0, max_value=255),
    st.integers(min_value=0, max_value=255),
)


def unreachable_api(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected provider API call: {request.url}")


def make_evaluator(
    lookup,
    handler=unreachable_api,
    max_in_flight: int = 100,
):
    """Build an evaluator plus the fetcher it owns; close the fetcher after use."""
    fetcher = CachingFetcher(
        config=FetcherConfig(request_delay_seconds=0.0),
        cache=NullCache(),
        transport=httpx.MockTransport(handler),
    )
    dns = DnsResolver(lookup=lookup)
    provider = ProviderRecordResolver(fetcher, dns)
    evaluator = StatusEvaluator(
        HostnameResolver(dns, provider),
        EvaluationConfig(max_in_flight=max_in_flight),
    )
    return evaluator, fetcher


def table_lookup(table: Dict[str, List[str]]):
    async def lookup(hostname: str) -> List[str]:
        if hostname not in table:
            raise TransportError(code="dns_error", message=f"lookup failed for {hostname}")
        return table[hostname]

    return lookup


def owner(app_id: str, server_name: str, address: str, domains: List[str]) -> AppServer:
    return AppServer(
        app=App(id=app_id, name=f"app-{app_id}", server_id=f"srv-{app_id}", domains=domains),
        server=Server(id=f"srv-{app_id}", name=server_name, ip_address=address),
    )


class TestStatusProperty:
    """
    Property-based tests for status classification.

    **Feature: domain-reconciler, Property 13: Status classification**
    """

    @given(
        resolved=st.lists(address_strategy, max_size=5),
        expected=address_strategy,
    )
    @settings(max_examples=100)
    def test_status_matches_resolved_set(self, resolved: List[str], expected: str) -> None:
        """
        Property 13: Status classification.

        *For any* resolved address list and expected address, check_status
        SHALL be UNKNOWN iff the list is empty, OK iff it contains the
        expected address, and INACTIVE otherwise.
        """
        async def run_test() -> Status:
            evaluator, fetcher = make_evaluator(table_lookup({"example.com": resolved}))
            async with fetcher:
                return await evaluator.check_status(HostnameRecord(name="example.com"), expected)

        status = asyncio.run(run_test())

        if not resolved:
            assert status is Status.UNKNOWN
        elif expected in resolved:
            assert status is Status.OK
        else:
            assert status is Status.INACTIVE

    def test_resolution_error_is_unknown(self) -> None:
        async def run_test() -> Status:
            evaluator, fetcher = make_evaluator(table_lookup({}))
            async with fetcher:
                return await evaluator.check_status(HostnameRecord(name="example.com"), "10.0.0.1")

        assert asyncio.run(run_test()) is Status.UNKNOWN

    def test_delegated_without_credentials_is_unknown(self) -> None:
        record = HostnameRecord(
            name="example.com",
            resolver=ResolverKind.PROVIDER,
            provider=ProviderMetadata(nameservers=("a.ns.cloudflare.com",)),
        )

        async def run_test() -> Status:
            evaluator, fetcher = make_evaluator(table_lookup({"example.com": ["10.0.0.1"]}))
            async with fetcher:
                return await evaluator.check_status(record, "10.0.0.1")

        assert asyncio.run(run_test()) is Status.UNKNOWN


class TestBoundedConcurrencyProperty:
    """
    Property-based tests for the in-flight cap.

    **Feature: domain-reconciler, Property 14: Bounded concurrency**
    """

    @given(
        num_hostnames=st.integers(min_value=1, max_value=40),
        cap=st.integers(min_value=1, max_value=10),
    )
    @settings(max_examples=50)
    def test_never_more_than_cap_in_flight(self, num_hostnames: int, cap: int) -> None:
        """
        Property 14: Bounded concurrency.

        *For any* N hostnames and cap C, at most C resolutions SHALL run at
        once, and all N results SHALL be returned in input order.
        """
        in_flight = 0
        max_in_flight = 0

        async def lookup(hostname: str) -> List[str]:
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            # Finish later hostnames first to scramble completion order
            index = int(hostname.split(".")[0][1:])
            for _ in range(num_hostnames - index):
                await asyncio.sleep(0)
            in_flight -= 1
            return ["10.0.0.1"]

        hostnames = [f"h{i}.example.com" for i in range(num_hostnames)]
        completed: List[EvaluationResult] = []

        async def run_test() -> List[EvaluationResult]:
            evaluator, fetcher = make_evaluator(lookup, max_in_flight=cap)
            async with fetcher:
                return await evaluator.evaluate_batch(
                    [HostnameRecord(name=h) for h in hostnames],
                    [],
                    completed.append,
                )

        results = asyncio.run(run_test())

        assert max_in_flight <= cap
        assert [r.hostname for r in results] == hostnames
        assert len(completed) == num_hostnames
        assert sorted(r.hostname for r in completed) == sorted(hostnames)


class TestBatchEvaluation:
    """Tests for owner matching and end-to-end batch results."""

    def test_end_to_end_mixed_statuses(self) -> None:
        owners = [owner("1", "web-1", "127.0.0.1", ["a.com", "b.com", "c.com"])]
        records = [
            HostnameRecord(name="a.com"),
            HostnameRecord(name="b.com"),
            HostnameRecord(
                name="c.com",
                resolver=ResolverKind.PROVIDER,
                provider=ProviderMetadata(nameservers=("a.ns.cloudflare.com", "b.ns.cloudflare.com")),
            ),
        ]
        lookup = table_lookup({"a.com": ["127.0.0.1"], "b.com": ["0.0.0.0"]})

        async def run_test() -> List[EvaluationResult]:
            evaluator, fetcher = make_evaluator(lookup)
            async with fetcher:
                return await evaluator.evaluate_batch(records, owners)

        results = asyncio.run(run_test())

        assert results == [
            EvaluationResult("1", "a.com", "web-1", Status.OK),
            EvaluationResult("1", "b.com", "web-1", Status.INACTIVE),
            EvaluationResult("1", "c.com", "web-1", Status.UNKNOWN),
        ]
        assert filter_results(results) == [results[1]]
        assert filter_results(results, include_unknown=True) == results[1:]

    def test_unowned_hostname_gets_zero_owner(self) -> None:
        async def run_test() -> List[EvaluationResult]:
            evaluator, fetcher = make_evaluator(table_lookup({"stray.com": ["10.0.0.1"]}))
            async with fetcher:
                return await evaluator.evaluate_batch([HostnameRecord(name="stray.com")], [])

        results = asyncio.run(run_test())

        assert results == [EvaluationResult("", "stray.com", "", Status.INACTIVE)]

    def test_one_failure_does_not_abort_batch(self) -> None:
        owners = [owner("1", "web-1", "10.0.0.1", ["ok.com", "broken.com"])]
        records = [HostnameRecord(name="broken.com"), HostnameRecord(name="ok.com")]

        async def run_test() -> List[EvaluationResult]:
            evaluator, fetcher = make_evaluator(table_lookup({"ok.com": ["10.0.0.1"]}))
            async with fetcher:
                return await evaluator.evaluate_batch(records, owners)

        results = asyncio.run(run_test())

        assert [r.status for r in results] == [Status.UNKNOWN, Status.OK]

    def test_non_ascii_credentials_do_not_abort_batch(self) -> None:
        records = [
            HostnameRecord(name="a.com"),
            HostnameRecord(
                name="c.com",
                resolver=ResolverKind.PROVIDER,
                provider=ProviderMetadata(
                    nameservers=("a.ns.cloudflare.com",),
                    credentials=Credentials("josé@example.com", "tok"),
                ),
            ),
        ]

        async def run_test() -> List[EvaluationResult]:
            evaluator, fetcher = make_evaluator(table_lookup({"a.com": ["10.0.0.9"]}))
            async with fetcher:
                return await evaluator.evaluate_batch(records, [])

        results = asyncio.run(run_test())

        assert [(r.hostname, r.status) for r in results] == [
            ("a.com", Status.INACTIVE),
            ("c.com", Status.UNKNOWN),
        ]

    def test_find_owner_takes_first_match(self) -> None:
        first = owner("1", "web-1", "10.0.0.1", ["shared.com"])
        second = owner("2", "web-2", "10.0.0.2", ["shared.com"])

        assert find_owner("shared.com", [first, second]) is first
        assert find_owner("other.com", [first, second]) == AppServer()


class TestHostnameResolverDispatch:
    """Dispatch is by the record's resolver tag."""

    def test_dns_records_never_touch_provider_api(self) -> None:
        async def run_test() -> List[str]:
            fetcher = CachingFetcher(cache=NullCache(), transport=httpx.MockTransport(unreachable_api))
            dns = DnsResolver(lookup=table_lookup({"example.com": ["10.0.0.9"]}))
            resolver = HostnameResolver(dns, ProviderRecordResolver(fetcher, dns))
            async with fetcher:
                return await resolver.resolve(HostnameRecord(name="example.com"))

        assert asyncio.run(run_test()) == ["10.0.0.9"]

    def test_provider_records_use_provider_api(self) -> None:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path.endswith("/zones"):
                return httpx.Response(200, json={"result": [{"id": "z1"}], "success": True})
            return httpx.Response(200, json={
                "result": [{"type": "A", "name": "example.com", "content": "10.0.0.7"}],
                "success": True,
            })

        record = HostnameRecord(
            name="example.com",
            resolver=ResolverKind.PROVIDER,
            provider=ProviderMetadata(
                nameservers=("a.ns.cloudflare.com",),
                credentials=Credentials("foo@example.com", "123456789"),
            ),
        )

        async def run_test() -> List[str]:
            fetcher = CachingFetcher(
                config=FetcherConfig(request_delay_seconds=0.0),
                cache=NullCache(),
                transport=httpx.MockTransport(handler),
            )
            dns = DnsResolver(lookup=table_lookup({}))
            resolver = HostnameResolver(dns, ProviderRecordResolver(fetcher, dns))
            async with fetcher:
                return await resolver.resolve(record)

        assert asyncio.run(run_test()) == ["10.0.0.7"]
        assert seen == ["/client/v4/zones", "/client/v4/zones/z1/dns_records"]

