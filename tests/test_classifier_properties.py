"""
Property-based tests for the Delegation Classifier.

Nameserver lookups are stubbed with plain async callables.
"""

import asyncio
import io
from typing import Dict, List

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_reconciler.activity_log import ActivityLogger
from domain_reconciler.classifier import DelegationClassifier
from domain_reconciler.enums import LogLevel, ResolverKind
from domain_reconciler.exceptions import TransportError


PROVIDER_NS = ["bar.ns.cloudflare.com.", "foo.ns.cloudflare.com."]
OTHER_NS = ["ns1.example-dns.net.", "ns2.example-dns.net."]


class StubNameserverLookup:
    """Async NS lookup answering from a table and counting calls."""

    def __init__(self, table: Dict[str, List[str]]) -> None:
        self.table = table
        self.calls: List[str] = []

    async def __call__(self, domain: str) -> List[str]:
        self.calls.append(domain)
        return self.table.get(domain, [])


async def failing_lookup(domain: str) -> List[str]:
    raise TransportError(code="dns_error", message=f"NS lookup failed for {domain}")


label_strategy = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=10)


class TestDelegationProperty:
    """
    Property-based tests for delegation detection.

    **Feature: domain-reconciler, Property 9: Delegation by nameserver suffix**
    """

    @given(subdomains=st.lists(label_strategy, min_size=1, max_size=5))
    @settings(max_examples=50)
    def test_subdomains_follow_base_domain(self, subdomains: List[str]) -> None:
        """
        Property 9: Delegation by nameserver suffix.

        *For any* hostnames under a delegated base domain, the classifier
        SHALL tag every one of them for the provider resolver.
        """
        lookup = StubNameserverLookup({"example.com": PROVIDER_NS})
        classifier = DelegationClassifier(lookup_ns=lookup)
        hostnames = [f"{sub}.example.com" for sub in subdomains]

        records = asyncio.run(classifier.classify(hostnames))

        assert [r.name for r in records] == hostnames
        assert all(r.resolver is ResolverKind.PROVIDER for r in records)
        assert all(r.provider.nameservers == tuple(ns.rstrip(".") for ns in PROVIDER_NS) for r in records)
        assert all(r.credentials is None for r in records)

    def test_other_nameservers_are_not_delegated(self) -> None:
        classifier = DelegationClassifier(lookup_ns=StubNameserverLookup({"example.org": OTHER_NS}))

        records = asyncio.run(classifier.classify(["www.example.org"]))

        assert records[0].resolver is ResolverKind.DNS
        assert records[0].provider is None

    def test_one_provider_nameserver_is_enough(self) -> None:
        lookup = StubNameserverLookup({"example.com": ["ns1.example-dns.net.", "kim.ns.cloudflare.com."]})
        classifier = DelegationClassifier(lookup_ns=lookup)

        assert asyncio.run(classifier.is_delegated("example.com")) is True

    def test_nameservers_are_sorted_and_trimmed(self) -> None:
        lookup = StubNameserverLookup({"example.com": ["foo.ns.cloudflare.com.", "bar.ns.cloudflare.com."]})
        classifier = DelegationClassifier(lookup_ns=lookup)

        nameservers = asyncio.run(classifier.nameservers_for_base("www.example.com"))

        assert nameservers == ("bar.ns.cloudflare.com", "foo.ns.cloudflare.com")

    def test_base_domain_uses_public_suffix_list(self) -> None:
        classifier = DelegationClassifier(lookup_ns=StubNameserverLookup({}))

        assert classifier.base_domain("www.example.co.uk") == "example.co.uk"
        assert classifier.base_domain("a.b.example.com") == "example.com"
        assert classifier.base_domain("localhost") == "localhost"


class TestLookupMemoProperty:
    """
    Property-based tests for nameserver lookup memoization.

    **Feature: domain-reconciler, Property 10: One lookup per base domain**
    """

    @given(subdomains=st.lists(label_strategy, min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_one_lookup_per_base_domain(self, subdomains: List[str]) -> None:
        """
        Property 10: One lookup per base domain.

        *For any* number of hostnames sharing a base domain, the classifier
        SHALL look up that base domain's nameservers once.
        """
        lookup = StubNameserverLookup({"example.com": PROVIDER_NS})
        classifier = DelegationClassifier(lookup_ns=lookup)

        asyncio.run(classifier.classify([f"{sub}.example.com" for sub in subdomains] + ["example.com"]))

        assert lookup.calls == ["example.com"]
        assert classifier.lookups_made == 1


class TestLookupFailure:
    """A failed nameserver lookup means 'not delegated'."""

    def test_lookup_failure_is_not_delegated(self) -> None:
        stream = io.StringIO()
        logger = ActivityLogger(output_stream=stream)
        classifier = DelegationClassifier(lookup_ns=failing_lookup, logger=logger)

        records = asyncio.run(classifier.classify(["www.example.com"]))

        assert records[0].resolver is ResolverKind.DNS
        assert records[0].provider is None
        warnings = [e for e in logger.entries if e.level is LogLevel.WARN]
        assert len(warnings) == 1
        assert warnings[0].data["base_domain"] == "example.com"
        assert "Nameserver lookup failed" in stream.getvalue()

    def test_empty_answer_is_not_delegated(self) -> None:
        classifier = DelegationClassifier(lookup_ns=StubNameserverLookup({}))

        assert asyncio.run(classifier.is_delegated("example.com")) is False
