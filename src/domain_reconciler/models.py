"""
Data models for the domain reconciler.

This module defines the data structures for classified hostnames, provider
credentials and records, hosting inventory entries and evaluation results.
"""

from dataclasses import dataclass, field
from typing import Optional

from .enums import ResolverKind, Status


@dataclass(frozen=True)
class Credentials:
    """API credentials for one provider account. Never persisted."""

    identity: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class ProviderMetadata:
    """Provider details attached to a delegated hostname."""

    nameservers: tuple[str, ...]
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class HostnameRecord:
    """
    A hostname tagged with the resolver it should be dispatched to.

    Delegated hostnames carry provider metadata; all others carry none.
    """

    name: str
    resolver: ResolverKind = ResolverKind.DNS
    provider: Optional[ProviderMetadata] = None

    def __post_init__(self) -> None:
        if (self.provider is not None) != (self.resolver is ResolverKind.PROVIDER):
            raise ValueError(
                f"{self.name}: provider metadata must be present exactly when "
                f"the resolver is {ResolverKind.PROVIDER.value}"
            )

    @property
    def credentials(self) -> Optional[Credentials]:
        return self.provider.credentials if self.provider else None


@dataclass
class NameserverGroup:
    """Delegated hostnames sharing one nameserver set (one provider account)."""

    nameservers: tuple[str, ...]
    hostnames: list[str] = field(default_factory=list)
    credentials: Optional[Credentials] = None


@dataclass
class Zone:
    """A provider zone."""

    id: str


@dataclass
class DnsRecord:
    """A provider DNS record. The name may contain a leading wildcard label."""

    type: str
    name: str
    content: str


@dataclass
class ResultInfo:
    """Pagination metadata returned by the provider API."""

    page: int
    per_page: int
    total_pages: int
    count: int
    total_count: int


@dataclass
class CodedMessage:
    """A coded error or informational message from the provider API."""

    code: int
    message: str


@dataclass
class ProviderResponse:
    """A decoded provider API envelope."""

    result_info: ResultInfo
    result: list
    success: bool
    errors: list[CodedMessage] = field(default_factory=list)
    messages: list[CodedMessage] = field(default_factory=list)


@dataclass
class Server:
    """A server from the hosting inventory."""

    id: str = ""
    name: str = ""
    ip_address: str = ""


@dataclass
class App:
    """An app from the hosting inventory, with the hostnames it serves."""

    id: str = ""
    name: str = ""
    server_id: str = ""
    domains: list[str] = field(default_factory=list)


@dataclass
class AppServer:
    """An app paired with the server it runs on. The zero value means no owner."""

    app: App = field(default_factory=App)
    server: Server = field(default_factory=Server)


@dataclass
class EvaluationResult:
    """Outcome for one (app, hostname) pair."""

    owner_id: str
    hostname: str
    server_label: str
    status: Status
