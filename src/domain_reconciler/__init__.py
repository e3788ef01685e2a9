"""
Domain Reconciler - find hosted domains that no longer point at their server.

This package lists the hostnames served by hosting-panel apps, classifies them
by nameserver delegation, resolves them through ordinary DNS or a DNS/proxy
provider's API, and reports which ones resolve to an unexpected address.
"""

__version__ = "0.1.0"
__author__ = "Domain Reconciler Team"

from domain_reconciler.exceptions import (
    DomainReconcilerError,
    ValidationError,
    TransportError,
    CacheWriteError,
    NoCredentialsError,
    NoZoneFoundError,
    InvalidResponseShapeError,
    InventoryError,
)
from domain_reconciler.enums import (
    Status,
    ResolverKind,
    RecordType,
    LogLevel,
    FetchErrorCode,
    ResolutionErrorCode,
    HostnameValidationErrorCode,
)
from domain_reconciler.config import (
    ProviderConfig,
    FetcherConfig,
    CacheConfig,
    EvaluationConfig,
    InventoryConfig,
    LoggingConfig,
    SystemConfig,
)
from domain_reconciler.models import (
    Credentials,
    ProviderMetadata,
    HostnameRecord,
    NameserverGroup,
    Zone,
    DnsRecord,
    ResultInfo,
    CodedMessage,
    ProviderResponse,
    Server,
    App,
    AppServer,
    EvaluationResult,
)
from domain_reconciler.activity_log import (
    ActivityLogger,
    LogEntry,
    parse_log_level,
)
from domain_reconciler.hostnames import (
    normalize_hostname,
    base_domain,
    try_normalize,
)
from domain_reconciler.cache_store import (
    ResponseCache,
    TmpFileCache,
    InMemoryCache,
    NullCache,
    create_cache,
)
from domain_reconciler.rate_limiter import (
    RateLimiter,
    RateLimitStatus,
)
from domain_reconciler.fetcher import (
    CachingFetcher,
    FetchRequest,
)
from domain_reconciler.dns_resolver import (
    DnsResolver,
    lookup_addresses,
    lookup_nameservers,
)
from domain_reconciler.classifier import DelegationClassifier
from domain_reconciler.credentials import (
    Prompter,
    ConsolePrompter,
    CredentialAcquisition,
    group_by_nameservers,
    domains_preview,
)
from domain_reconciler.provider_resolver import (
    ProviderRecordResolver,
    decode_response,
    record_name_matches,
)
from domain_reconciler.evaluator import (
    HostnameResolver,
    StatusEvaluator,
    find_owner,
    filter_results,
)
from domain_reconciler.inventory import (
    HostingInventory,
    all_domains,
)

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "DomainReconcilerError",
    "ValidationError",
    "TransportError",
    "CacheWriteError",
    "NoCredentialsError",
    "NoZoneFoundError",
    "InvalidResponseShapeError",
    "InventoryError",
    # Enums
    "Status",
    "ResolverKind",
    "RecordType",
    "LogLevel",
    "FetchErrorCode",
    "ResolutionErrorCode",
    "HostnameValidationErrorCode",
    # Config
    "ProviderConfig",
    "FetcherConfig",
    "CacheConfig",
    "EvaluationConfig",
    "InventoryConfig",
    "LoggingConfig",
    "SystemConfig",
    # Models
    "Credentials",
    "ProviderMetadata",
    "HostnameRecord",
    "NameserverGroup",
    "Zone",
    "DnsRecord",
    "ResultInfo",
    "CodedMessage",
    "ProviderResponse",
    "Server",
    "App",
    "AppServer",
    "EvaluationResult",
    # Logging
    "ActivityLogger",
    "LogEntry",
    "parse_log_level",
    # Hostnames
    "normalize_hostname",
    "base_domain",
    "try_normalize",
    # Cache
    "ResponseCache",
    "TmpFileCache",
    "InMemoryCache",
    "NullCache",
    "create_cache",
    # Fetching
    "RateLimiter",
    "RateLimitStatus",
    "CachingFetcher",
    "FetchRequest",
    # Resolution
    "DnsResolver",
    "lookup_addresses",
    "lookup_nameservers",
    "DelegationClassifier",
    "ProviderRecordResolver",
    "decode_response",
    "record_name_matches",
    # Credentials
    "Prompter",
    "ConsolePrompter",
    "CredentialAcquisition",
    "group_by_nameservers",
    "domains_preview",
    # Evaluation
    "HostnameResolver",
    "StatusEvaluator",
    "find_owner",
    "filter_results",
    # Inventory
    "HostingInventory",
    "all_domains",
]
