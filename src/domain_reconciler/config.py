"""
Configuration dataclasses for the domain reconciler.

This module defines the configuration structures passed explicitly into
every component: provider API settings, fetch pacing, response caching,
batch evaluation, hosting inventory and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ProviderConfig:
    """Settings for the DNS/proxy provider API."""

    api_base_url: str = "https://api.cloudflare.com/client/v4"
    nameserver_suffix: str = "ns.cloudflare.com"
    per_page: int = 50
    identity_header: str = "X-Auth-Email"
    secret_header: str = "X-Auth-Key"


@dataclass
class FetcherConfig:
    """Pacing and timeout for remote HTTP requests."""

    request_delay_seconds: float = 0.2
    timeout_seconds: float = 10.0


@dataclass
class CacheConfig:
    """Response cache location and lifetime."""

    directory: Optional[Path] = None  # None means the OS temp directory
    filename: str = "domain-reconciler.cache"
    lifetime_seconds: float = 24 * 60 * 60
    enabled: bool = True


@dataclass
class EvaluationConfig:
    """Batch evaluation behavior."""

    max_in_flight: int = 100
    include_unknown: bool = False


@dataclass
class InventoryConfig:
    """Settings for the hosting panel API."""

    api_base_url: str = "https://api.serverpilot.io/v1"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "warn"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
