"""
Enumeration types for the domain reconciler.

These enums provide type-safe constants for statuses, error codes,
and dispatch tags throughout the system.
"""

from enum import Enum


class Status(Enum):
    """Outcome of comparing a hostname's resolved addresses to its server."""

    OK = "ok"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class ResolverKind(Enum):
    """Which resolver a hostname is dispatched to, chosen at classification time."""

    DNS = "dns"
    PROVIDER = "provider"


class RecordType(Enum):
    """Provider DNS record types the resolver acts on."""

    A = "A"
    CNAME = "CNAME"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class FetchErrorCode(Enum):
    """Error codes for remote fetch operations."""

    COULD_NOT_MAKE_REQUEST = "could_not_make_request"
    COULD_NOT_CACHE = "could_not_cache"
    PROVIDER_API_ERROR = "provider_api_error"
    INVALID_RESPONSE = "invalid_response"
    DNS_ERROR = "dns_error"


class ResolutionErrorCode(Enum):
    """Error codes for provider record resolution."""

    NO_CREDENTIALS = "no_credentials"
    NO_ZONE_FOUND = "no_zone_found"


class HostnameValidationErrorCode(Enum):
    """Error codes for hostname normalization failures."""

    FORBIDDEN_CHARS = "forbidden_chars"
    IDNA_ERROR = "idna_error"
    EMPTY_INPUT = "empty_input"
