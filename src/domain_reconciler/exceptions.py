"""
Exception classes for the domain reconciler.

All exceptions inherit from DomainReconcilerError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DomainReconcilerError(Exception):
    """Base exception for all domain reconciler errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainReconcilerError):
    """Raised when a hostname cannot be normalized."""

    pass


class TransportError(DomainReconcilerError):
    """Raised when a network, HTTP or DNS operation fails."""

    pass


class CacheWriteError(DomainReconcilerError):
    """Raised when a fetched response cannot be written to the cache."""

    pass


class NoCredentialsError(DomainReconcilerError):
    """Raised when a delegated hostname has no provider credentials attached."""

    pass


class NoZoneFoundError(DomainReconcilerError):
    """Raised when the provider has no zone for a hostname's base domain."""

    pass


class InvalidResponseShapeError(DomainReconcilerError):
    """Raised when a remote response cannot be decoded into the expected shape."""

    pass


class InventoryError(DomainReconcilerError):
    """Raised when the hosting inventory (servers, apps) cannot be listed."""

    pass
