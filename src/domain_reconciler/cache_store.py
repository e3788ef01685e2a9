"""
Response cache stores for the caching fetcher.

The default store keeps one JSON-encoded map of URL -> body in a file under
the OS temp directory. The whole file expires together, based on its
modification time, and is deleted lazily the next time it is read.
"""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Protocol

from .config import CacheConfig
from .exceptions import CacheWriteError
from .enums import FetchErrorCode


class ResponseCache(Protocol):
    """Interface shared by all cache stores."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class TmpFileCache:
    """
    File-backed response cache with a fixed lifetime.

    Entries older than the lifetime are treated as absent. A file that cannot
    be read or decoded is treated as empty and is replaced on the next write.
    """

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        """
        Initialize the cache.

        Args:
            config: Cache location and lifetime; defaults to CacheConfig()
        """
        self._config = config or CacheConfig()
        directory = self._config.directory or Path(tempfile.gettempdir())
        self._file_path = Path(directory) / self._config.filename

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get(self, key: str) -> Optional[str]:
        """
        Return the cached value for a key, or None if absent or expired.

        Raises:
            CacheWriteError: If an expired cache file cannot be deleted
        """
        if self.is_expired():
            self.delete()
            return None

        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        """
        Store a value, creating the cache file if needed.

        Raises:
            CacheWriteError: If the cache file cannot be written
        """
        entries = {} if self.is_expired() else self._load()
        entries[key] = value

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(entries, f)
        except OSError as e:
            raise CacheWriteError(
                code=FetchErrorCode.COULD_NOT_CACHE.value,
                message=f"Failed to write cache file: {e}",
                details={"file_path": str(self._file_path), "key": key},
            )

    def is_expired(self) -> bool:
        """A missing file is not expired; an unreadable one is."""
        try:
            mtime = os.stat(self._file_path).st_mtime
        except FileNotFoundError:
            return False
        except OSError:
            return True

        return time.time() - mtime > self._config.lifetime_seconds

    def delete(self) -> None:
        try:
            self._file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheWriteError(
                code=FetchErrorCode.COULD_NOT_CACHE.value,
                message=f"Could not delete expired cache file: {e}",
                details={"file_path": str(self._file_path)},
            )

    def _load(self) -> dict[str, str]:
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return {}

        if not isinstance(data, dict):
            return {}
        return data


class InMemoryCache:
    """Process-local cache with no expiry."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        self._entries[key] = value


class NullCache:
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        return None


def create_cache(config: CacheConfig) -> ResponseCache:
    """Build the cache store selected by the configuration."""
    if not config.enabled:
        return NullCache()
    return TmpFileCache(config)
