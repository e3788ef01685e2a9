"""
Caching, rate-limited HTTP fetcher.

Every remote caller (provider API, hosting inventory) goes through one
CachingFetcher per run. Responses are cached by URL, live requests are paced
by the rate limiter, and all access is serialized behind the limiter's lock so
the cache file and the "has made a request" flag have a single owner.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import httpx

from .activity_log import ActivityLogger
from .cache_store import ResponseCache, TmpFileCache
from .config import FetcherConfig
from .enums import FetchErrorCode
from .exceptions import TransportError
from .rate_limiter import RateLimiter


@dataclass
class FetchRequest:
    """
    A GET request.

    Only the URL identifies the request for caching; headers are sent but are
    not part of the cache key.
    """

    url: str
    headers: dict[str, str] = field(default_factory=dict)


class CachingFetcher:
    """
    Async HTTP GET client with response caching and inter-request delay.

    A cache hit returns immediately without sleeping. A miss waits its turn
    at the rate limiter, performs the request, and stores a 2xx body in the
    cache before returning it.
    """

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        cache: Optional[ResponseCache] = None,
        logger: Optional[ActivityLogger] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            config: Request delay and timeout
            cache: Response cache store; defaults to the temp-file cache
            logger: Optional activity logger
            sleep: Awaitable sleep used between live requests, injectable for tests
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self._config = config or FetcherConfig()
        self._cache = cache if cache is not None else TmpFileCache()
        self._logger = logger
        self._rate_limiter = RateLimiter(self._config, sleep=sleep)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._live_requests = 0

    async def __aenter__(self) -> "CachingFetcher":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def live_requests(self) -> int:
        """Number of requests that actually went to the network."""
        return self._live_requests

    async def fetch(self, request: FetchRequest) -> str:
        """
        Return the body for a URL, from cache when possible.

        Args:
            request: URL and headers to send

        Returns:
            The response body as text

        Raises:
            TransportError: If the request fails or returns a non-2xx status
            CacheWriteError: If the body was fetched but could not be cached
        """
        async with self._rate_limiter.acquire():
            cached = self._cache.get(request.url)
            if cached is not None:
                self._log_debug("Cache hit", {"url": request.url})
                return cached

            await self._rate_limiter.wait_turn()

            self._log_debug("Making http request", {"url": request.url})
            try:
                body = await self._get(request)
            finally:
                self._rate_limiter.record_request()

            self._cache.set(request.url, body)
            return body

    async def _get(self, request: FetchRequest) -> str:
        client = self._ensure_client()
        self._live_requests += 1

        # Header values must be ASCII; a pasted credential can fail to encode
        try:
            response = await client.get(request.url, headers=request.headers)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            raise TransportError(
                code=FetchErrorCode.COULD_NOT_MAKE_REQUEST.value,
                message=f"Could not make request: {e}",
                details={"url": request.url, "error_type": type(e).__name__},
            )

        if not response.is_success:
            raise TransportError(
                code=FetchErrorCode.COULD_NOT_MAKE_REQUEST.value,
                message=f"Could not make request: HTTP {response.status_code}",
                details={"url": request.url, "http_status_code": response.status_code},
            )

        return response.text

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def _log_debug(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.debug("CachingFetcher", message, data)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
