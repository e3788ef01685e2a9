"""
Provider Record Resolver.

Resolves hostnames that are delegated to the DNS/proxy provider by reading
their records through the provider's REST API instead of public DNS, which
would only reveal the provider's edge addresses.

Resolution steps:
1. Look up the zone for the hostname's base domain
2. Fetch every record of that zone, page by page
3. Match the hostname against each record name (a '*' label matches one label)
4. Collect A record contents; follow CNAME records, within the fetched record
   set when the target shares the base domain, through ordinary DNS otherwise
"""

import asyncio
import json
import re
from collections import defaultdict
from functools import lru_cache
from typing import Any, Callable, Optional
from urllib.parse import urlencode

from .activity_log import ActivityLogger
from .config import ProviderConfig
from .dns_resolver import DnsResolver
from .enums import FetchErrorCode, RecordType, ResolutionErrorCode
from .exceptions import (
    InvalidResponseShapeError,
    NoCredentialsError,
    NoZoneFoundError,
    TransportError,
)
from .fetcher import CachingFetcher, FetchRequest
from .hostnames import base_domain
from .models import (
    CodedMessage,
    Credentials,
    DnsRecord,
    HostnameRecord,
    ProviderResponse,
    ResultInfo,
    Zone,
)


@lru_cache(maxsize=1024)
def _pattern_for(record_name: str) -> re.Pattern:
    labels = record_name.lower().rstrip(".").split(".")
    # Dots stay literal; a '*' label matches exactly one non-empty label
    parts = ["[^.]+" if label == "*" else re.escape(label) for label in labels]
    return re.compile(r"\.".join(parts))


def record_name_matches(record_name: str, hostname: str) -> bool:
    """
    Check whether a record name (possibly with a wildcard label) covers a hostname.

    '*.example.com' matches 'www.example.com' but neither 'example.com'
    nor 'a.b.example.com'.
    """
    return _pattern_for(record_name).fullmatch(hostname.lower().rstrip(".")) is not None


def _parse_zone(item: Any) -> Zone:
    return Zone(id=str(item["id"]))


def _parse_record(item: Any) -> DnsRecord:
    return DnsRecord(
        type=str(item["type"]),
        name=str(item["name"]),
        content=str(item["content"]),
    )


def _parse_messages(raw: Any) -> list[CodedMessage]:
    return [
        CodedMessage(code=int(m.get("code", 0)), message=str(m.get("message", "")))
        for m in (raw or [])
    ]


def decode_response(body: str, parse_item: Callable[[Any], Any], url: str = "") -> ProviderResponse:
    """
    Decode a provider API envelope.

    Args:
        body: Raw response body
        parse_item: Converts one element of 'result'
        url: Request URL, for error details

    Returns:
        The decoded ProviderResponse

    Raises:
        InvalidResponseShapeError: If the body is not the expected JSON shape
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidResponseShapeError(
            code=FetchErrorCode.INVALID_RESPONSE.value,
            message=f"Error while unmarshalling response body: {e}",
            details={"url": url},
        )

    if not isinstance(data, dict) or not isinstance(data.get("result", []), list):
        raise InvalidResponseShapeError(
            code=FetchErrorCode.INVALID_RESPONSE.value,
            message="Response body is not a provider envelope",
            details={"url": url},
        )

    try:
        info = data.get("result_info") or {}
        result_info = ResultInfo(
            page=int(info.get("page", 1)),
            per_page=int(info.get("per_page", 0)),
            total_pages=int(info.get("total_pages", 1)),
            count=int(info.get("count", 0)),
            total_count=int(info.get("total_count", 0)),
        )
        result = [parse_item(item) for item in data.get("result") or []]
        errors = _parse_messages(data.get("errors"))
        messages = _parse_messages(data.get("messages"))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise InvalidResponseShapeError(
            code=FetchErrorCode.INVALID_RESPONSE.value,
            message=f"Unexpected response shape: {e}",
            details={"url": url},
        )

    return ProviderResponse(
        result_info=result_info,
        result=result,
        success=data.get("success", True) is not False,
        errors=errors,
        messages=messages,
    )


class ProviderRecordResolver:
    """
    Resolves delegated hostnames through the provider API.

    Zones and record lists are memoized per instance, so hostnames sharing a
    zone trigger one round of API calls per run even without a response cache.
    """

    def __init__(
        self,
        fetcher: CachingFetcher,
        parent: DnsResolver,
        config: Optional[ProviderConfig] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        """
        Args:
            fetcher: Caching rate-limited fetcher for API calls
            parent: Ordinary resolver used for aliases leaving the base domain
            config: Provider API settings
            logger: Optional activity logger
        """
        self._fetcher = fetcher
        self._parent = parent
        self._config = config or ProviderConfig()
        self._logger = logger
        self._zones: dict[str, Zone] = {}
        self._records: dict[str, list[DnsRecord]] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def resolve(self, record: HostnameRecord) -> list[str]:
        """
        Resolve a delegated hostname to the addresses its records point at.

        Args:
            record: Classified hostname carrying provider credentials

        Returns:
            De-duplicated addresses, in match order (possibly empty)

        Raises:
            NoCredentialsError: If no credentials are attached
            NoZoneFoundError: If the provider has no zone for the base domain
            TransportError, CacheWriteError, InvalidResponseShapeError:
                If an API call fails
        """
        credentials = record.credentials
        if credentials is None:
            raise NoCredentialsError(
                code=ResolutionErrorCode.NO_CREDENTIALS.value,
                message=f"No credentials provided for {record.name}",
                details={"hostname": record.name},
            )

        zone = await self.get_zone(record.name, credentials)
        records = await self.get_dns_records(zone, credentials)

        return await self.find_matching_records(record.name, records)

    async def get_zone(self, hostname: str, credentials: Credentials) -> Zone:
        """Look up the zone for a hostname's base domain (first page only)."""
        domain = base_domain(hostname)

        async with self._locks[f"zone:{domain}"]:
            if domain in self._zones:
                return self._zones[domain]

            query = urlencode({"name": domain, "page": 1, "per_page": self._config.per_page})
            url = f"{self._config.api_base_url}/zones?{query}"
            response = await self._fetch(url, credentials, _parse_zone)

            if not response.result:
                raise NoZoneFoundError(
                    code=ResolutionErrorCode.NO_ZONE_FOUND.value,
                    message=f"no zone found for domain {hostname}",
                    details={"hostname": hostname, "base_domain": domain},
                )

            self._zones[domain] = response.result[0]
            return self._zones[domain]

    async def get_dns_records(self, zone: Zone, credentials: Credentials) -> list[DnsRecord]:
        """Fetch all records of a zone, following the reported pagination."""
        async with self._locks[f"records:{zone.id}"]:
            if zone.id in self._records:
                return self._records[zone.id]

            endpoint = f"{self._config.api_base_url}/zones/{zone.id}/dns_records"
            records: list[DnsRecord] = []
            page = 1

            while True:
                query = urlencode({"page": page, "per_page": self._config.per_page})
                response = await self._fetch(f"{endpoint}?{query}", credentials, _parse_record)
                records.extend(response.result)

                info = response.result_info
                if info.page >= info.total_pages or page >= info.total_pages:
                    break
                page += 1

            if self._logger:
                self._logger.debug(
                    "ProviderRecordResolver",
                    "Fetched zone records",
                    {"zone_id": zone.id, "records": len(records), "pages": page},
                )

            self._records[zone.id] = records
            return records

    async def find_matching_records(
        self,
        hostname: str,
        records: list[DnsRecord],
        seen: Optional[frozenset[str]] = None,
    ) -> list[str]:
        """
        Collect the addresses a hostname resolves to within a record set.

        A name already on the current alias chain contributes nothing, which
        stops self-referential and cyclic CNAME chains. Sibling branches each
        carry their own chain, so two aliases to one target are not a loop.
        """
        name = hostname.lower().rstrip(".")
        seen = frozenset() if seen is None else seen

        if name in seen:
            if self._logger:
                self._logger.warn(
                    "ProviderRecordResolver",
                    "Alias loop detected",
                    {"hostname": name},
                )
            return []
        chain = seen | {name}

        matched: list[str] = []
        for record in records:
            if not record_name_matches(record.name, name):
                continue

            if record.type == RecordType.CNAME.value:
                target = record.content.lower().rstrip(".")
                if base_domain(target) == base_domain(name):
                    matched.extend(await self.find_matching_records(target, records, chain))
                else:
                    matched.extend(await self._parent.resolve(target))
            elif record.type == RecordType.A.value:
                matched.append(record.content)

        return list(dict.fromkeys(matched))

    def _make_request(self, url: str, credentials: Credentials) -> FetchRequest:
        return FetchRequest(
            url=url,
            headers={
                self._config.identity_header: credentials.identity,
                self._config.secret_header: credentials.secret,
                "Content-Type": "application/json",
            },
        )

    async def _fetch(
        self,
        url: str,
        credentials: Credentials,
        parse_item: Callable[[Any], Any],
    ) -> ProviderResponse:
        body = await self._fetcher.fetch(self._make_request(url, credentials))
        response = decode_response(body, parse_item, url)

        if not response.success:
            raise TransportError(
                code=FetchErrorCode.PROVIDER_API_ERROR.value,
                message="Provider API reported failure",
                details={
                    "url": url,
                    "errors": [f"{e.code}: {e.message}" for e in response.errors],
                },
            )

        return response
