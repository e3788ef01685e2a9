"""
Hosting inventory client.

Lists the servers and apps of the hosting control panel and pairs every app
with the server it runs on. The hostnames of those apps are the input of a
reconciliation run, so any failure here is fatal for the run.
"""

import base64
import json
from typing import Any, Callable, Optional

from .activity_log import ActivityLogger
from .config import InventoryConfig
from .enums import FetchErrorCode
from .exceptions import DomainReconcilerError, InventoryError
from .fetcher import CachingFetcher, FetchRequest
from .hostnames import try_normalize
from .models import App, AppServer, Server


def all_domains(app_servers: list[AppServer]) -> list[str]:
    """Flatten the hostnames of all apps in app order, first occurrence wins."""
    hostnames: dict[str, None] = {}
    for app_server in app_servers:
        for hostname in app_server.app.domains:
            hostnames.setdefault(hostname, None)
    return list(hostnames)


class HostingInventory:
    """Read-only client for the hosting API's server and app listings."""

    def __init__(
        self,
        fetcher: CachingFetcher,
        client_id: str,
        api_key: str,
        config: Optional[InventoryConfig] = None,
        logger: Optional[ActivityLogger] = None,
    ) -> None:
        """
        Args:
            fetcher: Caching rate-limited fetcher
            client_id: Hosting API client id
            api_key: Hosting API key
            config: Hosting API base URL
            logger: Optional activity logger
        """
        self._fetcher = fetcher
        self._config = config or InventoryConfig()
        self._logger = logger
        token = base64.b64encode(f"{client_id}:{api_key}".encode("utf-8")).decode("ascii")
        self._headers = {
            "Authorization": f"Basic {token}",
            "Content-Type": "application/json",
        }

    async def list_servers(self) -> list[Server]:
        """
        List all servers.

        Raises:
            InventoryError: If the listing cannot be fetched or decoded
        """
        return await self._list("servers", self._parse_server)

    async def list_apps(self) -> list[App]:
        """
        List all apps with their normalized hostnames.

        Raises:
            InventoryError: If the listing cannot be fetched or decoded
        """
        return await self._list("apps", self._parse_app)

    async def list_app_servers(self) -> list[AppServer]:
        """Pair every app with its server, in app order."""
        servers = {server.id: server for server in await self.list_servers()}
        apps = await self.list_apps()

        app_servers = []
        for app in apps:
            server = servers.get(app.server_id)
            if server is None:
                if self._logger:
                    self._logger.warn(
                        "HostingInventory",
                        "App refers to an unknown server",
                        {"app_id": app.id, "server_id": app.server_id},
                    )
                server = Server(id=app.server_id)
            app_servers.append(AppServer(app=app, server=server))

        return app_servers

    async def _list(self, resource: str, parse_item: Callable[[Any], Any]) -> list:
        url = f"{self._config.api_base_url}/{resource}"

        try:
            body = await self._fetcher.fetch(FetchRequest(url=url, headers=self._headers))
        except DomainReconcilerError as e:
            raise InventoryError(
                code=e.code,
                message=f"Could not list {resource}: {e.message}",
                details={"url": url, **e.details},
            ) from e

        try:
            data = json.loads(body)
            items = [parse_item(item) for item in data["data"]]
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise InventoryError(
                code=FetchErrorCode.INVALID_RESPONSE.value,
                message=f"Unexpected {resource} response: {e}",
                details={"url": url},
            ) from e

        if self._logger:
            self._logger.debug("HostingInventory", f"Listed {resource}", {"count": len(items)})

        return items

    @staticmethod
    def _parse_server(item: dict) -> Server:
        return Server(
            id=str(item["id"]),
            name=str(item.get("name", "")),
            ip_address=str(item.get("lastaddress") or ""),
        )

    def _parse_app(self, item: dict) -> App:
        domains = []
        for raw in item.get("domains") or []:
            hostname = try_normalize(raw)
            if hostname is None:
                if self._logger:
                    self._logger.warn(
                        "HostingInventory",
                        "Skipping invalid hostname",
                        {"app_id": item.get("id"), "hostname": raw},
                    )
                continue
            domains.append(hostname)

        return App(
            id=str(item["id"]),
            name=str(item.get("name", "")),
            server_id=str(item.get("serverid", "")),
            domains=domains,
        )
