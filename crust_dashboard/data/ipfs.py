"""Replica counting through the IPFS HTTP API."""

import json
import logging

import httpx

from ..core.config import get_settings

logger = logging.getLogger(__name__)

# Routing query event type for "provider found"
PROVIDER_EVENT = 4


class IpfsReplicaLookup:
    """Counts peers providing a CID (the deal's global replicas).

    ``is_ready`` reflects the last ``connect()``; lookups are not attempted
    while the node is unreachable.
    """

    def __init__(
        self,
        api_url: str | None = None,
        num_providers: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = get_settings()
        self.api_url = (api_url or self.settings.ipfs_api_url).rstrip("/")
        self.num_providers = num_providers
        self._transport = transport
        self.ready = False
        self.init_failed = False
        self.peer_id: str | None = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds, transport=self._transport
        )

    def is_ready(self) -> bool:
        return self.ready

    async def connect(self) -> bool:
        """Probe the node identity endpoint and update readiness."""
        async with self._client() as client:
            try:
                response = await client.post(f"{self.api_url}/api/v0/id")
                response.raise_for_status()
                self.peer_id = response.json().get("ID")
                self.ready = True
                self.init_failed = False
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                logger.warning(f"IPFS node unavailable at {self.api_url}: {e}")
                self.ready = False
                self.init_failed = True
        return self.ready

    async def find_replicas(self, file_cid: str) -> int:
        """Number of distinct providers for ``file_cid``.

        Raises httpx errors on failure; callers decide whether to swallow them.
        """
        providers: set[str] = set()
        async with self._client() as client:
            response = await client.post(
                f"{self.api_url}/api/v0/routing/findprovs",
                params={"arg": file_cid, "num-providers": self.num_providers},
            )
            response.raise_for_status()
            for line in response.text.splitlines():
                if not line.strip():
                    continue
                event = json.loads(line)
                if event.get("Type") != PROVIDER_EVENT:
                    continue
                for provider in event.get("Responses") or []:
                    if provider.get("ID"):
                        providers.add(provider["ID"])
        return len(providers)


def landing_route(ready: bool, init_failed: bool, connected: bool) -> str:
    """Where the storage app should go given the node status."""
    if not init_failed and not ready:
        return "loading"
    if connected:
        return "storage"
    return "not_connected"
