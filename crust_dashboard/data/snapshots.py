"""Load staking snapshots published by an indexer as JSON."""

import json
import logging
from pathlib import Path

import httpx
from pydantic import ValidationError

from ..core.config import get_settings
from ..core.types import AccountInfo, ChainSnapshot
from .cache import cached

logger = logging.getLogger(__name__)


def parse_snapshot(data: dict) -> ChainSnapshot | None:
    """Validate a raw snapshot document; returns None if it is malformed."""
    try:
        return ChainSnapshot.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid staking snapshot: {e.error_count()} errors")
        return None


class HttpSnapshotSource:
    """Fetches the staking snapshot document over HTTP.

    The document looks like:
    {
        "next_elected": ["5Gx...", ...],
        "validators": ["5Gx...", ...],
        "waiting": ["5Fy...", ...],
        "accounts": {"5Gx...": {"exposure": {...}, "prefs": {...}, ...}},
        "nominations": [{"nominator_id": "5Dz...", "targets": [...]}, ...],
        ...
    }
    """

    def __init__(self, url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = get_settings()
        self.url = url or self.settings.snapshot_url
        self._transport = transport

    @cached(ttl=30)
    async def fetch_snapshot_data(self) -> dict | None:
        async with httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds, transport=self._transport
        ) as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.warning(f"Failed to fetch staking snapshot: HTTP {e.response.status_code}")
                return None
            except httpx.RequestError as e:
                logger.warning(f"Failed to fetch staking snapshot: {e}")
                return None
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse staking snapshot JSON: {e}")
                return None

    async def get_snapshot(self) -> ChainSnapshot | None:
        data = await self.fetch_snapshot_data()
        if data is None:
            return None
        return parse_snapshot(data)


class FileSnapshotSource:
    """Reads the same snapshot document from disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def get_snapshot(self) -> ChainSnapshot | None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            logger.warning(f"Failed to read staking snapshot {self.path}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse staking snapshot JSON: {e}")
            return None
        return parse_snapshot(data)


class SnapshotIdentityLookup:
    """Identity lookup backed by the account info shipped in a snapshot."""

    def __init__(self, snapshot: ChainSnapshot):
        self._snapshot = snapshot

    @property
    def has_identity(self) -> bool:
        return self._snapshot.has_identity

    async def get_account_info(self, account_id: str) -> AccountInfo | None:
        info = self._snapshot.accounts_info.get(account_id)
        if info is None:
            return None
        if info.account_id is None:
            info = info.model_copy(update={"account_id": account_id})
        return info
