"""Storage-market watch list: persisted deals, sorting, selection, replica sync."""

import logging
from typing import Iterable

from ..core.config import get_settings
from ..core.interfaces import Notifier, ReplicaLookup
from ..core.types import SortState, WatchItem, WatchSortKey
from ..data.database import DashboardDatabase
from .selection import SelectionSet
from .sorting import RefreshTracker, SortableListView

logger = logging.getLogger(__name__)


class WatchListService:
    """Owns the watched deals and the views layered over them."""

    def __init__(
        self,
        database: DashboardDatabase | None = None,
        replicas: ReplicaLookup | None = None,
        notifier: Notifier | None = None,
    ):
        self.database = database
        self.replicas = replicas
        self._items: dict[str, WatchItem] = {}
        self.view: SortableListView[WatchItem] = SortableListView(allowed_keys=WatchSortKey)
        self.selection = SelectionSet(universe=self.watched_cids)
        self.refreshing = RefreshTracker(notifier)
        self._mounted = False

    def mount(self) -> None:
        """Apply the default ordering once (newest deals first)."""
        if self._mounted:
            return
        settings = get_settings()
        self.view.set_default_sort(settings.watch_default_sort, settings.watch_default_ascending)
        self._mounted = True

    # Items

    def watched_cids(self) -> list[str]:
        return list(self._items)

    @property
    def items(self) -> list[WatchItem]:
        return list(self._items.values())

    @property
    def rows(self) -> tuple[WatchItem, ...]:
        return self.view.rows

    def get(self, file_cid: str) -> WatchItem | None:
        return self._items.get(file_cid)

    def _publish(self) -> None:
        self.view.set_records(self.items)
        self.selection.retain(self._items)

    async def load(self) -> list[WatchItem]:
        if self.database is not None:
            self._items = {item.file_cid: item for item in await self.database.get_watch_items()}
        self._publish()
        return self.items

    async def add(self, item: WatchItem) -> WatchItem:
        """Start watching a deal (replaces an existing entry with the same CID)."""
        self._items = {**self._items, item.file_cid: item}
        if self.database is not None:
            await self.database.save_watch_item(item)
        self._publish()
        return item

    async def remove(self, file_cids: Iterable[str]) -> list[str]:
        """Stop watching deals; returns the CIDs that were removed."""
        removed = [cid for cid in file_cids if cid in self._items]
        if not removed:
            return []
        self._items = {cid: item for cid, item in self._items.items() if cid not in removed}
        if self.database is not None:
            await self.database.delete_watch_items(removed)
        self._publish()
        return removed

    async def remove_selected(self) -> list[str]:
        return await self.remove(sorted(self.selection.selected))

    def update_item(self, file_cid: str, global_replicas: int) -> WatchItem | None:
        """Write a refreshed replica count into the watched item."""
        item = self._items.get(file_cid)
        if item is None:
            return None
        item.global_replicas = global_replicas
        self.view.refresh()
        return item

    # Sorting

    def change_sort(self, key: str) -> SortState:
        return self.view.set_sort(key)

    # Replica sync

    def is_spinning(self, file_cid: str) -> bool:
        return self.refreshing.is_pending(file_cid)

    async def sync_status(self, file_cid: str) -> int | None:
        """Refresh one deal's global replica count.

        Returns the new count, or None if the lookup was skipped or failed.
        """
        if self.replicas is None:
            return None

        count = await self.refreshing.start_refresh(
            file_cid,
            self.replicas.find_replicas,
            on_result=self.update_item,
            ready=self.replicas.is_ready(),
        )
        if count is not None and self.database is not None:
            item = self._items.get(file_cid)
            if item is not None:
                await self.database.save_watch_item(item)
        return count
