"""Sortable list projection and per-row refresh tracking."""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Iterable, Sequence, TypeVar

from ..core.errors import UnknownSortKey
from ..core.interfaces import Notifier
from ..core.types import SortState

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

UNREADY_MESSAGE = "Lookup service is not available, please check the IPFS connection"


def _field(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def sort_records(records: Iterable[T], sort_state: SortState) -> list[T]:
    """Return a new list ordered by ``sort_state.by``.

    The sort is stable in both directions: ties keep their input order.
    Missing values sort after present ones when ascending.
    """
    items = list(records)
    if sort_state.by is None:
        return items

    by = sort_state.by
    present = [r for r in items if _field(r, by) is not None]
    missing = [r for r in items if _field(r, by) is None]
    ordered = sorted(present, key=lambda r: _field(r, by), reverse=not sort_state.ascending)
    return ordered + missing if sort_state.ascending else missing + ordered


def next_sort_state(current: SortState, key: str) -> SortState:
    """Clicking the active column flips direction; a new column starts ascending."""
    if key == current.by:
        return SortState(by=key, ascending=not current.ascending)
    return SortState(by=key, ascending=True)


class SortableListView(Generic[T]):
    """Keeps a sorted projection of a record collection in step with its
    inputs: the projection is rebuilt whenever records or sort state change."""

    def __init__(
        self,
        records: Sequence[T] = (),
        allowed_keys: Iterable[str] | None = None,
        sort_state: SortState | None = None,
    ):
        self._allowed = (
            {k.value if isinstance(k, Enum) else k for k in allowed_keys}
            if allowed_keys is not None
            else None
        )
        self._records: tuple[T, ...] = tuple(records)
        self._sort_state = sort_state or SortState()
        self._rows: tuple[T, ...] = ()
        self._recompute()

    @property
    def sort_state(self) -> SortState:
        return self._sort_state

    @property
    def rows(self) -> tuple[T, ...]:
        return self._rows

    def _check_key(self, key: str) -> str:
        key = key.value if isinstance(key, Enum) else key
        if self._allowed is not None and key not in self._allowed:
            raise UnknownSortKey(f"Cannot sort by {key!r}")
        return key

    def set_sort(self, key: str) -> SortState:
        self._sort_state = next_sort_state(self._sort_state, self._check_key(key))
        self._recompute()
        return self._sort_state

    def set_default_sort(self, key: str, ascending: bool) -> None:
        """Apply an explicit initial ordering (used once at mount)."""
        self._sort_state = SortState(by=self._check_key(key), ascending=ascending)
        self._recompute()

    def set_records(self, records: Sequence[T]) -> None:
        self._records = tuple(records)
        self._recompute()

    def refresh(self) -> None:
        """Re-sort after a record was updated in place."""
        self._recompute()

    def sort_indicator(self, key: str) -> str:
        if self._sort_state.by != key:
            return ""
        return " ↑" if self._sort_state.ascending else " ↓"

    def _recompute(self) -> None:
        self._rows = tuple(sort_records(self._records, self._sort_state))


class RefreshTracker:
    """Tracks rows with an async lookup in flight ("spinning" rows).

    At most one lookup per key runs at a time. The pending set is replaced,
    never mutated, so readers always see a consistent snapshot.
    """

    def __init__(self, notifier: Notifier | None = None):
        self._notifier = notifier
        self._pending: frozenset[str] = frozenset()

    @property
    def pending(self) -> frozenset[str]:
        return self._pending

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def start_refresh(
        self,
        key: str,
        lookup: Callable[[str], Awaitable[R]],
        on_result: Callable[[str, R], None] | None = None,
        ready: bool = True,
    ) -> R | None:
        """Run ``lookup(key)`` unless one is already running for ``key``.

        Lookup failures are discarded; the user retries by refreshing again.
        If the lookup service is not ready at all, the notifier is told and
        nothing is started.
        """
        if not ready:
            if self._notifier:
                self._notifier.queue_action(UNREADY_MESSAGE, "error")
            return None

        if key in self._pending:
            return None

        self._pending = self._pending | {key}
        try:
            result = await lookup(key)
            if on_result:
                on_result(key, result)
            return result
        except Exception as e:
            logger.debug(f"Refresh of {key} failed: {e}")
            return None
        finally:
            self._pending = self._pending - {key}
