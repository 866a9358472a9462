import asyncio

import pytest

from crust_dashboard.core.errors import UnknownSortKey
from crust_dashboard.core.types import SortState, WatchItem, WatchSortKey
from crust_dashboard.services.notify import MemoryNotifier
from crust_dashboard.services.sorting import (
    RefreshTracker,
    SortableListView,
    next_sort_state,
    sort_records,
)


def _items():
    return [
        WatchItem(file_cid="a", file_size=30, start_time=3, file_status="ok"),
        WatchItem(file_cid="b", file_size=10, start_time=1, file_status="ok"),
        WatchItem(file_cid="c", file_size=20, start_time=2, file_status="pending"),
    ]


def _cids(items):
    return [i.file_cid for i in items]


def test_next_sort_state():
    state = next_sort_state(SortState(), "file_size")
    assert state == SortState(by="file_size", ascending=True)
    state = next_sort_state(state, "file_size")
    assert state == SortState(by="file_size", ascending=False)
    state = next_sort_state(state, "start_time")
    assert state == SortState(by="start_time", ascending=True)


def test_no_sort_key_keeps_input_order():
    assert _cids(sort_records(_items(), SortState())) == ["a", "b", "c"]


def test_reverse_direction_is_exact_reverse_without_ties():
    asc = sort_records(_items(), SortState(by="file_size", ascending=True))
    desc = sort_records(_items(), SortState(by="file_size", ascending=False))
    assert _cids(asc) == ["b", "c", "a"]
    assert _cids(desc) == list(reversed(_cids(asc)))


def test_ties_keep_input_order_both_directions():
    asc = sort_records(_items(), SortState(by="file_status", ascending=True))
    desc = sort_records(_items(), SortState(by="file_status", ascending=False))
    assert _cids(asc) == ["a", "b", "c"]
    assert _cids(desc) == ["c", "a", "b"]


def test_recompute_is_idempotent():
    state = SortState(by="start_time", ascending=False)
    once = sort_records(_items(), state)
    twice = sort_records(once, state)
    assert _cids(once) == _cids(twice) == ["a", "c", "b"]


def test_missing_values_sort_last_when_ascending():
    items = _items()
    items[1].global_replicas = 5
    asc = sort_records(items, SortState(by="global_replicas", ascending=True))
    desc = sort_records(items, SortState(by="global_replicas", ascending=False))
    assert _cids(asc)[0] == "b"
    assert _cids(desc)[-1] == "b"


def test_sorts_mappings():
    rows = [{"k": 2}, {"k": 1}]
    assert sort_records(rows, SortState(by="k")) == [{"k": 1}, {"k": 2}]


def test_view_tracks_records_and_sort():
    view = SortableListView(_items(), allowed_keys=WatchSortKey)
    assert _cids(view.rows) == ["a", "b", "c"]

    view.set_sort("file_size")
    assert _cids(view.rows) == ["b", "c", "a"]
    assert view.sort_indicator("file_size") == " ↑"
    assert view.sort_indicator("start_time") == ""

    view.set_sort(WatchSortKey.FILE_SIZE)
    assert _cids(view.rows) == ["a", "c", "b"]
    assert view.sort_indicator("file_size") == " ↓"

    view.set_records(_items()[:2])
    assert _cids(view.rows) == ["a", "b"]


def test_view_rejects_unknown_key():
    view = SortableListView(_items(), allowed_keys=WatchSortKey)
    with pytest.raises(UnknownSortKey):
        view.set_sort("owner")


def test_refresh_runs_lookup_and_clears_pending():
    tracker = RefreshTracker()
    seen_pending = []
    results = {}

    async def lookup(key):
        seen_pending.append(tracker.is_pending(key))
        return 7

    count = asyncio.run(
        tracker.start_refresh("cid", lookup, on_result=lambda k, v: results.update({k: v}))
    )

    assert count == 7
    assert results == {"cid": 7}
    assert seen_pending == [True]
    assert tracker.pending == frozenset()


def test_refresh_failure_is_swallowed_and_cleaned_up():
    tracker = RefreshTracker()

    async def lookup(key):
        raise RuntimeError("dht timeout")

    assert asyncio.run(tracker.start_refresh("cid", lookup)) is None
    assert not tracker.is_pending("cid")


def test_refresh_at_most_one_in_flight_per_key():
    tracker = RefreshTracker()
    calls = []

    async def scenario():
        gate = asyncio.Event()

        async def lookup(key):
            calls.append(key)
            await gate.wait()
            return 1

        first = asyncio.create_task(tracker.start_refresh("cid", lookup))
        await asyncio.sleep(0)
        duplicate = await tracker.start_refresh("cid", lookup)
        other = asyncio.create_task(tracker.start_refresh("other", lookup))
        await asyncio.sleep(0)
        assert tracker.pending == frozenset({"cid", "other"})
        gate.set()
        return await first, duplicate, await other

    assert asyncio.run(scenario()) == (1, None, 1)
    assert calls == ["cid", "other"]
    assert tracker.pending == frozenset()


def test_refresh_when_unready_notifies_without_lookup():
    notifier = MemoryNotifier()
    tracker = RefreshTracker(notifier)
    calls = []

    async def lookup(key):
        calls.append(key)
        return 1

    assert asyncio.run(tracker.start_refresh("cid", lookup, ready=False)) is None
    assert calls == []
    assert len(notifier.drain()) == 1
    assert notifier.messages == []
