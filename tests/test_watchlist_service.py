import asyncio

from crust_dashboard.core.types import WatchItem
from crust_dashboard.data.database import DashboardDatabase
from crust_dashboard.services.notify import MemoryNotifier
from crust_dashboard.services.watchlist_service import WatchListService


class FakeReplicas:
    def __init__(self, counts, ready=True):
        self.counts = counts
        self.ready = ready
        self.calls = []

    def is_ready(self):
        return self.ready

    async def find_replicas(self, file_cid):
        self.calls.append(file_cid)
        count = self.counts[file_cid]
        if isinstance(count, Exception):
            raise count
        return count


def _item(cid, start, size=0):
    return WatchItem(file_cid=cid, start_time=start, file_size=size)


def _cids(items):
    return [i.file_cid for i in items]


def _service(**kwargs):
    service = WatchListService(**kwargs)
    service.mount()
    return service


def test_default_sort_is_newest_first():
    service = _service()
    for cid, start in [("a", 1), ("b", 3), ("c", 2)]:
        asyncio.run(service.add(_item(cid, start)))

    assert service.view.sort_state.by == "start_time"
    assert service.view.sort_state.ascending is False
    assert _cids(service.rows) == ["b", "c", "a"]


def test_mount_applies_default_once():
    service = _service()
    service.change_sort("file_size")
    service.mount()
    assert service.view.sort_state.by == "file_size"


def test_change_sort_toggles_direction():
    service = _service()
    asyncio.run(service.add(_item("a", 1, size=5)))
    asyncio.run(service.add(_item("b", 2, size=9)))

    assert service.change_sort("start_time").ascending is True
    assert _cids(service.rows) == ["a", "b"]
    state = service.change_sort("file_size")
    assert (state.by, state.ascending) == ("file_size", True)
    service.change_sort("file_size")
    assert _cids(service.rows) == ["b", "a"]


def test_selection_follows_watched_items():
    service = _service()
    for cid, start in [("a", 1), ("b", 2), ("c", 3)]:
        asyncio.run(service.add(_item(cid, start)))

    service.selection.toggle_one("a")
    service.selection.toggle_one("b")
    assert service.selection.is_all_selected() is False
    service.selection.toggle_all()
    assert service.selection.is_all_selected() is True

    removed = asyncio.run(service.remove(["c"]))
    assert removed == ["c"]
    assert service.selection.selected == frozenset({"a", "b"})
    assert service.selection.is_all_selected() is True

    assert sorted(asyncio.run(service.remove_selected())) == ["a", "b"]
    assert service.rows == ()
    assert service.selection.is_all_selected() is False


def test_sync_status_updates_item_and_resorts():
    replicas = FakeReplicas({"a": 9, "b": 1})
    service = _service(replicas=replicas)
    asyncio.run(service.add(_item("a", 1)))
    asyncio.run(service.add(_item("b", 2)))
    service.change_sort("global_replicas")

    assert asyncio.run(service.sync_status("a")) == 9
    assert service.get("a").global_replicas == 9
    assert _cids(service.rows) == ["a", "b"]

    asyncio.run(service.sync_status("b"))
    assert _cids(service.rows) == ["b", "a"]
    assert not service.is_spinning("a")


def test_sync_failure_leaves_item_untouched():
    replicas = FakeReplicas({"a": RuntimeError("boom")})
    service = _service(replicas=replicas)
    asyncio.run(service.add(_item("a", 1)))

    assert asyncio.run(service.sync_status("a")) is None
    assert service.get("a").global_replicas is None
    assert not service.is_spinning("a")


def test_sync_when_node_unready_notifies():
    notifier = MemoryNotifier()
    replicas = FakeReplicas({"a": 3}, ready=False)
    service = _service(replicas=replicas, notifier=notifier)
    asyncio.run(service.add(_item("a", 1)))

    assert asyncio.run(service.sync_status("a")) is None
    assert replicas.calls == []
    assert [status for status, _ in notifier.drain()] == ["error"]


def test_watch_list_is_persisted(tmp_path):
    db = DashboardDatabase(tmp_path / "dashboard.db")
    service = _service(database=db, replicas=FakeReplicas({"a": 4}))
    asyncio.run(service.add(_item("a", 1)))
    asyncio.run(service.add(_item("b", 2)))
    asyncio.run(service.sync_status("a"))
    asyncio.run(service.remove(["b"]))

    reloaded = _service(database=db)
    items = asyncio.run(reloaded.load())
    assert _cids(items) == ["a"]
    assert items[0].global_replicas == 4
    assert _cids(reloaded.rows) == ["a"]
