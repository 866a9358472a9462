"""API endpoints for the web interface."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from ..core.errors import ArithmeticUnderflow, UnknownSortKey
from ..core.types import ValidatorRow, ValidatorSortKey, WatchItem
from ..services.sorting import SortableListView
from ..services.staking_service import StakingOverview
from ..services.watchlist_service import WatchListService

router = APIRouter()


def _overview(request: Request) -> StakingOverview:
    return request.app.state.overview


def _watchlist(request: Request) -> WatchListService:
    return request.app.state.watchlist


async def _reload(overview: StakingOverview):
    try:
        return await overview.reload()
    except ArithmeticUnderflow as e:
        raise HTTPException(status_code=502, detail=str(e))


def _row_payload(row: ValidatorRow) -> dict:
    payload = row.model_dump(exclude={"summary"})
    payload["stake"] = row.summary.model_dump() if row.summary else None
    return payload


async def _rows(request: Request, waiting: bool, filter_text: str, sort: Optional[str], desc: bool) -> dict:
    overview = _overview(request)
    if overview.snapshot.value is None and await _reload(overview) is None:
        raise HTTPException(status_code=503, detail="Staking snapshot unavailable")

    overview.set_filter(filter_text)
    view = SortableListView(overview.visible_rows(waiting=waiting), allowed_keys=ValidatorSortKey)
    if sort:
        try:
            view.set_default_sort(sort, not desc)
        except UnknownSortKey as e:
            raise HTTPException(status_code=400, detail=str(e))

    rows = [_row_payload(r) for r in view.rows]
    return {"count": len(rows), "rows": rows}


@router.get("/validators")
async def list_validators(request: Request, filter: str = "", sort: Optional[str] = None, desc: bool = False):
    """Active validators, favorites first unless a sort column is given."""
    return await _rows(request, False, filter, sort, desc)


@router.get("/waiting")
async def list_waiting(request: Request, filter: str = "", sort: Optional[str] = None, desc: bool = False):
    """Elected-but-not-validating accounts followed by waiting candidates."""
    return await _rows(request, True, filter, sort, desc)


@router.post("/refresh")
async def refresh_snapshot(request: Request):
    snapshot = await _reload(_overview(request))
    if snapshot is None:
        raise HTTPException(status_code=503, detail="Staking snapshot unavailable")
    return {"validators": len(snapshot.validators), "next_elected": len(snapshot.next_elected)}


@router.post("/favorites/{account_id}")
async def toggle_favorite(request: Request, account_id: str):
    favorites = await _overview(request).toggle_favorite(account_id)
    return {"favorites": favorites, "is_favorite": account_id in favorites}


@router.get("/watch")
async def list_watch(request: Request, sort: Optional[str] = None):
    """Watched deals; ``sort`` behaves like clicking a column header."""
    watchlist = _watchlist(request)
    if sort:
        try:
            watchlist.change_sort(sort)
        except UnknownSortKey as e:
            raise HTTPException(status_code=400, detail=str(e))

    state = watchlist.view.sort_state
    return {
        "sort": {"by": state.by, "ascending": state.ascending},
        "all_selected": watchlist.selection.is_all_selected(),
        "items": [
            {
                **item.model_dump(),
                "selected": watchlist.selection.is_selected(item.file_cid),
                "spinning": watchlist.is_spinning(item.file_cid),
            }
            for item in watchlist.rows
        ],
    }


@router.post("/watch")
async def add_watch(request: Request, item: WatchItem):
    await _watchlist(request).add(item)
    return {"ok": True, "file_cid": item.file_cid}


@router.delete("/watch/{file_cid}")
async def remove_watch(request: Request, file_cid: str):
    removed = await _watchlist(request).remove([file_cid])
    if not removed:
        raise HTTPException(status_code=404, detail="Watch item not found")
    return {"ok": True}


@router.post("/watch/{file_cid}/select")
async def toggle_select(request: Request, file_cid: str):
    watchlist = _watchlist(request)
    if watchlist.get(file_cid) is None:
        raise HTTPException(status_code=404, detail="Watch item not found")
    selected = watchlist.selection.toggle_one(file_cid)
    return {"selected": sorted(selected)}


@router.post("/watch/select-all")
async def toggle_select_all(request: Request):
    selected = _watchlist(request).selection.toggle_all()
    return {"selected": sorted(selected)}


@router.post("/watch/{file_cid}/sync")
async def sync_watch(request: Request, file_cid: str):
    watchlist = _watchlist(request)
    if watchlist.get(file_cid) is None:
        raise HTTPException(status_code=404, detail="Watch item not found")
    count = await watchlist.sync_status(file_cid)
    return {"file_cid": file_cid, "global_replicas": count}


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
