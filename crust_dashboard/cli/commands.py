"""Typer CLI commands with Rich formatting."""

import asyncio
import json
import time
from decimal import Decimal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.config import get_settings
from ..core.errors import UnknownSortKey
from ..core.types import ValidatorRow, ValidatorSortKey, WatchItem
from ..data.database import DashboardDatabase
from ..data.ipfs import IpfsReplicaLookup
from ..data.snapshots import FileSnapshotSource, HttpSnapshotSource
from ..services.exposure import encode_guarantee_fee
from ..services.sorting import SortableListView
from ..services.staking_service import StakingOverview
from ..services.watchlist_service import WatchListService

app = typer.Typer(
    name="crust-dashboard",
    help="Crust staking explorer and storage watch list",
)
watch_app = typer.Typer(help="Track storage-market deals")
app.add_typer(watch_app, name="watch")
console = Console()


def run_async(coro):
    """Helper to run async functions from sync CLI."""
    return asyncio.run(coro)


class ConsoleNotifier:
    """Prints notifications to the terminal."""

    def queue_action(self, message: str, status: str = "error") -> None:
        style = "red" if status == "error" else "yellow"
        console.print(f"[{style}]{message}[/{style}]")


def format_balance(value: int | None) -> str:
    if value is None:
        return "--"
    settings = get_settings()
    amount = Decimal(value) / Decimal(10**settings.token_decimals)
    return f"{amount:,.4f} {settings.token_symbol}"


def row_to_dict(row: ValidatorRow) -> dict:
    summary = row.summary
    result = {
        "account_id": row.account_id,
        "is_elected": row.is_elected,
        "is_favorite": row.is_favorite,
        "is_highlighted": row.is_highlighted,
        "points": row.points,
        "last_block": row.last_block,
        "stake": None,
    }
    if summary:
        result["stake"] = {
            "total": summary.stake_total,
            "own": summary.stake_own,
            "other": summary.stake_other,
            "limit": summary.stake_limit,
            "guarantee_fee": summary.guarantee_fee,
            "nominators": [list(n) for n in summary.nominators],
        }
    if row.nominated_by is not None:
        result["nominated_by"] = [list(n) for n in row.nominated_by]
    return result


def _snapshot_source(snapshot_file: Optional[Path], url: Optional[str]):
    if snapshot_file is not None:
        return FileSnapshotSource(snapshot_file)
    return HttpSnapshotSource(url)


async def load_overview(
    snapshot_file: Optional[Path],
    url: Optional[str],
    db_path: Optional[Path],
    filter_text: str = "",
    own_accounts: tuple[str, ...] = (),
) -> StakingOverview | None:
    """Build a staking overview from the configured sources."""
    db = DashboardDatabase(db_path)
    overview = StakingOverview(
        source=_snapshot_source(snapshot_file, url),
        favorites_store=db,
        address_book=db,
        own_accounts=own_accounts,
    )
    await overview.load_favorites()
    if await overview.reload() is None:
        return None
    overview.set_filter(filter_text)
    return overview


def _sorted_rows(rows: list[ValidatorRow], sort: Optional[str], descending: bool) -> list[ValidatorRow]:
    view = SortableListView(rows, allowed_keys=ValidatorSortKey)
    if sort:
        view.set_default_sort(sort, not descending)
    return list(view.rows)


def _show_rows(rows: list[ValidatorRow], title: str, waiting: bool) -> None:
    table = Table(title=title)
    table.add_column("", width=2)
    table.add_column("Account", style="cyan", no_wrap=True)
    if waiting:
        table.add_column("Guarantors", justify="right")
    else:
        table.add_column("Other stake", justify="right")
    table.add_column("Stake limit", justify="right")
    table.add_column("Total stake", justify="right")
    table.add_column("Own stake", justify="right")
    table.add_column("Guarantee fee", justify="right")
    if not waiting:
        table.add_column("Points", justify="right")
        table.add_column("Last #", justify="right")

    for row in rows:
        summary = row.summary
        mark = "★" if row.is_favorite else ""
        account = f"[bold]{row.account_id}[/bold]" if row.is_highlighted else row.account_id
        if not row.is_elected:
            account = f"[dim]{account}[/dim]"
        cells = [mark, account]
        if waiting:
            cells.append(str(row.nominator_count or 0))
        else:
            cells.append(format_balance(summary.stake_other if summary else None))
        cells += [
            format_balance(summary.stake_limit if summary else None),
            format_balance(summary.stake_total if summary else None),
            format_balance(summary.stake_own if summary else None),
            (summary.guarantee_fee if summary else None) or "",
        ]
        if not waiting:
            cells += [row.points or "", row.last_block or ""]
        table.add_row(*cells)

    console.print(table)


def _list_command(
    waiting: bool,
    snapshot_file: Optional[Path],
    url: Optional[str],
    db_path: Optional[Path],
    filter_text: str,
    own: list[str],
    sort: Optional[str],
    descending: bool,
    output_json: bool,
) -> None:
    overview = run_async(load_overview(snapshot_file, url, db_path, filter_text, tuple(own)))
    if overview is None:
        if output_json:
            print(json.dumps({"error": "Staking snapshot unavailable"}, indent=2))
        else:
            console.print("[red]Could not load a staking snapshot[/red]")
        raise typer.Exit(1)

    try:
        rows = _sorted_rows(overview.visible_rows(waiting=waiting), sort, descending)
    except UnknownSortKey as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if output_json:
        print(json.dumps([row_to_dict(r) for r in rows], indent=2))
        return

    if not rows:
        empty = "No waiting validators found" if waiting else "No active validators found"
        console.print(f"[yellow]{empty}[/yellow]")
        return
    _show_rows(rows, "Waiting" if waiting else "Validators", waiting)


@app.command()
def validators(
    snapshot_file: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot JSON file"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Snapshot URL"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
    filter_text: str = typer.Option("", "--filter", "-f", help="Filter by name, address or index"),
    own: list[str] = typer.Option([], "--own", help="Own account (highlights rows)"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort column"),
    descending: bool = typer.Option(False, "--desc", help="Sort descending"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """
    List active validators with their stake.

    Examples:
        crust-dashboard validators --snapshot snapshot.json
        crust-dashboard validators --filter alice --sort stake_total --desc
    """
    _list_command(False, snapshot_file, url, db_path, filter_text, own, sort, descending, output_json)


@app.command()
def waiting(
    snapshot_file: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot JSON file"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Snapshot URL"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
    filter_text: str = typer.Option("", "--filter", "-f", help="Filter by name, address or index"),
    own: list[str] = typer.Option([], "--own", help="Own account (highlights rows you guarantee)"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort column"),
    descending: bool = typer.Option(False, "--desc", help="Sort descending"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List elected-but-not-validating accounts and waiting candidates."""
    _list_command(True, snapshot_file, url, db_path, filter_text, own, sort, descending, output_json)


@app.command()
def favorite(
    account_id: str = typer.Argument(..., help="Account to (un)favorite"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
):
    """Toggle an account in the favorites list."""
    db = DashboardDatabase(db_path)
    favorites = run_async(db.toggle(get_settings().favorites_key, account_id))
    state = "added to" if account_id in favorites else "removed from"
    console.print(f"{account_id} {state} favorites ({len(favorites)} total)")


@app.command()
def name(
    account_id: str = typer.Argument(..., help="Account id"),
    label: str = typer.Argument(..., help="Local name"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
):
    """Store a local address book name for an account."""
    run_async(DashboardDatabase(db_path).set_name(account_id, label))
    console.print(f"Saved name [cyan]{label}[/cyan] for {account_id}")


@app.command()
def commission(
    percent: int = typer.Argument(..., min=0, max=100, help="Guarantee fee percentage"),
):
    """Show the on-chain value for a guarantee fee percentage."""
    console.print(encode_guarantee_fee(percent))


def _watch_service(db_path: Optional[Path], ipfs_url: Optional[str] = None) -> WatchListService:
    return WatchListService(
        database=DashboardDatabase(db_path),
        replicas=IpfsReplicaLookup(ipfs_url),
        notifier=ConsoleNotifier(),
    )


@watch_app.command("add")
def watch_add(
    file_cid: str = typer.Argument(..., help="File CID"),
    file_size: int = typer.Option(0, "--size", help="File size in bytes"),
    start_time: Optional[int] = typer.Option(None, "--start", help="Deal start (unix time)"),
    expire_time: int = typer.Option(0, "--expire", help="Deal expiry (unix time)"),
    confirmed: int = typer.Option(0, "--confirmed", help="Confirmed replicas"),
    status: str = typer.Option("pending", "--status", help="File status"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
):
    """Start watching a storage deal."""
    item = WatchItem(
        file_cid=file_cid,
        file_size=file_size,
        start_time=start_time if start_time is not None else int(time.time()),
        expire_time=expire_time,
        confirmed_replicas=confirmed,
        file_status=status,
    )
    service = _watch_service(db_path)
    run_async(service.add(item))
    console.print(f"Watching [cyan]{file_cid}[/cyan]")


@watch_app.command("remove")
def watch_remove(
    file_cids: list[str] = typer.Argument(..., help="File CIDs to stop watching"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
):
    """Stop watching one or more deals."""
    service = _watch_service(db_path)

    async def remove() -> list[str]:
        await service.load()
        return await service.remove(file_cids)

    removed = run_async(remove())
    if not removed:
        console.print("[yellow]Nothing to remove[/yellow]")
        raise typer.Exit(1)
    console.print(f"Removed {len(removed)} watch item(s)")


@watch_app.command("list")
def watch_list(
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort column"),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show watched deals, newest first by default."""
    service = _watch_service(db_path)
    run_async(service.load())
    service.mount()
    if sort:
        try:
            service.view.set_default_sort(sort, ascending)
        except UnknownSortKey as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    rows = service.rows
    if output_json:
        print(json.dumps([item.model_dump() for item in rows], indent=2))
        return

    table = Table(title="Watch list")
    by = service.view.sort_state.by
    for column in ("file_cid", "file_size", "start_time", "expire_time",
                   "confirmed_replicas", "global_replicas", "file_status"):
        header = column.replace("_", " ") + service.view.sort_indicator(column)
        table.add_column(header, style="cyan" if column == by else None)
    for item in rows:
        table.add_row(
            item.file_cid,
            str(item.file_size),
            str(item.start_time),
            str(item.expire_time),
            str(item.confirmed_replicas),
            "--" if item.global_replicas is None else str(item.global_replicas),
            item.file_status,
        )
    console.print(table)


@watch_app.command("sync")
def watch_sync(
    file_cids: Optional[list[str]] = typer.Argument(None, help="CIDs to refresh (default: all)"),
    ipfs_url: Optional[str] = typer.Option(None, "--ipfs", help="IPFS API URL"),
    db_path: Optional[Path] = typer.Option(None, "--db", help="Local database path"),
):
    """Refresh global replica counts from the IPFS network."""
    service = _watch_service(db_path, ipfs_url)

    async def sync() -> dict[str, int | None]:
        await service.load()
        await service.replicas.connect()
        targets = file_cids or service.watched_cids()
        return {cid: await service.sync_status(cid) for cid in targets}

    with console.status("[bold blue]Querying providers..."):
        results = run_async(sync())

    for cid, count in results.items():
        shown = "[dim]unavailable[/dim]" if count is None else f"[green]{count}[/green]"
        console.print(f"{cid}: {shown}")


if __name__ == "__main__":
    app()
