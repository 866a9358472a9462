"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from ..data.database import DashboardDatabase
from ..data.ipfs import IpfsReplicaLookup
from ..data.snapshots import HttpSnapshotSource
from ..services.notify import LogNotifier
from ..services.staking_service import StakingOverview
from ..services.watchlist_service import WatchListService
from .routes import router


def create_app(
    overview: StakingOverview | None = None,
    watchlist: WatchListService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the configured snapshot URL, IPFS node and local
    database; tests pass their own.
    """
    if overview is None or watchlist is None:
        database = DashboardDatabase()
        overview = overview or StakingOverview(
            source=HttpSnapshotSource(),
            favorites_store=database,
            address_book=database,
        )
        watchlist = watchlist or WatchListService(
            database=database,
            replicas=IpfsReplicaLookup(),
            notifier=LogNotifier(),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await app.state.overview.load_favorites()
        await app.state.watchlist.load()
        app.state.watchlist.mount()
        connect = getattr(app.state.watchlist.replicas, "connect", None)
        if connect is not None:
            await connect()
        yield

    app = FastAPI(
        title="Crust Dashboard",
        description="Staking explorer and storage watch list",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.overview = overview
    app.state.watchlist = watchlist
    app.include_router(router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return """
<!DOCTYPE html>
<html>
<head>
    <title>Crust Dashboard</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-900 text-white min-h-screen p-8">
    <div class="max-w-5xl mx-auto">
        <h1 class="text-3xl font-bold mb-2">Crust Dashboard</h1>
        <p class="text-gray-400 mb-8">Validators, waiting candidates and watched storage deals</p>
        <input type="text" id="filter" placeholder="filter by name, address or index"
               class="w-full p-3 mb-6 bg-gray-800 rounded text-white border border-gray-700" />
        <table class="w-full text-sm">
            <thead><tr class="text-gray-400">
                <th class="text-left">validator</th><th>total stake</th>
                <th>own stake</th><th>guarantee fee</th>
            </tr></thead>
            <tbody id="rows"></tbody>
        </table>
    </div>
    <script>
        const rows = document.getElementById('rows');
        async function load(filter) {
            const response = await fetch(`/api/validators?filter=${encodeURIComponent(filter)}`);
            const data = await response.json();
            rows.innerHTML = '';
            (data.rows || []).forEach((row) => {
                const tr = document.createElement('tr');
                const stake = row.stake || {};
                [row.account_id, stake.total ?? '', stake.own ?? '', stake.guarantee_fee ?? '']
                    .forEach((value) => {
                        const td = document.createElement('td');
                        td.textContent = value;
                        tr.appendChild(td);
                    });
                rows.appendChild(tr);
            });
        }
        document.getElementById('filter').addEventListener('input', (e) => load(e.target.value));
        load('');
    </script>
</body>
</html>
        """

    return app
