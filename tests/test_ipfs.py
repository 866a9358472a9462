import asyncio
import json

import httpx
import pytest

from crust_dashboard.data.ipfs import IpfsReplicaLookup, landing_route


def _ndjson(*events):
    return "\n".join(json.dumps(e) for e in events) + "\n"


def test_find_replicas_counts_distinct_providers():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["arg"] = request.url.params["arg"]
        body = _ndjson(
            {"Type": 0, "Responses": None},
            {"Type": 4, "Responses": [{"ID": "peerA", "Addrs": []}]},
            {"Type": 4, "Responses": [{"ID": "peerB"}, {"ID": "peerA"}]},
            {"Type": 1, "Responses": [{"ID": "peerC"}]},
        )
        return httpx.Response(200, text=body)

    lookup = IpfsReplicaLookup("http://ipfs:5001/", transport=httpx.MockTransport(handler))
    assert asyncio.run(lookup.find_replicas("QmCid")) == 2
    assert seen == {"path": "/api/v0/routing/findprovs", "arg": "QmCid"}


def test_find_replicas_raises_on_http_error():
    lookup = IpfsReplicaLookup(
        "http://ipfs:5001", transport=httpx.MockTransport(lambda r: httpx.Response(500))
    )
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(lookup.find_replicas("QmCid"))


def test_connect_sets_readiness():
    lookup = IpfsReplicaLookup(
        "http://ipfs:5001",
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"ID": "12D3Koo"})),
    )
    assert lookup.is_ready() is False
    assert asyncio.run(lookup.connect()) is True
    assert lookup.peer_id == "12D3Koo"


def test_connect_failure_marks_init_failed():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    lookup = IpfsReplicaLookup("http://ipfs:5001", transport=httpx.MockTransport(handler))
    assert asyncio.run(lookup.connect()) is False
    assert lookup.init_failed is True


def test_landing_route():
    assert landing_route(ready=False, init_failed=False, connected=False) == "loading"
    assert landing_route(ready=True, init_failed=False, connected=True) == "storage"
    assert landing_route(ready=True, init_failed=False, connected=False) == "not_connected"
    assert landing_route(ready=False, init_failed=True, connected=False) == "not_connected"
