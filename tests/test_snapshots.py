import asyncio
import json

import httpx

from crust_dashboard.data.snapshots import (
    FileSnapshotSource,
    HttpSnapshotSource,
    SnapshotIdentityLookup,
    parse_snapshot,
)

DOCUMENT = {
    "next_elected": ["V1"],
    "validators": ["V1", "V2"],
    "waiting": None,
    "accounts": {
        "V1": {
            "exposure": {"total": 1000, "own": 400, "others": [{"who": "N1", "value": 600}]},
            "prefs": {"guarantee_fee": 50000000},
            "stake_limit": 5000,
            "controller": "C1",
        }
    },
    "nominations": [{"nominator_id": "N1", "targets": ["V1"]}],
    "has_identity": True,
    "accounts_info": {"V1": {"identity": {"display": "Alice"}}},
}


def test_http_source_parses_document():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, json=DOCUMENT)

    source = HttpSnapshotSource("http://indexer/snapshot.json", transport=httpx.MockTransport(handler))
    snapshot = asyncio.run(source.get_snapshot())

    assert snapshot.validators == ["V1", "V2"]
    assert snapshot.waiting is None
    assert snapshot.accounts["V1"].exposure.others[0].who == "N1"
    assert snapshot.accounts["V1"].prefs.guarantee_fee == 50_000_000

    asyncio.run(source.get_snapshot())
    assert len(calls) == 1


def test_http_source_errors_return_none():
    def handler(request):
        return httpx.Response(502)

    source = HttpSnapshotSource("http://indexer/snapshot.json", transport=httpx.MockTransport(handler))
    assert asyncio.run(source.get_snapshot()) is None


def test_http_source_bad_json_returns_none():
    def handler(request):
        return httpx.Response(200, content=b"not json")

    source = HttpSnapshotSource("http://indexer/snapshot.json", transport=httpx.MockTransport(handler))
    assert asyncio.run(source.get_snapshot()) is None


def test_http_source_connection_error_returns_none():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    source = HttpSnapshotSource("http://indexer/snapshot.json", transport=httpx.MockTransport(handler))
    assert asyncio.run(source.get_snapshot()) is None


def test_invalid_document_returns_none():
    assert parse_snapshot({"validators": "V1", "accounts": {"V1": {"exposure": {"total": "x"}}}}) is None


def test_file_source(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")

    snapshot = asyncio.run(FileSnapshotSource(path).get_snapshot())
    assert snapshot.next_elected == ["V1"]
    assert asyncio.run(FileSnapshotSource(tmp_path / "missing.json").get_snapshot()) is None


def test_identity_lookup_fills_account_id():
    snapshot = parse_snapshot(DOCUMENT)
    lookup = SnapshotIdentityLookup(snapshot)

    assert lookup.has_identity is True
    info = asyncio.run(lookup.get_account_info("V1"))
    assert info.account_id == "V1"
    assert info.identity.display == "Alice"
    assert asyncio.run(lookup.get_account_info("V2")) is None
