import httpx
import pytest
from fastapi.testclient import TestClient

from trendchart import binance_client
from trendchart.main import app, get_storage
from trendchart.trendline_storage import MemTrendlineStorage, SqliteTrendlineStorage

PAYLOAD = {
    "startTimestamp": 1_700_000_000,
    "startPrice": 43000.5,
    "endTimestamp": 1_700_003_000,
    "endPrice": 43500.0,
    "color": "#2962FF",
}


@pytest.fixture(params=["memory", "sqlite"])
def client(request, tmp_path):
    storage = MemTrendlineStorage() if request.param == "memory" else SqliteTrendlineStorage(tmp_path / "trendlines.db")
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_instruments_lists_pairs(client):
    symbols = [item["symbol"] for item in client.get("/api/instruments").json()]
    assert "BTCUSDT" in symbols
    assert "ETHUSDT" in symbols


def test_create_and_list_trendlines(client):
    response = client.post("/api/trendlines", json=PAYLOAD)

    assert response.status_code == 201
    created = response.json()
    assert created["id"] == 1
    assert created["startPrice"] == 43000.5
    assert created["color"] == "#2962FF"
    assert "createdAt" in created

    listed = client.get("/api/trendlines").json()
    assert [item["id"] for item in listed] == [1]


def test_create_defaults_color(client):
    body = {key: value for key, value in PAYLOAD.items() if key != "color"}
    assert client.post("/api/trendlines", json=body).json()["color"] == "#2962FF"


def test_create_rejects_invalid_payload_with_field_errors(client):
    body = {**PAYLOAD, "color": "blue"}
    del body["startPrice"]

    response = client.post("/api/trendlines", json=body)

    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Invalid trendline data"
    fields = {error["loc"][-1] for error in data["errors"]}
    assert {"startPrice", "color"} <= fields
    assert client.get("/api/trendlines").json() == []


def test_patch_updates_partial_fields(client):
    created = client.post("/api/trendlines", json=PAYLOAD).json()

    response = client.patch(f"/api/trendlines/{created['id']}", json={"endPrice": 44000.0})

    assert response.status_code == 200
    updated = response.json()
    assert updated["endPrice"] == 44000.0
    assert updated["startPrice"] == PAYLOAD["startPrice"]


def test_patch_missing_is_404(client):
    response = client.patch("/api/trendlines/99", json={"endPrice": 1.0})
    assert response.status_code == 404
    assert response.json()["message"] == "Trendline not found"


def test_patch_invalid_is_400(client):
    created = client.post("/api/trendlines", json=PAYLOAD).json()
    response = client.patch(f"/api/trendlines/{created['id']}", json={"startTimestamp": -5})
    assert response.status_code == 400


@pytest.mark.parametrize("field", ["startTimestamp", "startPrice", "endTimestamp", "endPrice", "color"])
def test_patch_null_for_required_field_is_400(client, field):
    created = client.post("/api/trendlines", json=PAYLOAD).json()

    response = client.patch(f"/api/trendlines/{created['id']}", json={field: None})

    assert response.status_code == 400
    assert [error["loc"][-1] for error in response.json()["errors"]] == [field]
    listed = client.get("/api/trendlines")
    assert listed.status_code == 200
    assert listed.json()[0][field] == created[field]


def test_patch_null_user_id_clears_it(client):
    created = client.post("/api/trendlines", json={**PAYLOAD, "userId": 7}).json()

    response = client.patch(f"/api/trendlines/{created['id']}", json={"userId": None})

    assert response.status_code == 200
    assert response.json()["userId"] is None


def test_delete_then_404(client):
    created = client.post("/api/trendlines", json=PAYLOAD).json()

    assert client.delete(f"/api/trendlines/{created['id']}").status_code == 204
    assert client.delete(f"/api/trendlines/{created['id']}").status_code == 404
    assert client.get("/api/trendlines").json() == []


def test_deleted_ids_are_not_reused(client):
    first = client.post("/api/trendlines", json=PAYLOAD).json()
    client.delete(f"/api/trendlines/{first['id']}")
    second = client.post("/api/trendlines", json=PAYLOAD).json()
    assert second["id"] != first["id"]


def test_ohlc_from_binance(client, monkeypatch):
    async def fake_fetch(symbol, interval="5m", limit=100):
        assert symbol == "ETHUSDT"
        return binance_client.parse_klines(
            [[1_700_000_000_000, "1.0", "2.0", "0.5", "1.5", "10.0", 1_700_000_299_999]]
        )

    monkeypatch.setattr(binance_client, "fetch_klines", fake_fetch)

    response = client.get("/api/ohlc", params={"symbol": "ethusdt"})

    assert response.status_code == 200
    assert response.json() == [
        {"timestamp": 1_700_000_000, "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5, "volume": 10.0}
    ]


def test_ohlc_falls_back_to_synthetic_data(client, monkeypatch):
    async def failing_fetch(symbol, interval="5m", limit=100):
        raise httpx.ConnectError("unreachable")

    monkeypatch.setattr(binance_client, "fetch_klines", failing_fetch)

    candles = client.get("/api/ohlc").json()

    assert len(candles) == 100
    assert all(candle["low"] <= candle["high"] for candle in candles)


def test_ohlc_fallback_starts_at_the_instrument_base_price(client, monkeypatch):
    async def failing_fetch(symbol, interval="5m", limit=100):
        raise httpx.ConnectError("unreachable")

    monkeypatch.setattr(binance_client, "fetch_klines", failing_fetch)

    candles = client.get("/api/ohlc", params={"symbol": "ADAUSDT"}).json()

    assert candles[0]["open"] == 0.8956
    assert all(0 < candle["close"] < 5 for candle in candles)


def test_ohlc_rejects_unknown_symbol(client):
    assert client.get("/api/ohlc", params={"symbol": "NOPE"}).status_code == 400


def test_openapi_documents_validation_errors(client):
    paths = client.get("/openapi.json").json()["paths"]
    for operation in (paths["/api/trendlines"]["post"], paths["/api/trendlines/{trendline_id}"]["patch"]):
        schema = operation["responses"]["400"]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ValidationErrorResponse")
