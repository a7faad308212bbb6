"""
Tests for the HTTP API, run against the in-memory engine from conftest.
"""
import pytest
from fastapi.testclient import TestClient

from price_quoting.api.main import app
from price_quoting.api.state import get_engine


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_quote_success(client):
    response = client.post("/api/catalog/price/quote", json={
        "productId": "P1",
        "quantity": 10,
        "shipTo": {"country": "DE"},
    })
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["unitPrice"] == "8.00"
    assert body["listUnitPrice"] == "10.00"
    assert body["lineSubtotal"] == "80.00"
    assert body["tax"]["taxAmount"] == "15.20"
    assert body["lineTotal"] == "95.20"


def test_quote_accepts_snake_case(client):
    response = client.post("/api/catalog/price/quote", json={"product_id": "P1", "quantity": "2"})
    assert response.status_code == 200
    assert response.json()["lineTotal"] == "20.00"


@pytest.mark.parametrize("payload,kind", [
    ({"productId": "NOPE", "quantity": 1}, "PRODUCT_NOT_FOUND"),
    ({"productId": "P1", "quantity": 0}, "INVALID_QUANTITY"),
    ({"productId": "P1", "quantity": "lots"}, "INVALID_QUANTITY"),
    ({"productId": "P1", "quantity": 1, "priceBookId": "PB-OFF"}, "PRICE_BOOK_INACTIVE"),
    ({"productId": "P1", "quantity": 1, "priceBookId": "NOPE"}, "PRICE_BOOK_NOT_FOUND"),
    ({"productId": "P1", "quantity": "0.5"}, "NO_PRICE_FOR_QUANTITY"),
    ({"quantity": 1}, "INVALID_REQUEST"),
    ({"productId": "P1", "quantity": 1, "asOf": "yesterday"}, "INVALID_REQUEST"),
])
def test_quote_failure_is_400_with_error_kind(client, payload, kind):
    response = client.post("/api/catalog/price/quote", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["kind"] == kind
    assert body["error"]
    assert "lineTotal" not in body


def test_quote_lines_keeps_failed_lines(client):
    response = client.post("/api/catalog/price/quote-lines", json=[
        {"productId": "P1", "quantity": 1},
        {"productId": "NOPE", "quantity": 1},
    ])
    assert response.status_code == 200
    lines = response.json()
    assert [line["ok"] for line in lines] == [True, False]
    assert lines[1]["kind"] == "PRODUCT_NOT_FOUND"


def test_list_price_books(client):
    response = client.get("/api/catalog/pricebooks")
    assert response.status_code == 200
    books = {b["id"]: b for b in response.json()}
    assert set(books) == {"PB1", "PB-GROSS", "PB-OFF"}
    assert books["PB1"]["isDefault"] is True
    assert books["PB-GROSS"]["priceBasis"] == "INCLUSIVE"
    assert books["PB-OFF"]["isActive"] is False


def test_list_entries_for_product_and_variant(client):
    response = client.get("/api/catalog/pricebooks/PB1/entries",
                          params={"product_id": "P1", "variant_id": "P1-RED"})
    assert response.status_code == 200
    entries = response.json()
    assert [e["id"] for e in entries] == ["E1", "E2", "EV"]
    assert entries[1]["maxQty"] is None
    assert entries[1]["discountPct"] == "20"


def test_list_entries_unknown_book(client):
    response = client.get("/api/catalog/pricebooks/NOPE/entries", params={"product_id": "P1"})
    assert response.status_code == 404


def test_system_status_reports_sample_data(client):
    response = client.get("/system/status")
    assert response.status_code == 200
    body = response.json()
    assert body["engine_active"] is True
    assert body["data_status"] == "success"
    assert body["files"]["price_entries.csv"]["invalid"] == 0


def test_quote_very_large_quantity(client):
    response = client.post("/api/catalog/price/quote", json={
        "productId": "P1", "priceBookId": "PB1", "quantity": "1e27",
    })
    assert response.status_code == 200
    assert response.json()["lineSubtotal"] == "8" + "0" * 27 + ".00"


def test_quote_quantity_beyond_range_is_400(client):
    response = client.post("/api/catalog/price/quote", json={"productId": "P1", "quantity": "9E+999999"})
    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_QUANTITY"


@pytest.mark.parametrize("payload,kind", [
    ({"productId": 123, "quantity": 1}, "PRODUCT_NOT_FOUND"),
    ({"productId": "P1", "quantity": 1, "shipTo": "DE"}, "INVALID_REQUEST"),
    ({"productId": "P1", "quantity": 1, "asOf": 20240101}, "INVALID_REQUEST"),
])
def test_wrongly_typed_fields_are_400_not_422(client, payload, kind):
    response = client.post("/api/catalog/price/quote", json=payload)
    assert response.status_code == 400
    assert response.json()["kind"] == kind


def test_numeric_postal_code_is_accepted(client):
    response = client.post("/api/catalog/price/quote", json={
        "productId": "P1", "quantity": 10, "shipTo": {"country": "DE", "postal": 10115},
    })
    assert response.status_code == 200
    assert response.json()["lineTotal"] == "95.20"


def test_quote_reports_unit_and_tax_class(client):
    body = client.post("/api/catalog/price/quote", json={
        "productId": "P1", "quantity": 1, "unitId": "box",
    }).json()
    assert body["unitId"] == "box"
    assert body["tax"]["classId"] == "STANDARD"
