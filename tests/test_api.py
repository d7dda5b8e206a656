from datetime import date

import pytest

from cajachica.config import settings as app_settings
from cajachica.models import base as db_base
from cajachica.models.entities import InventoryMovement, Transaction


# --- Health / Settings --------------------------------------------------

def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "storageConfigured": True, "env": "test"}


def test_settings_round_trip(client):
    r = client.post("/api/settings", json={"key": "logo", "value": "abc"})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.get("/api/settings/logo").json() == {"value": "abc"}

    client.post("/api/settings", json={"key": "logo", "value": "xyz"})
    assert client.get("/api/settings/logo").json() == {"value": "xyz"}


def test_unknown_setting_is_null_not_error(client):
    r = client.get("/api/settings/unknown")
    assert r.status_code == 200
    assert r.json() == {"value": None}


def test_setting_key_is_trimmed_on_read_and_write(client):
    client.post("/api/settings", json={"key": " logo ", "value": "abc"})
    assert client.get("/api/settings/logo").json() == {"value": "abc"}
    assert client.get("/api/settings/%20logo%20").json() == {"value": "abc"}


def test_settings_require_key(client):
    r = client.post("/api/settings", json={"value": "abc"})
    assert r.status_code == 400
    assert "key" in r.json()["error"]


# --- Caja Chica ---------------------------------------------------------

def test_transaction_flow(client):
    r = client.post("/api/transactions", json={
        "type": "income", "description": "Aporte inicial", "amount": 150, "date": "2024-03-05",
    })
    assert r.status_code == 200
    created = r.json()
    assert created["id"] > 0
    assert created["amount"] == 150.0
    assert created["date"] == "2024-03-05"
    assert created["created_at"]

    client.post("/api/transactions", json={
        "type": "expense", "description": "Café", "amount": "20.25", "date": "2024-03-20",
    })
    client.post("/api/transactions", json={
        "type": "expense", "description": "Abril", "amount": "1", "date": "2024-04-01",
    })

    rows = client.get("/api/transactions", params={"month": 3, "year": 2024}).json()
    assert [t["description"] for t in rows] == ["Café", "Aporte inicial"]
    income = sum(t["amount"] for t in rows if t["type"] == "income")
    expenses = sum(t["amount"] for t in rows if t["type"] == "expense")
    assert income - expenses == 129.75

    r = client.delete(f"/api/transactions/{created['id']}")
    assert r.status_code == 204
    assert r.content == b""
    assert len(client.get("/api/transactions?month=3&year=2024").json()) == 1


def test_transaction_validation_persists_nothing(client, db):
    r = client.post("/api/transactions", json={
        "type": "income", "description": "x", "amount": 0, "date": "2024-01-01",
    })
    assert r.status_code == 400
    assert "error" in r.json()
    r = client.post("/api/transactions", json={
        "type": "income", "description": "", "amount": 10, "date": "2024-01-01",
    })
    assert r.status_code == 400
    assert db.query(Transaction).count() == 0


@pytest.mark.parametrize("amount", ["-1e999999999", "-1e30", "1e999999999"])
def test_extreme_amounts_are_400_not_500(client, amount):
    r = client.post("/api/transactions", json={
        "type": "expense", "description": "x", "amount": amount, "date": "2024-01-01",
    })
    assert r.status_code == 400
    assert "error" in r.json()


def test_transactions_require_month_and_year(client):
    r = client.get("/api/transactions", params={"month": 3})
    assert r.status_code == 400
    assert r.json() == {"error": "Month and year are required"}
    assert client.get("/api/transactions?month=13&year=2024").status_code == 400


def test_delete_unknown_id_is_success(client):
    assert client.delete("/api/transactions/999").status_code == 204
    assert client.delete("/api/transactions/999").status_code == 204


def test_delete_non_integer_id_is_400(client):
    r = client.delete("/api/transactions/abc")
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.parametrize("path", [
    "/api/transactions/99999999999999999999999",
    "/api/inventory/99999999999999999999999",
    "/api/transactions/0",
])
def test_delete_out_of_range_id_is_400(client, path):
    r = client.delete(path)
    assert r.status_code == 400
    assert "error" in r.json()


# --- Inventario ---------------------------------------------------------

def test_inventory_flow(client):
    for body in (
        {"type": "in", "units": 100, "description": "Lote 1", "invoice_number": "OC-1", "date": "2024-01-10"},
        {"type": "out", "subtype": "venta", "units": 30, "description": "Cliente A",
         "invoice_number": "F-1", "date": "2024-01-15"},
        {"type": "in", "units": 20, "description": "Lote 2", "date": "2024-04-02"},
        {"type": "out", "subtype": "regalia", "units": 5, "description": "Muestra",
         "invoice_number": "F-2", "date": "2024-04-03"},
    ):
        assert client.post("/api/inventory", json=body).status_code == 200

    r = client.get("/api/inventory", params={"month": "04", "year": "2024"})
    assert r.status_code == 200
    data = r.json()
    assert data["initialStock"] == 70
    assert [m["description"] for m in data["movements"]] == ["Muestra", "Lote 2"]
    muestra = data["movements"][0]
    assert muestra["subtype"] == "regalia"
    assert muestra["invoice_number"] is None

    total_in = sum(m["units"] for m in data["movements"] if m["type"] == "in")
    total_out = sum(m["units"] for m in data["movements"] if m["type"] == "out")
    assert data["initialStock"] + total_in - total_out == 85


@pytest.mark.parametrize("units", ["1e3000000", "-1e3000000", 2 ** 31])
def test_extreme_units_are_400(client, units):
    r = client.post("/api/inventory", json={"type": "in", "units": units, "description": "x", "date": "2024-01-01"})
    assert r.status_code == 400
    assert "error" in r.json()


def test_inventory_out_without_subtype_is_400(client, db):
    r = client.post("/api/inventory", json={"type": "out", "units": 5, "description": "x", "date": "2024-01-01"})
    assert r.status_code == 400
    assert "subtype" in r.json()["error"]
    assert db.query(InventoryMovement).count() == 0


def test_inventory_in_subtype_is_normalized(client):
    r = client.post("/api/inventory", json={
        "type": "in", "subtype": "venta", "units": 3, "description": "x", "date": "2024-01-01",
    })
    assert r.status_code == 200
    assert r.json()["subtype"] is None


def test_inventory_delete(client, add_move):
    m = add_move("in", 3, date(2024, 1, 1))
    assert client.delete(f"/api/inventory/{m.id}").status_code == 204
    assert client.delete(f"/api/inventory/{m.id}").status_code == 204
    assert client.get("/api/inventory?month=1&year=2024").json()["movements"] == []


def test_inventory_requires_month_and_year(client):
    r = client.get("/api/inventory")
    assert r.status_code == 400
    assert r.json() == {"error": "Month and year are required"}


# --- Fehlerabbildung ----------------------------------------------------

def test_invalid_json_body_is_400(client):
    r = client.post("/api/transactions", content=b"{no json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    r = client.post("/api/inventory", json=[1, 2, 3])
    assert r.status_code == 400


def test_storage_error_is_500_with_message(client, db):
    InventoryMovement.__table__.drop(db.get_bind())
    r = client.get("/api/inventory?month=1&year=2024")
    assert r.status_code == 500
    assert "inventory" in r.json()["error"]


def test_storage_not_configured_is_503(client, monkeypatch):
    monkeypatch.setattr(db_base, "engine", None)
    monkeypatch.setattr(db_base, "SessionLocal", None)

    assert client.get("/api/health").json()["storageConfigured"] is False
    for method, url in (
        ("get", "/api/settings/logo"),
        ("get", "/api/inventory?month=1&year=2024"),
        ("get", "/api/transactions?month=1&year=2024"),
        ("delete", "/api/transactions/1"),
        ("delete", "/api/inventory/1"),
    ):
        r = getattr(client, method)(url)
        assert r.status_code == 503
        assert r.json() == {"error": "Storage not configured"}
    r = client.post("/api/settings", json={"key": "logo", "value": "abc"})
    assert r.status_code == 503


def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr(app_settings, "MAX_BODY_BYTES", 32)
    r = client.post("/api/settings", json={"key": "logo", "value": "x" * 100})
    assert r.status_code == 413
    assert "error" in r.json()


def test_unknown_route_keeps_error_shape(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert "error" in r.json()
