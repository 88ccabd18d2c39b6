from __future__ import annotations


ORDERS = "/api/v1/purchase-orders"
MANAGER = {"login": "manager", "password": "s3cret-pass", "reason": "entered twice"}


def _create_order(client, **overrides):
    payload = {
        "status": "PEND",
        "order_date": "2025-01-10",
        "expected_date": "2025-01-20",
        "items": [
            {"product_id": 7, "quantity": 3, "unit_price": "12.50", "expiry_date": "2026-01-01"},
        ],
    }
    payload.update(overrides)
    return client.post(ORDERS, json=payload, headers={"X-User-Email": "Buyer@Clinic.local"})


def test_health(client):
    assert client.get("/health").json() == {"status": "up"}


def test_create_and_read_order(client, reference_data):
    res = _create_order(client)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "PENDING"
    assert body["total_amount"] == "37.50"
    assert body["created_by"] == "buyer@clinic.local"
    assert body["items"][0]["line_total"] == "37.50"

    res = client.get(f"{ORDERS}/{body['id']}")
    assert res.status_code == 200
    assert res.json()["id"] == body["id"]


def test_domain_failures_map_to_status_codes(client, reference_data):
    res = _create_order(client, order_date="2025-02-01", expected_date="2025-02-10")
    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "VALIDATION"
    assert res.json()["detail"]["field"] == "order_date"

    res = client.get(f"{ORDERS}/404")
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "NOT_FOUND"


def test_unknown_status_synonym_is_rejected(client, reference_data):
    res = _create_order(client, status="SHIPPED")
    assert res.status_code == 422


def test_patch_cannot_set_total(client, reference_data):
    order_id = _create_order(client).json()["id"]
    res = client.patch(f"{ORDERS}/{order_id}", json={"total_amount": "1.00"})
    assert res.status_code == 422


def test_transition_and_item_routes(client, reference_data):
    order_id = _create_order(client).json()["id"]

    res = client.post(
        f"{ORDERS}/{order_id}/items",
        json=[{"product_id": 8, "quantity": 2, "unit_price": "3.20", "expiry_date": "2026-01-01"}],
    )
    assert res.status_code == 201, res.text
    item_id = res.json()[0]["id"]

    res = client.patch(f"{ORDERS}/{order_id}/items/{item_id}", json={"quantity": 5})
    assert res.status_code == 200
    assert res.json()["line_total"] == "16.00"
    assert client.get(f"{ORDERS}/{order_id}").json()["total_amount"] == "53.50"

    assert client.delete(f"{ORDERS}/{order_id}/items/{item_id}").status_code == 204
    assert len(client.get(f"{ORDERS}/{order_id}/items").json()) == 1

    res = client.post(f"{ORDERS}/{order_id}/transition", json={"status": "ANDA"})
    assert res.status_code == 200
    assert res.json()["status"] == "PROCESSING"

    res = client.post(f"{ORDERS}/{order_id}/transition", json={"status": "PENDING"})
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "INVALID_STATE"

    res = client.get(f"{ORDERS}/count", params={"status": "proc"})
    assert res.json() == {"status": "PROCESSING", "count": 1}


def test_receipt_stock_and_cascade_routes(client, reference_data):
    order_id = _create_order(client).json()["id"]
    client.post(f"{ORDERS}/{order_id}/transition", json={"status": "PROCESSING"})

    res = client.post(
        f"{ORDERS}/{order_id}/receipts",
        json={"product_id": 7, "quantity": 3, "expiry_date": "2026-01-01"},
    )
    assert res.status_code == 201, res.text
    receipt = res.json()
    lot_id = receipt["lot"]["id"]
    assert receipt["lot"]["expiry_status"] == "VALID"
    assert [e["line_number"] for e in receipt["entries"]] == [1, 2]

    res = client.get("/api/v1/stock/products/7/on-hand")
    assert res.json() == {"product_id": 7, "quantity": 3}

    res = client.request("DELETE", f"{ORDERS}/{order_id}", json=MANAGER)
    assert res.status_code == 409

    res = client.post("/api/v1/stock/adjust", json={"product_id": 7, "lot_id": lot_id, "delta": -5})
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "INSUFFICIENT_STOCK"
    assert res.json()["detail"]["available"] == 3

    res = client.post("/api/v1/stock/adjust", json={"product_id": 7, "lot_id": lot_id, "delta": -3})
    assert res.status_code == 200
    assert res.json()["quantity"] == 0

    res = client.request("DELETE", f"{ORDERS}/{order_id}", json={"login": "manager", "password": "nope"})
    assert res.status_code == 403

    res = client.request("DELETE", f"{ORDERS}/{order_id}", json=MANAGER)
    assert res.status_code == 200, res.text
    report = res.json()
    assert report["completed_step"] == "DONE"
    assert report["ledger_entries_deleted"] == 2
    assert report["actor"] == "manager@clinic.local"

    assert client.get(f"{ORDERS}/{order_id}").status_code == 404
    assert client.get(f"/api/v1/lots/{lot_id}").status_code == 404


def test_ledger_routes(client, reference_data):
    res = client.post(
        "/api/v1/ledger/postings",
        json={
            "debit_account_id": 1,
            "credit_account_id": 2,
            "amount": "20.00",
            "posting_date": "2025-01-15",
        },
    )
    assert res.status_code == 201, res.text
    posting_number = res.json()[0]["posting_number"]

    res = client.post(
        "/api/v1/ledger/entries",
        json={"posting_number": 77, "posting_date": "2025-01-15", "account_id": 1, "debit": "5.00"},
    )
    assert res.status_code == 201

    unbalanced = client.get("/api/v1/ledger/unbalanced").json()
    assert [u["posting_number"] for u in unbalanced] == [77]

    assert len(client.get(f"/api/v1/ledger/postings/{posting_number}").json()) == 2
    balance = client.get("/api/v1/ledger/accounts/2/balance").json()
    assert balance["balance"] == "20.00"
