import uuid
from datetime import date, timedelta
from decimal import Decimal

from app.salestrack.db.models import ActivityLog

from tests.helpers import (
    auth_headers,
    create_branch,
    create_product,
    create_sale,
    create_staff,
    owner_session,
)


def _setup(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token, name="Adum")
    rice = create_product(client, token, name="Rice 5kg", price="50.00")
    oil = create_product(client, token, name="Oil 1L", price="18.50")
    return token, branch_id, rice, oil


def test_create_sale_prices_lines_from_catalog(client):
    token, branch_id, rice, oil = _setup(client)

    sale = create_sale(
        client,
        token,
        branch_id,
        [{"product_id": rice, "quantity": 2}, {"product_id": oil, "quantity": 1, "unit_price": "20.00"}],
        customer_name="Kofi",
    )
    assert Decimal(sale["amount"]) == Decimal("120.00")
    assert sale["status"] == "active"
    assert sale["branch_name"] == "Adum"
    assert sale["created_by_name"] == "Ama Mensah"
    lines = {line["product_name"]: line for line in sale["items"]}
    assert Decimal(lines["Rice 5kg"]["unit_price"]) == Decimal("50.00")
    assert Decimal(lines["Oil 1L"]["total_price"]) == Decimal("20.00")


def test_sale_line_validation(client):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)

    duplicate = client.post(
        "/salestrack/sales",
        headers=headers,
        json={"branch_id": branch_id, "items": [{"product_id": rice, "quantity": 1}, {"product_id": rice, "quantity": 2}]},
    )
    assert duplicate.status_code == 422
    assert duplicate.json()["code"] == "VALIDATION_ERROR"

    empty = client.post("/salestrack/sales", headers=headers, json={"branch_id": branch_id, "items": []})
    assert empty.status_code == 422

    unknown = client.post(
        "/salestrack/sales",
        headers=headers,
        json={"branch_id": branch_id, "items": [{"product_id": str(uuid.uuid4()), "quantity": 1}]},
    )
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "PRODUCT_UNAVAILABLE"

    client.delete(f"/salestrack/products/{rice}", headers=headers)
    inactive = client.post(
        "/salestrack/sales",
        headers=headers,
        json={"branch_id": branch_id, "items": [{"product_id": rice, "quantity": 1}]},
    )
    assert inactive.json()["code"] == "PRODUCT_UNAVAILABLE"


def test_sales_person_sells_in_own_branch_only(client):
    token, branch_id, rice, _ = _setup(client)
    other_branch = create_branch(client, token, name="Kejetia")
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)
    headers = auth_headers(seller_token)

    own = client.post("/salestrack/sales", headers=headers, json={"items": [{"product_id": rice, "quantity": 1}]})
    assert own.status_code == 201
    assert own.json()["sale"]["branch_id"] == branch_id

    foreign = client.post(
        "/salestrack/sales",
        headers=headers,
        json={"branch_id": other_branch, "items": [{"product_id": rice, "quantity": 1}]},
    )
    assert foreign.status_code == 403
    assert foreign.json()["code"] == "BRANCH_SCOPE_MISMATCH"

    owner_sale = create_sale(client, token, other_branch, [{"product_id": rice, "quantity": 1}])
    hidden = client.get(f"/salestrack/sales/{owner_sale['id']}", headers=headers)
    assert hidden.status_code == 404

    listed = client.get("/salestrack/sales", headers=headers).json()["sales"]
    assert {sale["branch_id"] for sale in listed} == {branch_id}

    edit = client.patch(f"/salestrack/sales/{own.json()['sale']['id']}", headers=headers, json={"notes": "x"})
    assert edit.status_code == 403


def test_correct_sale_items_records_activity(client, db_session):
    token, branch_id, rice, oil = _setup(client)
    sale = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 2}])

    response = client.patch(
        f"/salestrack/sales/{sale['id']}",
        headers=auth_headers(token),
        json={
            "items": [{"product_id": rice, "quantity": 3}, {"product_id": oil, "quantity": 1}],
            "customer_name": "Esi",
            "correction_reason": "Miscounted",
        },
    )
    assert response.status_code == 200
    updated = response.json()["sale"]
    assert Decimal(updated["amount"]) == Decimal("168.50")
    assert updated["customer_name"] == "Esi"
    assert updated["last_updated_by_name"] == "Ama Mensah"
    assert len(updated["items"]) == 2

    activity = db_session.query(ActivityLog).filter_by(entity_type="sale", activity_type="update").one()
    assert activity.activity_metadata["correction_reason"] == "Miscounted"
    assert len(activity.activity_metadata["item_changes"]["created"]) == 1
    assert len(activity.activity_metadata["item_changes"]["updated"]) == 1
    assert activity.old_values["amount"] == 100.0


def test_correction_keeps_stored_price_after_catalog_change(client, db_session):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)
    sale = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 2}])
    client.patch(f"/salestrack/products/{rice}", headers=headers, json={"price": "60.00"})

    response = client.patch(
        f"/salestrack/sales/{sale['id']}",
        headers=headers,
        json={"items": [{"product_id": rice, "quantity": 2}], "notes": "Paid by mobile money"},
    )
    assert response.status_code == 200
    updated = response.json()["sale"]
    assert Decimal(updated["amount"]) == Decimal("100.00")
    assert Decimal(updated["items"][0]["unit_price"]) == Decimal("50.00")

    activity = db_session.query(ActivityLog).filter_by(entity_type="sale", activity_type="update").one()
    assert activity.activity_metadata["item_changes"]["updated"] == []


def test_correction_keeps_deactivated_product_line(client):
    token, branch_id, rice, oil = _setup(client)
    headers = auth_headers(token)
    sale = create_sale(
        client, token, branch_id, [{"product_id": rice, "quantity": 1}, {"product_id": oil, "quantity": 1}]
    )
    client.delete(f"/salestrack/products/{rice}", headers=headers)

    response = client.patch(
        f"/salestrack/sales/{sale['id']}",
        headers=headers,
        json={"items": [{"product_id": rice, "quantity": 1}, {"product_id": oil, "quantity": 2}]},
    )
    assert response.status_code == 200
    assert Decimal(response.json()["sale"]["amount"]) == Decimal("87.00")

    oil_only = create_sale(client, token, branch_id, [{"product_id": oil, "quantity": 1}])
    added = client.patch(
        f"/salestrack/sales/{oil_only['id']}",
        headers=headers,
        json={"items": [{"product_id": oil, "quantity": 1}, {"product_id": rice, "quantity": 1}]},
    )
    assert added.status_code == 400
    assert added.json()["code"] == "PRODUCT_UNAVAILABLE"


def test_update_without_changes_is_not_logged(client, db_session):
    token, branch_id, rice, _ = _setup(client)
    sale = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 1}], customer_name="Kofi")

    response = client.patch(
        f"/salestrack/sales/{sale['id']}",
        headers=auth_headers(token),
        json={"customer_name": "Kofi"},
    )
    assert response.status_code == 200
    assert db_session.query(ActivityLog).filter_by(entity_type="sale", activity_type="update").count() == 0


def test_void_then_delete(client):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)
    kept = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 1}])
    voided = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 2}])

    response = client.post(f"/salestrack/sales/{voided['id']}/void", headers=headers, json={"reason": "Wrong till"})
    assert response.status_code == 200
    assert response.json()["sale"]["status"] == "voided"
    assert response.json()["sale"]["is_active"] is False

    listed = client.get("/salestrack/sales", headers=headers).json()
    assert [sale["id"] for sale in listed["sales"]] == [kept["id"]]
    everything = client.get("/salestrack/sales?include_inactive=true", headers=headers).json()
    assert len(everything["sales"]) == 2
    assert Decimal(everything["total_amount"]) == Decimal("50.00")

    edit = client.patch(f"/salestrack/sales/{voided['id']}", headers=headers, json={"notes": "late"})
    assert edit.status_code == 409
    assert edit.json()["code"] == "SALE_VOIDED"

    receipt = client.post(f"/salestrack/sales/{voided['id']}/receipt", headers=headers)
    assert receipt.status_code == 409

    deleted = client.delete(f"/salestrack/sales/{voided['id']}", headers=headers)
    assert deleted.status_code == 204
    assert client.get(f"/salestrack/sales/{voided['id']}", headers=headers).status_code == 404


def test_receipt(client):
    token, branch_id, rice, oil = _setup(client)
    sale = create_sale(
        client,
        token,
        branch_id,
        [{"product_id": rice, "quantity": 1}, {"product_id": oil, "quantity": 2}],
        customer_name="Abena",
    )

    response = client.post(f"/salestrack/sales/{sale['id']}/receipt", headers=auth_headers(token))
    assert response.status_code == 200
    receipt = response.json()
    assert receipt["receipt_number"] == sale["id"].split("-")[0].upper()
    assert receipt["organization"]["name"] == "Acme Traders"
    assert receipt["branch"]["name"] == "Adum"
    assert receipt["served_by"] == "Ama Mensah"
    assert receipt["currency"] == "GH₵"
    assert Decimal(receipt["total"]) == Decimal("87.00")
    assert len(receipt["items"]) == 2

    refreshed = client.get(f"/salestrack/sales/{sale['id']}", headers=auth_headers(token)).json()["sale"]
    assert refreshed["receipt_generated_at"] is not None


def test_close_period_locks_sales(client):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)
    first = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 1}])
    second = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 1}])

    today = date.today()
    response = client.post(
        "/salestrack/sales/close-period",
        headers=headers,
        json={
            "start_date": (today - timedelta(days=1)).isoformat(),
            "end_date": (today + timedelta(days=1)).isoformat(),
            "closing_reason": "Week closed",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["affected_count"] == 2
    assert set(body["closed_sale_ids"]) == {first["id"], second["id"]}
    assert body["closing_reason"] == "Week closed"

    again = client.post("/salestrack/sales/close-period", headers=headers, json={"sale_ids": [first["id"]]})
    assert again.json()["affected_count"] == 0

    for attempt in (
        client.patch(f"/salestrack/sales/{first['id']}", headers=headers, json={"notes": "late"}),
        client.post(f"/salestrack/sales/{first['id']}/void", headers=headers),
        client.delete(f"/salestrack/sales/{first['id']}", headers=headers),
    ):
        assert attempt.status_code == 409
        assert attempt.json()["code"] == "SALE_CLOSED"

    closed = client.get("/salestrack/sales?closed=true", headers=headers).json()["sales"]
    assert all(sale["closed"] for sale in closed)
    assert closed[0]["closing_reason"] == "Week closed"


def test_close_period_requires_selection(client):
    token, _, _, _ = _setup(client)
    response = client.post("/salestrack/sales/close-period", headers=auth_headers(token), json={})
    assert response.status_code == 422


def test_sale_history(client):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)
    sale = create_sale(client, token, branch_id, [{"product_id": rice, "quantity": 1}])
    client.patch(f"/salestrack/sales/{sale['id']}", headers=headers, json={"notes": "Paid by MoMo"})

    response = client.get(f"/salestrack/sales/{sale['id']}/history", headers=headers)
    assert response.status_code == 200
    types = [item["activity_type"] for item in response.json()["activities"]]
    assert sorted(types) == ["create", "update"]
    update = next(item for item in response.json()["activities"] if item["activity_type"] == "update")
    assert update["user_name"] == "Ama Mensah"
    assert update["new_values_display"]


def test_list_sales_by_local_date(client):
    token, branch_id, rice, _ = _setup(client)
    headers = auth_headers(token)
    create_sale(
        client,
        token,
        branch_id,
        [{"product_id": rice, "quantity": 1}],
        sale_date="2025-03-10T23:30:00+00:00",
    )

    utc_day = client.get("/salestrack/sales?start_date=2025-03-10&end_date=2025-03-10", headers=headers).json()
    assert len(utc_day["sales"]) == 1

    # 23:30 UTC is already the next day in Nairobi
    nairobi_day = client.get(
        "/salestrack/sales?start_date=2025-03-10&end_date=2025-03-10&timezone=Africa/Nairobi",
        headers=headers,
    ).json()
    assert nairobi_day["sales"] == []
    assert Decimal(nairobi_day["total_amount"]) == Decimal("0")

    bad_tz = client.get("/salestrack/sales?timezone=Mars/Base", headers=headers)
    assert bad_tz.status_code == 422
