from decimal import Decimal

from app.salestrack.db.models import ActivityLog

from tests.helpers import auth_headers, create_branch, create_expense, create_staff, owner_session


def _category(client, token, name="Utilities"):
    response = client.post("/salestrack/expense-categories", headers=auth_headers(token), json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()["category"]["id"]


def test_create_expense_with_free_text_category(client, db_session):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)

    expense = create_expense(client, token, branch_id, amount="35.50", category=" Transport ", description="Taxi")
    assert Decimal(expense["amount"]) == Decimal("35.50")
    assert expense["category"] == "Transport"
    assert expense["expense_category_id"] is None
    assert expense["branch_name"] == "Adum"

    activity = db_session.query(ActivityLog).filter_by(entity_type="expense", activity_type="create").one()
    assert activity.entity_id == expense["id"]
    assert activity.new_values["amount"] == 35.5


def test_create_expense_with_managed_category(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    category_id = _category(client, token)

    response = client.post(
        "/salestrack/expenses",
        headers=auth_headers(token),
        json={"branch_id": branch_id, "amount": "80.00", "expense_category_id": category_id},
    )
    assert response.status_code == 201
    expense = response.json()["expense"]
    assert expense["expense_category_id"] == category_id
    assert expense["category"] == "Utilities"

    client.delete(f"/salestrack/expense-categories/{category_id}", headers=auth_headers(token))
    retired = client.post(
        "/salestrack/expenses",
        headers=auth_headers(token),
        json={"branch_id": branch_id, "amount": "10.00", "expense_category_id": category_id},
    )
    assert retired.status_code == 404


def test_expense_validation(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    headers = auth_headers(token)

    for amount in ("0", "-5.00"):
        response = client.post(
            "/salestrack/expenses",
            headers=headers,
            json={"branch_id": branch_id, "amount": amount, "category": "Rent"},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    no_category = client.post("/salestrack/expenses", headers=headers, json={"branch_id": branch_id, "amount": "5.00"})
    assert no_category.status_code == 422


def test_expense_permissions_by_role(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    other_branch = create_branch(client, token, name="Kejetia")
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)
    _, manager_token = create_staff(
        client, token, email="manager@example.com", role="branch_manager", branch_id=branch_id
    )

    seller = client.post(
        "/salestrack/expenses",
        headers=auth_headers(seller_token),
        json={"branch_id": branch_id, "amount": "5.00", "category": "Water"},
    )
    assert seller.status_code == 403
    assert seller.json()["code"] == "PERMISSION_DENIED"

    manager_own = create_expense(client, manager_token, branch_id)
    assert manager_own["branch_id"] == branch_id

    manager_other = client.post(
        "/salestrack/expenses",
        headers=auth_headers(manager_token),
        json={"branch_id": other_branch, "amount": "5.00", "category": "Water"},
    )
    assert manager_other.status_code == 403
    assert manager_other.json()["code"] == "BRANCH_SCOPE_MISMATCH"

    delete = client.delete(f"/salestrack/expenses/{manager_own['id']}", headers=auth_headers(manager_token))
    assert delete.status_code == 403

    foreign = create_expense(client, token, other_branch)
    hidden = client.get(f"/salestrack/expenses/{foreign['id']}", headers=auth_headers(seller_token))
    assert hidden.status_code == 404


def test_update_and_delete_expense(client, db_session):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    headers = auth_headers(token)
    expense = create_expense(client, token, branch_id, amount="20.00", category="Transport")

    response = client.patch(
        f"/salestrack/expenses/{expense['id']}",
        headers=headers,
        json={"amount": "25.00", "description": "Return trip"},
    )
    assert response.status_code == 200
    updated = response.json()["expense"]
    assert Decimal(updated["amount"]) == Decimal("25.00")
    assert updated["category"] == "Transport"
    assert updated["last_updated_by"] is not None

    activity = db_session.query(ActivityLog).filter_by(entity_type="expense", activity_type="update").one()
    assert activity.old_values["amount"] == 20.0
    assert activity.new_values["description"] == "Return trip"

    deleted = client.delete(f"/salestrack/expenses/{expense['id']}", headers=headers)
    assert deleted.status_code == 204
    assert client.get(f"/salestrack/expenses/{expense['id']}", headers=headers).status_code == 404


def test_list_expenses_totals_and_filters(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    other_branch = create_branch(client, token, name="Kejetia")
    create_expense(client, token, branch_id, amount="10.00", category="Transport")
    create_expense(client, token, branch_id, amount="15.25", category="Rent")
    create_expense(client, token, other_branch, amount="4.75", category="Transport")

    everything = client.get("/salestrack/expenses", headers=auth_headers(token)).json()
    assert len(everything["expenses"]) == 3
    assert Decimal(everything["total_amount"]) == Decimal("30.00")

    transport = client.get("/salestrack/expenses?category=Transport", headers=auth_headers(token)).json()
    assert Decimal(transport["total_amount"]) == Decimal("14.75")

    branch_only = client.get(f"/salestrack/expenses?branch_id={branch_id}", headers=auth_headers(token)).json()
    assert {item["branch_id"] for item in branch_only["expenses"]} == {branch_id}


def test_expense_activity_uses_organization_currency(client, db_session):
    _, token = owner_session(client)
    headers = auth_headers(token)
    client.patch("/salestrack/organizations/current", headers=headers, json={"currency": "KES"})
    branch_id = create_branch(client, token)

    expense = create_expense(client, token, branch_id, amount="40.00", category="Rent")
    client.patch(f"/salestrack/expenses/{expense['id']}", headers=headers, json={"amount": "45.00"})
    client.delete(f"/salestrack/expenses/{expense['id']}", headers=headers)

    descriptions = {
        activity.activity_type: activity.description
        for activity in db_session.query(ActivityLog).filter_by(entity_type="expense")
    }
    assert descriptions["create"] == "Expense of KES 40.00 recorded under Rent"
    assert descriptions["update"] == "Expense updated (Rent, KES 45.00)"
    assert descriptions["delete"] == "Expense of KES 45.00 deleted (Rent)"
