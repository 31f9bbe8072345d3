from decimal import Decimal

from tests.helpers import auth_headers, create_branch, create_product, create_staff, owner_session


def test_product_lifecycle(client):
    _, token = owner_session(client)
    headers = auth_headers(token)
    product_id = create_product(client, token, name="Sugar 1kg", price="12.50")

    updated = client.patch(f"/salestrack/products/{product_id}", headers=headers, json={"price": "13.00"})
    assert updated.status_code == 200
    assert Decimal(updated.json()["product"]["price"]) == Decimal("13.00")

    removed = client.delete(f"/salestrack/products/{product_id}", headers=headers)
    assert removed.status_code == 200
    assert removed.json()["product"]["is_active"] is False

    assert client.get("/salestrack/products", headers=headers).json()["products"] == []
    listed = client.get("/salestrack/products?include_inactive=true", headers=headers).json()["products"]
    assert [item["id"] for item in listed] == [product_id]


def test_negative_price_rejected(client):
    _, token = owner_session(client)
    response = client.post(
        "/salestrack/products",
        headers=auth_headers(token),
        json={"name": "Broken", "price": "-1.00"},
    )
    assert response.status_code == 422


def test_sales_staff_cannot_manage_products(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)

    response = client.post(
        "/salestrack/products",
        headers=auth_headers(seller_token),
        json={"name": "Oil", "price": "30.00"},
    )
    assert response.status_code == 403
    listed = client.get("/salestrack/products", headers=auth_headers(seller_token))
    assert listed.status_code == 200


def test_expense_category_names_are_unique(client):
    _, token = owner_session(client)
    headers = auth_headers(token)

    created = client.post("/salestrack/expense-categories", headers=headers, json={"name": "Rent"})
    assert created.status_code == 201
    category_id = created.json()["category"]["id"]

    duplicate = client.post("/salestrack/expense-categories", headers=headers, json={"name": "Rent"})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "CATEGORY_NAME_EXISTS"

    other = client.post("/salestrack/expense-categories", headers=headers, json={"name": "Utilities"})
    rename = client.patch(
        f"/salestrack/expense-categories/{other.json()['category']['id']}",
        headers=headers,
        json={"name": "Rent"},
    )
    assert rename.status_code == 409

    deactivated = client.delete(f"/salestrack/expense-categories/{category_id}", headers=headers)
    assert deactivated.json()["category"]["is_active"] is False
    names = [item["name"] for item in client.get("/salestrack/expense-categories", headers=headers).json()["categories"]]
    assert names == ["Utilities"]


def test_categories_are_scoped_to_organization(client):
    _, token = owner_session(client)
    created = client.post("/salestrack/expense-categories", headers=auth_headers(token), json={"name": "Rent"})
    category_id = created.json()["category"]["id"]

    _, other_token = owner_session(client, email="other@example.com", organization_name="Other Org")
    response = client.get(f"/salestrack/expense-categories/{category_id}", headers=auth_headers(other_token))
    assert response.status_code == 404
    same_name = client.post("/salestrack/expense-categories", headers=auth_headers(other_token), json={"name": "Rent"})
    assert same_name.status_code == 201
