from tests.helpers import auth_headers, create_branch, create_product, create_sale, create_staff, owner_session


def test_activity_filters_and_paging(client):
    owner, token = owner_session(client)
    headers = auth_headers(token)
    for name in ("Rice 5kg", "Oil 1L", "Sugar 1kg"):
        create_product(client, token, name=name)

    first_page = client.get("/salestrack/activities?entity_type=product&page_size=2", headers=headers)
    assert first_page.status_code == 200
    body = first_page.json()
    assert body["total"] == 3
    assert body["page"] == 1
    assert len(body["activities"]) == 2
    assert all(item["activity_type"] == "create" for item in body["activities"])
    assert body["activities"][0]["user_name"] == "Ama Mensah"

    second_page = client.get("/salestrack/activities?entity_type=product&page_size=2&page=2", headers=headers).json()
    assert len(second_page["activities"]) == 1

    logins = client.get(
        f"/salestrack/activities?activity_type=login&user_id={owner['user_id']}",
        headers=headers,
    ).json()
    assert logins["total"] == 1

    long_ago = client.get("/salestrack/activities?start_date=2000-01-01&end_date=2000-01-31", headers=headers).json()
    assert long_ago["total"] == 0


def test_activity_page_size_is_capped(client):
    _, token = owner_session(client)
    response = client.get("/salestrack/activities?page_size=5000", headers=auth_headers(token))
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

    zero = client.get("/salestrack/activities?page=0", headers=auth_headers(token))
    assert zero.status_code == 422


def test_branch_bound_roles_see_their_branch_only(client):
    _, token = owner_session(client)
    adum = create_branch(client, token, name="Adum")
    kejetia = create_branch(client, token, name="Kejetia")
    product_id = create_product(client, token)
    adum_sale = create_sale(client, token, adum, [{"product_id": product_id, "quantity": 1}])
    create_sale(client, token, kejetia, [{"product_id": product_id, "quantity": 1}])
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=adum)

    owner_view = client.get("/salestrack/activities?entity_type=sale", headers=auth_headers(token)).json()
    assert owner_view["total"] == 2

    seller_view = client.get("/salestrack/activities?entity_type=sale", headers=auth_headers(seller_token)).json()
    assert seller_view["total"] == 1
    assert seller_view["activities"][0]["sale_id"] == adum_sale["id"]
    assert all(item["branch_id"] == adum for item in seller_view["activities"])

    mismatch = client.get(f"/salestrack/activities?branch_id={kejetia}", headers=auth_headers(seller_token))
    assert mismatch.status_code == 403
    assert mismatch.json()["code"] == "BRANCH_SCOPE_MISMATCH"


def test_activity_filter_by_sale(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    product_id = create_product(client, token)
    sale = create_sale(client, token, branch_id, [{"product_id": product_id, "quantity": 1}])
    client.post(f"/salestrack/sales/{sale['id']}/receipt", headers=auth_headers(token))

    body = client.get(f"/salestrack/activities?sale_id={sale['id']}", headers=auth_headers(token)).json()
    assert sorted(item["activity_type"] for item in body["activities"]) == ["create", "receipt"]
    created = next(item for item in body["activities"] if item["activity_type"] == "create")
    assert created["new_values"]["amount"] == 50.0
    assert created["old_values_display"] == "N/A"
