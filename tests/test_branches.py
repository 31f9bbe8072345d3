import uuid

from tests.helpers import auth_headers, create_branch, create_staff, owner_session


def test_create_and_list_branches(client):
    _, token = owner_session(client)
    headers = auth_headers(token)
    create_branch(client, token, name="Kejetia")
    create_branch(client, token, name="Adum")

    response = client.get("/salestrack/branches", headers=headers)
    assert response.status_code == 200
    assert [branch["name"] for branch in response.json()["branches"]] == ["Adum", "Kejetia"]


def test_update_and_deactivate_branch(client):
    _, token = owner_session(client)
    headers = auth_headers(token)
    branch_id = create_branch(client, token)

    response = client.patch(
        f"/salestrack/branches/{branch_id}",
        headers=headers,
        json={"contact": "+233 24 000 0000", "is_active": False},
    )
    assert response.status_code == 200
    branch = response.json()["branch"]
    assert branch["contact"] == "+233 24 000 0000"
    assert branch["is_active"] is False

    active = client.get("/salestrack/branches", headers=headers).json()["branches"]
    assert active == []
    everything = client.get("/salestrack/branches?include_inactive=true", headers=headers).json()["branches"]
    assert [item["id"] for item in everything] == [branch_id]


def test_branch_bound_users_only_see_their_branch(client):
    _, token = owner_session(client)
    home = create_branch(client, token, name="Adum")
    other = create_branch(client, token, name="Kejetia")
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=home)
    headers = auth_headers(seller_token)

    listed = client.get("/salestrack/branches", headers=headers).json()["branches"]
    assert [item["id"] for item in listed] == [home]

    hidden = client.get(f"/salestrack/branches/{other}", headers=headers)
    assert hidden.status_code == 404

    create = client.post("/salestrack/branches", headers=headers, json={"name": "New", "location": "Accra"})
    assert create.status_code == 403


def test_unknown_branch_returns_not_found(client):
    _, token = owner_session(client)
    response = client.get(f"/salestrack/branches/{uuid.uuid4()}", headers=auth_headers(token))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"

    invalid = client.get("/salestrack/branches/not-a-uuid", headers=auth_headers(token))
    assert invalid.status_code == 422
