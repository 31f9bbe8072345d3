from app.salestrack.db.models import ActivityLog, UserOrganization

from tests.helpers import auth_headers, create_branch, create_staff, login, owner_session


def test_owner_creates_users_with_temporary_passwords(client, db_session):
    owner, token = owner_session(client)
    branch_id = create_branch(client, token)

    response = client.post(
        "/salestrack/users",
        headers=auth_headers(token),
        json={"email": "Kwame@Example.com", "full_name": " Kwame Boateng ", "role": "sales_person", "branch_id": branch_id},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["temporary_password"]
    user = body["user"]
    assert user["email"] == "kwame@example.com"
    assert user["full_name"] == "Kwame Boateng"
    assert user["branch_id"] == branch_id
    assert user["must_change_password"] is True

    membership = db_session.query(UserOrganization).filter_by(user_id=user["id"]).one()
    assert str(membership.organization_id) == owner["organization_id"]
    assert membership.role == "member"

    me = client.get(
        "/salestrack/auth/me",
        headers=auth_headers(login(client, "kwame@example.com", body["temporary_password"])),
    )
    assert me.json()["must_change_password"] is True


def test_admin_and_auditor_are_not_branch_bound(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)

    admin, _ = create_staff(client, token, email="admin@example.com", role="admin", branch_id=branch_id)
    auditor, _ = create_staff(client, token, email="auditor@example.com", role="auditor")
    assert admin["branch_id"] is None
    assert auditor["branch_id"] is None

    missing_branch = client.post(
        "/salestrack/users",
        headers=auth_headers(token),
        json={"email": "seller@example.com", "full_name": "Seller", "role": "sales_person"},
    )
    assert missing_branch.status_code == 422

    owner_role = client.post(
        "/salestrack/users",
        headers=auth_headers(token),
        json={"email": "boss@example.com", "full_name": "Boss", "role": "owner"},
    )
    assert owner_role.status_code == 422


def test_only_owner_assigns_admin(client):
    _, token = owner_session(client)
    _, admin_token = create_staff(client, token, email="admin@example.com", role="admin")

    response = client.post(
        "/salestrack/users",
        headers=auth_headers(admin_token),
        json={"email": "admin2@example.com", "full_name": "Second Admin", "role": "admin"},
    )
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_branch_manager_limits(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    other_branch = create_branch(client, token, name="Kejetia")
    _, manager_token = create_staff(
        client, token, email="manager@example.com", role="branch_manager", branch_id=branch_id
    )
    outsider, _ = create_staff(client, token, email="outsider@example.com", role="sales_person", branch_id=other_branch)
    headers = auth_headers(manager_token)

    created = client.post(
        "/salestrack/users",
        headers=headers,
        json={"email": "seller@example.com", "full_name": "Seller", "role": "sales_person"},
    )
    assert created.status_code == 201
    assert created.json()["user"]["branch_id"] == branch_id

    auditor = client.post(
        "/salestrack/users",
        headers=headers,
        json={"email": "aud@example.com", "full_name": "Aud", "role": "auditor"},
    )
    assert auditor.status_code == 403

    elsewhere = client.post(
        "/salestrack/users",
        headers=headers,
        json={"email": "far@example.com", "full_name": "Far", "role": "sales_person", "branch_id": other_branch},
    )
    assert elsewhere.status_code == 403
    assert elsewhere.json()["code"] == "BRANCH_SCOPE_MISMATCH"

    listed = client.get("/salestrack/users", headers=headers).json()["users"]
    assert {user["branch_id"] for user in listed} == {branch_id}

    foreign = client.post(f"/salestrack/users/{outsider['id']}/deactivate", headers=headers)
    assert foreign.status_code == 403


def test_sales_person_cannot_manage_users(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)

    response = client.get("/salestrack/users", headers=auth_headers(seller_token))
    assert response.status_code == 403


def test_deactivate_blocks_login_and_owner_reactivates(client, db_session):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    seller, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)
    _, admin_token = create_staff(client, token, email="admin@example.com", role="admin")
    headers = auth_headers(token)

    response = client.post(f"/salestrack/users/{seller['id']}/deactivate", headers=auth_headers(admin_token))
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is False
    assert response.json()["user"]["deactivated_at"] is not None

    again = client.post(f"/salestrack/users/{seller['id']}/deactivate", headers=headers)
    assert again.status_code == 400
    assert again.json()["code"] == "USER_ALREADY_INACTIVE"

    stale_token = client.get("/salestrack/auth/me", headers=auth_headers(seller_token))
    assert stale_token.status_code == 403

    active_ids = [user["id"] for user in client.get("/salestrack/users", headers=headers).json()["users"]]
    assert seller["id"] not in active_ids
    inactive = client.get("/salestrack/users?status=inactive", headers=headers).json()["users"]
    assert [user["id"] for user in inactive] == [seller["id"]]

    admin_view = client.get("/salestrack/users?status=inactive", headers=auth_headers(admin_token))
    assert admin_view.status_code == 403

    admin_reactivate = client.post(f"/salestrack/users/{seller['id']}/reactivate", headers=auth_headers(admin_token))
    assert admin_reactivate.status_code == 403

    reactivated = client.post(f"/salestrack/users/{seller['id']}/reactivate", headers=headers)
    assert reactivated.status_code == 200
    assert reactivated.json()["user"]["is_active"] is True
    assert reactivated.json()["user"]["deactivated_by"] is None

    types = {row.activity_type for row in db_session.query(ActivityLog).filter_by(entity_type="user")}
    assert {"create", "deactivate", "reactivate"} <= types


def test_inactive_user_cannot_log_in(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    response = client.post(
        "/salestrack/users",
        headers=auth_headers(token),
        json={"email": "seller@example.com", "full_name": "Seller", "role": "sales_person", "branch_id": branch_id},
    )
    body = response.json()
    client.post(f"/salestrack/users/{body['user']['id']}/deactivate", headers=auth_headers(token))

    login_attempt = client.post(
        "/salestrack/auth/login",
        json={"email": "seller@example.com", "password": body["temporary_password"]},
    )
    assert login_attempt.status_code == 403
    assert login_attempt.json()["code"] == "USER_INACTIVE"


def test_regenerate_password(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    seller, _ = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)

    response = client.post(f"/salestrack/users/{seller['id']}/regenerate-password", headers=auth_headers(token))
    assert response.status_code == 200
    fresh = response.json()["temporary_password"]
    assert response.json()["user_id"] == seller["id"]

    new_token = login(client, "seller@example.com", fresh)
    me = client.get("/salestrack/auth/me", headers=auth_headers(new_token)).json()
    assert me["must_change_password"] is True


def test_update_user_and_self_management(client):
    owner, token = owner_session(client)
    branch_id = create_branch(client, token)
    other_branch = create_branch(client, token, name="Kejetia")
    seller, _ = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)
    create_staff(client, token, email="taken@example.com", role="auditor")
    headers = auth_headers(token)

    moved = client.patch(
        f"/salestrack/users/{seller['id']}",
        headers=headers,
        json={"role": "branch_manager", "branch_id": other_branch, "full_name": "Senior Seller"},
    )
    assert moved.status_code == 200
    assert moved.json()["user"]["role"] == "branch_manager"
    assert moved.json()["user"]["branch_id"] == other_branch
    assert moved.json()["user"]["branch_name"] == "Kejetia"

    promoted = client.patch(f"/salestrack/users/{seller['id']}", headers=headers, json={"role": "auditor"})
    assert promoted.json()["user"]["branch_id"] is None

    duplicate = client.patch(f"/salestrack/users/{seller['id']}", headers=headers, json={"email": "taken@example.com"})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "USER_EMAIL_EXISTS"

    myself = client.post(f"/salestrack/users/{owner['user_id']}/deactivate", headers=headers)
    assert myself.status_code == 403


def test_duplicate_email_on_create(client):
    _, token = owner_session(client)
    response = client.post(
        "/salestrack/users",
        headers=auth_headers(token),
        json={"email": "owner@example.com", "full_name": "Clone", "role": "auditor"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "USER_EMAIL_EXISTS"


def test_unknown_user_is_404(client):
    _, token = owner_session(client)
    response = client.get("/salestrack/users/6f1d1f7e-3c2b-4d4a-9f0e-1a2b3c4d5e6f", headers=auth_headers(token))
    assert response.status_code == 404
