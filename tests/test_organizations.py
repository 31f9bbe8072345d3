from app.salestrack.db.models import ActivityLog

from tests.helpers import auth_headers, create_branch, create_staff, owner_session


def test_list_organizations(client):
    owner, token = owner_session(client)

    response = client.get("/salestrack/organizations", headers=auth_headers(token))
    assert response.status_code == 200
    body = response.json()
    assert body["current_organization_id"] == owner["organization_id"]
    assert body["organizations"][0]["membership_role"] == "admin"


def test_get_and_update_current_organization(client, db_session):
    _, token = owner_session(client)
    headers = auth_headers(token)

    current = client.get("/salestrack/organizations/current", headers=headers)
    assert current.status_code == 200
    assert current.json()["organization"]["currency"] == "GH₵"

    updated = client.patch(
        "/salestrack/organizations/current",
        headers=headers,
        json={"name": "Acme Traders Ltd", "phone": "+233 20 111 2222", "currency": "USD"},
    )
    assert updated.status_code == 200
    organization = updated.json()["organization"]
    assert organization["name"] == "Acme Traders Ltd"
    assert organization["currency"] == "USD"

    activity = (
        db_session.query(ActivityLog)
        .filter_by(entity_type="organization", activity_type="update")
        .one()
    )
    assert activity.old_values["name"] == "Acme Traders"
    assert activity.new_values["phone"] == "+233 20 111 2222"


def test_blank_name_is_ignored(client):
    _, token = owner_session(client)
    response = client.patch(
        "/salestrack/organizations/current",
        headers=auth_headers(token),
        json={"name": "   ", "description": "Wholesale"},
    )
    assert response.status_code == 200
    assert response.json()["organization"]["name"] == "Acme Traders"
    assert response.json()["organization"]["description"] == "Wholesale"


def test_only_owner_creates_organizations(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    _, manager_token = create_staff(client, token, email="manager@example.com", role="branch_manager", branch_id=branch_id)

    response = client.post(
        "/salestrack/organizations",
        headers=auth_headers(manager_token),
        json={"name": "Side Business"},
    )
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"

    response = client.patch(
        "/salestrack/organizations/current",
        headers=auth_headers(manager_token),
        json={"name": "Renamed"},
    )
    assert response.status_code == 403
