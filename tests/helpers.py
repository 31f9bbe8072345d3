from decimal import Decimal

PROVISIONING_HEADERS = {"X-Provisioning-Key": "test-provisioning-key"}
OWNER_PASSWORD = "Owner1234"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def provision_owner(client, *, email="owner@example.com", organization_name="Acme Traders", password=OWNER_PASSWORD):
    response = client.post(
        "/salestrack/provisioning/create-owner",
        headers=PROVISIONING_HEADERS,
        json={
            "organization": {"name": organization_name, "currency": "GH₵"},
            "user": {"first_name": "Ama", "last_name": "Mensah", "email": email, "password": password},
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email: str, password: str, organization_id: str | None = None) -> str:
    payload = {"email": email, "password": password}
    if organization_id:
        payload["organization_id"] = organization_id
    response = client.post("/salestrack/auth/login", json=payload)
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def owner_session(client, **kwargs) -> tuple[dict, str]:
    owner = provision_owner(client, **kwargs)
    token = login(client, owner["email"], kwargs.get("password", OWNER_PASSWORD))
    return owner, token


def create_branch(client, token: str, name: str = "Adum", location: str = "Kumasi") -> str:
    response = client.post(
        "/salestrack/branches",
        headers=auth_headers(token),
        json={"name": name, "location": location},
    )
    assert response.status_code == 201, response.text
    return response.json()["branch"]["id"]


def create_product(client, token: str, name: str = "Rice 5kg", price: str = "50.00") -> str:
    response = client.post(
        "/salestrack/products",
        headers=auth_headers(token),
        json={"name": name, "price": price},
    )
    assert response.status_code == 201, response.text
    return response.json()["product"]["id"]


def create_staff(client, token: str, *, email: str, role: str, branch_id: str | None = None) -> tuple[dict, str]:
    """Create a user and log them in with their temporary password."""
    payload = {"email": email, "full_name": email.split("@")[0].title(), "role": role}
    if branch_id:
        payload["branch_id"] = branch_id
    response = client.post("/salestrack/users", headers=auth_headers(token), json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], login(client, email, body["temporary_password"])


def create_sale(client, token: str, branch_id: str, items: list[dict], **fields) -> dict:
    payload = {"branch_id": branch_id, "items": items, **fields}
    response = client.post("/salestrack/sales", headers=auth_headers(token), json=payload)
    assert response.status_code == 201, response.text
    return response.json()["sale"]


def create_expense(client, token: str, branch_id: str, amount: str = "20.00", category: str = "Transport", **fields):
    payload = {"branch_id": branch_id, "amount": amount, "category": category, **fields}
    response = client.post("/salestrack/expenses", headers=auth_headers(token), json=payload)
    assert response.status_code == 201, response.text
    return response.json()["expense"]


def money(value) -> Decimal:
    return Decimal(str(value))
