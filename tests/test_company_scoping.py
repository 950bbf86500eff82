"""Staff can only reach their own company's data"""

import pytest


@pytest.mark.asyncio
async def test_requires_authentication(client, test_company):
    response = await client.get(f"/companies/{test_company['id']}/orders")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_other_company_is_forbidden(authenticated_client, other_company):
    client = authenticated_client
    company_id = other_company["id"]

    for path in ("", "/orders", "/orders/history", "/products", "/customers"):
        response = await client.get(f"/companies/{company_id}{path}")
        assert response.status_code == 403, path


@pytest.mark.asyncio
async def test_order_of_other_company_not_visible(authenticated_client, store, test_company, other_company):
    foreign = await store.insert("orders", {
        "company_id": other_company["id"],
        "ticket_code": "5555",
        "customer_phone": "+244923000999",
        "status": "RECEIVED",
        "items": [],
    })

    response = await authenticated_client.post(
        f"/companies/{test_company['id']}/orders/{foreign['id']}/status", json={"status": "PREPARING"}
    )
    assert response.status_code == 404

    current = await store.get_by_id("orders", foreign["id"])
    assert current["status"] == "RECEIVED"


@pytest.mark.asyncio
async def test_product_of_other_company_not_editable(authenticated_client, store, test_company, other_company):
    foreign = await store.insert("products", {"company_id": other_company["id"], "name": "Pizza", "price": 3000})

    response = await authenticated_client.patch(
        f"/companies/{test_company['id']}/products/{foreign['id']}", json={"price": 1}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_company_admin_cannot_create_companies(authenticated_client):
    response = await authenticated_client.post("/companies", json={"code": "NEW01", "name": "New"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_company_admin_cannot_deactivate(authenticated_client, test_company):
    response = await authenticated_client.patch(f"/companies/{test_company['id']}", json={"isActive": False})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_company_response_hides_credentials(authenticated_client, test_company):
    response = await authenticated_client.get(f"/companies/{test_company['id']}")
    body = response.json()
    assert body["telegramConfigured"] is True
    assert "telegramBotToken" not in body


@pytest.mark.asyncio
async def test_super_admin_reaches_every_company(admin_client, test_company, other_company):
    for company in (test_company, other_company):
        response = await admin_client.get(f"/companies/{company['id']}/orders")
        assert response.status_code == 200

    response = await admin_client.get("/companies")
    assert {c["code"] for c in response.json()} == {"TEST01", "TEST99"}


@pytest.mark.asyncio
async def test_super_admin_creates_company(admin_client):
    response = await admin_client.post("/companies", json={"code": "new01", "name": "Nova Loja"})
    assert response.status_code == 201
    assert response.json()["code"] == "NEW01"

    response = await admin_client.post("/companies", json={"code": "NEW01", "name": "Again"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_staff_created_in_own_company(authenticated_client, test_company, other_company):
    response = await authenticated_client.post("/auth/users", json={
        "email": "cozinha@example.com",
        "password": "secret123",
        "full_name": "Cozinha",
        "company_id": other_company["id"],
    })
    assert response.status_code == 201
    assert response.json()["company_id"] == test_company["id"]
    assert response.json()["role"] == "staff"


@pytest.mark.asyncio
async def test_staff_password_too_short(authenticated_client):
    response = await authenticated_client.post("/auth/users", json={
        "email": "caixa@example.com",
        "password": "short",
        "full_name": "Caixa",
    })
    assert response.status_code == 422


def test_auth_schemas_cover_the_token_flow_only():
    from kwikqueue import schemas

    assert {"Token", "RefreshRequest", "UserCreate", "UserResponse"} <= set(schemas.__all__)
    assert not hasattr(schemas, "TokenPayload")
    assert not hasattr(schemas, "LoginRequest")
