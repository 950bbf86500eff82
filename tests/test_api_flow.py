"""End-to-end HTTP flow: customer joins, orders, staff works the queue"""

import pytest

PHONE = "923000111"


async def join(client, code="TEST01", phone=PHONE, **extra):
    return await client.post("/queue/join", json={"code": code, "customerPhone": phone, **extra})


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_public_company_and_menu(client, test_products):
    response = await client.get("/queue/companies/test01")
    assert response.status_code == 200
    company = response.json()
    assert company["name"] == "Kwik Burger"
    assert company["isAcceptingOrders"] is True
    assert "telegramBotToken" not in company

    response = await client.get("/queue/companies/TEST01/menu")
    assert response.status_code == 200
    assert {p["name"] for p in response.json()} == {"Hambúrguer Clássico", "Batata Frita", "Sumo Natural"}


@pytest.mark.asyncio
async def test_unknown_company(client):
    response = await client.get("/queue/companies/NOPE")
    assert response.status_code == 404
    assert response.json()["error"] == "RecordNotFound"


@pytest.mark.asyncio
async def test_order_lifecycle(authenticated_client, sms, telegram, test_company, test_products):
    client = authenticated_client
    company_id = test_company["id"]

    # Customer joins and builds a cart
    response = await join(client, customerName="Ana")
    assert response.status_code == 201
    body = response.json()
    assert body["redirected"] is False
    order = body["order"]
    assert order["status"] == "PENDING"
    order_id = order["id"]

    response = await client.post(f"/queue/orders/{order_id}/cart", json={"items": [
        {"productId": str(test_products[0]["id"]), "quantity": 2},
        {"productId": str(test_products[1]["id"]), "quantity": 1, "observation": "Sem sal"},
    ]})
    assert response.status_code == 200
    order = response.json()
    assert order["status"] == "RECEIVED"
    assert order["total"] == 2000
    assert order["items"][1]["unitPrice"] == 1000
    assert order["queuePosition"] == 1
    assert "NOVO PEDIDO" in telegram.sent[-1][1]

    # Joining again returns the same order
    response = await join(client)
    assert response.status_code == 200
    assert response.json()["redirected"] is True
    assert response.json()["order"]["id"] == order_id

    # Staff board
    response = await client.get(f"/companies/{company_id}/orders")
    assert [o["id"] for o in response.json()] == [order_id]

    response = await client.get(f"/companies/{company_id}/orders", params={"search": "sem sal"})
    assert len(response.json()) == 1

    # Kitchen works the order
    for status in ("PREPARING", "READY", "DELIVERED"):
        response = await client.post(
            f"/companies/{company_id}/orders/{order_id}/status", json={"status": status}
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == status

    assert len(sms.sent) == 3

    # Customer tracking screen
    response = await client.get(f"/queue/orders/{order_id}")
    tracking = response.json()
    assert tracking["order"]["status"] == "DELIVERED"
    assert tracking["order"]["statusLabel"] == "Entregue"
    assert tracking["company"]["code"] == "TEST01"
    assert tracking["ordersAhead"] == 0

    # History and export
    response = await client.get(f"/companies/{company_id}/orders/history")
    report = response.json()
    assert report["total"] == 1
    assert report["revenue"] == 2000
    assert report["smsCount"] == 3
    assert report["netRevenue"] == 1985

    response = await client.get(f"/companies/{company_id}/orders/export.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert '"#' in response.text


@pytest.mark.asyncio
async def test_invalid_transition_is_conflict(authenticated_client, test_company):
    client = authenticated_client
    order = (await join(client)).json()["order"]

    response = await client.post(
        f"/companies/{test_company['id']}/orders/{order['id']}/status", json={"status": "DELIVERED"}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "InvalidTransition"


@pytest.mark.asyncio
async def test_unknown_status_rejected(authenticated_client, test_company):
    client = authenticated_client
    order = (await join(client)).json()["order"]

    response = await client.post(
        f"/companies/{test_company['id']}/orders/{order['id']}/status", json={"status": "EATEN"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_stale_version_is_conflict(authenticated_client, test_company):
    client = authenticated_client
    order = (await join(client, skipCart=True)).json()["order"]
    url = f"/companies/{test_company['id']}/orders/{order['id']}/status"

    response = await client.post(url, json={"status": "PREPARING", "expectedVersion": order["version"]})
    assert response.status_code == 200

    response = await client.post(url, json={"status": "CANCELLED", "expectedVersion": order["version"]})
    assert response.status_code == 409
    assert response.json()["error"] == "ConcurrentUpdate"


@pytest.mark.asyncio
async def test_out_of_stock_cart(client, test_products):
    order = (await join(client)).json()["order"]
    response = await client.post(f"/queue/orders/{order['id']}/cart", json={"items": [
        {"productId": str(test_products[2]["id"]), "quantity": 1},
    ]})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidCart"


@pytest.mark.asyncio
async def test_customer_cancel(client, test_company):
    order = (await join(client)).json()["order"]

    response = await client.post(f"/queue/orders/{order['id']}/cancel", json={"customerPhone": "924999999"})
    assert response.status_code == 404

    response = await client.post(f"/queue/orders/{order['id']}/cancel", json={"customerPhone": PHONE})
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["statusLabel"] == "Cancelado pelo Cliente"


@pytest.mark.asyncio
async def test_presence_rejection(client, geo_company):
    response = await join(client, code="KWIK02", geolocationError="permission_denied")
    assert response.status_code == 400
    assert response.json()["error"] == "GeolocationDenied"

    response = await join(client, code="KWIK02", position={"lat": -8.8383, "lng": 13.2344})
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_short_phone_rejected(client, test_company):
    response = await join(client, phone="1234")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_paused_company(authenticated_client, test_company):
    client = authenticated_client
    response = await client.patch(f"/companies/{test_company['id']}", json={"isAcceptingOrders": False})
    assert response.status_code == 200
    assert response.json()["isAcceptingOrders"] is False

    response = await join(client)
    assert response.status_code == 403
    assert response.json()["error"] == "CompanyUnavailable"


@pytest.mark.asyncio
async def test_login_and_refresh(client, test_user):
    response = await client.post(
        "/auth/login", data={"username": "gerente@example.com", "password": "testpass123"}
    )
    assert response.status_code == 200
    tokens = response.json()

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert response.status_code == 200
    assert response.json()["company_id"] == test_user.company_id

    response = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200

    # The rotated-out token is no longer accepted
    response = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_wrong_password(client, test_user):
    response = await client.post(
        "/auth/login", data={"username": "gerente@example.com", "password": "nope"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_product_management(authenticated_client, test_company, test_products):
    client = authenticated_client
    base = f"/companies/{test_company['id']}/products"

    response = await client.post(base, json={"name": "Água", "price": 200, "category": "Bebidas"})
    assert response.status_code == 201
    product = response.json()
    assert product["status"] == "ACTIVE"

    response = await client.patch(f"{base}/{product['id']}", json={"status": "OUT_OF_STOCK"})
    assert response.json()["status"] == "OUT_OF_STOCK"

    response = await client.get(base, params={"category": "Bebidas"})
    assert {p["name"] for p in response.json()} == {"Água", "Sumo Natural"}

    response = await client.delete(f"{base}/{product['id']}")
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_customers_and_marketing(authenticated_client, sms, test_company):
    client = authenticated_client
    await join(client, customerName="Ana")

    response = await client.get(f"/companies/{test_company['id']}/customers")
    customers = response.json()
    assert [c["phone"] for c in customers] == ["+244923000111"]

    response = await client.post(
        f"/companies/{test_company['id']}/marketing",
        json={"phones": [customers[0]["phone"]], "message": "Promo hoje!"},
    )
    assert response.status_code == 200
    assert response.json() == {"sent": 1, "failed": 0}
    assert sms.sent[-1] == ("+244923000111", "Kwik Burger: Promo hoje!")
