import json

import aiohttp
import pytest

CHECKOUT_BODY = {
    "cart": [{"id": 1, "name": "Sello", "price": 100, "qty": 2, "customization": {"line1": "Ana"}}],
    "buyer": {"name": "Ana", "email": "ana@example.com", "phone": "223"},
    "deliveryMethod": "shipping",
    "address": {"street": "Colón 123", "city": "Mar del Plata", "postalCode": "7600"},
    "total": 700,
}


@pytest.mark.asyncio
async def test_health(aiohttp_client, app):
    client = await aiohttp_client(app)
    resp = await client.get("/health")
    assert resp.status == 200
    assert (await resp.json())["status"] == "ok"


@pytest.mark.asyncio
async def test_products_list_has_cors_header(aiohttp_client, app):
    client = await aiohttp_client(app)
    resp = await client.get("/api/products")

    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "https://shop.test"
    products = await resp.json()
    assert [p["id"] for p in products] == [1, 5, 6, 7, 8]


@pytest.mark.asyncio
async def test_preflight(aiohttp_client, app):
    client = await aiohttp_client(app)
    resp = await client.options("/api/create-preference")
    assert resp.status == 200
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]


@pytest.mark.asyncio
async def test_create_preference_returns_redirect(aiohttp_client, app, gateway):
    client = await aiohttp_client(app)
    resp = await client.post("/api/create-preference", json=CHECKOUT_BODY)

    assert resp.status == 200
    assert await resp.json() == {"preferenceId": "pref-1", "init_point": "https://mp.test/init/1"}
    request = gateway.requests[0]
    assert request.cart[0].quantity == 2
    assert request.address.postal_code == "7600"
    assert request.delivery_method == "shipping"


@pytest.mark.asyncio
async def test_create_preference_gateway_failure_is_500(aiohttp_client, app, gateway):
    gateway.fail = True
    client = await aiohttp_client(app)
    resp = await client.post("/api/create-preference", json=CHECKOUT_BODY)

    assert resp.status == 500
    data = await resp.json()
    assert data["error"] == "Error al crear la preferencia"
    assert "details" in data


@pytest.mark.asyncio
async def test_create_preference_rejects_bad_input(aiohttp_client, app, gateway):
    client = await aiohttp_client(app)

    resp = await client.post("/api/create-preference", data="not json")
    assert resp.status == 400

    resp = await client.post("/api/create-preference", json={**CHECKOUT_BODY, "cart": []})
    assert resp.status == 400

    resp = await client.post("/api/create-preference", json={**CHECKOUT_BODY, "deliveryMethod": "drone"})
    assert resp.status == 400
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_webhook_acknowledges_and_notifies(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)
    payload = {"type": "payment", "data": {"id": "777"}}

    resp = await client.post("/api/webhook", data=json.dumps(payload))

    assert resp.status == 200
    assert await resp.text() == "OK"
    assert '"777"' in notifier.texts[0][1]


@pytest.mark.asyncio
async def test_webhook_acknowledges_when_notifier_fails(aiohttp_client, app, notifier):
    notifier.fail = True
    client = await aiohttp_client(app)

    resp = await client.post("/api/webhook", json={"type": "payment", "data": {"id": "1"}})

    assert resp.status == 200


@pytest.mark.asyncio
async def test_webhook_ignores_other_events(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)

    resp = await client.post("/api/webhook", json={"type": "merchant_order", "data": {"id": "1"}})

    assert resp.status == 200
    assert notifier.texts == []


@pytest.mark.asyncio
async def test_webhook_query_string_form(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)

    resp = await client.post("/api/webhook?type=payment&data.id=555")

    assert resp.status == 200
    assert '"555"' in notifier.texts[0][1]


@pytest.mark.asyncio
async def test_webhook_unparseable_body_is_500(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)

    resp = await client.post("/api/webhook", data="{broken")

    assert resp.status == 500
    assert notifier.texts == []


@pytest.mark.asyncio
async def test_order_status(aiohttp_client, app):
    app["services"].orders.save({"externalReference": "SP-1", "status": "Confirmado"})
    client = await aiohttp_client(app)

    resp = await client.get("/api/order/SP-1")
    assert resp.status == 200
    assert (await resp.json())["status"] == "Confirmado"

    resp = await client.get("/api/order/SP-404")
    assert resp.status == 404
    assert "error" in await resp.json()


def _budget_form(with_logo: bool = True) -> aiohttp.FormData:
    form = aiohttp.FormData()
    form.add_field("product", json.dumps({"id": 5, "name": "Kit Logo", "category": ["kits"]}))
    form.add_field("customization", json.dumps({"selectedKit": "Kit 1", "line1": "Mi Empresa"}))
    form.add_field("quantity", "3")
    form.add_field("buyer", json.dumps({"name": "Ana", "email": "ana@example.com", "phone": "223"}))
    if with_logo:
        form.add_field("logoFile", b"\x89PNG", filename="logo.png", content_type="image/png")
    return form


@pytest.mark.asyncio
async def test_request_budget_success(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)

    resp = await client.post("/api/request-budget", data=_budget_form())

    assert resp.status == 200
    assert await resp.json() == {"success": True, "message": "Solicitud recibida."}
    assert notifier.documents[0][1:] == ("logo.png", b"\x89PNG")


@pytest.mark.asyncio
async def test_request_budget_validation_error(aiohttp_client, app, notifier):
    client = await aiohttp_client(app)

    resp = await client.post("/api/request-budget", data=_budget_form(with_logo=False))

    assert resp.status == 400
    assert "logo" in (await resp.json())["errors"]
    assert notifier.texts == []


@pytest.mark.asyncio
async def test_request_budget_missing_fields(aiohttp_client, app):
    client = await aiohttp_client(app)
    form = aiohttp.FormData()
    form.add_field("quantity", "1")

    resp = await client.post("/api/request-budget", data=form)

    assert resp.status == 400
    assert set((await resp.json())["fields"]) == {"product", "buyer"}


@pytest.mark.asyncio
async def test_request_budget_notification_failure_is_500(aiohttp_client, app, notifier):
    notifier.fail = True
    client = await aiohttp_client(app)

    resp = await client.post("/api/request-budget", data=_budget_form())

    assert resp.status == 500
    assert (await resp.json())["success"] is False

