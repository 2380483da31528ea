"""Checkout, order history, ownership checks, and admin status updates."""

import uuid

import pytest

from conftest import bearer, login

ADDRESS = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address1": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "zip_code": "N1 9GU",
}


@pytest.fixture()
def shopper(client, make_user):
    async def _shopper() -> tuple[dict, dict]:
        user = await make_user("user")
        return user, bearer(await login(client, user["email"]))

    return _shopper


async def _checkout(client, headers, product_id, quantity=1):
    r = await client.post(
        "/api/v1/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers
    )
    assert r.status_code == 200, r.text
    return await client.post(
        "/api/v1/orders",
        json={"payment_method": "stripe", "shipping_address": ADDRESS},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_checkout_creates_order_and_empties_cart(
    client, shopper, product_factory, admin_headers, store
):
    product = await product_factory(price=10.0, track_quantity=True, quantity=5)
    user, headers = await shopper()

    r = await _checkout(client, headers, product["id"], quantity=3)
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["order_number"].startswith("ORD-")
    assert len(order["order_number"]) == 14
    assert order["user_id"] == user["id"]
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["subtotal"] == 30.0
    assert order["total"] == 30.0
    assert order["billing_address"] == order["shipping_address"]
    assert order["items"][0]["quantity"] == 3

    assert await store.get(f"cart:{user['id']}") is None

    r = await client.get("/api/v1/admin/products", headers=await admin_headers())
    stock = {p["id"]: p["quantity"] for p in r.json()["items"]}
    assert stock[product["id"]] == 2


@pytest.mark.asyncio
async def test_checkout_with_empty_cart_is_conflict(client, shopper):
    _, headers = await shopper()
    r = await client.post(
        "/api/v1/orders",
        json={"payment_method": "paypal", "shipping_address": ADDRESS},
        headers=headers,
    )
    assert r.status_code == 409
    assert r.json()["message"] == "Cart is empty"


@pytest.mark.asyncio
async def test_checkout_requires_login(client):
    r = await client.post(
        "/api/v1/orders", json={"payment_method": "stripe", "shipping_address": ADDRESS}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_invalid_payment_method_rejected(client, shopper):
    _, headers = await shopper()
    r = await client.post(
        "/api/v1/orders",
        json={"payment_method": "bitcoin", "shipping_address": ADDRESS},
        headers=headers,
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_order_visible_to_owner_and_admin_only(client, shopper, product_factory, admin_headers):
    product = await product_factory()
    _, owner_headers = await shopper()
    order = (await _checkout(client, owner_headers, product["id"])).json()

    r = await client.get(f"/api/v1/orders/{order['id']}", headers=owner_headers)
    assert r.status_code == 200

    _, other_headers = await shopper()
    r = await client.get(f"/api/v1/orders/{order['id']}", headers=other_headers)
    assert r.status_code == 403
    assert r.json() == {"success": False, "message": "Access denied", "code": "AccessDenied"}

    r = await client.get(f"/api/v1/orders/{order['id']}", headers=await admin_headers())
    assert r.status_code == 200

    r = await client.get(f"/api/v1/orders/{uuid.uuid4()}", headers=owner_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_list_my_orders(client, shopper, product_factory):
    product = await product_factory()
    _, headers = await shopper()
    await _checkout(client, headers, product["id"])
    await _checkout(client, headers, product["id"])

    r = await client.get("/api/v1/orders", headers=headers)
    assert r.status_code == 200
    assert len(r.json()) == 2


@pytest.mark.asyncio
async def test_admin_status_update_stamps_shipping_times(client, shopper, product_factory, admin_headers):
    product = await product_factory()
    _, headers = await shopper()
    order = (await _checkout(client, headers, product["id"])).json()
    admin = await admin_headers()

    r = await client.patch(
        f"/api/v1/admin/orders/{order['id']}/status",
        json={"status": "shipped", "tracking_number": "1Z999"},
        headers=admin,
    )
    assert r.status_code == 200
    shipped = r.json()
    assert shipped["status"] == "shipped"
    assert shipped["tracking_number"] == "1Z999"
    assert shipped["shipped_at"] is not None
    assert shipped["delivered_at"] is None

    r = await client.patch(
        f"/api/v1/admin/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin
    )
    assert r.json()["delivered_at"] is not None
    assert r.json()["shipped_at"] is not None

    r = await client.get("/api/v1/admin/orders", params={"status": "delivered"}, headers=admin)
    assert [o["id"] for o in r.json()] == [order["id"]]


@pytest.mark.asyncio
async def test_user_profile_ownership(client, shopper, admin_headers):
    user, headers = await shopper()
    other, _ = await shopper()

    r = await client.get(f"/api/v1/users/{user['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["email"] == user["email"]

    r = await client.get(f"/api/v1/users/{other['id']}", headers=headers)
    assert r.status_code == 403
    assert r.json()["code"] == "AccessDenied"

    r = await client.get(f"/api/v1/users/{other['id']}/orders", headers=await admin_headers())
    assert r.status_code == 200
    assert r.json() == []
