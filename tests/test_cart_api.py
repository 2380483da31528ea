"""Cart API — guest carts by session id, shopper carts by user id."""

import uuid

import pytest

from conftest import bearer, login


def _guest() -> str:
    return uuid.uuid4().hex


@pytest.mark.asyncio
async def test_guest_gets_a_session_id(client):
    r = await client.get("/api/v1/cart")
    assert r.status_code == 200
    assert r.json() == {"items": [], "item_count": 0, "subtotal": 0.0}
    assert len(r.headers["X-Session-ID"]) == 32


@pytest.mark.asyncio
async def test_guest_cart_persists_by_session_id(client, product_factory, store):
    product = await product_factory(price=4.25)
    guest = _guest()
    headers = {"X-Session-ID": guest}

    r = await client.post(
        "/api/v1/cart/items", json={"product_id": product["id"], "quantity": 2}, headers=headers
    )
    assert r.status_code == 200
    assert r.json()["subtotal"] == 8.5

    r = await client.post(
        "/api/v1/cart/items", json={"product_id": product["id"], "quantity": 1}, headers=headers
    )
    cart = r.json()
    assert cart["item_count"] == 3
    assert cart["items"][0]["total"] == 12.75
    assert (await store.get(f"cart:{guest}"))["item_count"] == 3


@pytest.mark.asyncio
async def test_shopper_cart_keyed_by_user_id(client, make_user, product_factory, store):
    product = await product_factory()
    shopper = await make_user("user")
    headers = bearer(await login(client, shopper["email"]))

    r = await client.post("/api/v1/cart/items", json={"product_id": product["id"]}, headers=headers)
    assert r.status_code == 200
    assert "X-Session-ID" not in r.headers
    assert (await store.get(f"cart:{shopper['id']}"))["item_count"] == 1


@pytest.mark.asyncio
async def test_invalid_token_falls_back_to_guest_cart(client):
    r = await client.get("/api/v1/cart", headers={"Authorization": "Bearer junk"})
    assert r.status_code == 200
    assert "X-Session-ID" in r.headers


@pytest.mark.asyncio
async def test_guest_cart_merged_on_login(client, make_user, product_factory, store):
    product = await product_factory()
    guest = _guest()
    await client.post(
        "/api/v1/cart/items",
        json={"product_id": product["id"], "quantity": 2},
        headers={"X-Session-ID": guest},
    )
    shopper = await make_user("user")

    r = await client.post(
        "/api/v1/auth/login",
        json={"email": shopper["email"], "password": shopper["password"]},
        headers={"X-Session-ID": guest},
    )
    assert r.status_code == 200

    cart = (await client.get("/api/v1/cart", headers=bearer(r.json()))).json()
    assert cart["item_count"] == 2
    assert await store.get(f"cart:{guest}") is None


@pytest.mark.asyncio
async def test_insufficient_stock(client, product_factory):
    product = await product_factory(track_quantity=True, quantity=1)
    headers = {"X-Session-ID": _guest()}
    r = await client.post(
        "/api/v1/cart/items", json={"product_id": product["id"], "quantity": 2}, headers=headers
    )
    assert r.status_code == 409
    assert r.json()["message"] == "Insufficient stock"


@pytest.mark.asyncio
async def test_remove_item_and_clear(client, product_factory, store):
    product = await product_factory()
    guest = _guest()
    headers = {"X-Session-ID": guest}
    await client.post("/api/v1/cart/items", json={"product_id": product["id"]}, headers=headers)

    r = await client.delete(f"/api/v1/cart/items/{product['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["items"] == []

    r = await client.delete(f"/api/v1/cart/items/{product['id']}", headers=headers)
    assert r.status_code == 404

    await client.post("/api/v1/cart/items", json={"product_id": product["id"]}, headers=headers)
    r = await client.delete("/api/v1/cart", headers=headers)
    assert r.status_code == 204
    assert await store.get(f"cart:{guest}") is None


@pytest.mark.asyncio
async def test_cart_write_during_outage_is_503(settings, engine, down_redis_client, product_factory):
    from httpx import ASGITransport, AsyncClient

    from storefront.cache.store import RedisKeyValueStore
    from storefront.main import create_app

    product = await product_factory()
    app = create_app(settings, store=RedisKeyValueStore(down_redis_client), engine=engine)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post(
            "/api/v1/cart/items",
            json={"product_id": product["id"]},
            headers={"X-Session-ID": _guest()},
        )
    assert r.status_code == 503
    assert r.json()["code"] == "StoreUnavailable"


@pytest.mark.asyncio
async def test_guest_cannot_address_a_shopper_cart(client, make_user, product_factory, store):
    product = await product_factory()
    victim = await make_user("user")
    victim_headers = bearer(await login(client, victim["email"]))
    await client.post(
        "/api/v1/cart/items",
        json={"product_id": product["id"], "quantity": 3},
        headers=victim_headers,
    )

    r = await client.get("/api/v1/cart", headers={"X-Session-ID": victim["id"]})
    assert r.status_code == 200
    assert r.json()["item_count"] == 0
    assert r.headers["X-Session-ID"] != victim["id"]

    await client.post(
        "/api/v1/cart/items",
        json={"product_id": product["id"]},
        headers={"X-Session-ID": victim["id"]},
    )
    assert (await store.get(f"cart:{victim['id']}"))["item_count"] == 3


@pytest.mark.asyncio
async def test_login_does_not_merge_a_shopper_cart(client, make_user, product_factory, store):
    product = await product_factory()
    victim = await make_user("user")
    victim_headers = bearer(await login(client, victim["email"]))
    await client.post(
        "/api/v1/cart/items",
        json={"product_id": product["id"], "quantity": 3},
        headers=victim_headers,
    )

    attacker = await make_user("user")
    r = await client.post(
        "/api/v1/auth/login",
        json={"email": attacker["email"], "password": attacker["password"]},
        headers={"X-Session-ID": victim["id"]},
    )
    assert r.status_code == 200

    assert (await store.get(f"cart:{victim['id']}"))["item_count"] == 3
    attacker_cart = (await client.get("/api/v1/cart", headers=bearer(r.json()))).json()
    assert attacker_cart["item_count"] == 0
