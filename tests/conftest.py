"""Test fixtures — in-memory Redis and SQLite per test.

Learn: Each test gets its own FakeServer (fakeredis) and its own
in-memory SQLite database, so nothing leaks between tests and no
external services are needed. The app is built with create_app() so
the real auth pipeline, exception handlers, and middleware all run.

StaticPool keeps one connection alive for the in-memory database;
without it every new connection would see an empty schema.
"""

import uuid

import fakeredis
import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.cache.store import RedisKeyValueStore
from storefront.config import Settings
from storefront.db.models import Base
from storefront.main import create_app
from storefront.services.user_service import UserService

TEST_PASSWORD = "password_123"


def make_settings(**overrides) -> Settings:
    values = dict(
        jwt_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        database_url="sqlite+aiosqlite://",
        redis_url="redis://localhost:6379/15",
        bcrypt_rounds=4,
        rate_limit_rpm=10_000,
        rate_limit_auth_rpm=10_000,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings():
    return make_settings()


@pytest_asyncio.fixture()
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture()
async def down_redis_client():
    """A client whose server refuses every command (simulated outage)."""
    server = fakeredis.FakeServer()
    server.connected = False
    client = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture()
def store(redis_client):
    return RedisKeyValueStore(redis_client)


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def app(settings, store, engine):
    return create_app(settings, store=store, engine=engine)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_user(app):
    """Insert a user straight into the database (the only way to get an admin)."""

    async def _make(role: str = "user", email: str = None, password: str = TEST_PASSWORD):
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        async with app.state.session_factory() as db:
            user = await UserService(db, bcrypt_rounds=4).create_user(
                email=email, name=role.title(), password=password, role=role
            )
            await db.commit()
            return {"id": str(user.id), "email": email, "password": password}

    return _make


async def login(client: AsyncClient, email: str, password: str = TEST_PASSWORD) -> dict:
    r = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def bearer(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


async def create_category(client: AsyncClient, headers: dict, slug: str = None) -> dict:
    slug = slug or f"cat-{uuid.uuid4().hex[:6]}"
    r = await client.post(
        "/api/v1/admin/categories",
        json={"name": slug.title(), "slug": slug},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


async def create_product(client: AsyncClient, headers: dict, category_id: str, **overrides) -> dict:
    body = {
        "name": "Enamel Mug",
        "description": "A sturdy enamel mug.",
        "short_description": "Enamel mug",
        "price": 12.5,
        "sku": f"SKU-{uuid.uuid4().hex[:8]}",
        "category_id": category_id,
        "status": "active",
    }
    body.update(overrides)
    r = await client.post("/api/v1/admin/products", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def admin_headers(client, make_user):
    async def _headers() -> dict:
        admin = await make_user("admin")
        return bearer(await login(client, admin["email"]))

    return _headers


@pytest.fixture()
def product_factory(client, admin_headers):
    """Create an active product (in a fresh category) through the admin API."""

    async def _make(**overrides) -> dict:
        headers = await admin_headers()
        category = await create_category(client, headers)
        return await create_product(client, headers, category["id"], **overrides)

    return _make
