"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Every shared handle (settings, DB engine, key-value store,
token service, session registry, auth gateway) is built once here and
parked on app.state; dependencies read them from there. Nothing lives
in module globals, so tests can build an app around fakeredis and an
in-memory SQLite engine.

Run with: uvicorn storefront.main:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront import __version__
from storefront.api import api_router
from storefront.api.errors import register_exception_handlers
from storefront.auth.gateway import AuthGateway
from storefront.auth.jwt import TokenService
from storefront.auth.sessions import SessionRegistry
from storefront.cache.catalog import CatalogCache
from storefront.cache.store import KeyValueStore, RedisKeyValueStore
from storefront.config import Settings, load_settings
from storefront.db.engine import build_engine, build_session_factory
from storefront.db.models import Base

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at
    shutdown. Redis being down at boot is logged, not fatal: reads
    degrade to cache misses until it comes back.
    """
    settings: Settings = app.state.settings
    logger.info(
        "storefront.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if await app.state.store.ping():
        logger.info("storefront.redis_connected")
    else:
        logger.warning("storefront.redis_unavailable")

    if settings.create_tables_on_startup:
        async with app.state.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("storefront.tables_created")

    yield

    logger.info("storefront.shutdown")
    await app.state.store.close()
    await app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[KeyValueStore] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Raises ConfigurationError when settings are not passed in and the
    environment lacks the JWT secrets.
    """
    settings = settings or load_settings()
    engine = engine or build_engine(settings.database_url, echo=settings.debug)
    store = store or RedisKeyValueStore.from_url(settings.redis_url)
    tokens = TokenService.from_settings(settings)

    app = FastAPI(
        title="Storefront API",
        description="Catalog, cart, checkout, and admin management",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.store = store
    app.state.tokens = tokens
    app.state.gateway = AuthGateway(tokens)
    app.state.registry = SessionRegistry(
        store,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
        cart_ttl_seconds=settings.cart_ttl_seconds,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
    app.state.catalog_cache = CatalogCache(
        store,
        product_ttl_seconds=settings.product_cache_ttl_seconds,
        category_ttl_seconds=settings.category_cache_ttl_seconds,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from storefront.middleware.rate_limit import RateLimitMiddleware
    from storefront.middleware.request_id import RequestIdMiddleware
    from storefront.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Session-ID", "X-Request-ID"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app
