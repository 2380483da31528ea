"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Admin auth is applied at the include_router level using
FastAPI's dependencies parameter, so every admin route runs the
bearer check and the role check. Other routers pick their own auth
per route: catalog is open, cart is optional-auth, orders and users
require a token.
"""

from fastapi import APIRouter, Depends

from storefront.api.admin import router as admin_router
from storefront.api.auth import router as auth_router
from storefront.api.cart import router as cart_router
from storefront.api.catalog import router as catalog_router
from storefront.api.health import router as health_router
from storefront.api.orders import router as orders_router
from storefront.api.users import router as users_router
from storefront.auth.dependencies import require_admin

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(catalog_router, tags=["catalog"])
api_router.include_router(cart_router, tags=["cart"])
api_router.include_router(orders_router, tags=["orders"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(admin_router, tags=["admin"], dependencies=[Depends(require_admin)])
