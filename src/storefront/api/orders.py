"""Orders API — checkout and order history for the logged-in shopper."""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.dependencies import get_auth_context, get_gateway, get_registry
from storefront.auth.gateway import AuthContext, AuthGateway
from storefront.auth.sessions import SessionRegistry
from storefront.db.engine import get_db
from storefront.schemas.order import OrderCreate, OrderRead
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders")


def _svc(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("", response_model=OrderRead, status_code=201)
async def checkout(
    body: OrderCreate,
    request: Request,
    ctx: AuthContext = Depends(get_auth_context),
    registry: SessionRegistry = Depends(get_registry),
    svc: OrderService = Depends(_svc),
):
    """Place an order from the shopper's cart, then empty the cart."""
    settings = request.app.state.settings
    carts = CartService(svc.db, registry)
    cart = await carts.get(ctx.principal.user_id)

    order = await svc.checkout(
        ctx.principal,
        cart,
        body,
        tax_rate=settings.tax_rate,
        shipping_rate=settings.shipping_flat_rate,
    )
    await svc.db.commit()
    await carts.clear(ctx.principal.user_id)
    return order


@router.get("", response_model=list[OrderRead])
async def list_my_orders(
    ctx: AuthContext = Depends(get_auth_context),
    svc: OrderService = Depends(_svc),
):
    return await svc.list_for_user(ctx.principal.user_id)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: uuid.UUID,
    ctx: AuthContext = Depends(get_auth_context),
    gateway: AuthGateway = Depends(get_gateway),
    svc: OrderService = Depends(_svc),
):
    order = await svc.get(order_id)
    gateway.require_ownership_or_admin(ctx, str(order.user_id))
    return order
