"""Cart API — works for guests and logged-in shoppers alike.

Learn: Uses the soft auth dependency. A valid bearer token keys the
cart by user id; otherwise the cart is keyed by the X-Session-ID
header. A guest without one, or with a value that is not a
server-issued id, gets a fresh id back in the response header and
should send it on later calls.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.dependencies import get_optional_auth_context, get_registry
from storefront.auth.gateway import AuthContext
from storefront.auth.sessions import SessionRegistry
from storefront.db.engine import get_db
from storefront.schemas.cart import CartItemAdd, CartRead
from storefront.services.cart_service import (
    CartService,
    is_guest_session_id,
    new_guest_session_id,
)

router = APIRouter(prefix="/cart")

SESSION_HEADER = "X-Session-ID"


def _svc(
    db: AsyncSession = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
) -> CartService:
    return CartService(db, registry)


def _cart_owner(
    response: Response,
    ctx: AuthContext = Depends(get_optional_auth_context),
    x_session_id: Optional[str] = Header(None),
) -> str:
    if ctx.principal is not None:
        return ctx.principal.user_id
    session_id = x_session_id
    if not is_guest_session_id(session_id):
        session_id = new_guest_session_id()
    response.headers[SESSION_HEADER] = session_id
    return session_id


@router.get("", response_model=CartRead)
async def get_cart(owner: str = Depends(_cart_owner), svc: CartService = Depends(_svc)):
    return await svc.get(owner)


@router.post("/items", response_model=CartRead)
async def add_item(
    body: CartItemAdd,
    owner: str = Depends(_cart_owner),
    svc: CartService = Depends(_svc),
):
    return await svc.add_item(owner, body.product_id, body.quantity)


@router.delete("/items/{product_id}", response_model=CartRead)
async def remove_item(
    product_id: uuid.UUID,
    owner: str = Depends(_cart_owner),
    svc: CartService = Depends(_svc),
):
    return await svc.remove_item(owner, product_id)


@router.delete("", status_code=204)
async def clear_cart(owner: str = Depends(_cart_owner), svc: CartService = Depends(_svc)):
    await svc.clear(owner)
