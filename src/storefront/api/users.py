"""User profile routes. A user may read their own profile; admins any."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.dependencies import require_owner_or_admin
from storefront.auth.gateway import AuthContext
from storefront.db.engine import get_db
from storefront.errors import NotFound
from storefront.schemas.auth import UserRead
from storefront.schemas.order import OrderRead
from storefront.services.order_service import OrderService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: str,
    ctx: AuthContext = Depends(require_owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).get(user_id)
    if not user:
        raise NotFound("User not found")
    return user


@router.get("/{user_id}/orders", response_model=list[OrderRead])
async def list_user_orders(
    user_id: str,
    ctx: AuthContext = Depends(require_owner_or_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await UserService(db).get(user_id):
        raise NotFound("User not found")
    return await OrderService(db).list_for_user(user_id)
