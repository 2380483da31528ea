"""Coupon service — admin management and redemption at checkout.

Learn: A coupon is checked in this order: it exists, it is active and
inside its start/end window, the subtotal meets its minimum, the
shopper is under the per-user limit, and finally a guarded UPDATE
takes one use from the global limit. Any failed check rejects the
checkout instead of silently placing the order at full price.

Discounts:
- percentage: subtotal * value / 100, capped at maximum_discount
- fixed_amount: value, never more than the subtotal
- free_shipping: no discount, shipping charged at 0
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Coupon, Order, utcnow
from storefront.errors import Conflict, NotFound
from storefront.schemas.coupon import CouponCreate

logger = structlog.get_logger()


@dataclass(frozen=True)
class Redemption:
    code: str
    discount: float
    free_shipping: bool


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def discount_for(coupon: Coupon, subtotal: float) -> float:
    if coupon.type == "percentage":
        discount = subtotal * coupon.value / 100
        if coupon.maximum_discount is not None:
            discount = min(discount, coupon.maximum_discount)
    elif coupon.type == "fixed_amount":
        discount = min(coupon.value, subtotal)
    else:
        discount = 0.0
    return round(discount, 2)


class CouponService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[Coupon]:
        result = await self.db.execute(
            select(Coupon).where(Coupon.code == code.strip().upper())
        )
        return result.scalars().first()

    async def list_coupons(self) -> list[Coupon]:
        result = await self.db.execute(select(Coupon).order_by(Coupon.created_at.desc()))
        return list(result.scalars().all())

    async def create_coupon(self, body: CouponCreate) -> Coupon:
        if await self.get_by_code(body.code):
            raise Conflict("Coupon code already exists")
        coupon = Coupon(**body.model_dump())
        self.db.add(coupon)
        await self.db.flush()
        logger.info("storefront.coupon.created", code=coupon.code, type=coupon.type)
        return coupon

    async def redeem(
        self, code: str, user_id: str, subtotal: float, now: Optional[datetime] = None
    ) -> Redemption:
        coupon = await self.get_by_code(code)
        if not coupon:
            raise NotFound("Coupon not found")

        now = now or utcnow()
        if not coupon.is_active:
            raise Conflict("Coupon is not active")
        if coupon.start_date and now < _as_utc(coupon.start_date):
            raise Conflict("Coupon is not active yet")
        if coupon.end_date and now > _as_utc(coupon.end_date):
            raise Conflict("Coupon has expired")
        if coupon.minimum_amount is not None and subtotal < coupon.minimum_amount:
            raise Conflict(
                f"Coupon requires a subtotal of at least {coupon.minimum_amount:.2f}"
            )

        if coupon.user_limit is not None:
            used = await self.db.scalar(
                select(func.count())
                .select_from(Order)
                .where(Order.user_id == uuid.UUID(user_id), Order.coupon_code == coupon.code)
            )
            if used >= coupon.user_limit:
                raise Conflict("Coupon already used the maximum number of times")

        result = await self.db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon.id,
                or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
            )
            .values(usage_count=Coupon.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise Conflict("Coupon usage limit reached")

        return Redemption(
            code=coupon.code,
            discount=discount_for(coupon, subtotal),
            free_shipping=coupon.type == "free_shipping",
        )
