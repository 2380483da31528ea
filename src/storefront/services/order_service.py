"""Order service — checkout and order lifecycle.

Learn: Checkout turns the cart into an Order in one DB transaction:
each line is re-priced from the current product row, tracked stock is
decremented by a guarded UPDATE (quantity >= wanted), and totals are
computed server-side. Payment capture is handled by an external
gateway, so new orders start with payment_status="pending". An optional
coupon code is redeemed through CouponService in the same transaction.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.jwt import Principal
from storefront.db.models import Order, Product, utcnow
from storefront.errors import Conflict, NotFound
from storefront.schemas.order import OrderCreate
from storefront.services.coupon_service import CouponService

logger = structlog.get_logger()


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def checkout(
        self,
        principal: Principal,
        cart: dict,
        body: OrderCreate,
        tax_rate: float = 0.0,
        shipping_rate: float = 0.0,
    ) -> Order:
        if not cart.get("items"):
            raise Conflict("Cart is empty")

        items = []
        for line in cart["items"]:
            product = await self.db.get(Product, uuid.UUID(line["product_id"]))
            if not product or product.status != "active":
                raise Conflict(f"Product {line['name']} is no longer available")
            quantity = int(line["quantity"])
            if product.track_quantity:
                # Conditional decrement: concurrent checkouts cannot oversell
                result = await self.db.execute(
                    update(Product)
                    .where(Product.id == product.id, Product.quantity >= quantity)
                    .values(quantity=Product.quantity - quantity)
                )
                if result.rowcount != 1:
                    raise Conflict(f"Insufficient stock for {product.name}")
            items.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "sku": product.sku,
                    "price": product.price,
                    "quantity": quantity,
                    "total": round(product.price * quantity, 2),
                }
            )

        subtotal = round(sum(i["total"] for i in items), 2)
        shipping = round(shipping_rate, 2)
        discount = 0.0
        coupon_code = None
        if body.coupon_code:
            redemption = await CouponService(self.db).redeem(
                body.coupon_code, principal.user_id, subtotal
            )
            coupon_code = redemption.code
            discount = redemption.discount
            if redemption.free_shipping:
                shipping = 0.0
        # Tax applies to the discounted subtotal
        tax = round((subtotal - discount) * tax_rate, 2)
        shipping_address = body.shipping_address.model_dump()
        billing_address = (
            body.billing_address.model_dump() if body.billing_address else shipping_address
        )

        order = Order(
            user_id=uuid.UUID(principal.user_id),
            email=principal.email,
            payment_method=body.payment_method,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            discount=discount,
            total=round(subtotal - discount + tax + shipping, 2),
            coupon_code=coupon_code,
            notes=body.notes,
        )
        self.db.add(order)
        await self.db.flush()
        logger.info(
            "storefront.order.placed",
            order_number=order.order_number,
            user_id=principal.user_id,
            total=order.total,
        )
        return order

    async def get(self, order_id: uuid.UUID) -> Order:
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    async def list_for_user(self, user_id: str) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == uuid.UUID(user_id))
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(self, status: Optional[str] = None, limit: int = 50) -> list[Order]:
        q = select(Order).order_by(Order.created_at.desc()).limit(limit)
        if status:
            q = q.where(Order.status == status)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def update_status(
        self, order_id: uuid.UUID, status: str, tracking_number: Optional[str] = None
    ) -> Order:
        order = await self.get(order_id)
        order.status = status
        if tracking_number:
            order.tracking_number = tracking_number
        if status == "shipped" and order.shipped_at is None:
            order.shipped_at = utcnow()
        if status == "delivered" and order.delivered_at is None:
            order.delivered_at = utcnow()
        await self.db.flush()
        logger.info("storefront.order.status_changed", order_id=str(order_id), status=status)
        return order
