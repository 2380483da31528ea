"""Cart service — shopping carts stored in Redis via the SessionRegistry.

Learn: The cart is a JSON blob under cart:<owner>, where owner is the
user id for logged-in shoppers and the X-Session-ID value for guests.
Prices are snapshotted when an item is added; checkout re-reads the
products so a stale price never reaches an order.

Guest session ids are server-issued uuid4().hex strings (32 lowercase
hex chars). User ids are dashed UUIDs, so a header that is not in the
guest format can never address, or merge away, a shopper's cart.
"""

import re
import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.sessions import SessionRegistry
from storefront.db.models import Product
from storefront.errors import Conflict, NotFound

logger = structlog.get_logger()

GUEST_SESSION_ID = re.compile(r"[0-9a-f]{32}")


def new_guest_session_id() -> str:
    return uuid.uuid4().hex


def is_guest_session_id(value: Optional[str]) -> bool:
    return bool(value) and GUEST_SESSION_ID.fullmatch(value) is not None


def empty_cart() -> dict:
    return {"items": [], "item_count": 0, "subtotal": 0.0}


def _recalculate(cart: dict) -> dict:
    for item in cart["items"]:
        item["total"] = round(item["price"] * item["quantity"], 2)
    cart["item_count"] = sum(item["quantity"] for item in cart["items"])
    cart["subtotal"] = round(sum(item["total"] for item in cart["items"]), 2)
    return cart


class CartService:
    def __init__(self, db: AsyncSession, registry: SessionRegistry):
        self.db = db
        self.registry = registry

    async def get(self, owner_id: str) -> dict:
        return await self.registry.get_cart(owner_id) or empty_cart()

    async def add_item(self, owner_id: str, product_id: uuid.UUID, quantity: int) -> dict:
        product = await self.db.get(Product, product_id)
        if not product or product.status != "active":
            raise NotFound("Product not found")

        cart = await self.get(owner_id)
        item = _find(cart, str(product_id))
        wanted = quantity + (item["quantity"] if item else 0)
        if product.track_quantity and wanted > product.quantity:
            raise Conflict("Insufficient stock")

        if item:
            item["quantity"] = wanted
            item["price"] = product.price
        else:
            cart["items"].append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "sku": product.sku,
                    "price": product.price,
                    "quantity": quantity,
                    "total": 0.0,
                }
            )
        cart = _recalculate(cart)
        await self.registry.set_cart(owner_id, cart)
        return cart

    async def remove_item(self, owner_id: str, product_id: uuid.UUID) -> dict:
        cart = await self.get(owner_id)
        before = len(cart["items"])
        cart["items"] = [i for i in cart["items"] if i["product_id"] != str(product_id)]
        if len(cart["items"]) == before:
            raise NotFound("Item not in cart")
        cart = _recalculate(cart)
        await self.registry.set_cart(owner_id, cart)
        return cart

    async def clear(self, owner_id: str) -> None:
        await self.registry.delete_cart(owner_id)

    async def merge_guest_cart(self, session_id: Optional[str], user_id: str) -> None:
        """Fold a guest cart into the user's cart after login."""
        if not is_guest_session_id(session_id):
            return
        guest = await self.registry.get_cart(session_id)
        if not guest or not guest.get("items"):
            return

        cart = await self.get(user_id)
        for guest_item in guest["items"]:
            item = _find(cart, guest_item["product_id"])
            if item:
                item["quantity"] += guest_item["quantity"]
            else:
                cart["items"].append(dict(guest_item))
        await self.registry.set_cart(user_id, _recalculate(cart))
        await self.registry.delete_cart(session_id)
        logger.info("storefront.cart.merged", user_id=user_id, items=len(guest["items"]))


def _find(cart: dict, product_id: str) -> Optional[dict]:
    for item in cart["items"]:
        if item["product_id"] == product_id:
            return item
    return None
