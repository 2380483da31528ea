"""Pydantic schemas for the shopping cart."""

import uuid

from pydantic import BaseModel, Field


class CartItemAdd(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(default=1, ge=1, le=99)


class CartItem(BaseModel):
    product_id: str
    name: str
    sku: str
    price: float
    quantity: int
    total: float


class CartRead(BaseModel):
    items: list[CartItem] = []
    item_count: int = 0
    subtotal: float = 0.0
