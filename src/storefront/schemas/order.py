"""Pydantic schemas for checkout and orders."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Address(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    company: Optional[str] = None
    address1: str = Field(..., min_length=1)
    address2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = "US"
    phone: Optional[str] = None


class OrderCreate(BaseModel):
    payment_method: str = Field(..., pattern=r"^(stripe|paypal|cash_on_delivery)$")
    shipping_address: Address
    billing_address: Optional[Address] = Field(
        None, description="Defaults to the shipping address"
    )
    coupon_code: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class OrderItem(BaseModel):
    product_id: str
    name: str
    sku: str
    price: float
    quantity: int
    total: float


class OrderRead(BaseModel):
    id: uuid.UUID
    order_number: str
    user_id: Optional[uuid.UUID] = None
    email: str
    status: str
    payment_status: str
    payment_method: str
    items: list[OrderItem]
    shipping_address: Address
    billing_address: Address
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderStatusUpdate(BaseModel):
    status: str = Field(
        ..., pattern=r"^(pending|processing|shipped|delivered|cancelled|refunded)$"
    )
    tracking_number: Optional[str] = None
