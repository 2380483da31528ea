"""Pydantic schemas for categories and products.

Separate "Create"/"Update" schemas (input) from "Read" schemas (output).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ─── Categories ─────────────────────────────────────────

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = None
    sort_order: int = 0


class CategoryRead(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int

    model_config = {"from_attributes": True}


# ─── Products ───────────────────────────────────────────

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    compare_price: Optional[float] = Field(None, ge=0)
    sku: str = Field(..., min_length=1, max_length=100)
    track_quantity: bool = False
    quantity: int = Field(default=0, ge=0)
    category_id: uuid.UUID
    tags: list[str] = Field(default_factory=list)
    status: str = Field(default="draft", pattern=r"^(active|draft|archived)$")
    featured: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=200)
    price: Optional[float] = Field(None, ge=0)
    compare_price: Optional[float] = Field(None, ge=0)
    track_quantity: Optional[bool] = None
    quantity: Optional[int] = Field(None, ge=0)
    category_id: Optional[uuid.UUID] = None
    tags: Optional[list[str]] = None
    status: Optional[str] = Field(None, pattern=r"^(active|draft|archived)$")
    featured: Optional[bool] = None


class ProductRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    short_description: str
    price: float
    compare_price: Optional[float] = None
    sku: str
    track_quantity: bool
    quantity: int
    category_id: uuid.UUID
    tags: list[str] = []
    status: str
    featured: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductPage(BaseModel):
    items: list[ProductRead]
    page: int
    limit: int
    total: int
    pages: int
