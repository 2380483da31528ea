"""Pydantic schemas for discount coupons."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    type: str = Field(..., pattern=r"^(percentage|fixed_amount|free_shipping)$")
    value: float = Field(0, ge=0)
    description: Optional[str] = None
    minimum_amount: Optional[float] = Field(None, ge=0)
    maximum_discount: Optional[float] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    user_limit: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_values(self) -> "CouponCreate":
        if self.type == "percentage" and not 0 < self.value <= 100:
            raise ValueError("percentage coupons need a value between 0 and 100")
        if self.type == "fixed_amount" and self.value <= 0:
            raise ValueError("fixed_amount coupons need a positive value")
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class CouponRead(BaseModel):
    id: uuid.UUID
    code: str
    type: str
    value: float
    description: Optional[str] = None
    minimum_amount: Optional[float] = None
    maximum_discount: Optional[float] = None
    usage_limit: Optional[int] = None
    usage_count: int
    user_limit: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
