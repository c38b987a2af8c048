from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Coupon(BaseModel):
    """Discount coupon applied to a whole cart."""
    code: str = Field(description="Code typed or scanned at the till")
    type: Literal["percent", "fixed"] = Field(description="Percent of subtotal or fixed amount")
    value: float = Field(ge=0, description="Percentage (0-100) or currency amount")
    enabled: bool = Field(default=True, description="Disabled coupons are rejected")
    min_order: Optional[float] = Field(default=None, ge=0, description="Minimum subtotal for the coupon to apply")
    expiry_date: Optional[date] = Field(default=None, description="Last day the coupon is valid")
