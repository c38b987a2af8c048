from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .coupons import Coupon


class TaxRateConfig(BaseModel):
    """A tax line; enabled rates are summed, not compounded."""
    id: str = Field(description="Tax rate identifier")
    name: str = Field(description="Name printed on receipts")
    rate: float = Field(ge=0, description="Rate in percent")
    enabled: bool = Field(default=True, description="Whether the rate is charged")


class PaymentMethodConfig(BaseModel):
    """Tender type offered at the till."""
    id: str = Field(description="Payment method identifier")
    name: str = Field(description="Display name")
    type: Literal["cash", "card", "digital", "other"] = Field(default="other", description="Tender family")
    enabled: bool = Field(default=True, description="Whether the method can be used")


class MembershipConfig(BaseModel):
    """Loyalty programme rules."""
    enabled: bool = Field(default=True, description="Loyalty earning/redemption switched on")
    earn_rate: float = Field(default=1.0, ge=0, description="Points earned per currency unit of total")
    redeem_rate: float = Field(default=100.0, ge=0, description="Points per currency unit of discount")
    min_redeem_points: int = Field(default=0, ge=0, description="Smallest manual redemption (0 = none)")
    max_redeem_points_per_tx: int = Field(default=0, ge=0, description="Largest manual redemption (0 = unlimited)")
    max_discount_percentage_by_points: float = Field(
        default=100.0, ge=0, le=100, description="Cap of the points discount as a percent of subtotal"
    )


class ShopSettings(BaseModel):
    """Shop-wide configuration shared by every terminal (synced with the snapshot)."""
    shop_name: str = Field(default="My Coffee Shop", description="Shop name")
    currency: str = Field(default="$", description="Currency symbol")
    order_prefix: str = Field(default="ORD-", description="Prefix of printed order numbers")
    tax_rates: List[TaxRateConfig] = Field(default_factory=list, description="Configured tax rates")
    payment_methods: List[PaymentMethodConfig] = Field(default_factory=list, description="Configured tenders")
    coupons: List[Coupon] = Field(default_factory=list, description="Known coupons")
    membership: MembershipConfig = Field(default_factory=MembershipConfig, description="Loyalty rules")
    hide_out_of_stock: bool = Field(default=False, description="Hide tracked products with no stock")

    def find_coupon(self, code: str) -> Optional[Coupon]:
        wanted = code.strip().upper()
        for coupon in self.coupons:
            if coupon.code.upper() == wanted:
                return coupon
        return None

    def find_payment_method(self, method_id: str) -> Optional[PaymentMethodConfig]:
        for method in self.payment_methods:
            if method.id == method_id:
                return method
        return None
