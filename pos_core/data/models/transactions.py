from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .cart import CartItem


class PaymentDetail(BaseModel):
    """One tender applied to an order (split payments produce several)."""
    model_config = ConfigDict(frozen=True)

    method_id: str = Field(description="Payment method identifier")
    method_name: str = Field(description="Payment method display name")
    amount: float = Field(gt=0, description="Amount tendered with this method")


class Transaction(BaseModel):
    """Finalized sale. Created once per settlement and never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique transaction identifier")
    order_number: str = Field(description="Order prefix followed by the counter value")
    timestamp: int = Field(description="Settlement time in epoch milliseconds")
    items: List[CartItem] = Field(description="Snapshot of the cart lines")
    subtotal: float = Field(description="Sum of line totals")
    discount: float = Field(default=0.0, description="Coupon discount plus points discount")
    coupon_code: Optional[str] = Field(default=None, description="Applied coupon code")
    tax_total: float = Field(default=0.0, description="Tax charged")
    total: float = Field(description="Amount due for the order")
    currency: str = Field(default="$", description="Currency symbol")
    payments: List[PaymentDetail] = Field(default_factory=list, description="Tenders")
    change_given: float = Field(default=0.0, description="Change returned to the customer")
    note: str = Field(default="", description="Order note")
    cashier_id: Optional[str] = Field(default=None, description="Cashier who settled the order")
    cashier_name: Optional[str] = Field(default=None, description="Cashier display name")
    member_id: Optional[str] = Field(default=None, description="Loyalty member linked to the sale")
    member_name: str = Field(default="Guest", description="Customer display name")
    points_earned: int = Field(default=0, description="Points credited by this sale")
    points_redeemed: int = Field(default=0, description="Points spent on this sale")
    source_ticket_number: Optional[str] = Field(default=None, description="Kiosk ticket the order came from")
