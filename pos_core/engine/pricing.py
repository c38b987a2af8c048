"""
Cart pricing.

Everything here is a pure function of its arguments: the cart, the assigned
member, the shop settings and the tenders taken so far. Amounts are plain
floats and are not rounded; rounding is a presentation concern. The one place
float error matters, deciding whether an order is fully paid, uses a fixed
epsilon.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from .admission import Admission
from ..config import get_config
from ..data.models import (
    CartItem,
    Coupon,
    HeldCart,
    Member,
    MembershipConfig,
    PaymentDetail,
    Product,
    ShopSettings,
    TaxRateConfig,
)

PAYMENT_EPSILON = 0.01


class PriceBreakdown(BaseModel):
    """Totals for one cart."""
    subtotal: float = Field(description="Sum of line totals")
    coupon_discount: float = Field(default=0.0, description="Discount from the applied coupon")
    points_discount_value: float = Field(default=0.0, description="Discount bought with manual points redemption")
    items_points_cost: int = Field(default=0, description="Points spent on reward lines")
    total_points_redeemed: int = Field(default=0, description="Manual redemption plus reward lines")
    subtotal_after_discount: float = Field(description="Subtotal less both discounts, floored at zero")
    tax_rate_percent: float = Field(default=0.0, description="Sum of enabled tax rates")
    tax: float = Field(default=0.0, description="Tax charged")
    total: float = Field(description="Amount the customer owes")

    @property
    def discount(self) -> float:
        return self.coupon_discount + self.points_discount_value


class PaymentSummary(BaseModel):
    """Reconciliation of tenders against a total."""
    total: float
    paid: float
    due: float
    change: float
    can_settle: bool


def item_line_total(item: CartItem) -> float:
    return (item.price + sum(a.price for a in item.selected_addons)) * item.quantity


def cart_subtotal(items: Iterable[CartItem]) -> float:
    return sum(item_line_total(i) for i in items)


def coupon_discount(coupon: Optional[Coupon], subtotal: float) -> float:
    if coupon is None:
        return 0.0
    if coupon.type == "percent":
        return subtotal * coupon.value / 100
    if coupon.type == "fixed":
        return coupon.value
    return 0.0


def points_discount_value(points_to_redeem: int, membership: MembershipConfig, member: Optional[Member]) -> float:
    if not membership.enabled or member is None or membership.redeem_rate <= 0:
        return 0.0
    return points_to_redeem / membership.redeem_rate


def items_points_cost(items: Iterable[CartItem]) -> int:
    return sum(i.points_cost * i.quantity for i in items if i.is_reward)


def tax_rate_percent(tax_rates: Iterable[TaxRateConfig]) -> float:
    # Additive, not compounding
    return sum(tr.rate for tr in tax_rates if tr.enabled)


def price(
    cart: HeldCart,
    member: Optional[Member],
    coupon: Optional[Coupon],
    settings: ShopSettings,
) -> PriceBreakdown:
    """Price a cart. `coupon` is normally `cart.applied_coupon`."""
    subtotal = cart_subtotal(cart.items)
    discount = coupon_discount(coupon, subtotal)
    points_value = points_discount_value(cart.points_to_redeem, settings.membership, member)
    reward_points = items_points_cost(cart.items)

    # Both discount sources are combined before flooring
    after_discount = max(0.0, subtotal - discount - points_value)
    rate = tax_rate_percent(settings.tax_rates)
    tax = after_discount * rate / 100

    return PriceBreakdown(
        subtotal=subtotal,
        coupon_discount=discount,
        points_discount_value=points_value,
        items_points_cost=reward_points,
        total_points_redeemed=cart.points_to_redeem + reward_points,
        subtotal_after_discount=after_discount,
        tax_rate_percent=rate,
        tax=tax,
        total=after_discount + tax,
    )


def reconcile(total: float, payments: Sequence[PaymentDetail], epsilon: Optional[float] = None) -> PaymentSummary:
    if epsilon is None:
        epsilon = get_config().payment_epsilon
    paid = sum(p.amount for p in payments)
    due = max(0.0, total - paid)
    change = max(0.0, paid - total)
    return PaymentSummary(total=total, paid=paid, due=due, change=change, can_settle=due <= epsilon)


def reward_points_cost(product: Product, redeem_rate: float) -> int:
    """Points needed to take one unit of `product` as a reward."""
    if product.points_price:
        return product.points_price
    return math.ceil(product.price * redeem_rate)


def points_earned(total: float, membership: MembershipConfig, member: Optional[Member]) -> int:
    if not membership.enabled or member is None or member.is_frozen:
        return 0
    return math.floor(total * membership.earn_rate)


def check_coupon(coupon: Coupon, subtotal: float, today: Optional[date] = None) -> Admission:
    if today is None:
        today = date.today()
    if not coupon.enabled:
        return Admission.deny(f"Coupon {coupon.code} is disabled")
    if coupon.expiry_date is not None and coupon.expiry_date < today:
        return Admission.deny(f"Coupon {coupon.code} expired on {coupon.expiry_date.isoformat()}")
    if coupon.min_order is not None and subtotal < coupon.min_order:
        return Admission.deny(f"Coupon {coupon.code} needs a minimum order of {coupon.min_order:.2f}")
    return Admission.allow()


def check_points_redemption(
    points: int,
    cart: HeldCart,
    member: Optional[Member],
    settings: ShopSettings,
) -> Admission:
    """Validate a manual redemption of `points` against balance and programme limits."""
    membership = settings.membership
    if points == 0:
        return Admission.allow()
    if points < 0:
        return Admission.deny("Points to redeem cannot be negative")
    if not membership.enabled:
        return Admission.deny("Membership is disabled")
    if member is None:
        return Admission.deny("Assign a member before redeeming points")
    if member.is_frozen:
        return Admission.deny(f"Member {member.name or member.id} is frozen")
    if membership.redeem_rate <= 0:
        return Admission.deny("Points redemption is not configured")
    if membership.min_redeem_points and points < membership.min_redeem_points:
        return Admission.deny(f"Redeem at least {membership.min_redeem_points} points")
    if membership.max_redeem_points_per_tx and points > membership.max_redeem_points_per_tx:
        return Admission.deny(f"At most {membership.max_redeem_points_per_tx} points per order")
    if points + items_points_cost(cart.items) > member.points:
        return Admission.deny("Insufficient points balance")

    subtotal = cart_subtotal(cart.items)
    cap = subtotal * membership.max_discount_percentage_by_points / 100
    if points / membership.redeem_rate > cap + PAYMENT_EPSILON:
        return Admission.deny(
            f"Points discount is limited to {membership.max_discount_percentage_by_points:g}% of the subtotal"
        )
    return Admission.allow()
