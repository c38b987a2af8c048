"""
Stock guard: admission control for quantity-increasing cart changes.

Stock is pooled per product, so every line of the active cart that carries the
product counts towards the limit whatever its addons. Decreases and removals
are never checked.
"""
from __future__ import annotations

from typing import Optional

from .admission import Admission
from .pricing import items_points_cost
from ..data.models import CartItem, HeldCart, Member, Product
from ..logging import get_logger

logger = get_logger(__name__)


def can_increase(
    product: Product,
    requested_delta: int,
    cart: HeldCart,
    current_item: Optional[CartItem] = None,
) -> Admission:
    """Check stock for adding `requested_delta` units of `product` to `cart`.

    `current_item` is the existing line being incremented, or None for a new
    line. Manual unavailability only blocks new lines.
    """
    if requested_delta <= 0:
        return Admission.allow()

    if current_item is None and not product.is_available:
        logger.debug(f"Denied add of {product.name}: marked unavailable")
        return Admission.deny(f"{product.name} is currently unavailable")

    if not product.track_inventory:
        return Admission.allow()

    committed = cart.quantity_of(product.id)
    if committed + requested_delta > product.stock:
        left = max(0, product.stock - committed)
        logger.debug(
            f"Denied {requested_delta}x {product.name}: {committed} in cart, {product.stock} in stock"
        )
        if left == 0:
            return Admission.deny(f"Insufficient stock for {product.name}: only {product.stock} available")
        return Admission.deny(f"Sorry, only {left} more {product.name} left")
    return Admission.allow()


def can_add_reward(
    points_cost: int,
    requested_delta: int,
    cart: HeldCart,
    member: Optional[Member],
) -> Admission:
    """Reward lines need an active member whose balance covers everything redeemed so far plus this."""
    if member is None:
        return Admission.deny("Assign a member before redeeming rewards")
    if member.is_frozen:
        return Admission.deny(f"Member {member.name or member.id} is frozen")

    already = cart.points_to_redeem + items_points_cost(cart.items)
    needed = already + points_cost * requested_delta
    if member.points < needed:
        logger.debug(f"Denied reward for member {member.id}: needs {needed}, has {member.points}")
        return Admission.deny("Insufficient points.")
    return Admission.allow()
