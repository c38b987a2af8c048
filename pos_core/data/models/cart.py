from __future__ import annotations

import json
import time
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from .coupons import Coupon
from .products import AddonOption, Product


def make_line_key(product_id: str, addons: Sequence[AddonOption], note: str = "", is_reward: bool = False) -> str:
    """Identity of a cart line: re-adding the same product/addons/note merges into it.

    Each field is a separate JSON array element, so no note or id text can
    make a paid line and a reward line share a key.
    """
    return json.dumps([product_id, sorted(a.id for a in addons), note, is_reward], separators=(",", ":"))


class CartItem(BaseModel):
    """A product snapshot on a cart line."""
    product_id: str = Field(description="Catalog product this line was built from")
    name: str = Field(description="Product name at the time it was added")
    price: float = Field(ge=0, description="Unit price at the time it was added (0 for rewards)")
    category: str = Field(default="Other", description="Product category, used for station routing")
    quantity: int = Field(ge=1, description="Units on this line")
    selected_addons: List[AddonOption] = Field(default_factory=list, description="Chosen addon options")
    note: str = Field(default="", description="Free-text line note")
    is_reward: bool = Field(default=False, description="Line is paid for with loyalty points")
    points_cost: int = Field(default=0, ge=0, description="Points per unit for reward lines")
    line_key: str = Field(default="", description="Identity used to merge identical re-adds")

    def model_post_init(self, __context) -> None:
        if not self.line_key:
            self.line_key = make_line_key(self.product_id, self.selected_addons, self.note, self.is_reward)

    @classmethod
    def from_product(
        cls,
        product: Product,
        addons: Sequence[AddonOption] = (),
        quantity: int = 1,
        note: str = "",
        is_reward: bool = False,
        points_cost: int = 0,
    ) -> "CartItem":
        return cls(
            product_id=product.id,
            name=product.name,
            price=0.0 if is_reward else product.price,
            category=product.category,
            quantity=quantity,
            selected_addons=list(addons),
            note=note,
            is_reward=is_reward,
            points_cost=points_cost if is_reward else 0,
        )

    @property
    def unit_price(self) -> float:
        return self.price + sum(a.price for a in self.selected_addons)


def _now_ms() -> int:
    return int(time.time() * 1000)


class HeldCart(BaseModel):
    """An open order session on the terminal."""
    id: str = Field(description="Session identifier")
    name: str = Field(description="Display name shown on the session tab")
    ticket_number: Optional[str] = Field(default=None, description="Kiosk ticket this session was imported from")
    pending_order_id: Optional[str] = Field(default=None, description="Pending kitchen order id behind the ticket")
    items: List[CartItem] = Field(default_factory=list, description="Cart lines in insertion order")
    member_id: Optional[str] = Field(default=None, description="Assigned loyalty member (by reference)")
    points_to_redeem: int = Field(default=0, ge=0, description="Manual points redemption amount")
    applied_coupon: Optional[Coupon] = Field(default=None, description="Coupon applied to this cart")
    order_note: str = Field(default="", description="Note for the whole order")
    created_at: int = Field(default_factory=_now_ms, description="Creation time in epoch milliseconds")

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_line(self, line_key: str, is_reward: Optional[bool] = None) -> Optional[CartItem]:
        for item in self.items:
            if item.line_key != line_key:
                continue
            if is_reward is None or item.is_reward == is_reward:
                return item
        return None

    def quantity_of(self, product_id: str) -> int:
        """Units of a product across every line of this cart, whatever the addons."""
        return sum(i.quantity for i in self.items if i.product_id == product_id)

    def reset(self) -> None:
        self.items = []
        self.member_id = None
        self.points_to_redeem = 0
        self.applied_coupon = None
        self.order_note = ""
        self.ticket_number = None
        self.pending_order_id = None
