"""
Order session manager.

Owns the open carts of one terminal and which of them is active. All cart
edits go through here so that stock and points admission is applied
consistently; a refused edit returns a denied Admission and leaves the cart
exactly as it was.
"""
from __future__ import annotations

import uuid
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, ValidationError

from .admission import Admission
from .commands import AddItem, CartChange, ClearCart, RemoveLine, SetLineNote, UpdateQuantity
from .pricing import cart_subtotal, check_coupon, check_points_redemption, reward_points_cost
from .stock import can_add_reward, can_increase
from ..data.interface import Catalog, MemberStore
from ..data.models import (
    AddonOption,
    CartItem,
    HeldCart,
    Member,
    PendingOrder,
    Product,
    ShopSettings,
    make_line_key,
)
from ..errors import UnknownSessionError
from ..logging import get_logger

logger = get_logger(__name__)


class SessionState(BaseModel):
    """Serializable form of the open sessions."""
    active_id: Optional[str] = Field(default=None, description="Active session id")
    sessions: List[HeldCart] = Field(default_factory=list, description="Open sessions in creation order")


def _new_session_id() -> str:
    return uuid.uuid4().hex


def resolve_addons(product: Product, addon_ids: Sequence[str]) -> Tuple[List[AddonOption], Admission]:
    """Map chosen option ids onto the product's addon groups and check group rules."""
    wanted = set(addon_ids)
    chosen: List[AddonOption] = []
    known = set()
    for group in product.addons:
        picked = [o for o in group.options if o.id in wanted]
        known.update(o.id for o in group.options)
        if group.required and not picked:
            return [], Admission.deny(f"Please select {group.name}")
        if not group.multiple and len(picked) > 1:
            return [], Admission.deny(f"Only one {group.name} can be selected")
        chosen.extend(picked)

    unknown = wanted - known
    if unknown:
        return [], Admission.deny(f"{product.name} has no option {', '.join(sorted(unknown))}")
    return chosen, Admission.allow()


class SessionManager:
    """Concurrently held orders of one terminal."""

    def __init__(
        self,
        catalog: Catalog,
        members: MemberStore,
        settings: ShopSettings,
        state: Optional[SessionState] = None,
    ) -> None:
        self.catalog = catalog
        self.members = members
        self.settings = settings
        self.sessions: List[HeldCart] = []
        self.active_id: str = ""
        self._restore(state)

    # ---------- lifecycle ----------

    def _restore(self, state: Optional[SessionState]) -> None:
        if state is None or not state.sessions:
            first = HeldCart(id=_new_session_id(), name="Order 1")
            self.sessions = [first]
            self.active_id = first.id
            return
        self.sessions = list(state.sessions)
        ids = {s.id for s in self.sessions}
        self.active_id = state.active_id if state.active_id in ids else self.sessions[0].id

    @property
    def active(self) -> HeldCart:
        return self.get(self.active_id)

    def get(self, session_id: str) -> HeldCart:
        for session in self.sessions:
            if session.id == session_id:
                return session
        raise UnknownSessionError(session_id)

    def create_session(self) -> HeldCart:
        session = HeldCart(id=_new_session_id(), name=f"Order {len(self.sessions) + 1}")
        self.sessions.append(session)
        self.active_id = session.id
        logger.debug(f"Opened session {session.name} ({session.id})")
        return session

    def remove_session(self, session_id: str) -> None:
        session = self.get(session_id)
        if len(self.sessions) <= 1:
            session.reset()
            return
        self.sessions = [s for s in self.sessions if s is not session]
        if self.active_id == session_id:
            self.active_id = self.sessions[-1].id

    def rename_session(self, session_id: str, name: str) -> None:
        self.get(session_id).name = name

    def switch_active(self, session_id: str) -> HeldCart:
        session = self.get(session_id)
        self.active_id = session.id
        return session

    def import_kiosk_order(self, order: PendingOrder) -> HeldCart:
        for session in self.sessions:
            if session.ticket_number is not None and session.ticket_number == order.ticket_number:
                self.active_id = session.id
                return session

        session = HeldCart(
            id=_new_session_id(),
            name=order.customer_name or f"Ticket {order.ticket_number}",
            ticket_number=order.ticket_number,
            pending_order_id=order.id,
            items=[i.model_copy(deep=True) for i in order.items],
            created_at=order.timestamp,
        )
        self.sessions.append(session)
        self.active_id = session.id
        logger.info(f"Imported kiosk ticket {order.ticket_number} into session {session.name}")
        return session

    # ---------- cart contents ----------

    def member_of(self, session: HeldCart) -> Optional[Member]:
        if session.member_id is None:
            return None
        return self.members.get_member(session.member_id)

    def mutate_active_cart(self, change: CartChange) -> Admission:
        if isinstance(change, AddItem):
            return self.add_item(
                change.product_id,
                change.addon_ids,
                quantity=change.quantity,
                note=change.note,
                is_reward=change.is_reward,
            )
        if isinstance(change, UpdateQuantity):
            return self.update_quantity(change.line_key, change.delta)
        if isinstance(change, RemoveLine):
            return self.remove_line(change.line_key)
        if isinstance(change, ClearCart):
            return self.clear_cart()
        if isinstance(change, SetLineNote):
            return self.set_line_note(change.line_key, change.note)
        raise TypeError(f"Unsupported cart change: {type(change).__name__}")

    def add_item(
        self,
        product_id: str,
        addon_ids: Sequence[str] = (),
        quantity: int = 1,
        note: str = "",
        is_reward: bool = False,
    ) -> Admission:
        cart = self.active
        product = self.catalog.get_product(product_id)
        if product is None:
            return Admission.deny(f"Product {product_id} is not in the catalog")
        if quantity < 1:
            return Admission.deny("Quantity must be at least 1")

        addons, admission = resolve_addons(product, addon_ids)
        if not admission:
            return admission

        line_key = make_line_key(product.id, addons, note, is_reward)
        existing = cart.find_line(line_key, is_reward=is_reward)

        admission = can_increase(product, quantity, cart, existing)
        if not admission:
            return admission

        points_cost = 0
        if is_reward:
            membership = self.settings.membership
            if not membership.enabled:
                return Admission.deny("Membership is disabled")
            points_cost = existing.points_cost if existing else reward_points_cost(product, membership.redeem_rate)
            admission = can_add_reward(points_cost, quantity, cart, self.member_of(cart))
            if not admission:
                return admission

        if existing is not None:
            existing.quantity += quantity
        else:
            cart.items.append(
                CartItem.from_product(
                    product, addons, quantity=quantity, note=note, is_reward=is_reward, points_cost=points_cost
                )
            )
        return Admission.allow()

    def update_quantity(self, line_key: str, delta: int) -> Admission:
        cart = self.active
        item = cart.find_line(line_key)
        if item is None:
            return Admission.deny("That item is no longer in the cart")

        if delta > 0:
            product = self.catalog.get_product(item.product_id)
            if product is not None:
                admission = can_increase(product, delta, cart, item)
                if not admission:
                    return admission
            if item.is_reward:
                admission = can_add_reward(item.points_cost, delta, cart, self.member_of(cart))
                if not admission:
                    return admission

        item.quantity += delta
        if item.quantity <= 0:
            cart.items = [i for i in cart.items if i.line_key != line_key]
        return Admission.allow()

    def remove_line(self, line_key: str) -> Admission:
        cart = self.active
        if cart.find_line(line_key) is None:
            return Admission.deny("That item is no longer in the cart")
        cart.items = [i for i in cart.items if i.line_key != line_key]
        return Admission.allow()

    def clear_cart(self) -> Admission:
        self.active.reset()
        return Admission.allow()

    def set_line_note(self, line_key: str, note: str) -> Admission:
        cart = self.active
        item = cart.find_line(line_key)
        if item is None:
            return Admission.deny("That item is no longer in the cart")
        new_key = make_line_key(item.product_id, item.selected_addons, note, item.is_reward)
        if new_key == line_key:
            return Admission.allow()

        twin = cart.find_line(new_key)
        if twin is not None:
            twin.quantity += item.quantity
            cart.items = [i for i in cart.items if i.line_key != line_key]
        else:
            item.note = note
            item.line_key = new_key
        return Admission.allow()

    # ---------- loyalty, coupons, notes ----------

    def assign_member(self, member_id: Optional[str]) -> Admission:
        cart = self.active
        if member_id == cart.member_id:
            return Admission.allow()
        if any(i.is_reward for i in cart.items):
            return Admission.deny("Remove reward items before changing the member")

        if member_id is not None:
            member = self.members.get_member(member_id)
            if member is None:
                return Admission.deny(f"Member {member_id} not found")
            if member.is_frozen:
                return Admission.deny(f"Member {member.name or member.id} is frozen")

        cart.member_id = member_id
        cart.points_to_redeem = 0
        return Admission.allow()

    def redeem_points(self, points: int) -> Admission:
        cart = self.active
        admission = check_points_redemption(points, cart, self.member_of(cart), self.settings)
        if admission:
            cart.points_to_redeem = points
        return admission

    def apply_coupon(self, code: str) -> Admission:
        cart = self.active
        coupon = self.settings.find_coupon(code)
        if coupon is None:
            return Admission.deny(f"Unknown coupon {code}")
        admission = check_coupon(coupon, cart_subtotal(cart.items))
        if admission:
            cart.applied_coupon = coupon
        return admission

    def remove_coupon(self) -> Admission:
        self.active.applied_coupon = None
        return Admission.allow()

    def set_order_note(self, note: str) -> Admission:
        self.active.order_note = note
        return Admission.allow()

    # ---------- serialization ----------

    def dump_sessions(self) -> dict:
        return SessionState(active_id=self.active_id, sessions=self.sessions).model_dump(mode="json")

    @staticmethod
    def load_state(raw: Any) -> Optional[SessionState]:
        """Parse a persisted session list; anything unreadable yields None (fresh start)."""
        if raw is None:
            return None
        try:
            if isinstance(raw, (str, bytes)):
                return SessionState.model_validate_json(raw)
            if isinstance(raw, list):
                return SessionState(sessions=[HeldCart.model_validate(s) for s in raw])
            return SessionState.model_validate(raw)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable order sessions, starting with one empty order: {e}")
            return None

    @classmethod
    def from_dump(
        cls,
        raw: Any,
        catalog: Catalog,
        members: MemberStore,
        settings: ShopSettings,
    ) -> "SessionManager":
        return cls(catalog, members, settings, state=cls.load_state(raw))
