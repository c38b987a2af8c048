"""
Settlement: turn a fully paid cart into a Transaction.

A settlement either happens completely or not at all. Every collaborator
write (stock, member points, transaction log, order counter) is undone if a
later one fails, and the local changes (kitchen ticket, session reset) are
only made once all of those writes have gone through. The sync notification
comes last and its failure is only logged.
"""
from __future__ import annotations

import time
import uuid
from collections import OrderedDict
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .kitchen import KitchenEngine
from .pricing import PriceBreakdown, points_earned, reconcile
from .sessions import SessionManager
from ..data.interface import Catalog, MemberStore, TransactionLog
from ..data.models import HeldCart, Member, PaymentDetail, ShopSettings, Transaction
from ..errors import SettlementError
from ..logging import get_logger

logger = get_logger(__name__)


class Cashier(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


def _customer_display_name(session: HeldCart, member: Optional[Member]) -> str:
    if member is not None and member.name:
        return member.name
    # Auto-named sessions are anonymous; renamed/imported ones carry the customer's name
    if session.name.startswith("Order "):
        return "Guest"
    return session.name


class SettlementEngine:
    """Atomic finalize of the active order session."""

    def __init__(
        self,
        catalog: Catalog,
        members: MemberStore,
        log: TransactionLog,
        sessions: SessionManager,
        kitchen: KitchenEngine,
        settings: ShopSettings,
        on_settled: Optional[Callable[[Transaction], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.catalog = catalog
        self.members = members
        self.log = log
        self.sessions = sessions
        self.kitchen = kitchen
        self.settings = settings
        self.on_settled = on_settled
        self.clock = clock

    # ---------- preconditions ----------

    def _check_preconditions(
        self,
        session: HeldCart,
        breakdown: PriceBreakdown,
        payments: Sequence[PaymentDetail],
        member: Optional[Member],
    ) -> None:
        if session.is_empty:
            raise SettlementError("Cannot settle an empty cart", session_id=session.id)

        summary = reconcile(breakdown.total, payments)
        if not summary.can_settle:
            raise SettlementError(
                f"Order is not fully paid: {summary.due:.2f} still due", session_id=session.id
            )

        redeemed = breakdown.total_points_redeemed
        if redeemed <= 0:
            return
        if member is None:
            raise SettlementError("Points are redeemed but no member is assigned", session_id=session.id)
        if member.is_frozen:
            raise SettlementError(f"Member {member.id} is frozen", session_id=session.id)
        # Balance may have moved since the cart was built (another session, a sync pull)
        if redeemed > member.points:
            raise SettlementError(
                f"Member {member.id} has {member.points} points, order redeems {redeemed}",
                session_id=session.id,
            )

    # ---------- settle ----------

    def settle(
        self,
        session: HeldCart,
        breakdown: PriceBreakdown,
        payments: Sequence[PaymentDetail],
        member: Optional[Member] = None,
        cashier: Optional[Cashier] = None,
    ) -> Transaction:
        # Re-read the member so the commit-time check sees the current balance
        if member is not None:
            member = self.members.get_member(member.id)
        elif session.member_id is not None:
            member = self.members.get_member(session.member_id)
            if member is None:
                logger.warning(f"Member {session.member_id} on session {session.name} no longer exists")

        self._check_preconditions(session, breakdown, payments, member)

        membership = self.settings.membership
        summary = reconcile(breakdown.total, payments)
        earned = points_earned(breakdown.total, membership, member)
        order_number = self.log.next_order_number()
        cashier = cashier or Cashier()

        tx = Transaction(
            id=uuid.uuid4().hex,
            order_number=f"{self.settings.order_prefix}{order_number}",
            timestamp=int(self.clock() * 1000),
            items=[i.model_copy(deep=True) for i in session.items],
            subtotal=breakdown.subtotal,
            discount=breakdown.discount,
            coupon_code=session.applied_coupon.code if session.applied_coupon else None,
            tax_total=breakdown.tax,
            total=breakdown.total,
            currency=self.settings.currency,
            payments=list(payments),
            change_given=summary.change,
            note=session.order_note,
            cashier_id=cashier.id,
            cashier_name=cashier.name,
            member_id=member.id if member else None,
            member_name=_customer_display_name(session, member),
            points_earned=earned,
            points_redeemed=breakdown.total_points_redeemed,
            source_ticket_number=session.ticket_number,
        )

        self._commit(tx, session, member)

        # Local, cannot fail half way: drop the kiosk ticket and free the session
        if session.pending_order_id is not None:
            self.kitchen.remove(session.pending_order_id)
        self.sessions.remove_session(session.id)

        logger.info(
            f"Settled {tx.order_number}: total {tx.total:.2f}, "
            f"{len(tx.payments)} payment(s), +{tx.points_earned}/-{tx.points_redeemed} points"
        )

        if self.on_settled is not None:
            try:
                self.on_settled(tx)
            except Exception as e:
                logger.warning(f"Post-settlement notification failed for {tx.order_number}: {e}")
        return tx

    def _commit(self, tx: Transaction, session: HeldCart, member: Optional[Member]) -> None:
        quantities: Dict[str, int] = OrderedDict()
        for item in session.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        # Each undo is recorded only once its write has gone through
        undo: List[Tuple[str, Callable[[], None]]] = []
        try:
            for product_id, quantity in quantities.items():
                product = self.catalog.get_product(product_id)
                if product is None or not product.track_inventory:
                    continue
                self.catalog.set_stock(product_id, max(0, product.stock - quantity))
                undo.append(
                    (f"stock of {product_id}", partial(self.catalog.set_stock, product_id, product.stock))
                )

            if member is not None and self.settings.membership.enabled:
                new_points = max(0, member.points + tx.points_earned - tx.points_redeemed)
                self.members.adjust_points(member.id, new_points)
                undo.append((f"points of {member.id}", partial(self.members.adjust_points, member.id, member.points)))

            self.log.append_transaction(tx)
            undo.append((f"log entry {tx.order_number}", partial(self.log.discard_transaction, tx.id)))
            self.log.increment_order_number()
        except Exception as e:
            logger.error(f"Settlement of {tx.order_number} failed, rolling back: {e}")
            self._rollback(tx, undo)
            raise SettlementError(f"Settlement failed: {e}", session_id=session.id) from e

    def _rollback(self, tx: Transaction, undo: List[Tuple[str, Callable[[], None]]]) -> None:
        """Run every recorded undo, newest first. A failing undo is logged and the rest still run."""
        for label, step in reversed(undo):
            try:
                step()
            except Exception as e:
                logger.critical(f"Rollback of {tx.order_number} could not restore {label}: {e}")
