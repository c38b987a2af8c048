from __future__ import annotations

import time
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel

from .admission import Admission
from .commands import (
    AddItem,
    AddPayment,
    AdvanceStation,
    ApplyCoupon,
    ArchiveTicket,
    AssignMember,
    ClearCart,
    ClearPayments,
    CommandResult,
    CreateSession,
    ImportKioskOrder,
    RedeemPoints,
    RemoveCoupon,
    RemoveLine,
    RemoveSession,
    RenameSession,
    SetLineNote,
    SetOrderNote,
    SetStationStatus,
    Settle,
    SubmitKioskOrder,
    SwitchSession,
    SyncNow,
    UpdateQuantity,
    parse_command,
)
from .kitchen import KitchenEngine
from .pricing import PaymentSummary, PriceBreakdown, price, reconcile
from .sessions import SessionManager
from .settlement import Cashier, SettlementEngine
from .sync import SyncScheduler, pull_and_apply
from ..config import get_config
from ..data.interface import Catalog, MemberStore, TransactionLog
from ..data.models import PaymentDetail, PendingOrder, Product, ShopSettings, StoreSnapshot, Transaction
from ..errors import PosError
from ..logging import get_logger

logger = get_logger(__name__)


class SnapshotTarget(Protocol):
    def replace_from_snapshot(self, snapshot: StoreSnapshot) -> None:
        ...


class Quote(BaseModel):
    breakdown: PriceBreakdown
    payments: PaymentSummary


_CART_CHANGES = (AddItem, UpdateQuantity, RemoveLine, ClearCart, SetLineNote)


class Terminal:
    """
    One till: open order sessions, the kitchen queue, tenders and settlement,
    wired to the external collaborators.

    Every user action is a command passed to `dispatch`; the typed helper
    methods exist for callers that prefer direct calls.
    """

    def __init__(
        self,
        catalog: Catalog,
        members: MemberStore,
        log: TransactionLog,
        settings: ShopSettings,
        sync: Optional[SyncScheduler] = None,
        snapshot_target: Optional[SnapshotTarget] = None,
        session_dump=None,
        kitchen: Optional[KitchenEngine] = None,
        cashier: Optional[Cashier] = None,
        terminal_id: Optional[str] = None,
    ) -> None:
        config = get_config()
        self.catalog = catalog
        self.members = members
        self.log = log
        self.settings = settings
        self.sync = sync
        if sync is not None:
            sync.set_snapshot_provider(self.snapshot)
        self.snapshot_target = snapshot_target
        self.terminal_id = terminal_id or config.terminal_id
        self.cashier = cashier or Cashier(id=config.cashier_id, name=config.cashier_name)
        self.kitchen = kitchen or KitchenEngine()
        self.sessions = SessionManager.from_dump(session_dump, catalog, members, settings)
        self.settlement = SettlementEngine(
            catalog, members, log, self.sessions, self.kitchen, settings, on_settled=self._after_settlement
        )
        self._payments: Dict[str, List[PaymentDetail]] = {}

    @classmethod
    def from_store(cls, store, settings: Optional[ShopSettings] = None, **kwargs) -> "Terminal":
        """Build a terminal over a single store object that implements all three collaborators."""
        if settings is None:
            settings = store.settings
        if settings is None:
            from ..data.seed_data import default_shop_settings
            settings = default_shop_settings()
        return cls(store, store, store, settings, snapshot_target=store, **kwargs)

    # ---------- dispatch ----------

    def dispatch(self, command) -> CommandResult:
        if isinstance(command, dict):
            command = parse_command(command)
        try:
            return self._dispatch(command)
        except PosError as e:
            logger.debug(f"{type(command).__name__} refused: {e}")
            return CommandResult.refused(str(e))

    def _dispatch(self, command) -> CommandResult:
        if isinstance(command, _CART_CHANGES):
            return self._admission(self.sessions.mutate_active_cart(command))

        if isinstance(command, CreateSession):
            return CommandResult.success(self.sessions.create_session().id)
        if isinstance(command, RemoveSession):
            self.sessions.remove_session(command.session_id)
            if command.session_id not in {s.id for s in self.sessions.sessions}:
                self._payments.pop(command.session_id, None)
            return CommandResult.success()
        if isinstance(command, RenameSession):
            self.sessions.rename_session(command.session_id, command.name)
            return CommandResult.success()
        if isinstance(command, SwitchSession):
            return CommandResult.success(self.sessions.switch_active(command.session_id).id)
        if isinstance(command, ImportKioskOrder):
            return CommandResult.success(self.import_kiosk_order(command.order_id).id)

        if isinstance(command, AssignMember):
            return self._admission(self.sessions.assign_member(command.member_id))
        if isinstance(command, ApplyCoupon):
            return self._admission(self.sessions.apply_coupon(command.code))
        if isinstance(command, RemoveCoupon):
            return self._admission(self.sessions.remove_coupon())
        if isinstance(command, RedeemPoints):
            return self._admission(self.sessions.redeem_points(command.points))
        if isinstance(command, SetOrderNote):
            return self._admission(self.sessions.set_order_note(command.note))

        if isinstance(command, SubmitKioskOrder):
            order = self.kitchen.submit_order(command.items, command.customer_name, command.table_number)
            return CommandResult.success(order)
        if isinstance(command, AdvanceStation):
            return CommandResult.success(self.kitchen.advance_station(command.order_id, command.station))
        if isinstance(command, SetStationStatus):
            return CommandResult.success(
                self.kitchen.set_station_status(command.order_id, command.station, command.status)
            )
        if isinstance(command, ArchiveTicket):
            return CommandResult.success(self.kitchen.archive(command.order_id))

        if isinstance(command, AddPayment):
            return self._admission(self.add_payment(command.method_id, command.amount))
        if isinstance(command, ClearPayments):
            self._payments.pop(self.sessions.active_id, None)
            return CommandResult.success()
        if isinstance(command, Settle):
            return CommandResult.success(self.settle())
        if isinstance(command, SyncNow):
            return CommandResult.success(self.request_sync())

        raise TypeError(f"Unsupported command: {type(command).__name__}")

    @staticmethod
    def _admission(admission: Admission) -> CommandResult:
        if admission:
            return CommandResult.success()
        return CommandResult.refused(admission.reason)

    # ---------- pricing / payment ----------

    def payments(self, session_id: Optional[str] = None) -> List[PaymentDetail]:
        return list(self._payments.get(session_id or self.sessions.active_id, []))

    def quote(self) -> Quote:
        cart = self.sessions.active
        member = self.sessions.member_of(cart)
        breakdown = price(cart, member, cart.applied_coupon, self.settings)
        return Quote(breakdown=breakdown, payments=reconcile(breakdown.total, self.payments()))

    def add_payment(self, method_id: str, amount: float) -> Admission:
        method = self.settings.find_payment_method(method_id)
        if method is None or not method.enabled:
            return Admission.deny(f"Payment method {method_id} is not available")
        if amount <= 0:
            return Admission.deny("Payment amount must be positive")
        detail = PaymentDetail(method_id=method.id, method_name=method.name, amount=amount)
        self._payments.setdefault(self.sessions.active_id, []).append(detail)
        return Admission.allow()

    # ---------- kitchen / settlement ----------

    def import_kiosk_order(self, order_id: str):
        order: PendingOrder = self.kitchen.get(order_id)
        return self.sessions.import_kiosk_order(order)

    def settle(self) -> Transaction:
        cart = self.sessions.active
        member = self.sessions.member_of(cart)
        breakdown = price(cart, member, cart.applied_coupon, self.settings)
        tx = self.settlement.settle(cart, breakdown, self.payments(cart.id), member, self.cashier)
        self._payments.pop(cart.id, None)
        return tx

    # ---------- catalog view ----------

    def visible_products(self) -> List[Product]:
        products = self.catalog.list_products()
        if self.settings.hide_out_of_stock:
            products = [p for p in products if not p.is_out_of_stock]
        return products

    # ---------- sync ----------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            terminal_id=self.terminal_id,
            timestamp=int(time.time() * 1000),
            products=self.catalog.list_products(),
            members=self.members.list_members(),
            transactions=self.log.list_transactions(),
            settings=self.settings.model_copy(deep=True),
            next_order_number=self.log.next_order_number(),
        )

    def request_sync(self) -> bool:
        if self.sync is None:
            return False
        self.sync.publish(self.snapshot())
        self.sync.request_sync()
        return True

    def _after_settlement(self, tx: Transaction) -> None:
        self.request_sync()

    def apply_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Replace local catalog, members, log and settings with `snapshot`. Open carts are kept."""
        if self.snapshot_target is None:
            raise PosError("This terminal has no snapshot target to restore into")
        self.snapshot_target.replace_from_snapshot(snapshot)
        self.settings = snapshot.settings.model_copy(deep=True)
        self.sessions.settings = self.settings
        self.settlement.settings = self.settings

    def pull(self) -> bool:
        """Startup / manual pull from the sync host."""
        if self.sync is None:
            return False
        return pull_and_apply(self.sync.collaborator, self.apply_snapshot)

    def dump_sessions(self) -> dict:
        return self.sessions.dump_sessions()

    def kitchen_queue(self) -> List[PendingOrder]:
        return self.kitchen.open_orders()

