from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..interface import Catalog, MemberStore, SyncCollaborator, TransactionLog
from ..models import Member, Product, ShopSettings, StoreSnapshot, Transaction
from ...config import get_config
from ...errors import SyncError, UnknownMemberError, UnknownProductError
from ...logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Tables:
    products: Dict[str, Product] = field(default_factory=dict)
    members: Dict[str, Member] = field(default_factory=dict)
    # Newest first, matching the order the log is read back in
    transactions: List[Transaction] = field(default_factory=list)


class InMemoryStore(Catalog, MemberStore, TransactionLog):
    """
    In-memory implementation of the catalog, member store and transaction log.
    - Reads hand out copies, so callers can never edit stored records in place.
    - The only writes are the narrow ones the engine is allowed to make
      (stock, points, append, counter) plus whole-snapshot replacement.
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        members: Iterable[Member] = (),
        transactions: Iterable[Transaction] = (),
        next_order_number: Optional[int] = None,
        settings: Optional[ShopSettings] = None,
    ) -> None:
        if next_order_number is None:
            next_order_number = get_config().starting_order_number

        self._tables = _Tables(
            products={p.id: p.model_copy(deep=True) for p in products},
            members={m.id: m.model_copy(deep=True) for m in members},
            transactions=list(transactions),
        )
        self._next_order_number = next_order_number
        self.settings = settings

    # ---------- catalog ----------

    def list_products(self) -> List[Product]:
        return [p.model_copy(deep=True) for p in self._tables.products.values()]

    def get_product(self, product_id: str) -> Optional[Product]:
        product = self._tables.products.get(product_id)
        return product.model_copy(deep=True) if product else None

    def set_stock(self, product_id: str, stock: int) -> None:
        product = self._tables.products.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        self._tables.products[product_id] = product.model_copy(update={"stock": max(0, int(stock))})

    def upsert_product(self, product: Product) -> None:
        """Catalog-management write (restock, price edit). Not used by the engine."""
        self._tables.products[product.id] = product.model_copy(deep=True)

    # ---------- members ----------

    def get_member(self, member_id: str) -> Optional[Member]:
        member = self._tables.members.get(member_id)
        return member.model_copy() if member else None

    def list_members(self) -> List[Member]:
        return [m.model_copy() for m in self._tables.members.values()]

    def adjust_points(self, member_id: str, new_balance: int) -> None:
        member = self._tables.members.get(member_id)
        if member is None:
            raise UnknownMemberError(member_id)
        self._tables.members[member_id] = member.model_copy(update={"points": max(0, int(new_balance))})

    def upsert_member(self, member: Member) -> None:
        self._tables.members[member.id] = member.model_copy()

    # ---------- transaction log ----------

    def append_transaction(self, tx: Transaction) -> None:
        self._tables.transactions.insert(0, tx)

    def list_transactions(self) -> List[Transaction]:
        return list(self._tables.transactions)

    def next_order_number(self) -> int:
        return self._next_order_number

    def increment_order_number(self) -> int:
        self._next_order_number += 1
        return self._next_order_number

    def discard_transaction(self, tx_id: str) -> None:
        self._tables.transactions = [t for t in self._tables.transactions if t.id != tx_id]

    # ---------- snapshots ----------

    def to_snapshot(self, terminal_id: str, settings: ShopSettings) -> StoreSnapshot:
        return StoreSnapshot(
            terminal_id=terminal_id,
            timestamp=int(time.time() * 1000),
            products=self.list_products(),
            members=self.list_members(),
            transactions=self.list_transactions(),
            settings=settings.model_copy(deep=True),
            next_order_number=self._next_order_number,
        )

    def replace_from_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Overwrite all local state with the snapshot. Local unsynced changes are lost."""
        self._tables = _Tables(
            products={p.id: p.model_copy(deep=True) for p in snapshot.products},
            members={m.id: m.model_copy() for m in snapshot.members},
            transactions=list(snapshot.transactions),
        )
        self._next_order_number = snapshot.next_order_number
        self.settings = snapshot.settings.model_copy(deep=True)
        logger.info(
            f"Replaced local state from snapshot of {snapshot.terminal_id}: "
            f"{len(snapshot.products)} products, {len(snapshot.members)} members, "
            f"{len(snapshot.transactions)} transactions"
        )


class InMemorySyncHost(SyncCollaborator):
    """
    Stand-in for the remote sync host.
    Keeps the last pushed snapshot and serves it back on pull. `online` can be
    switched off to simulate an unreachable host.
    """

    def __init__(self, snapshot: Optional[StoreSnapshot] = None, online: bool = True) -> None:
        self.snapshot = snapshot
        self.online = online
        self.push_count = 0

    def push_snapshot(self, snapshot: StoreSnapshot) -> bool:
        if not self.online:
            raise SyncError("Sync host unreachable")
        self.snapshot = snapshot.model_copy(deep=True)
        self.push_count += 1
        return True

    def pull_snapshot(self) -> Optional[StoreSnapshot]:
        if not self.online:
            raise SyncError("Sync host unreachable")
        return self.snapshot.model_copy(deep=True) if self.snapshot else None
