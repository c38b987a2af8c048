# pos_core/data/interface.py
from __future__ import annotations

from typing import List, Optional, Protocol

from .models import (
    Member,
    Product,
    StoreSnapshot,
    Transaction,
)


# ---- Collaborator protocols ----

class Catalog(Protocol):
    """
    Read view of the product catalog.

    The order engine never edits products. The one write it performs is the
    stock write-back at settlement, through `set_stock`. Price edits and
    manual restocks happen outside the engine and are simply observed on the
    next read.
    """

    def list_products(self) -> List[Product]:
        """List every product in catalog order."""
        ...

    def get_product(self, product_id: str) -> Optional[Product]:
        """Return one product, or None if unknown."""
        ...

    def set_stock(self, product_id: str, stock: int) -> None:
        """Overwrite the on-hand quantity of a product."""
        ...


class MemberStore(Protocol):
    """Loyalty members. Only settlement writes, through `adjust_points`."""

    def get_member(self, member_id: str) -> Optional[Member]:
        ...

    def list_members(self) -> List[Member]:
        ...

    def adjust_points(self, member_id: str, new_balance: int) -> None:
        """Set the member's balance to `new_balance` (already floored at zero)."""
        ...


class TransactionLog(Protocol):
    """
    Append-only transaction history plus the durable order counter.

    `next_order_number` reads the counter; `increment_order_number` advances
    it by one once the transaction using it has been appended.
    """

    def append_transaction(self, tx: Transaction) -> None:
        ...

    def list_transactions(self) -> List[Transaction]:
        """Transactions, newest first."""
        ...

    def next_order_number(self) -> int:
        ...

    def increment_order_number(self) -> int:
        ...

    def discard_transaction(self, tx_id: str) -> None:
        """Undo an append made by a settlement that failed before committing."""
        ...


class SyncCollaborator(Protocol):
    """
    Remote host used for eventually-consistent multi-terminal state.

    Both calls are best-effort: a push returns False (or raises SyncError) on
    failure, a pull returns None when the host has nothing usable.
    """

    def push_snapshot(self, snapshot: StoreSnapshot) -> bool:
        ...

    def pull_snapshot(self) -> Optional[StoreSnapshot]:
        ...
