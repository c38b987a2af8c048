from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .members import Member
from .products import Product
from .settings import ShopSettings
from .transactions import Transaction


class StoreSnapshot(BaseModel):
    """Full terminal state exchanged with the sync host. Applied by replacement, never merged."""
    terminal_id: str = Field(description="Terminal that produced the snapshot")
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    version: str = Field(default="3.0", description="Snapshot document version")
    products: List[Product] = Field(default_factory=list, description="Catalog")
    members: List[Member] = Field(default_factory=list, description="Loyalty members")
    transactions: List[Transaction] = Field(default_factory=list, description="Transaction log, newest first")
    settings: ShopSettings = Field(default_factory=ShopSettings, description="Shop settings")
    next_order_number: int = Field(default=1, description="Next order counter value")
