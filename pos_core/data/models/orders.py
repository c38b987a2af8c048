from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .cart import CartItem


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"


class Station(str, Enum):
    KITCHEN = "kitchen"
    DRINKS = "drinks"
    BAKERY = "bakery"


class PendingOrder(BaseModel):
    """Kiosk-submitted kitchen ticket awaiting preparation and/or cashier import."""
    id: str = Field(description="Unique ticket identifier")
    items: List[CartItem] = Field(default_factory=list, description="Ordered items")
    timestamp: int = Field(description="Submission time in epoch milliseconds")
    customer_name: str = Field(default="", description="Name given at the kiosk")
    table_number: Optional[str] = Field(default=None, description="Table the order is served to")
    ticket_number: str = Field(description="Short number called out to the customer")
    total: float = Field(default=0.0, description="Item subtotal at submission")
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Aggregate status")
    station_statuses: Dict[Station, OrderStatus] = Field(
        default_factory=dict, description="Per-station status, only for stations with items"
    )
