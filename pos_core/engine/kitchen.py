"""
Kitchen routing: station assignment and the per-station ticket state machine.

Every item goes to exactly one station, chosen by product category. Each
station that has items on a ticket moves pending -> preparing -> ready, and
may step back from ready to preparing. The ticket status is derived from the
station statuses. Archiving a ticket is a staff override: it is allowed
whatever the stations say.
"""
from __future__ import annotations

import random
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from ..data.models import CartItem, OrderStatus, PendingOrder, Station
from ..errors import InvalidTransitionError, UnknownOrderError
from ..logging import get_logger
from .pricing import cart_subtotal

logger = get_logger(__name__)

DRINK_CATEGORIES = ("Drinks", "Coffee")
BAKERY_CATEGORIES = ("Bakery",)

# Allowed (current -> requested) station moves
TRANSITIONS = {
    (OrderStatus.PENDING, OrderStatus.PREPARING),
    (OrderStatus.PREPARING, OrderStatus.READY),
    (OrderStatus.READY, OrderStatus.PREPARING),
}

NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
}


def station_for(item: CartItem) -> Station:
    if item.category in DRINK_CATEGORIES:
        return Station.DRINKS
    if item.category in BAKERY_CATEGORIES:
        return Station.BAKERY
    return Station.KITCHEN


def items_for_station(items: Iterable[CartItem], station: Station) -> List[CartItem]:
    return [i for i in items if station_for(i) == station]


def initial_station_statuses(items: Iterable[CartItem]) -> Dict[Station, OrderStatus]:
    """One pending entry per station that has at least one item."""
    return {station_for(i): OrderStatus.PENDING for i in items}


def aggregate_status(station_statuses: Dict[Station, OrderStatus]) -> OrderStatus:
    statuses = list(station_statuses.values())
    if statuses and all(s == OrderStatus.READY for s in statuses):
        return OrderStatus.READY
    if any(s == OrderStatus.PREPARING for s in statuses):
        return OrderStatus.PREPARING
    return OrderStatus.PENDING


def _random_ticket_number() -> str:
    return str(random.randint(1000, 9999))


class KitchenEngine:
    """
    Pending kitchen tickets and their station statuses.
    - Tickets enter through `submit_order` (the kiosk boundary).
    - They leave through `archive` (staff) or `remove` (settled at the till).
    """

    def __init__(
        self,
        orders: Iterable[PendingOrder] = (),
        ticket_number_factory: Callable[[], str] = _random_ticket_number,
    ) -> None:
        self._orders: Dict[str, PendingOrder] = {o.id: o for o in orders}
        self._ticket_number_factory = ticket_number_factory

    # ---------- kiosk boundary ----------

    def submit_order(
        self,
        items: Iterable[CartItem],
        customer_name: str = "",
        table_number: Optional[str] = None,
    ) -> PendingOrder:
        items = [i.model_copy(deep=True) for i in items]
        if not items:
            raise ValueError("Cannot submit an empty kitchen order")

        now = int(time.time() * 1000)
        order = PendingOrder(
            id=uuid.uuid4().hex,
            items=items,
            timestamp=now,
            customer_name=customer_name.strip(),
            table_number=table_number or None,
            ticket_number=self._ticket_number_factory(),
            total=cart_subtotal(items),
            status=OrderStatus.PENDING,
            station_statuses=initial_station_statuses(items),
        )
        self._orders[order.id] = order
        logger.info(
            f"Ticket {order.ticket_number} submitted for {order.customer_name or 'guest'} "
            f"({len(items)} lines, stations: {', '.join(s.value for s in order.station_statuses)})"
        )
        return order

    # ---------- queries ----------

    def get(self, order_id: str) -> PendingOrder:
        order = self._orders.get(order_id)
        if order is None:
            raise UnknownOrderError(order_id)
        return order

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._orders

    def list_orders(self) -> List[PendingOrder]:
        return list(self._orders.values())

    def open_orders(self, station: Optional[Station] = None) -> List[PendingOrder]:
        """Tickets still in the queue, oldest first; with `station`, only those with items for it."""
        orders = [o for o in self._orders.values() if o.status != OrderStatus.COMPLETED]
        if station is not None:
            orders = [o for o in orders if station in o.station_statuses]
        return sorted(orders, key=lambda o: o.timestamp)

    # ---------- state machine ----------

    def set_station_status(self, order_id: str, station: Station, status: OrderStatus) -> PendingOrder:
        order = self.get(order_id)
        current = order.station_statuses.get(station)
        if current is None:
            raise InvalidTransitionError(
                station.value, None, status.value,
                message=f"Ticket {order.ticket_number} has no items for station '{station.value}'",
            )
        if (current, status) not in TRANSITIONS:
            raise InvalidTransitionError(station.value, current.value, status.value)

        statuses = {**order.station_statuses, station: status}
        updated = order.model_copy(update={"station_statuses": statuses, "status": aggregate_status(statuses)})
        self._orders[order_id] = updated
        logger.debug(f"Ticket {order.ticket_number}: {station.value} {current.value} -> {status.value}")
        return updated

    def advance_station(self, order_id: str, station: Station) -> PendingOrder:
        order = self.get(order_id)
        current = order.station_statuses.get(station)
        if current not in NEXT_STATUS:
            raise InvalidTransitionError(
                station.value, current.value if current else None, "next",
                message=f"Station '{station.value}' has nothing further to do on ticket {order.ticket_number}",
            )
        return self.set_station_status(order_id, station, NEXT_STATUS[current])

    def archive(self, order_id: str) -> PendingOrder:
        """Complete a ticket from the master view, whatever its station statuses."""
        order = self._orders.pop(order_id, None)
        if order is None:
            raise UnknownOrderError(order_id)
        not_ready = [s.value for s, st in order.station_statuses.items() if st != OrderStatus.READY]
        if not_ready:
            logger.info(f"Ticket {order.ticket_number} archived with stations still open: {', '.join(not_ready)}")
        return order.model_copy(update={"status": OrderStatus.COMPLETED})

    def remove(self, order_id: str) -> Optional[PendingOrder]:
        """Drop a ticket that was settled at the till. Missing tickets are ignored."""
        return self._orders.pop(order_id, None)
