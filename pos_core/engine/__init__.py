from .admission import Admission
from .pricing import PriceBreakdown, PaymentSummary, price, reconcile
from .sessions import SessionManager, SessionState
from .kitchen import KitchenEngine, aggregate_status, station_for
from .settlement import Cashier, SettlementEngine
from .sync import SyncScheduler, SyncStatus, pull_and_apply
from .terminal import Terminal, Quote

__all__ = [
    "Admission",
    "PriceBreakdown",
    "PaymentSummary",
    "price",
    "reconcile",
    "SessionManager",
    "SessionState",
    "KitchenEngine",
    "aggregate_status",
    "station_for",
    "Cashier",
    "SettlementEngine",
    "SyncScheduler",
    "SyncStatus",
    "pull_and_apply",
    "Terminal",
    "Quote",
]
