from .products import AddonOption, AddonGroup, Product
from .members import Member
from .coupons import Coupon
from .cart import CartItem, HeldCart, make_line_key
from .orders import OrderStatus, Station, PendingOrder
from .transactions import PaymentDetail, Transaction
from .settings import (
    TaxRateConfig,
    PaymentMethodConfig,
    MembershipConfig,
    ShopSettings,
)
from .snapshot import StoreSnapshot

__all__ = [
    # Catalog
    "AddonOption",
    "AddonGroup",
    "Product",
    # Loyalty
    "Member",
    "Coupon",
    # Order sessions
    "CartItem",
    "HeldCart",
    "make_line_key",
    # Kitchen
    "OrderStatus",
    "Station",
    "PendingOrder",
    # Settlement
    "PaymentDetail",
    "Transaction",
    # Shop configuration
    "TaxRateConfig",
    "PaymentMethodConfig",
    "MembershipConfig",
    "ShopSettings",
    # Sync
    "StoreSnapshot",
]
