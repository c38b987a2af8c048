"""
seed_data.py

Demo catalog, members and shop settings for a small coffee shop, used to
bring up a terminal with something to sell when no collaborator data exists.

Entities:
- products (with a Size/Milk addon setup on the espresso drinks), members, shop settings
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from .backends.memory_backend import InMemoryStore
from .models import (
    AddonGroup,
    AddonOption,
    Coupon,
    Member,
    MembershipConfig,
    PaymentMethodConfig,
    Product,
    ShopSettings,
    TaxRateConfig,
)
from ..config import get_config

# -----------------------------
# Catalog
# -----------------------------

COFFEE_ADDONS = [
    AddonGroup(
        id="size",
        name="Size",
        required=True,
        multiple=False,
        options=[
            AddonOption(id="size-regular", name="Regular", price=0.0),
            AddonOption(id="size-large", name="Large", price=0.5),
        ],
    ),
    AddonGroup(
        id="milk",
        name="Milk",
        required=False,
        multiple=False,
        options=[
            AddonOption(id="milk-oat", name="Oat", price=0.6),
            AddonOption(id="milk-soy", name="Soy", price=0.5),
        ],
    ),
    AddonGroup(
        id="extras",
        name="Extras",
        required=False,
        multiple=True,
        options=[
            AddonOption(id="extra-shot", name="Extra shot", price=0.8),
            AddonOption(id="extra-syrup", name="Vanilla syrup", price=0.4),
        ],
    ),
]


def demo_products() -> List[Product]:
    return [
        Product(id="1", name="Espresso", price=2.50, category="Coffee", addons=COFFEE_ADDONS),
        Product(id="2", name="Latte", price=3.50, category="Coffee", addons=COFFEE_ADDONS, points_price=300),
        Product(id="3", name="Cappuccino", price=3.50, category="Coffee", addons=COFFEE_ADDONS),
        Product(id="4", name="Iced Americano", price=3.00, category="Coffee"),
        Product(id="5", name="Blueberry Muffin", price=2.75, category="Bakery",
                track_inventory=True, stock=12, min_stock=3),
        Product(id="6", name="Croissant", price=2.50, category="Bakery",
                track_inventory=True, stock=10, min_stock=3),
        Product(id="7", name="Avocado Toast", price=6.50, category="Food"),
        Product(id="8", name="Sparkling Water", price=1.50, category="Drinks",
                track_inventory=True, stock=24, min_stock=6),
    ]


def demo_members() -> List[Member]:
    return [
        Member(id="m-1", name="Alex Tan", member_code="M0001", phone="0123456789", points=500),
        Member(id="m-2", name="Sam Lee", member_code="M0002", phone="0198765432", points=40),
    ]


def default_shop_settings() -> ShopSettings:
    """Build ShopSettings from AppConfig defaults."""
    config = get_config()
    return ShopSettings(
        shop_name=config.shop_name,
        currency=config.currency,
        order_prefix=config.order_prefix,
        hide_out_of_stock=config.hide_out_of_stock,
        tax_rates=[TaxRateConfig(id="sst", name="Service Tax", rate=6.0, enabled=False)],
        payment_methods=[
            PaymentMethodConfig(id="cash", name="Cash", type="cash"),
            PaymentMethodConfig(id="card", name="Card", type="card"),
            PaymentMethodConfig(id="ewallet", name="E-Wallet", type="digital"),
        ],
        coupons=[
            Coupon(code="WELCOME10", type="percent", value=10),
            Coupon(code="FIVEOFF", type="fixed", value=5, min_order=20),
        ],
        membership=MembershipConfig(
            enabled=config.membership_enabled,
            earn_rate=config.default_earn_rate,
            redeem_rate=config.default_redeem_rate,
        ),
    )


def seed_store() -> InMemoryStore:
    """Create an InMemoryStore holding the demo data."""
    settings = default_shop_settings()
    return InMemoryStore(products=demo_products(), members=demo_members(), settings=settings)


# -----------------------------
# Main
# -----------------------------

def main(argv: Optional[List[str]] = None) -> int:
    config = get_config()

    parser = argparse.ArgumentParser(description="Write the demo store as a snapshot JSON file.")
    parser.add_argument("--output", type=str, default="demo_snapshot.json")
    parser.add_argument("--terminal-id", type=str, default=config.terminal_id)
    parser.add_argument("--no-overwrite", action="store_true", help="Fail if the file already exists.")
    args = parser.parse_args(argv)

    if args.no_overwrite and os.path.exists(args.output):
        print(f"Refusing to overwrite existing file: {args.output}", file=sys.stderr)
        return 2

    store = seed_store()
    snapshot = store.to_snapshot(args.terminal_id, store.settings)
    with open(args.output, "w", encoding="utf-8") as f:
        f.write(snapshot.model_dump_json(indent=2))

    print(f"Wrote demo snapshot to {args.output}")
    print(f" products: {len(snapshot.products)} | members: {len(snapshot.members)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
