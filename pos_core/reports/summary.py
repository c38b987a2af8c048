# pos_core/reports/summary.py
from __future__ import annotations

from typing import Iterable, List

import pandas as pd
from pydantic import BaseModel

from ..data.models import Product, Transaction


class SalesSummary(BaseModel):
    """Aggregate KPIs over a set of settled transactions."""
    orders: int              # number of transactions
    units: int               # SUM(quantity) over all lines
    revenue: float           # SUM(total), tax included
    tax: float               # SUM(tax_total)
    discounts: float         # SUM(discount)
    points_earned: int
    points_redeemed: int


def _orders_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "transaction_id": tx.id,
            "order_number": tx.order_number,
            "timestamp": tx.timestamp,
            "total": tx.total,
            "tax_total": tx.tax_total,
            "discount": tx.discount,
            "points_earned": tx.points_earned,
            "points_redeemed": tx.points_redeemed,
            "units": sum(i.quantity for i in tx.items),
        }
        for tx in transactions
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "transaction_id", "order_number", "timestamp", "total", "tax_total",
            "discount", "points_earned", "points_redeemed", "units",
        ],
    )


def _lines_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = []
    for tx in transactions:
        for item in tx.items:
            unit = item.price + sum(a.price for a in item.selected_addons)
            rows.append(
                {
                    "transaction_id": tx.id,
                    "product_id": item.product_id,
                    "product_name": item.name,
                    "category": item.category,
                    "qty": item.quantity,
                    "extended_price": unit * item.quantity,
                }
            )
    return pd.DataFrame(
        rows, columns=["transaction_id", "product_id", "product_name", "category", "qty", "extended_price"]
    )


def sales_summary(transactions: Iterable[Transaction]) -> SalesSummary:
    df = _orders_frame(transactions)
    if df.empty:
        return SalesSummary(
            orders=0, units=0, revenue=0.0, tax=0.0, discounts=0.0, points_earned=0, points_redeemed=0
        )
    return SalesSummary(
        orders=int(df["transaction_id"].nunique()),
        units=int(df["units"].sum()),
        revenue=float(df["total"].sum()),
        tax=float(df["tax_total"].sum()),
        discounts=float(df["discount"].sum()),
        points_earned=int(df["points_earned"].sum()),
        points_redeemed=int(df["points_redeemed"].sum()),
    )


def payments_breakdown(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Amount taken per payment method, largest first. Change is not deducted."""
    rows = [
        {"method_id": p.method_id, "method_name": p.method_name, "amount": p.amount}
        for tx in transactions
        for p in tx.payments
    ]
    if not rows:
        return pd.DataFrame(columns=["method_id", "method_name", "amount", "count"])

    df = pd.DataFrame(rows)
    agg = (
        df.groupby(["method_id", "method_name"], as_index=False)
          .agg(amount=("amount", "sum"), count=("amount", "size"))
          .sort_values("amount", ascending=False)
    )
    return agg.reset_index(drop=True)


def top_products(transactions: Iterable[Transaction], n: int = 10) -> pd.DataFrame:
    """Best sellers by line revenue (before order-level discounts and tax)."""
    flt = _lines_frame(transactions)
    if flt.empty:
        return pd.DataFrame(columns=["product_id", "product_name", "item_count", "revenue"])

    agg = (
        flt.groupby(["product_id", "product_name"], as_index=False)
           .agg(item_count=("qty", "sum"), revenue=("extended_price", "sum"))
           .sort_values(["revenue", "item_count"], ascending=False)
           .head(int(n))
    )
    return agg.reset_index(drop=True)


def low_stock(products: Iterable[Product]) -> List[Product]:
    """Tracked products at or under their warning threshold, emptiest first."""
    return sorted((p for p in products if p.is_low_stock), key=lambda p: (p.stock, p.name))
