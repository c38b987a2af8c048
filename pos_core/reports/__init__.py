from .summary import SalesSummary, low_stock, payments_breakdown, sales_summary, top_products

__all__ = ["SalesSummary", "sales_summary", "payments_breakdown", "top_products", "low_stock"]
