from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class AddonOption(BaseModel):
    """A selectable option inside an addon group."""
    id: str = Field(description="Unique option identifier")
    name: str = Field(description="Option display name")
    price: float = Field(default=0.0, description="Price delta added to the base product price")


class AddonGroup(BaseModel):
    """A group of addon options attached to a product (e.g. Size, Milk)."""
    id: str = Field(description="Unique group identifier")
    name: str = Field(description="Group display name")
    required: bool = Field(default=False, description="At least one option must be chosen")
    multiple: bool = Field(default=False, description="More than one option may be chosen")
    options: List[AddonOption] = Field(default_factory=list, description="Ordered list of options")


class Product(BaseModel):
    """Catalog product as seen by the order engine."""
    id: str = Field(description="Unique product identifier")
    name: str = Field(description="Product name")
    price: float = Field(ge=0, description="Base unit price")
    category: str = Field(default="Other", description="Product category, also used for station routing")
    description: Optional[str] = Field(default=None, description="Free-text description")
    barcode: Optional[str] = Field(default=None, description="Barcode / SKU")
    addons: List[AddonGroup] = Field(default_factory=list, description="Addon groups offered with the product")
    track_inventory: bool = Field(default=False, description="Whether stock limits apply")
    stock: int = Field(default=0, ge=0, description="Units on hand")
    min_stock: int = Field(default=0, ge=0, description="Low-stock warning threshold")
    is_available: bool = Field(default=True, description="Manual availability toggle")
    points_price: Optional[int] = Field(default=None, ge=0, description="Loyalty points needed to redeem as a reward")

    @property
    def is_out_of_stock(self) -> bool:
        return self.track_inventory and self.stock <= 0

    @property
    def is_low_stock(self) -> bool:
        return self.track_inventory and self.stock <= self.min_stock
