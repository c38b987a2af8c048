from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Member(BaseModel):
    """Loyalty member. Owned by the member store; the engine reads the balance only."""
    id: str = Field(description="Unique member identifier")
    name: str = Field(default="", description="Member display name")
    member_code: Optional[str] = Field(default=None, description="Printed membership code")
    phone: Optional[str] = Field(default=None, description="Contact phone number")
    points: int = Field(default=0, ge=0, description="Current points balance")
    is_frozen: bool = Field(default=False, description="Frozen accounts cannot earn or redeem")
