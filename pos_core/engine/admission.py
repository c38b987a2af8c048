from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Admission(BaseModel):
    """Outcome of a pre-mutation check. A denial means the cart was left as it was."""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Admission":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Admission":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed
