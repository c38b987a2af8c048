"""
Commands accepted by the terminal.

Each user action is one tagged model; `Command` is the discriminated union
over all of them, so a command can arrive as a plain dict (e.g. from a UI
bridge) and be validated with `parse_command`.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..data.models import CartItem, OrderStatus, Station


# ---- Order sessions ----

class CreateSession(BaseModel):
    kind: Literal["create_session"] = "create_session"


class RemoveSession(BaseModel):
    kind: Literal["remove_session"] = "remove_session"
    session_id: str


class RenameSession(BaseModel):
    kind: Literal["rename_session"] = "rename_session"
    session_id: str
    name: str = Field(min_length=1)


class SwitchSession(BaseModel):
    kind: Literal["switch_session"] = "switch_session"
    session_id: str


class ImportKioskOrder(BaseModel):
    kind: Literal["import_kiosk_order"] = "import_kiosk_order"
    order_id: str


# ---- Cart contents (applied to the active session) ----

class AddItem(BaseModel):
    kind: Literal["add_item"] = "add_item"
    product_id: str
    addon_ids: List[str] = Field(default_factory=list)
    quantity: int = Field(default=1, ge=1)
    note: str = ""
    is_reward: bool = False


class UpdateQuantity(BaseModel):
    kind: Literal["update_quantity"] = "update_quantity"
    line_key: str
    delta: int


class RemoveLine(BaseModel):
    kind: Literal["remove_line"] = "remove_line"
    line_key: str


class ClearCart(BaseModel):
    kind: Literal["clear_cart"] = "clear_cart"


class SetLineNote(BaseModel):
    kind: Literal["set_line_note"] = "set_line_note"
    line_key: str
    note: str = ""


CartChange = Union[AddItem, UpdateQuantity, RemoveLine, ClearCart, SetLineNote]


# ---- Loyalty / discounts ----

class AssignMember(BaseModel):
    kind: Literal["assign_member"] = "assign_member"
    member_id: Optional[str] = None


class ApplyCoupon(BaseModel):
    kind: Literal["apply_coupon"] = "apply_coupon"
    code: str


class RemoveCoupon(BaseModel):
    kind: Literal["remove_coupon"] = "remove_coupon"


class RedeemPoints(BaseModel):
    kind: Literal["redeem_points"] = "redeem_points"
    points: int = Field(ge=0)


class SetOrderNote(BaseModel):
    kind: Literal["set_order_note"] = "set_order_note"
    note: str = ""


# ---- Kitchen ----

class SubmitKioskOrder(BaseModel):
    kind: Literal["submit_kiosk_order"] = "submit_kiosk_order"
    items: List[CartItem] = Field(min_length=1)
    customer_name: str = ""
    table_number: Optional[str] = None


class AdvanceStation(BaseModel):
    kind: Literal["advance_station"] = "advance_station"
    order_id: str
    station: Station


class SetStationStatus(BaseModel):
    kind: Literal["set_station_status"] = "set_station_status"
    order_id: str
    station: Station
    status: OrderStatus


class ArchiveTicket(BaseModel):
    kind: Literal["archive_ticket"] = "archive_ticket"
    order_id: str


# ---- Payment ----

class AddPayment(BaseModel):
    kind: Literal["add_payment"] = "add_payment"
    method_id: str
    amount: float = Field(gt=0)


class ClearPayments(BaseModel):
    kind: Literal["clear_payments"] = "clear_payments"


class Settle(BaseModel):
    kind: Literal["settle"] = "settle"


class SyncNow(BaseModel):
    kind: Literal["sync_now"] = "sync_now"


Command = Annotated[
    Union[
        CreateSession, RemoveSession, RenameSession, SwitchSession, ImportKioskOrder,
        AddItem, UpdateQuantity, RemoveLine, ClearCart, SetLineNote,
        AssignMember, ApplyCoupon, RemoveCoupon, RedeemPoints, SetOrderNote,
        SubmitKioskOrder, AdvanceStation, SetStationStatus, ArchiveTicket,
        AddPayment, ClearPayments, Settle, SyncNow,
    ],
    Field(discriminator="kind"),
]

_command_adapter = TypeAdapter(Command)


def parse_command(raw: Any) -> BaseModel:
    """Validate a dict (or JSON-compatible object) into the matching command model."""
    return _command_adapter.validate_python(raw)


class CommandResult(BaseModel):
    """What the terminal reports back for a dispatched command."""
    ok: bool
    reason: Optional[str] = None
    payload: Any = None

    @classmethod
    def success(cls, payload: Any = None) -> "CommandResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def refused(cls, reason: Optional[str]) -> "CommandResult":
        return cls(ok=False, reason=reason)
