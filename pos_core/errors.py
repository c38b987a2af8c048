"""
Exceptions raised by the order lifecycle engine.

Cart admission refusals (out of stock, not enough points) are not exceptions;
they come back as an ``Admission`` value. The classes here cover calls that
cannot be honoured at all.
"""


class PosError(Exception):
    """Base exception for point-of-sale engine errors."""
    pass


class SettlementError(PosError):
    """Raised when a settlement is refused or could not be committed."""

    def __init__(self, message, session_id=None):
        self.session_id = session_id
        super().__init__(message)


class UnknownSessionError(PosError, LookupError):
    """Raised when an order session id does not exist."""

    def __init__(self, session_id, message=None):
        self.session_id = session_id
        if message is None:
            message = f"No open order session with id '{session_id}'"
        super().__init__(message)


class UnknownOrderError(PosError, LookupError):
    """Raised when a kitchen ticket id is not in the pending set."""

    def __init__(self, order_id, message=None):
        self.order_id = order_id
        if message is None:
            message = f"No pending kitchen ticket with id '{order_id}'"
        super().__init__(message)


class UnknownProductError(PosError, LookupError):
    """Raised when a product id is not in the catalog."""

    def __init__(self, product_id, message=None):
        self.product_id = product_id
        if message is None:
            message = f"Product '{product_id}' is not in the catalog"
        super().__init__(message)


class UnknownMemberError(PosError, LookupError):
    """Raised when a member id is not known to the member store."""

    def __init__(self, member_id, message=None):
        self.member_id = member_id
        if message is None:
            message = f"Member '{member_id}' not found"
        super().__init__(message)


class InvalidTransitionError(PosError):
    """Raised when a station status change is not allowed by the state machine."""

    def __init__(self, station, current, requested, message=None):
        self.station = station
        self.current = current
        self.requested = requested
        if message is None:
            message = f"Station '{station}' cannot move from '{current}' to '{requested}'"
        super().__init__(message)


class SyncError(PosError):
    """Raised by sync collaborators when a push or pull fails."""
    pass
