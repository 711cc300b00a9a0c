"""
Typed errors raised by the ledger and lifecycle services.

Routers never catch these; ``frontdesk.main`` maps each class to an HTTP
status so callers always get the amounts and ids needed for a useful message.
"""
from typing import Any, Dict, Optional


class FrontDeskError(Exception):
    """Base class; ``detail`` is merged into the error response body."""

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail


class ValidationError(FrontDeskError, ValueError):
    """Caller supplied an invalid argument. Always raised before any write."""


class MalformedEntryError(ValidationError):
    """A stored ledger row has a non-finite amount or no usable payment channel."""


class NotFoundError(FrontDeskError):
    """Referenced room, booking or advance booking does not exist."""


class PreconditionError(FrontDeskError):
    """A lifecycle guard failed, e.g. checkout with a pending balance."""

    def __init__(self, message: str, pending: Optional[float] = None, booking_id: Optional[str] = None, **detail: Any):
        if pending is not None:
            detail["pending"] = pending
        if booking_id is not None:
            detail["booking_id"] = booking_id
        super().__init__(message, **detail)
        self.pending = pending
        self.booking_id = booking_id


class UnclassifiedEntryError(FrontDeskError):
    """Reconciliation met a ledger entry kind it does not know how to count."""

    def __init__(self, entry_id: Optional[str], kind: Any):
        super().__init__(
            f"Ledger entry {entry_id or '<unsaved>'} has unknown kind {kind!r}",
            entry_id=entry_id,
            kind=kind,
        )
        self.entry_id = entry_id
        self.kind = kind


class StoreFailure(FrontDeskError):
    """The document store could not complete a read or write."""
