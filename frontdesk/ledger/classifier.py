"""
Entry Classifier – decides whether a raw ledger row is a charge or a receipt
and which payment channel it belongs to.

Rows are read straight from the store, so ``kind`` and ``channel`` are plain
strings here and may hold values this code has never seen.
"""
import math
from typing import Any, Mapping, NamedTuple, Optional

from frontdesk.errors import MalformedEntryError
from frontdesk.models.ledger import CHARGE_KINDS, RECEIPT_CHANNELS, RECEIPT_KINDS, PaymentChannel


class Classification(NamedTuple):
    is_charge: bool
    is_receipt: bool
    channel: Optional[str]
    amount: float
    kind: Any = None

    @property
    def unclassified(self) -> bool:
        return not (self.is_charge or self.is_receipt)


def _entry_id(entry: Mapping) -> Optional[str]:
    value = entry.get("_id") or entry.get("id")
    return str(value) if value is not None else None


def classify(entry: Mapping) -> Classification:
    """
    Classify one ledger row.

    Charges are always counted by magnitude because some producers store
    purchase charges as negative numbers. Unknown kinds come back with both
    flags false; the caller decides how to surface them.
    """
    kind = entry.get("kind", entry.get("type"))
    try:
        amount = float(entry.get("amount", 0) or 0)
    except (TypeError, ValueError):
        raise MalformedEntryError(
            f"Ledger entry {_entry_id(entry)} has a non-numeric amount",
            entry_id=_entry_id(entry),
        )
    if not math.isfinite(amount):
        raise MalformedEntryError(
            f"Ledger entry {_entry_id(entry)} has a non-finite amount",
            entry_id=_entry_id(entry),
        )

    if kind in RECEIPT_KINDS:
        channel = entry.get("channel", entry.get("mode"))
        if channel == PaymentChannel.NOT_APPLICABLE.value:
            return Classification(False, True, channel, amount, kind)
        if channel not in RECEIPT_CHANNELS:
            raise MalformedEntryError(
                f"Receipt entry {_entry_id(entry)} has no valid payment channel",
                entry_id=_entry_id(entry),
                channel=channel,
            )
        return Classification(False, True, channel, amount, kind)

    if kind in CHARGE_KINDS:
        return Classification(True, False, PaymentChannel.NOT_APPLICABLE.value, abs(amount), kind)

    return Classification(False, False, None, amount, kind)
