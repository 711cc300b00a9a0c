"""
Booking Ledger Aggregator – folds a booking's sub-ledger and shop purchases
into total charges, total receipts and the pending balance.

The itemized entry log is the only source of receipts. The booking's
``amount_received`` counter is informational and never read here.
"""
import math
from typing import Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from frontdesk.errors import MalformedEntryError, UnclassifiedEntryError
from frontdesk.ledger.classifier import classify
from frontdesk.models.ledger import EntryKind, PaymentChannel, RECEIPT_CHANNELS
from frontdesk.utils.helpers import money


class LedgerSummary(BaseModel):
    total_charges: float
    total_receipts: float
    pending: float
    base_charge: float
    charges_from_entries: float
    shop_total: float
    cash_received: float
    gpay_received: float
    excluded_receipts: List[str] = Field(default_factory=list)

    @property
    def current_rent(self) -> float:
        """Check-in rent plus every extension / fee / mirrored purchase so far"""
        return money(self.base_charge + self.charges_from_entries)


def _doc_id(doc: Mapping) -> Optional[str]:
    value = doc.get("_id") or doc.get("id")
    return str(value) if value is not None else None


def base_charge(booking: Mapping, charges_from_entries: float) -> float:
    """
    Check-in rent of the booking.

    Bookings written by this service keep it in ``base_rent``. Older documents
    only have a ``rent`` figure that already includes every charge entry, so
    the entries are subtracted back out instead of being counted twice.
    """
    if booking.get("base_rent") is not None:
        return money(booking["base_rent"])
    return money(float(booking.get("rent", 0) or 0) - charges_from_entries)


def reconcile(booking: Mapping, entries: Iterable[Mapping], purchases: Iterable[Mapping] = ()) -> LedgerSummary:
    """
    Compute charges, receipts and pending balance for one booking.

    Pure function of its inputs: nothing passed in is mutated and the same
    inputs always give the same summary. Raises ``UnclassifiedEntryError``
    rather than silently leaving an unknown row out of the totals.
    """
    charges = 0.0
    receipts = {PaymentChannel.CASH.value: 0.0, PaymentChannel.GPAY.value: 0.0}
    excluded: List[str] = []
    mirrored_purchases = set()

    for entry in entries:
        result = classify(entry)
        if result.unclassified:
            raise UnclassifiedEntryError(_doc_id(entry), result.kind)

        if result.is_charge:
            charges += result.amount
            if result.kind == EntryKind.SHOP_PURCHASE.value and entry.get("reference_id"):
                mirrored_purchases.add(str(entry["reference_id"]))
        elif result.channel in RECEIPT_CHANNELS:
            receipts[result.channel] += result.amount
        else:
            excluded.append(_doc_id(entry) or "<unsaved>")

    shop_total = sum(
        abs(float(p.get("amount", 0) or 0))
        for p in purchases
        if _doc_id(p) not in mirrored_purchases
    )

    base = base_charge(booking, charges)
    total_charges = money(base + charges + shop_total)
    total_receipts = money(sum(receipts.values()))
    if not (math.isfinite(total_charges) and math.isfinite(total_receipts)):
        raise MalformedEntryError("Booking totals are not finite", booking_id=_doc_id(booking))

    return LedgerSummary(
        total_charges=total_charges,
        total_receipts=total_receipts,
        pending=max(0.0, money(total_charges - total_receipts)),
        base_charge=base,
        charges_from_entries=money(charges),
        shop_total=money(shop_total),
        cash_received=money(receipts[PaymentChannel.CASH.value]),
        gpay_received=money(receipts[PaymentChannel.GPAY.value]),
        excluded_receipts=excluded,
    )
