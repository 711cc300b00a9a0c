"""
Payment statement – the itemized history shown at the desk for one booking
"""
from typing import Dict, Iterable, List, Mapping

from frontdesk.ledger.classifier import classify
from frontdesk.ledger.aggregator import LedgerSummary
from frontdesk.models.ledger import EntryKind, PaymentChannel
from frontdesk.utils.helpers import money

PROCESS_LABELS = {
    EntryKind.INITIAL.value: "Initial Payment",
    EntryKind.ADVANCE.value: "Additional Payment",
    EntryKind.EXTENSION.value: "Extension",
    EntryKind.EXTRA_FEE.value: "Extra Fee",
    EntryKind.SHOP_PURCHASE.value: "Shop Purchase",
}


def build_statement(booking: Mapping, entries: Iterable[Mapping], summary: LedgerSummary) -> List[Dict]:
    """
    Rent line for the check-in charge followed by every ledger entry in order.

    Each line fills at most one of rent / cash / gpay. Call after
    ``reconcile`` so unknown kinds have already been rejected.
    """
    lines = [{
        "id": "rent-entry",
        "process": "Check-in",
        "timestamp": booking.get("checked_in_at"),
        "description": "Rent (Check-in)",
        "rent": summary.base_charge,
        "cash": None,
        "gpay": None,
    }]

    for entry in entries:
        result = classify(entry)
        line = {
            "id": str(entry.get("_id", "")),
            "process": PROCESS_LABELS.get(result.kind, str(result.kind)),
            "timestamp": entry.get("timestamp"),
            "description": entry.get("description"),
            "rent": None,
            "cash": None,
            "gpay": None,
        }
        if result.is_charge:
            line["rent"] = money(result.amount)
        elif result.channel == PaymentChannel.CASH.value:
            line["cash"] = money(result.amount)
        elif result.channel == PaymentChannel.GPAY.value:
            line["gpay"] = money(result.amount)
        lines.append(line)

    return lines
