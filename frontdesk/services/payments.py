"""
Payments desk – the global payment log, daily totals and cash/gpay collection.

Receipts are read from every booking's sub-ledger. Global payment records
add what has no ledger entry: advance-booking deposits and refunds. Records
flagged ``mirrors_ledger`` duplicate a ledger receipt and are skipped, and
so are ledger entries funded by an advance deposit.
"""
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional

from frontdesk.database.store import FrontDeskStore
from frontdesk.errors import PreconditionError
from frontdesk.ledger.classifier import classify
from frontdesk.models.ledger import PaymentChannel, RECEIPT_CHANNELS, RECEIPT_KINDS
from frontdesk.utils.clock import Clock
from frontdesk.utils.helpers import as_utc, local_day_bounds, money

logger = logging.getLogger(__name__)


def _counted_receipts(entries: Iterable[Mapping]) -> List[Dict]:
    counted = []
    for entry in entries:
        if entry.get("advance_booking_id"):
            continue
        result = classify(entry)
        if result.is_receipt and result.channel in RECEIPT_CHANNELS and result.amount > 0:
            counted.append({"entry": entry, "channel": result.channel, "amount": result.amount})
    return counted


def _counted_records(records: Iterable[Mapping]) -> List[Mapping]:
    return [r for r in records if not r.get("mirrors_ledger") and r.get("mode") in RECEIPT_CHANNELS]


def _totals(receipts: List[Dict], records: List[Mapping]) -> Dict[str, float]:
    cash = gpay = refunds = 0.0
    for receipt in receipts:
        if receipt["channel"] == PaymentChannel.CASH.value:
            cash += receipt["amount"]
        else:
            gpay += receipt["amount"]
    for record in records:
        amount = float(record.get("amount", 0) or 0)
        if amount < 0:
            refunds += -amount
            continue
        if record["mode"] == PaymentChannel.CASH.value:
            cash += amount
        else:
            gpay += amount
    return {
        "cash": money(cash),
        "gpay": money(gpay),
        "refunds": money(refunds),
        "total": money(cash + gpay - refunds),
    }


async def list_payments(store: FrontDeskStore, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict]:
    """Global payment log, newest first"""
    start = as_utc(start) if start else None
    end = as_utc(end) if end else None
    records = await store.list_global_payments(start, end)
    return sorted(records, key=lambda r: as_utc(r["timestamp"]), reverse=True)


async def daily_totals(store: FrontDeskStore, day: date) -> Dict:
    """Cash and gpay taken on one calendar day in the property's timezone"""
    start, end = local_day_bounds(day)
    entries = await store.list_entries_between(start, end, kinds=RECEIPT_KINDS)
    receipts = _counted_receipts(entries)
    records = _counted_records(await store.list_global_payments(start, end))

    bookings: Dict[str, Optional[Mapping]] = {}
    lines = []
    for receipt in receipts:
        entry = receipt["entry"]
        booking_id = entry["booking_id"]
        if booking_id not in bookings:
            bookings[booking_id] = await store.get_booking(booking_id)
        booking = bookings[booking_id] or {}
        lines.append({
            "timestamp": entry.get("timestamp"),
            "customer_name": booking.get("guest_name"),
            "location": booking.get("room_number") or booking.get("house_name"),
            "type": entry.get("kind"),
            "mode": receipt["channel"],
            "amount": money(receipt["amount"]),
            "booking_id": booking_id,
        })
    for record in records:
        lines.append({
            "timestamp": record.get("timestamp"),
            "customer_name": record.get("customer_name"),
            "location": record.get("room_number"),
            "type": record.get("type"),
            "mode": record.get("mode"),
            "amount": money(record.get("amount")),
            "booking_id": record.get("booking_id"),
        })
    lines.sort(key=lambda line: as_utc(line["timestamp"]))

    return {"date": day.isoformat(), **_totals(receipts, records), "payments": lines}


async def pending_collection(store: FrontDeskStore) -> Dict:
    """Cash and gpay taken since the last collection was logged"""
    logs = await store.list_collection_logs(limit=1)
    since = as_utc(logs[0]["collected_at"]) if logs else None

    def after_last_collection(doc: Mapping) -> bool:
        return since is None or as_utc(doc["timestamp"]) > since

    entries = await store.list_entries_between(since, None, kinds=RECEIPT_KINDS)
    receipts = _counted_receipts(e for e in entries if after_last_collection(e))
    records = _counted_records(r for r in await store.list_global_payments(since, None) if after_last_collection(r))
    totals = _totals(receipts, records)
    return {
        "since": since,
        "cash": totals["cash"],
        "gpay": totals["gpay"],
        "refunds": totals["refunds"],
        "total": totals["total"],
    }


async def collect(store: FrontDeskStore, clock: Clock) -> Dict:
    pending = await pending_collection(store)
    if not (pending["cash"] or pending["gpay"] or pending["refunds"]):
        raise PreconditionError("No pending amounts to collect")
    log = await store.append_collection_log({
        "cash_amount": pending["cash"],
        "gpay_amount": pending["gpay"],
        "refund_amount": pending["refunds"],
        "total_amount": pending["total"],
        "collected_at": clock.now(),
        "since": pending["since"],
    })
    logger.info("Collected cash %.2f, gpay %.2f", pending["cash"], pending["gpay"])
    return log
