"""
Booking Lifecycle Controller – the state machine for rooms, room/house stays
and advance bookings.

Room:     available -> occupied -> extension_due -> occupied (extend)
          occupied | extension_due -> cleaning (checkout) -> available
Advance:  pending -> completed | cancelled

Every operation checks all of its preconditions first and only then opens a
store transaction for the writes, so a rejected call leaves no trace.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from fastapi import Depends

from frontdesk.config.settings import settings
from frontdesk.database.mongo_store import get_store
from frontdesk.database.store import FrontDeskStore
from frontdesk.errors import NotFoundError, PreconditionError, ValidationError
from frontdesk.ledger import expiry
from frontdesk.ledger.aggregator import LedgerSummary, reconcile
from frontdesk.ledger.statement import build_statement
from frontdesk.models.advance_booking import AdvanceBookingStatus
from frontdesk.models.ledger import EntryKind, LedgerEntry, PaymentChannel, RECEIPT_CHANNELS
from frontdesk.models.room import RoomStatus, RoomType
from frontdesk.utils.clock import Clock, get_clock
from frontdesk.utils.helpers import as_utc, money

logger = logging.getLogger(__name__)

GUEST_FIELDS = ("guest_name", "phone_number", "id_number")


def normalize_room_type(room_type: str) -> str:
    """'NON AC' on a reservation matches rooms typed 'non-ac'"""
    return (room_type or "").strip().lower().replace(" ", "-")


def split_evenly(total: float, parts: int) -> List[float]:
    """
    Split an amount into ``parts`` shares that sum exactly to ``total``.
    Works in paise; leftover paise go to the first shares.
    """
    paise = int(round(float(total) * 100))
    share, remainder = divmod(paise, parts)
    return [(share + (1 if i < remainder else 0)) / 100 for i in range(parts)]


def _require_positive(amount, field: str) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field, value=value)
    return money(value)


def _require_non_negative(amount, field: str) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative", field=field, value=value)
    return money(value)


def _require_channel(channel) -> str:
    value = getattr(channel, "value", channel)
    if value not in RECEIPT_CHANNELS:
        raise ValidationError("Payment mode must be 'cash' or 'gpay'", field="payment_mode", value=value)
    return value


def _guest_fields(guest: Mapping) -> Dict:
    missing = [f for f in GUEST_FIELDS if not str(guest.get(f) or "").strip()]
    if missing:
        raise ValidationError(f"Missing guest details: {', '.join(missing)}", fields=missing)
    return {
        "guest_name": str(guest["guest_name"]).strip().upper(),
        "phone_number": str(guest["phone_number"]).strip(),
        "id_number": str(guest["id_number"]).strip().upper(),
        "number_of_guests": int(guest.get("number_of_guests") or 1),
        "ac_type": guest.get("ac_type") or "NON AC",
    }


class LifecycleController:

    def __init__(self, store: FrontDeskStore, clock: Clock):
        self.store = store
        self.clock = clock

    # ─── lookups ──────────────────────────────────────────────────────────────

    async def get_room(self, room_id: str) -> Dict:
        room = await self.store.get_room(room_id)
        if not room:
            raise NotFoundError("Room not found", room_id=room_id)
        return room

    async def get_booking(self, booking_id: str) -> Dict:
        booking = await self.store.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found", booking_id=booking_id)
        return booking

    async def get_active_booking(self, booking_id: str) -> Dict:
        booking = await self.get_booking(booking_id)
        if booking.get("is_checked_out"):
            raise PreconditionError("Booking is already checked out", booking_id=booking_id)
        return booking

    async def get_advance_booking(self, advance_id: str) -> Dict:
        advance = await self.store.get_advance_booking(advance_id)
        if not advance:
            raise NotFoundError("Advance booking not found", advance_booking_id=advance_id)
        return advance

    async def load_ledger(self, booking_id: str) -> Tuple[Dict, List[Dict], List[Dict], LedgerSummary]:
        booking = await self.get_booking(booking_id)
        entries = await self.store.list_ledger_entries(booking_id)
        purchases = await self.store.list_shop_purchases(booking_id) if booking.get("kind") == "room" else []
        return booking, entries, purchases, reconcile(booking, entries, purchases)

    async def reconcile_booking(self, booking_id: str) -> LedgerSummary:
        *_, summary = await self.load_ledger(booking_id)
        return summary

    async def ledger_view(self, booking_id: str) -> Dict:
        """Everything the desk shows for one stay: totals, statement lines and expiry"""
        booking, entries, purchases, summary = await self.load_ledger(booking_id)
        view = {
            "booking": booking,
            "summary": {**summary.model_dump(), "current_rent": summary.current_rent},
            "statement": build_statement(booking, entries, summary),
            "shop_purchases": purchases,
            "stay": None,
        }
        if not booking.get("is_checked_out"):
            view["stay"] = expiry.stay_status(booking, self.clock.now())
        return view

    # ─── check-in ─────────────────────────────────────────────────────────────

    async def _check_room_available(self, room_id: str) -> Dict:
        room = await self.store.get_room(room_id)
        if not room:
            raise NotFoundError("Room not found", room_id=room_id)
        if room.get("status") != RoomStatus.AVAILABLE.value:
            raise ValidationError(
                f"Room {room.get('room_number')} is not available (status: {room.get('status')})",
                room_id=room_id,
                status=room.get("status"),
            )
        if await self.store.list_active_bookings(room_id, kind="room"):
            raise ValidationError(f"Room {room.get('room_number')} already has an active booking", room_id=room_id)
        return room

    async def _write_room_check_in(
        self,
        tx: FrontDeskStore,
        room: Mapping,
        guest: Dict,
        rent: float,
        initial_receipt: float,
        channel: str,
        now: datetime,
        advance_booking_id: Optional[str] = None,
        description: str = "Initial payment at check-in",
    ) -> Dict:
        booking = {
            "kind": "room",
            "room_id": room["_id"],
            "room_number": room.get("room_number"),
            **guest,
            "base_rent": rent,
            "amount_received": initial_receipt,
            "payment_mode": channel,
            "checked_in_at": now,
            "last_extension_at": None,
            "is_checked_out": False,
            "checked_out_at": None,
        }
        if advance_booking_id:
            booking["advance_booking_id"] = advance_booking_id
        booking = await tx.create_booking(booking)

        entry = LedgerEntry(
            booking_id=booking["_id"],
            kind=EntryKind.INITIAL,
            amount=initial_receipt,
            channel=PaymentChannel(channel),
            timestamp=now,
            description=description,
            advance_booking_id=advance_booking_id,
        )
        await tx.append_ledger_entry(entry.to_document())

        flipped = await tx.write_room(room["_id"], {"status": RoomStatus.OCCUPIED.value}, expected_status=RoomStatus.AVAILABLE.value)
        if flipped is None:
            raise PreconditionError(f"Room {room.get('room_number')} was taken by another check-in", room_id=room["_id"])
        return booking

    async def check_in(self, room_id: str, guest: Mapping, rent, initial_receipt, channel) -> Dict:
        """Occupy an available room and record the receipt taken at the desk"""
        guest_doc = _guest_fields(guest)
        rent = _require_non_negative(rent, "rent")
        initial_receipt = _require_non_negative(initial_receipt, "initial_payment")
        channel = _require_channel(channel)
        room = await self._check_room_available(room_id)

        now = self.clock.now()
        async with self.store.transaction() as tx:
            booking = await self._write_room_check_in(tx, room, guest_doc, rent, initial_receipt, channel, now)

        logger.info("Checked in %s to room %s (booking %s)", guest_doc["guest_name"], room.get("room_number"), booking["_id"])
        return booking

    async def check_in_house(self, house_id: str, guest: Mapping, days_of_stay: int, rent, initial_receipt, channel) -> Dict:
        house = settings.get_house(house_id)
        if not house:
            raise NotFoundError("House not found", house_id=house_id)
        guest_doc = _guest_fields(guest)
        rent = _require_non_negative(rent, "rent")
        initial_receipt = _require_non_negative(initial_receipt, "initial_payment")
        channel = _require_channel(channel)
        if int(days_of_stay) < 1:
            raise ValidationError("days_of_stay must be at least 1", field="days_of_stay")
        if await self.store.list_active_bookings(house_id, kind="house"):
            raise ValidationError(f"{house['name']} is already booked", house_id=house_id)

        now = self.clock.now()
        async with self.store.transaction() as tx:
            booking = await tx.create_booking({
                "kind": "house",
                "house_id": house_id,
                "house_name": house["name"],
                **guest_doc,
                "days_of_stay": int(days_of_stay),
                "base_rent": rent,
                "amount_received": initial_receipt,
                "payment_mode": channel,
                "checked_in_at": now,
                "check_out_date": now + timedelta(days=int(days_of_stay)),
                "is_checked_out": False,
                "checked_out_at": None,
            })
            entry = LedgerEntry(
                booking_id=booking["_id"],
                kind=EntryKind.INITIAL,
                amount=initial_receipt,
                channel=PaymentChannel(channel),
                timestamp=now,
                description="Initial payment at check-in",
            )
            await tx.append_ledger_entry(entry.to_document())
            await tx.append_global_payment_record({
                "type": "check-in",
                "amount": initial_receipt,
                "mode": channel,
                "customer_name": guest_doc["guest_name"],
                "room_number": house["name"],
                "booking_id": booking["_id"],
                "note": f"House check-in: {house['name']}",
                "description": f"Initial payment for {house['name']}",
                "payment_status": "completed",
                "mirrors_ledger": True,
                "timestamp": now,
            })

        logger.info("Checked in %s to %s (booking %s)", guest_doc["guest_name"], house["name"], booking["_id"])
        return booking

    # ─── receipts, extensions, fees ───────────────────────────────────────────

    async def add_receipt(self, booking_id: str, amount, channel) -> Dict:
        amount = _require_positive(amount, "amount")
        channel = _require_channel(channel)
        booking = await self.get_active_booking(booking_id)

        now = self.clock.now()
        async with self.store.transaction() as tx:
            entry = LedgerEntry(
                booking_id=booking_id,
                kind=EntryKind.ADVANCE,
                amount=amount,
                channel=PaymentChannel(channel),
                timestamp=now,
                description="Additional payment",
            )
            await tx.append_ledger_entry(entry.to_document())
            updated = await tx.update_booking(booking_id, {
                "amount_received": money(float(booking.get("amount_received", 0) or 0) + amount),
            })
            if booking.get("kind") == "house":
                await tx.append_global_payment_record({
                    "type": "advance",
                    "amount": amount,
                    "mode": channel,
                    "customer_name": booking.get("guest_name"),
                    "room_number": booking.get("house_name"),
                    "booking_id": booking_id,
                    "note": f"Additional payment for {booking.get('house_name')}",
                    "description": "Additional house payment",
                    "payment_status": "completed",
                    "mirrors_ledger": True,
                    "timestamp": now,
                })

        logger.info("Receipt of %.2f (%s) on booking %s", amount, channel, booking_id)
        return updated

    async def extend(self, booking_id: str, additional_charge, additional_days: int = 1) -> Dict:
        """
        Charge for more nights.

        Room stays are stamped at the next daily reference instant so repeated
        extensions keep a clean cadence from check-in; house stays move their
        planned check-out date.
        """
        amount = _require_positive(additional_charge, "amount")
        if int(additional_days) < 1:
            raise ValidationError("additional_days must be at least 1", field="additional_days")
        days = int(additional_days)
        booking = await self.get_active_booking(booking_id)

        if booking.get("kind") == "house":
            stamp = self.clock.now()
            patch = {
                "check_out_date": as_utc(booking["check_out_date"]) + timedelta(days=days),
                "days_of_stay": int(booking.get("days_of_stay", 0)) + days,
            }
            description = f"Extension: {days} days"
        else:
            stamp = expiry.next_extension_instant(booking, days)
            patch = {"last_extension_at": stamp}
            description = "Room extension payment"

        async with self.store.transaction() as tx:
            entry = LedgerEntry(
                booking_id=booking_id,
                kind=EntryKind.EXTENSION,
                amount=amount,
                channel=PaymentChannel.NOT_APPLICABLE,
                timestamp=stamp,
                description=description,
            )
            await tx.append_ledger_entry(entry.to_document())
            updated = await tx.update_booking(booking_id, patch)
            if booking.get("kind") == "room":
                # Only an extension_due room goes back to occupied
                await tx.write_room(
                    booking["room_id"],
                    {"status": RoomStatus.OCCUPIED.value},
                    expected_status=RoomStatus.EXTENSION_DUE.value,
                )

        logger.info("Extended booking %s by %d day(s) for %.2f", booking_id, days, amount)
        return updated

    async def add_extra_fee(self, booking_id: str, description: str, amount) -> Dict:
        amount = _require_positive(amount, "amount")
        description = (description or "").strip().upper()
        if not description:
            raise ValidationError("Extra fee needs a description", field="description")
        booking = await self.get_active_booking(booking_id)
        if booking.get("kind") != "house":
            raise ValidationError("Extra fees can only be added to house bookings", booking_id=booking_id)

        entry = LedgerEntry(
            booking_id=booking_id,
            kind=EntryKind.EXTRA_FEE,
            amount=amount,
            channel=PaymentChannel.NOT_APPLICABLE,
            timestamp=self.clock.now(),
            description=description,
        )
        await self.store.append_ledger_entry(entry.to_document())
        logger.info("Extra fee %s of %.2f on booking %s", description, amount, booking_id)
        return booking

    # ─── checkout & room housekeeping ─────────────────────────────────────────

    async def checkout(self, booking_id: str) -> Dict:
        booking = await self.get_active_booking(booking_id)
        entries = await self.store.list_ledger_entries(booking_id)
        purchases = await self.store.list_shop_purchases(booking_id) if booking.get("kind") == "room" else []
        summary = reconcile(booking, entries, purchases)
        if summary.pending > 0:
            raise PreconditionError(
                f"Pending amount ₹{summary.pending:.2f} must be cleared before checkout.",
                pending=summary.pending,
                booking_id=booking_id,
            )

        now = self.clock.now()
        async with self.store.transaction() as tx:
            updated = await tx.update_booking(booking_id, {"is_checked_out": True, "checked_out_at": now})
            if booking.get("kind") == "room":
                await tx.write_room(booking["room_id"], {"status": RoomStatus.CLEANING.value})

        logger.info("Checked out booking %s", booking_id)
        return updated

    async def _transition_room(self, room_id: str, from_status: RoomStatus, to_status: RoomStatus) -> Dict:
        room = await self.get_room(room_id)
        if room.get("status") != from_status.value:
            raise PreconditionError(
                f"Room {room.get('room_number')} is {room.get('status')}, expected {from_status.value}",
                room_id=room_id,
                status=room.get("status"),
            )
        updated = await self.store.write_room(room_id, {"status": to_status.value}, expected_status=from_status.value)
        if updated is None:
            raise PreconditionError(f"Room {room.get('room_number')} changed status concurrently", room_id=room_id)
        return updated

    async def confirm_cleaning(self, room_id: str) -> Dict:
        return await self._transition_room(room_id, RoomStatus.CLEANING, RoomStatus.AVAILABLE)

    async def start_maintenance(self, room_id: str) -> Dict:
        return await self._transition_room(room_id, RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE)

    async def end_maintenance(self, room_id: str) -> Dict:
        return await self._transition_room(room_id, RoomStatus.MAINTENANCE, RoomStatus.AVAILABLE)

    # ─── room inventory ───────────────────────────────────────────────────────

    async def _ensure_unique_number(self, room_number: int, exclude_id: Optional[str] = None) -> None:
        for room in await self.store.list_rooms({"room_number": room_number}):
            if room["_id"] != exclude_id:
                raise ValidationError(f"Room {room_number} already exists", room_number=room_number)

    async def create_room(self, data: Mapping) -> Dict:
        await self._ensure_unique_number(data["room_number"])
        room = await self.store.create_room({
            "room_number": data["room_number"],
            "floor": data["floor"],
            "type": getattr(data.get("type"), "value", data.get("type")) or RoomType.NON_AC.value,
            "status": RoomStatus.AVAILABLE.value,
        })
        logger.info("Room %s added on floor %s", room["room_number"], room["floor"])
        return room

    async def update_room(self, room_id: str, data: Mapping) -> Dict:
        await self.get_room(room_id)
        patch = {k: getattr(v, "value", v) for k, v in data.items() if v is not None}
        if not patch:
            raise ValidationError("No fields to update")
        if "room_number" in patch:
            await self._ensure_unique_number(patch["room_number"], exclude_id=room_id)
        updated = await self.store.write_room(room_id, patch)
        if updated is None:
            raise NotFoundError("Room not found", room_id=room_id)
        return updated

    async def delete_room(self, room_id: str) -> None:
        room = await self.get_room(room_id)
        if await self.store.list_active_bookings(room_id, kind="room"):
            raise PreconditionError(f"Room {room.get('room_number')} has an active booking", room_id=room_id)
        await self.store.delete_room(room_id)
        logger.info("Room %s deleted", room.get("room_number"))

    # ─── advance bookings ─────────────────────────────────────────────────────

    async def create_advance_booking(self, data: Mapping) -> Dict:
        number_of_rooms = int(data.get("number_of_rooms") or 0)
        if number_of_rooms < 1:
            raise ValidationError("number_of_rooms must be at least 1", field="number_of_rooms")
        price = _require_non_negative(data.get("price_per_room"), "price_per_room")
        advance_amount = _require_non_negative(data.get("advance_amount", 0), "advance_amount")
        channel = _require_channel(data.get("payment_mode", PaymentChannel.CASH.value))
        guest = _guest_fields({
            "guest_name": data.get("name"),
            "phone_number": data.get("mobile"),
            "id_number": data.get("id_number"),
        })
        date_of_booking = data.get("date_of_booking")
        if not date_of_booking:
            raise ValidationError("date_of_booking is required", field="date_of_booking")

        now = self.clock.now()
        async with self.store.transaction() as tx:
            advance = await tx.create_advance_booking({
                "name": guest["guest_name"],
                "mobile": guest["phone_number"],
                "id_number": guest["id_number"],
                "date_of_booking": str(date_of_booking),
                "room_type": data.get("room_type"),
                "number_of_rooms": number_of_rooms,
                "price_per_room": price,
                "advance_amount": advance_amount,
                "payment_mode": channel,
                "status": AdvanceBookingStatus.PENDING.value,
                "rooms": [],
                "refund_amount": 0,
                "created_at": now,
            })
            if advance_amount > 0:
                await tx.append_global_payment_record({
                    "type": "advance-booking",
                    "amount": advance_amount,
                    "mode": channel,
                    "customer_name": guest["guest_name"],
                    "room_number": "Advance Booking",
                    "date_of_booking": str(date_of_booking),
                    "advance_booking_id": advance["_id"],
                    "note": f"Advance for {number_of_rooms} room(s) on {date_of_booking}",
                    "description": f"Advance via {channel}",
                    "payment_status": "completed",
                    "timestamp": now,
                })

        logger.info("Advance booking %s created for %s", advance["_id"], guest["guest_name"])
        return advance

    async def available_rooms_for(self, advance_id: str) -> List[Dict]:
        advance = await self.get_advance_booking(advance_id)
        wanted = normalize_room_type(advance.get("room_type"))
        held = {b.get("room_id") for b in await self.store.list_active_bookings(kind="room")}
        rooms = await self.store.list_rooms({"status": RoomStatus.AVAILABLE.value})
        matching = [
            r for r in rooms
            if r["_id"] not in held and normalize_room_type(r.get("type")) == wanted
        ]
        return sorted(matching, key=lambda r: r.get("room_number", 0))

    async def complete_advance_booking(self, advance_id: str, room_ids: Sequence[str]) -> Dict:
        """Materialize a pending reservation into one check-in per selected room"""
        advance = await self.get_advance_booking(advance_id)
        if advance.get("status") != AdvanceBookingStatus.PENDING.value:
            raise PreconditionError(
                f"Advance booking is already {advance.get('status')}",
                advance_booking_id=advance_id,
                status=advance.get("status"),
            )
        expected = int(advance.get("number_of_rooms", 0))
        room_ids = list(room_ids)
        if len(room_ids) != expected:
            raise ValidationError(
                f"Please select exactly {expected} room(s)",
                expected=expected,
                selected=len(room_ids),
            )
        if len(set(room_ids)) != len(room_ids):
            raise ValidationError("The same room was selected more than once", room_ids=room_ids)

        wanted = normalize_room_type(advance.get("room_type"))
        rooms = []
        for room_id in room_ids:
            room = await self._check_room_available(room_id)
            if normalize_room_type(room.get("type")) != wanted:
                raise ValidationError(
                    f"Room {room.get('room_number')} is not of type {advance.get('room_type')}",
                    room_id=room_id,
                )
            rooms.append(room)

        guest = _guest_fields({
            "guest_name": advance.get("name"),
            "phone_number": advance.get("mobile"),
            "id_number": advance.get("id_number"),
            "ac_type": advance.get("room_type"),
        })
        channel = advance.get("payment_mode") or PaymentChannel.CASH.value
        shares = split_evenly(advance.get("advance_amount", 0), expected)
        rent = money(advance.get("price_per_room", 0))

        now = self.clock.now()
        async with self.store.transaction() as tx:
            for room, share in zip(rooms, shares):
                await self._write_room_check_in(
                    tx, room, guest, rent, share, channel, now,
                    advance_booking_id=advance_id,
                    description="Initial payment from advance booking",
                )
            completed = await tx.write_advance_booking(
                advance_id,
                {
                    "status": AdvanceBookingStatus.COMPLETED.value,
                    "rooms": [{"room_id": r["_id"], "room_number": r.get("room_number")} for r in rooms],
                    "completed_at": now,
                },
                expected_status=AdvanceBookingStatus.PENDING.value,
            )
            if completed is None:
                raise PreconditionError("Advance booking changed status concurrently", advance_booking_id=advance_id)

        logger.info("Advance booking %s completed into %d room(s)", advance_id, expected)
        return completed

    async def cancel_advance_booking(self, advance_id: str, refund_amount, refund_channel) -> Dict:
        advance = await self.get_advance_booking(advance_id)
        if advance.get("status") != AdvanceBookingStatus.PENDING.value:
            raise PreconditionError(
                f"Advance booking is already {advance.get('status')}",
                advance_booking_id=advance_id,
                status=advance.get("status"),
            )
        refund = _require_non_negative(refund_amount, "refund_amount")
        advance_amount = money(advance.get("advance_amount", 0))
        if refund > advance_amount:
            raise ValidationError(
                "Refund amount cannot exceed advance amount",
                refund_amount=refund,
                advance_amount=advance_amount,
            )
        channel = _require_channel(refund_channel) if refund > 0 else None

        now = self.clock.now()
        async with self.store.transaction() as tx:
            cancelled = await tx.write_advance_booking(
                advance_id,
                {
                    "status": AdvanceBookingStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "refund_amount": refund,
                    "refund_mode": channel,
                },
                expected_status=AdvanceBookingStatus.PENDING.value,
            )
            if cancelled is None:
                raise PreconditionError("Advance booking changed status concurrently", advance_booking_id=advance_id)
            if refund > 0:
                await tx.append_global_payment_record({
                    "type": "refund",
                    "amount": -refund,
                    "mode": channel,
                    "customer_name": advance.get("name"),
                    "date_of_booking": advance.get("date_of_booking"),
                    "advance_booking_id": advance_id,
                    "room_number": "Cancelled Booking",
                    "note": f"Refund for cancelled advance booking - {advance.get('name')} ({advance.get('date_of_booking')})",
                    "description": f"Refund via {channel}",
                    "payment_status": "completed",
                    "timestamp": now,
                })

        logger.info("Advance booking %s cancelled, refund %.2f", advance_id, refund)
        return cancelled


def get_controller(
    store: FrontDeskStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> LifecycleController:
    return LifecycleController(store, clock)
