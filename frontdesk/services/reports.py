"""
Read-only views for the desk: room matrix counts, the house board,
active stays with their expiry and guest history.
"""
from typing import Dict, List

from frontdesk.config.settings import settings
from frontdesk.database.store import FrontDeskStore
from frontdesk.ledger.aggregator import reconcile
from frontdesk.ledger.expiry import stay_status
from frontdesk.models.room import RoomStatus
from frontdesk.utils.clock import Clock
from frontdesk.utils.helpers import as_utc


async def _summarize(store: FrontDeskStore, booking: Dict) -> Dict:
    entries = await store.list_ledger_entries(booking["_id"])
    purchases = await store.list_shop_purchases(booking["_id"]) if booking.get("kind") == "room" else []
    summary = reconcile(booking, entries, purchases)
    return {**summary.model_dump(), "current_rent": summary.current_rent}


async def room_matrix_summary(store: FrontDeskStore) -> Dict:
    rooms = await store.list_rooms()
    held = {b.get("room_id") for b in await store.list_active_bookings(kind="room")}
    counts = {status.value: 0 for status in RoomStatus}
    for room in rooms:
        # A room still held by a stay is occupied whatever its status says
        status = RoomStatus.OCCUPIED.value if room["_id"] in held and room.get("status") == RoomStatus.AVAILABLE.value else room.get("status")
        counts[status] = counts.get(status, 0) + 1

    booked_houses = {b.get("house_id") for b in await store.list_active_bookings(kind="house")}
    total_houses = len(settings.HOUSES)
    booked = sum(1 for house in settings.HOUSES if house["id"] in booked_houses)
    return {
        "rooms": {"total": len(rooms), **counts},
        "houses": {"total": total_houses, "booked": booked, "available": total_houses - booked},
    }


async def active_stays(store: FrontDeskStore, clock: Clock, kind: str = "room") -> List[Dict]:
    now = clock.now()
    stays = []
    for booking in await store.list_active_bookings(kind=kind):
        stays.append({**booking, **stay_status(booking, now), "ledger": await _summarize(store, booking)})
    return stays


async def house_board(store: FrontDeskStore, clock: Clock) -> List[Dict]:
    now = clock.now()
    active = {b.get("house_id"): b for b in await store.list_active_bookings(kind="house")}
    board = []
    for house in settings.HOUSES:
        booking = active.get(house["id"])
        entry = {**house, "status": "booked" if booking else "available", "booking": None}
        if booking:
            entry["booking"] = {**booking, **stay_status(booking, now), "ledger": await _summarize(store, booking)}
        board.append(entry)
    return board


async def guest_history(store: FrontDeskStore, location_id: str, kind: str) -> List[Dict]:
    """Checked-out stays of one room or house, latest checkout first"""
    history = []
    bookings = await store.list_checked_out_bookings(location_id, kind)
    for booking in sorted(bookings, key=lambda b: as_utc(b["checked_out_at"]), reverse=True):
        history.append({**booking, "ledger": await _summarize(store, booking)})
    return history
