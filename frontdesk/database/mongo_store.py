"""
MongoDB implementation of the front desk store
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional

from pymongo.errors import PyMongoError

from frontdesk.config.database import Collections, db_config
from frontdesk.database.db_operations import DBOperations
from frontdesk.database.store import FrontDeskStore
from frontdesk.errors import StoreFailure

BOOKING_COLLECTIONS = {
    "room": Collections.CHECKINS,
    "house": Collections.HOUSE_BOOKINGS,
}
LOCATION_FIELDS = {
    "room": "room_id",
    "house": "house_id",
}


def _time_range(field: str, start: Optional[datetime], end: Optional[datetime]) -> Dict:
    bounds = {}
    if start is not None:
        bounds["$gte"] = start
    if end is not None:
        bounds["$lt"] = end
    return {field: bounds} if bounds else {}


class MongoStore(FrontDeskStore):

    def __init__(self, database, session=None, use_transactions: bool = True):
        self.database = database
        self.session = session
        self.use_transactions = use_transactions
        self.db = DBOperations(database, session=session)

    # ─── rooms ────────────────────────────────────────────────────────────────

    async def get_room(self, room_id: str) -> Optional[Dict]:
        return await self.db.get_by_id(Collections.ROOMS, room_id)

    async def list_rooms(self, filter_query: Optional[Dict] = None) -> List[Dict]:
        return await self.db.get_all(Collections.ROOMS, filter_query, sort=[("floor", 1), ("room_number", 1)])

    async def create_room(self, room: Dict) -> Dict:
        return await self.db.create(Collections.ROOMS, room)

    async def write_room(self, room_id: str, patch: Dict, expected_status: Optional[str] = None) -> Optional[Dict]:
        extra = {"status": expected_status} if expected_status is not None else None
        return await self.db.update(Collections.ROOMS, room_id, patch, extra_filter=extra)

    async def delete_room(self, room_id: str) -> bool:
        return await self.db.delete(Collections.ROOMS, room_id)

    # ─── bookings ─────────────────────────────────────────────────────────────

    async def create_booking(self, booking: Dict) -> Dict:
        return await self.db.create(BOOKING_COLLECTIONS[booking["kind"]], booking)

    async def get_booking(self, booking_id: str) -> Optional[Dict]:
        for collection_name in BOOKING_COLLECTIONS.values():
            booking = await self.db.get_by_id(collection_name, booking_id)
            if booking:
                return booking
        return None

    async def update_booking(self, booking_id: str, patch: Dict) -> Optional[Dict]:
        for collection_name in BOOKING_COLLECTIONS.values():
            updated = await self.db.update(collection_name, booking_id, patch)
            if updated:
                return updated
        return None

    async def _list_bookings(
        self, query: Dict, location_id: Optional[str], kind: Optional[str], sort_field: str = "checked_in_at"
    ) -> List[Dict]:
        kinds = [kind] if kind else list(BOOKING_COLLECTIONS)
        bookings: List[Dict] = []
        for k in kinds:
            filter_query = dict(query)
            if location_id:
                filter_query[LOCATION_FIELDS[k]] = location_id
            bookings.extend(await self.db.get_all(BOOKING_COLLECTIONS[k], filter_query, sort=[(sort_field, -1)]))
        return bookings

    async def list_active_bookings(self, location_id: Optional[str] = None, kind: Optional[str] = None) -> List[Dict]:
        return await self._list_bookings({"is_checked_out": False}, location_id, kind)

    async def list_checked_out_bookings(self, location_id: str, kind: str) -> List[Dict]:
        return await self._list_bookings({"is_checked_out": True}, location_id, kind, sort_field="checked_out_at")

    # ─── sub-ledger ───────────────────────────────────────────────────────────

    async def append_ledger_entry(self, entry: Dict) -> Dict:
        return await self.db.create(Collections.LEDGER_ENTRIES, entry)

    async def list_ledger_entries(self, booking_id: str) -> List[Dict]:
        return await self.db.get_all(
            Collections.LEDGER_ENTRIES,
            {"booking_id": booking_id},
            sort=[("timestamp", 1), ("_id", 1)],
        )

    async def list_entries_between(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kinds: Optional[Iterable[str]] = None,
    ) -> List[Dict]:
        query = _time_range("timestamp", start, end)
        if kinds is not None:
            query["kind"] = {"$in": list(kinds)}
        return await self.db.get_all(Collections.LEDGER_ENTRIES, query, sort=[("timestamp", 1)])

    async def list_shop_purchases(self, booking_id: str) -> List[Dict]:
        return await self.db.get_all(Collections.SHOP_PURCHASES, {"checkin_id": booking_id}, sort=[("created_at", 1)])

    # ─── advance bookings ─────────────────────────────────────────────────────

    async def create_advance_booking(self, advance: Dict) -> Dict:
        return await self.db.create(Collections.ADVANCE_BOOKINGS, advance)

    async def get_advance_booking(self, advance_id: str) -> Optional[Dict]:
        return await self.db.get_by_id(Collections.ADVANCE_BOOKINGS, advance_id)

    async def list_advance_bookings(self, status: Optional[str] = None) -> List[Dict]:
        query = {"status": status} if status else {}
        return await self.db.get_all(Collections.ADVANCE_BOOKINGS, query)

    async def write_advance_booking(self, advance_id: str, patch: Dict, expected_status: Optional[str] = None) -> Optional[Dict]:
        extra = {"status": expected_status} if expected_status is not None else None
        return await self.db.update(Collections.ADVANCE_BOOKINGS, advance_id, patch, extra_filter=extra)

    # ─── global payments & collections ────────────────────────────────────────

    async def append_global_payment_record(self, record: Dict) -> Dict:
        return await self.db.create(Collections.PAYMENTS, record)

    async def list_global_payments(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict]:
        return await self.db.get_all(Collections.PAYMENTS, _time_range("timestamp", start, end), sort=[("timestamp", 1)])

    async def append_collection_log(self, log: Dict) -> Dict:
        return await self.db.create(Collections.COLLECTION_LOGS, log)

    async def list_collection_logs(self, limit: int = 100) -> List[Dict]:
        return await self.db.get_all(Collections.COLLECTION_LOGS, sort=[("collected_at", -1)], limit=limit)

    # ─── transactions ─────────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["MongoStore"]:
        if self.session is not None or not self.use_transactions:
            yield self
            return
        try:
            session = await self.database.client.start_session()
        except PyMongoError as e:
            raise StoreFailure(f"Could not start a database session: {e}")
        async with session:
            try:
                async with session.start_transaction():
                    yield MongoStore(self.database, session=session, use_transactions=True)
            except PyMongoError as e:
                raise StoreFailure(f"Transaction failed: {e}")


def get_store() -> FrontDeskStore:
    """FastAPI dependency: store bound to the connected database"""
    if db_config.database is None:
        raise StoreFailure("Database not connected")
    return MongoStore(db_config.database, use_transactions=db_config.USE_TRANSACTIONS)
