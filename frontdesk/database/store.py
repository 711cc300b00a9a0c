"""
Store adapter interface consumed by the ledger and lifecycle services.

Documents go in and come out as plain dicts; ids are returned as strings
under ``_id``. Implementations must raise ``StoreFailure`` for transport or
server errors and return ``None`` / ``False`` for missing documents.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional


class FrontDeskStore(ABC):

    # ─── rooms ────────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_room(self, room_id: str) -> Optional[Dict]: ...

    @abstractmethod
    async def list_rooms(self, filter_query: Optional[Dict] = None) -> List[Dict]: ...

    @abstractmethod
    async def create_room(self, room: Dict) -> Dict: ...

    @abstractmethod
    async def write_room(self, room_id: str, patch: Dict, expected_status: Optional[str] = None) -> Optional[Dict]:
        """
        Apply ``patch``. With ``expected_status`` the write only happens if the
        room still has that status; returns ``None`` when nothing matched.
        """

    @abstractmethod
    async def delete_room(self, room_id: str) -> bool: ...

    # ─── bookings ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_booking(self, booking: Dict) -> Dict:
        """``booking['kind']`` selects rooms (checkins) or houses"""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[Dict]: ...

    @abstractmethod
    async def update_booking(self, booking_id: str, patch: Dict) -> Optional[Dict]: ...

    @abstractmethod
    async def list_active_bookings(self, location_id: Optional[str] = None, kind: Optional[str] = None) -> List[Dict]: ...

    @abstractmethod
    async def list_checked_out_bookings(self, location_id: str, kind: str) -> List[Dict]: ...

    # ─── sub-ledger ───────────────────────────────────────────────────────────

    @abstractmethod
    async def append_ledger_entry(self, entry: Dict) -> Dict: ...

    @abstractmethod
    async def list_ledger_entries(self, booking_id: str) -> List[Dict]:
        """Entries of one booking, ascending by timestamp"""

    @abstractmethod
    async def list_entries_between(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kinds: Optional[Iterable[str]] = None,
    ) -> List[Dict]:
        """Entries of every booking with ``start <= timestamp < end``"""

    @abstractmethod
    async def list_shop_purchases(self, booking_id: str) -> List[Dict]: ...

    # ─── advance bookings ─────────────────────────────────────────────────────

    @abstractmethod
    async def create_advance_booking(self, advance: Dict) -> Dict: ...

    @abstractmethod
    async def get_advance_booking(self, advance_id: str) -> Optional[Dict]: ...

    @abstractmethod
    async def list_advance_bookings(self, status: Optional[str] = None) -> List[Dict]: ...

    @abstractmethod
    async def write_advance_booking(self, advance_id: str, patch: Dict, expected_status: Optional[str] = None) -> Optional[Dict]: ...

    # ─── global payments & collections ────────────────────────────────────────

    @abstractmethod
    async def append_global_payment_record(self, record: Dict) -> Dict: ...

    @abstractmethod
    async def list_global_payments(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict]: ...

    @abstractmethod
    async def append_collection_log(self, log: Dict) -> Dict: ...

    @abstractmethod
    async def list_collection_logs(self, limit: int = 100) -> List[Dict]:
        """Newest first"""

    # ─── transactions ─────────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["FrontDeskStore"]:
        """
        Yield a store whose writes commit together or not at all.
        Stores without transaction support yield themselves.
        """
        yield self
