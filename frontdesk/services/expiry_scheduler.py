"""
Stay Expiry Scheduler
Runs as a background asyncio task on app startup.
Every EXPIRY_CHECK_INTERVAL_SECONDS it walks the active room bookings and
flips each room whose paid window has run out from 'occupied' to
'extension_due'. It never touches the ledger.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from frontdesk.config.settings import settings
from frontdesk.database.store import FrontDeskStore
from frontdesk.errors import StoreFailure
from frontdesk.ledger.expiry import is_expired
from frontdesk.models.room import RoomStatus
from frontdesk.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class ExpiryScheduler:

    def __init__(
        self,
        store: FrontDeskStore,
        clock: Clock = system_clock,
        interval_seconds: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.clock = clock
        self.interval_seconds = interval_seconds or settings.EXPIRY_CHECK_INTERVAL_SECONDS
        self.sleep = sleep

    async def run_once(self) -> int:
        """
        Flag every overdue room once. Returns how many rooms were flipped.

        The flip is a compare-and-set on 'occupied', so a room an Extend has
        just reverted, or one already flagged, is left alone.
        """
        now = self.clock.now()
        try:
            bookings = await self.store.list_active_bookings(kind="room")
        except StoreFailure as exc:
            logger.error("❌ Could not load active bookings: %s", exc.message)
            return 0

        flagged = 0
        for booking in bookings:
            try:
                if not is_expired(booking, now):
                    continue
                room = await self.store.write_room(
                    booking["room_id"],
                    {"status": RoomStatus.EXTENSION_DUE.value},
                    expected_status=RoomStatus.OCCUPIED.value,
                )
            except Exception as exc:
                logger.error(
                    "❌ Error flagging room %s (booking %s): %s", booking.get("room_number"), booking.get("_id"), exc
                )
                continue
            if room is not None:
                flagged += 1
                logger.info("⏰ Room %s is due for extension (booking %s)", booking.get("room_number"), booking["_id"])

        if flagged:
            print(f"⏰ Stay Expiry Scheduler: {flagged} room(s) marked extension due.")
        return flagged

    async def run_forever(self) -> None:
        """
        Infinite loop that calls run_once() every `interval_seconds`.
        Designed to be launched as an asyncio background task from the app lifespan.
        """
        print(f"🕐 Stay Expiry Scheduler started (interval: {self.interval_seconds}s)")
        # Run once immediately on startup to catch stays that ran out while we were down
        await self.run_once()
        while True:
            await self.sleep(self.interval_seconds)
            await self.run_once()
