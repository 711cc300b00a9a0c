"""
Seed the room inventory.

Usage:
    python scripts/seed_rooms.py <floors> <rooms_per_floor> [ac_rooms_per_floor]

Rooms are numbered floor * 100 + n (101, 102, ... 201, ...). The first
``ac_rooms_per_floor`` rooms of each floor are AC, the rest NON AC. Rooms
that already exist are skipped.

This script calls the lifecycle controller directly (bypasses HTTP) so it
can be run without a running server.
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from frontdesk.config.database import db_config
from frontdesk.database.mongo_store import get_store
from frontdesk.errors import ValidationError
from frontdesk.models.room import RoomType
from frontdesk.services.lifecycle import LifecycleController
from frontdesk.utils.clock import system_clock


async def main(floors: int, rooms_per_floor: int, ac_per_floor: int):
    await db_config.connect_db()
    controller = LifecycleController(get_store(), system_clock)
    inserted = skipped = 0
    for floor in range(1, floors + 1):
        for n in range(1, rooms_per_floor + 1):
            room_type = RoomType.AC if n <= ac_per_floor else RoomType.NON_AC
            try:
                await controller.create_room({"room_number": floor * 100 + n, "floor": floor, "type": room_type})
                inserted += 1
            except ValidationError:
                skipped += 1
    print("✅  Seeded rooms:")
    print(f"    Inserted : {inserted}")
    print(f"    Skipped  : {skipped}")
    await db_config.close_db()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python scripts/seed_rooms.py <floors> <rooms_per_floor> [ac_rooms_per_floor]")
        sys.exit(1)
    ac = int(sys.argv[3]) if len(sys.argv) > 3 else 0
    asyncio.run(main(int(sys.argv[1]), int(sys.argv[2]), ac))
