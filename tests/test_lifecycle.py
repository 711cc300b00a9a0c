from datetime import timedelta

import pytest

from fakes import CHECK_IN_AT
from frontdesk.errors import MalformedEntryError, NotFoundError, PreconditionError, StoreFailure, ValidationError
from frontdesk.ledger import expiry
from frontdesk.services import reports


async def check_in(controller, room, guest, rent=1000, receipt=400, channel="cash"):
    return await controller.check_in(room["_id"], guest, rent, receipt, channel)


class TestCheckIn:

    async def test_creates_booking_entry_and_occupies_room(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest)

        assert booking["guest_name"] == "RAVI KUMAR"
        assert booking["id_number"] == "ABCD1234"
        assert booking["base_rent"] == 1000
        assert booking["checked_in_at"] == CHECK_IN_AT
        assert store.rooms[room["_id"]]["status"] == "occupied"

        entries = store.entries_for(booking["_id"])
        assert len(entries) == 1
        assert entries[0]["kind"] == "initial"
        assert entries[0]["amount"] == 400
        assert entries[0]["channel"] == "cash"

    async def test_occupied_room_is_rejected(self, controller, store, room, guest):
        await check_in(controller, room, guest)
        with pytest.raises(ValidationError):
            await check_in(controller, room, guest)
        assert len(store.bookings) == 1

    async def test_room_held_by_active_booking_is_rejected(self, controller, store, room, guest):
        await check_in(controller, room, guest)
        # status drifted back without a checkout
        store.rooms[room["_id"]]["status"] = "available"
        with pytest.raises(ValidationError):
            await check_in(controller, room, guest)

    @pytest.mark.parametrize("rent,receipt,channel", [
        (-1, 0, "cash"),
        (1000, -5, "cash"),
        (float("nan"), 0, "cash"),
        (1000, float("inf"), "cash"),
        (1000, 100, "card"),
        (1000, 100, "n/a"),
    ])
    async def test_bad_arguments_write_nothing(self, controller, store, room, guest, rent, receipt, channel):
        with pytest.raises(ValidationError):
            await check_in(controller, room, guest, rent, receipt, channel)
        assert store.bookings == {}
        assert store.entries == []
        assert store.rooms[room["_id"]]["status"] == "available"

    async def test_missing_guest_details(self, controller, room, guest):
        guest["phone_number"] = " "
        with pytest.raises(ValidationError) as exc:
            await check_in(controller, room, guest)
        assert exc.value.detail["fields"] == ["phone_number"]

    async def test_unknown_room(self, controller, guest):
        with pytest.raises(NotFoundError):
            await controller.check_in("nope", guest, 1000, 0, "cash")

    async def test_failed_write_rolls_back(self, controller, store, room, guest):
        store.fail_on.add("write_room")
        with pytest.raises(StoreFailure):
            await check_in(controller, room, guest)
        assert store.bookings == {}
        assert store.entries == []


class TestReceiptsAndCheckout:

    async def test_pay_off_then_checkout(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest)
        assert (await controller.reconcile_booking(booking["_id"])).pending == 600

        await controller.add_receipt(booking["_id"], 600, "gpay")
        summary = await controller.reconcile_booking(booking["_id"])
        assert summary.pending == 0
        assert summary.gpay_received == 600

        done = await controller.checkout(booking["_id"])
        assert done["is_checked_out"] is True
        assert done["checked_out_at"] == CHECK_IN_AT
        assert store.rooms[room["_id"]]["status"] == "cleaning"

    async def test_receipt_updates_amount_received(self, controller, room, guest):
        booking = await check_in(controller, room, guest)
        updated = await controller.add_receipt(booking["_id"], 250, "cash")
        assert updated["amount_received"] == 650

    async def test_checkout_with_balance_is_refused(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest)
        with pytest.raises(PreconditionError) as exc:
            await controller.checkout(booking["_id"])

        assert exc.value.pending == 600
        assert exc.value.booking_id == booking["_id"]
        assert store.bookings[booking["_id"]]["is_checked_out"] is False
        assert store.rooms[room["_id"]]["status"] == "occupied"

    async def test_shop_purchases_block_checkout(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest, receipt=1000)
        store.seed_purchase(booking["_id"], -80)
        with pytest.raises(PreconditionError) as exc:
            await controller.checkout(booking["_id"])
        assert exc.value.pending == 80

    @pytest.mark.parametrize("amount", [0, -10])
    async def test_non_positive_receipt(self, controller, room, guest, amount):
        booking = await check_in(controller, room, guest)
        with pytest.raises(ValidationError):
            await controller.add_receipt(booking["_id"], amount, "cash")

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_receipt_writes_nothing(self, controller, store, room, guest, amount):
        booking = await check_in(controller, room, guest, receipt=0)
        with pytest.raises(ValidationError):
            await controller.add_receipt(booking["_id"], amount, "cash")
        assert len(store.entries_for(booking["_id"])) == 1

        with pytest.raises(PreconditionError) as exc:
            await controller.checkout(booking["_id"])
        assert exc.value.pending == 1000
        assert store.rooms[room["_id"]]["status"] == "occupied"

    async def test_stored_nan_receipt_blocks_checkout(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest, receipt=0)
        store.entries.append({**store.entries[0], "_id": "nan1", "kind": "advance", "amount": float("nan"), "channel": "cash"})
        with pytest.raises(MalformedEntryError):
            await controller.checkout(booking["_id"])
        assert store.bookings[booking["_id"]]["is_checked_out"] is False

    async def test_receipt_after_checkout(self, controller, room, guest):
        booking = await check_in(controller, room, guest, receipt=1000)
        await controller.checkout(booking["_id"])
        with pytest.raises(PreconditionError):
            await controller.add_receipt(booking["_id"], 10, "cash")

    async def test_cleaning_then_available(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest, receipt=1000)
        with pytest.raises(PreconditionError):
            await controller.confirm_cleaning(room["_id"])
        await controller.checkout(booking["_id"])

        cleaned = await controller.confirm_cleaning(room["_id"])
        assert cleaned["status"] == "available"


class TestExtend:

    async def test_extension_stamped_one_day_after_check_in(self, controller, store, clock, room, guest):
        booking = await check_in(controller, room, guest)
        clock.advance(hours=30)
        store.rooms[room["_id"]]["status"] = "extension_due"

        updated = await controller.extend(booking["_id"], 800)

        entry = store.entries_for(booking["_id"])[-1]
        assert entry["kind"] == "extension"
        assert entry["timestamp"] == CHECK_IN_AT + timedelta(days=1)
        assert updated["last_extension_at"] == CHECK_IN_AT + timedelta(days=1)
        assert expiry.valid_until(updated) == CHECK_IN_AT + timedelta(hours=48)
        assert store.rooms[room["_id"]]["status"] == "occupied"

        summary = await controller.reconcile_booking(booking["_id"])
        assert summary.current_rent == 1800
        assert summary.pending == 1400

    async def test_repeated_extensions_keep_cadence(self, controller, room, guest):
        booking = await check_in(controller, room, guest)
        await controller.extend(booking["_id"], 800)
        updated = await controller.extend(booking["_id"], 800, additional_days=2)
        assert updated["last_extension_at"] == CHECK_IN_AT + timedelta(days=3)

    async def test_extend_keeps_occupied_room_occupied(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest)
        await controller.extend(booking["_id"], 500)
        assert store.rooms[room["_id"]]["status"] == "occupied"

    async def test_extend_checked_out_booking(self, controller, room, guest):
        booking = await check_in(controller, room, guest, receipt=1000)
        await controller.checkout(booking["_id"])
        with pytest.raises(PreconditionError):
            await controller.extend(booking["_id"], 800)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    async def test_non_finite_charge(self, controller, store, room, guest, amount):
        booking = await check_in(controller, room, guest)
        with pytest.raises(ValidationError):
            await controller.extend(booking["_id"], amount)
        assert len(store.entries_for(booking["_id"])) == 1

    async def test_zero_charge(self, controller, store, room, guest):
        booking = await check_in(controller, room, guest)
        with pytest.raises(ValidationError):
            await controller.extend(booking["_id"], 0)
        assert len(store.entries_for(booking["_id"])) == 1


class TestHouses:

    async def test_house_stay(self, controller, store, clock, guest):
        booking = await controller.check_in_house("guest-house", guest, 3, 6000, 2000, "gpay")
        assert booking["kind"] == "house"
        assert booking["check_out_date"] == CHECK_IN_AT + timedelta(days=3)
        assert store.payments[0]["type"] == "check-in"
        assert store.payments[0]["mirrors_ledger"] is True

        with pytest.raises(ValidationError):
            await controller.check_in_house("guest-house", guest, 1, 100, 0, "cash")

        clock.advance(days=2)
        updated = await controller.extend(booking["_id"], 2000, additional_days=2)
        assert updated["check_out_date"] == CHECK_IN_AT + timedelta(days=5)
        assert updated["days_of_stay"] == 5
        assert store.entries_for(booking["_id"])[-1]["timestamp"] == clock.now()

        await controller.add_extra_fee(booking["_id"], "extra mattress", 300)
        summary = await controller.reconcile_booking(booking["_id"])
        assert summary.total_charges == 8300
        assert summary.pending == 6300

        await controller.add_receipt(booking["_id"], 6300, "cash")
        assert len(store.payments) == 2
        done = await controller.checkout(booking["_id"])
        assert done["is_checked_out"] is True

    async def test_unknown_house(self, controller, guest):
        with pytest.raises(NotFoundError):
            await controller.check_in_house("tree-house", guest, 1, 100, 0, "cash")

    async def test_extra_fee_only_for_houses(self, controller, room, guest):
        booking = await check_in(controller, room, guest)
        with pytest.raises(ValidationError):
            await controller.add_extra_fee(booking["_id"], "late checkout", 200)


class TestRoomInventory:

    async def test_create_update_delete(self, controller, store):
        room = await controller.create_room({"room_number": 205, "floor": 2, "type": "non-ac"})
        assert room["status"] == "available"

        with pytest.raises(ValidationError):
            await controller.create_room({"room_number": 205, "floor": 2, "type": "ac"})

        updated = await controller.update_room(room["_id"], {"type": "ac", "floor": None})
        assert updated["type"] == "ac"
        assert updated["floor"] == 2

        await controller.delete_room(room["_id"])
        assert store.rooms == {}

    async def test_cannot_delete_occupied_room(self, controller, store, room, guest):
        await check_in(controller, room, guest)
        with pytest.raises(PreconditionError):
            await controller.delete_room(room["_id"])
        assert room["_id"] in store.rooms

    async def test_maintenance_round_trip(self, controller, room):
        assert (await controller.start_maintenance(room["_id"]))["status"] == "maintenance"
        with pytest.raises(PreconditionError):
            await controller.start_maintenance(room["_id"])
        assert (await controller.end_maintenance(room["_id"]))["status"] == "available"


async def test_ledger_view(controller, store, room, guest):
    booking = await check_in(controller, room, guest)
    await controller.add_receipt(booking["_id"], 100, "gpay")
    store.seed_purchase(booking["_id"], 50)

    view = await controller.ledger_view(booking["_id"])

    assert view["summary"]["pending"] == 550
    assert view["summary"]["current_rent"] == 1000
    assert [line["process"] for line in view["statement"]] == ["Check-in", "Initial Payment", "Additional Payment"]
    assert view["statement"][0]["rent"] == 1000
    assert view["statement"][1]["cash"] == 400
    assert view["statement"][2]["gpay"] == 100
    assert len(view["shop_purchases"]) == 1
    assert view["stay"]["urgency"] == "normal"


async def test_guest_history_is_ordered_by_checkout(controller, store, clock, room, guest):
    first = await check_in(controller, room, guest, receipt=1000)
    await controller.checkout(first["_id"])
    await controller.confirm_cleaning(room["_id"])

    clock.advance(days=1)
    second = await check_in(controller, room, guest, receipt=1000)
    await controller.checkout(second["_id"])
    # checkout of the earlier stay recorded late
    store.bookings[first["_id"]]["checked_out_at"] = CHECK_IN_AT + timedelta(days=5)

    history = await reports.guest_history(store, room["_id"], "room")
    assert [b["_id"] for b in history] == [first["_id"], second["_id"]]
