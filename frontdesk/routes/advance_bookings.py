from fastapi import APIRouter, Depends, status
from typing import Optional

from frontdesk.models.advance_booking import (
    AdvanceBookingCreate,
    AdvanceBookingStatus,
    CancelAdvanceBookingRequest,
    CompleteAdvanceBookingRequest,
)
from frontdesk.services.lifecycle import LifecycleController, get_controller
from frontdesk.utils.helpers import as_utc, serialize_doc, serialize_docs

router = APIRouter(prefix="/advance-bookings", tags=["Advance Bookings"])


def _matches(advance: dict, search: str) -> bool:
    needle = search.strip().lower()
    return any(
        needle in str(advance.get(field) or "").lower()
        for field in ("name", "mobile", "date_of_booking")
    )


def _closed_at(advance: dict):
    closed = advance.get("completed_at") or advance.get("cancelled_at") or advance.get("created_at")
    return as_utc(closed)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_advance_booking(
    advance: AdvanceBookingCreate,
    controller: LifecycleController = Depends(get_controller)
):
    """Reserve rooms for a future date and record the advance"""
    created = await controller.create_advance_booking(advance.model_dump())
    return serialize_doc(created)

@router.get("/")
async def get_advance_bookings(
    search: Optional[str] = None,
    controller: LifecycleController = Depends(get_controller)
):
    """Pending reservations by date of booking, then history newest first"""
    advances = await controller.store.list_advance_bookings()
    if search:
        advances = [a for a in advances if _matches(a, search)]

    pending = [a for a in advances if a.get("status") == AdvanceBookingStatus.PENDING.value]
    history = [a for a in advances if a.get("status") != AdvanceBookingStatus.PENDING.value]
    pending.sort(key=lambda a: str(a.get("date_of_booking")))
    history.sort(key=_closed_at, reverse=True)

    return {"pending": serialize_docs(pending), "history": serialize_docs(history)}

@router.get("/{advance_id}")
async def get_advance_booking(
    advance_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.get_advance_booking(advance_id))

@router.get("/{advance_id}/available-rooms")
async def get_available_rooms(
    advance_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    """Available rooms of the reserved type"""
    rooms = await controller.available_rooms_for(advance_id)
    return serialize_docs(rooms)

@router.post("/{advance_id}/complete")
async def complete_advance_booking(
    advance_id: str,
    request: CompleteAdvanceBookingRequest,
    controller: LifecycleController = Depends(get_controller)
):
    completed = await controller.complete_advance_booking(advance_id, request.room_ids)
    return serialize_doc(completed)

@router.post("/{advance_id}/cancel")
async def cancel_advance_booking(
    advance_id: str,
    request: CancelAdvanceBookingRequest,
    controller: LifecycleController = Depends(get_controller)
):
    cancelled = await controller.cancel_advance_booking(advance_id, request.refund_amount, request.refund_mode)
    return serialize_doc(cancelled)
