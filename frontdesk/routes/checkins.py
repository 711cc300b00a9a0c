from fastapi import APIRouter, Depends, status

from frontdesk.models.booking import CheckInRequest, ReceiptRequest, ExtendRequest
from frontdesk.services.lifecycle import LifecycleController, get_controller
from frontdesk.services.reports import active_stays
from frontdesk.utils.helpers import serialize_doc, serialize_docs

router = APIRouter(prefix="/checkins", tags=["Check-ins"])

GUEST_KEYS = {"guest_name", "phone_number", "id_number", "number_of_guests", "ac_type"}

@router.post("/", status_code=status.HTTP_201_CREATED)
async def check_in(
    request: CheckInRequest,
    controller: LifecycleController = Depends(get_controller)
):
    """Check a guest into an available room"""
    booking = await controller.check_in(
        request.room_id,
        request.model_dump(include=GUEST_KEYS),
        request.rent,
        request.initial_payment,
        request.payment_mode,
    )
    return serialize_doc(booking)

@router.get("/active")
async def get_active_checkins(controller: LifecycleController = Depends(get_controller)):
    """Active room stays with their paid-until instant, urgency and balance"""
    stays = await active_stays(controller.store, controller.clock, kind="room")
    return serialize_docs(stays)

@router.get("/{booking_id}")
async def get_checkin(
    booking_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.get_booking(booking_id))

@router.get("/{booking_id}/ledger")
async def get_checkin_ledger(
    booking_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    """Reconciled totals, payment statement and stay expiry"""
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/{booking_id}/payments")
async def add_payment(
    booking_id: str,
    payment: ReceiptRequest,
    controller: LifecycleController = Depends(get_controller)
):
    await controller.add_receipt(booking_id, payment.amount, payment.payment_mode)
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/{booking_id}/extend")
async def extend_stay(
    booking_id: str,
    extension: ExtendRequest,
    controller: LifecycleController = Depends(get_controller)
):
    await controller.extend(booking_id, extension.amount, extension.additional_days)
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/{booking_id}/checkout")
async def checkout(
    booking_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    """Check out. Refused with 409 while any amount is pending."""
    booking = await controller.checkout(booking_id)
    return serialize_doc(booking)
