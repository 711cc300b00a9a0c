from fastapi import APIRouter, Depends, status

from frontdesk.config.settings import settings
from frontdesk.errors import NotFoundError
from frontdesk.models.booking import HouseCheckInRequest, ReceiptRequest, ExtendRequest, ExtraFeeRequest
from frontdesk.services.lifecycle import LifecycleController, get_controller
from frontdesk.services.reports import guest_history, house_board
from frontdesk.utils.helpers import serialize_doc, serialize_docs

router = APIRouter(prefix="/houses", tags=["Houses"])

GUEST_KEYS = {"guest_name", "phone_number", "id_number", "number_of_guests", "ac_type"}

@router.get("/")
async def get_houses(controller: LifecycleController = Depends(get_controller)):
    """Every house with its booked/available status and the active stay if any"""
    board = await house_board(controller.store, controller.clock)
    return serialize_docs(board)

@router.post("/{house_id}/check-in", status_code=status.HTTP_201_CREATED)
async def check_in_house(
    house_id: str,
    request: HouseCheckInRequest,
    controller: LifecycleController = Depends(get_controller)
):
    booking = await controller.check_in_house(
        house_id,
        request.model_dump(include=GUEST_KEYS),
        request.total_days,
        request.rent,
        request.initial_payment,
        request.payment_mode,
    )
    return serialize_doc(booking)

@router.get("/bookings/{booking_id}/ledger")
async def get_house_ledger(
    booking_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/bookings/{booking_id}/payments")
async def add_house_payment(
    booking_id: str,
    payment: ReceiptRequest,
    controller: LifecycleController = Depends(get_controller)
):
    await controller.add_receipt(booking_id, payment.amount, payment.payment_mode)
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/bookings/{booking_id}/extend")
async def extend_house_stay(
    booking_id: str,
    extension: ExtendRequest,
    controller: LifecycleController = Depends(get_controller)
):
    """Add days to the stay; the planned check-out date moves with it"""
    await controller.extend(booking_id, extension.amount, extension.additional_days)
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/bookings/{booking_id}/extra-fees")
async def add_extra_fee(
    booking_id: str,
    fee: ExtraFeeRequest,
    controller: LifecycleController = Depends(get_controller)
):
    await controller.add_extra_fee(booking_id, fee.description, fee.amount)
    return serialize_doc(await controller.ledger_view(booking_id))

@router.post("/bookings/{booking_id}/checkout")
async def checkout_house(
    booking_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.checkout(booking_id))

@router.get("/{house_id}/history")
async def get_house_history(
    house_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    if not settings.get_house(house_id):
        raise NotFoundError("House not found", house_id=house_id)
    history = await guest_history(controller.store, house_id, "house")
    return serialize_docs(history)
