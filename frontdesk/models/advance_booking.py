from pydantic import BaseModel, Field
from datetime import date
from enum import Enum
from typing import List, Optional

from frontdesk.models.ledger import PaymentChannel

class AdvanceBookingStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class AdvanceBookingCreate(BaseModel):
    name: str = Field(..., min_length=1)
    mobile: str = Field(..., min_length=1)
    id_number: str = Field(..., min_length=1, description="Aadhaar or other ID document")
    date_of_booking: date
    room_type: str = Field(..., description="e.g. 'AC' or 'NON AC'")
    number_of_rooms: int = Field(..., ge=1)
    price_per_room: float = Field(..., ge=0, allow_inf_nan=False)
    advance_amount: float = Field(0, ge=0, allow_inf_nan=False)
    payment_mode: PaymentChannel = PaymentChannel.CASH

class CompleteAdvanceBookingRequest(BaseModel):
    room_ids: List[str]

class CancelAdvanceBookingRequest(BaseModel):
    refund_amount: float = Field(..., allow_inf_nan=False)
    refund_mode: Optional[PaymentChannel] = None
