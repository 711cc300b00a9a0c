"""
Check-in and house booking request models
"""
from pydantic import BaseModel, Field, field_validator
from typing import Literal

from frontdesk.models.ledger import PaymentChannel


class GuestInfo(BaseModel):
    guest_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    id_number: str = Field(..., min_length=1)
    number_of_guests: int = Field(1, ge=1)
    ac_type: Literal["AC", "NON AC"] = "NON AC"

    @field_validator("guest_name", "id_number")
    @classmethod
    def upper(cls, value: str) -> str:
        return value.strip().upper()


class CheckInRequest(GuestInfo):
    room_id: str
    rent: float = Field(..., ge=0, allow_inf_nan=False)
    initial_payment: float = Field(..., ge=0, allow_inf_nan=False)
    payment_mode: PaymentChannel = PaymentChannel.CASH


class HouseCheckInRequest(GuestInfo):
    stay_type: Literal["days", "month"] = "days"
    days_of_stay: int = Field(1, ge=1)
    rent: float = Field(..., ge=0, allow_inf_nan=False)
    initial_payment: float = Field(..., ge=0, allow_inf_nan=False)
    payment_mode: PaymentChannel = PaymentChannel.CASH

    @property
    def total_days(self) -> int:
        return 30 if self.stay_type == "month" else self.days_of_stay


class ReceiptRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)
    payment_mode: PaymentChannel


class ExtendRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)
    additional_days: int = Field(1, ge=1)


class ExtraFeeRequest(BaseModel):
    description: str
    amount: float = Field(..., allow_inf_nan=False)

