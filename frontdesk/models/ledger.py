"""
Ledger entry models
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class EntryKind(str, Enum):
    INITIAL = "initial"            # receipt taken at check-in
    ADVANCE = "advance"            # any later receipt
    EXTENSION = "extension"
    EXTRA_FEE = "extra-fee"
    SHOP_PURCHASE = "shop-purchase"


class PaymentChannel(str, Enum):
    CASH = "cash"
    GPAY = "gpay"
    NOT_APPLICABLE = "n/a"


RECEIPT_KINDS = {EntryKind.INITIAL.value, EntryKind.ADVANCE.value}
CHARGE_KINDS = {EntryKind.EXTENSION.value, EntryKind.EXTRA_FEE.value, EntryKind.SHOP_PURCHASE.value}
RECEIPT_CHANNELS = {PaymentChannel.CASH.value, PaymentChannel.GPAY.value}


class LedgerEntry(BaseModel):
    """One line of a booking's sub-ledger. Append-only."""
    booking_id: str
    kind: EntryKind
    amount: float
    channel: PaymentChannel
    timestamp: datetime
    description: Optional[str] = None
    reference_id: Optional[str] = Field(None, description="Shop purchase id for shop-purchase rows")
    advance_booking_id: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(mode="python", exclude_none=True) | {
            "kind": self.kind.value,
            "channel": self.channel.value,
        }

