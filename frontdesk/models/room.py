from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Optional

class RoomType(str, Enum):
    AC = "ac"
    NON_AC = "non-ac"
    HOUSE = "house"

class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    EXTENSION_DUE = "extension_due"

class RoomBase(BaseModel):
    room_number: int = Field(..., ge=100, description="Room number (e.g. 101)")
    floor: int = Field(..., ge=1)
    type: RoomType = RoomType.NON_AC

class RoomCreate(RoomBase):
    pass

class RoomUpdate(BaseModel):
    room_number: Optional[int] = Field(None, ge=100)
    floor: Optional[int] = Field(None, ge=1)
    type: Optional[RoomType] = None

class RoomResponse(RoomBase):
    id: str = Field(alias="_id")
    status: RoomStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
        json_encoders = {datetime: lambda v: v.isoformat()}
