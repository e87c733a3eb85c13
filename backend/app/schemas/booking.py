"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class BookingRequest(BaseModel):
    room_id: int = Field(..., gt=0)


class BookingIdResponse(BaseModel):
    booking_id: int


class RoomResponse(BaseModel):
    id: int
    name: str
    capacity: int
    hotel_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    room: RoomResponse

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    detail: str
    kind: str
