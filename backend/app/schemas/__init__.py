from app.schemas.booking import (
    BookingIdResponse,
    BookingRequest,
    BookingResponse,
    ErrorResponse,
    RoomResponse,
)

__all__ = [
    "BookingRequest", "BookingIdResponse", "BookingResponse",
    "RoomResponse", "ErrorResponse",
]
