"""
Booking endpoints. Each one hands the authenticated user id to the allocator;
failures are turned into responses by app.api.errors.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.booking import (
    BookingIdResponse,
    BookingRequest,
    BookingResponse,
    ErrorResponse,
)
from app.services.booking_service import create_booking, get_booking, update_booking
from app.core.security import get_current_user_id

router = APIRouter(prefix="/booking", tags=["Booking"])

ERROR_RESPONSES = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("", response_model=BookingResponse, responses=ERROR_RESPONSES)
async def get_booking_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's booking and the room it occupies."""
    return await get_booking(db, user_id)


@router.post("", response_model=BookingIdResponse, responses=ERROR_RESPONSES)
async def create_booking_endpoint(
    booking_data: BookingRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve a room. Requires an enrollment and a paid, in-person ticket that
    includes the hotel. Users who already hold a booking must use PUT.
    """
    booking_id = await create_booking(db, user_id, booking_data.room_id)
    return BookingIdResponse(booking_id=booking_id)


@router.put("/{booking_id}", response_model=BookingIdResponse, responses=ERROR_RESPONSES)
async def update_booking_endpoint(
    booking_data: BookingRequest,
    booking_id: int = Path(..., gt=0),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Move the user's booking to another room."""
    new_booking_id = await update_booking(db, user_id, booking_data.room_id, booking_id)
    return BookingIdResponse(booking_id=new_booking_id)
