"""
Test data builders. Each builder commits, so the rows are visible to the
separate sessions used by requests and service calls.
"""

import itertools
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.security import create_access_token
from app.models import Booking, Enrollment, Hotel, Room, Ticket, TicketStatus, TicketType, User

_sequence = itertools.count(1)


def auth_headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


async def _save(db: AsyncSession, obj):
    db.add(obj)
    await db.flush()
    await db.refresh(obj)
    await db.commit()
    return obj


async def create_user(db: AsyncSession) -> User:
    return await _save(db, User(email=f"user{next(_sequence)}@example.com"))


async def create_enrollment(db: AsyncSession, user_id: int) -> Enrollment:
    return await _save(db, Enrollment(name="Test Attendee", phone="555-0100", user_id=user_id))


async def create_ticket_type(
    db: AsyncSession,
    is_remote: bool = False,
    includes_hotel: bool = True,
) -> TicketType:
    return await _save(
        db,
        TicketType(
            name=f"Ticket type {next(_sequence)}",
            price=500,
            is_remote=is_remote,
            includes_hotel=includes_hotel,
        ),
    )


async def create_ticket(
    db: AsyncSession,
    enrollment_id: int,
    ticket_type_id: int,
    status: TicketStatus = TicketStatus.PAID,
) -> Ticket:
    return await _save(
        db,
        Ticket(enrollment_id=enrollment_id, ticket_type_id=ticket_type_id, status=status.value),
    )


async def create_eligible_user(
    db: AsyncSession,
    status: TicketStatus = TicketStatus.PAID,
    is_remote: bool = False,
    includes_hotel: bool = True,
) -> User:
    """User with enrollment and ticket; defaults make the ticket hotel-eligible."""
    user = await create_user(db)
    enrollment = await create_enrollment(db, user.id)
    ticket_type = await create_ticket_type(db, is_remote=is_remote, includes_hotel=includes_hotel)
    await create_ticket(db, enrollment.id, ticket_type.id, status=status)
    return user


async def create_hotel(db: AsyncSession) -> Hotel:
    return await _save(db, Hotel(name=f"Hotel {next(_sequence)}", image="https://example.com/h.png"))


async def create_room(
    db: AsyncSession,
    hotel_id: int,
    capacity: int = 3,
    name: Optional[str] = None,
) -> Room:
    return await _save(
        db, Room(name=name or f"Room {next(_sequence)}", capacity=capacity, hotel_id=hotel_id)
    )


async def create_booking(db: AsyncSession, user_id: int, room_id: int) -> Booking:
    return await _save(db, Booking(user_id=user_id, room_id=room_id))


async def count_room_bookings(session_factory: async_sessionmaker, room_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(Booking.id)).where(Booking.room_id == room_id)
        )
        return result.scalar_one()


async def count_user_bookings(session_factory: async_sessionmaker, user_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(Booking.id)).where(Booking.user_id == user_id)
        )
        return result.scalar_one()


async def fetch_booking(session_factory: async_sessionmaker, booking_id: int) -> Optional[Booking]:
    async with session_factory() as session:
        return await session.get(Booking, booking_id)
