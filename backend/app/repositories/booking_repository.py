"""
Booking and room queries.

The two conditional writes (insert_booking_if_room_has_space and
move_booking_if_room_has_space) carry the capacity rule inside the statement
itself: the row is written only if the room's booking count, evaluated by the
database at write time, is still below capacity. They return None when the
condition failed, leaving the caller to classify the rejection.
"""

from typing import Optional

from sqlalchemy import Integer, func, insert, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models import Booking, Room

bookings_table = Booking.__table__
rooms_table = Room.__table__


async def find_booking_by_user(
    db: AsyncSession,
    user_id: int,
    for_update: bool = False,
) -> Optional[Booking]:
    stmt = (
        select(Booking)
        .options(joinedload(Booking.room))
        .where(Booking.user_id == user_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=Booking)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def find_room(
    db: AsyncSession,
    room_id: int,
    for_update: bool = False,
) -> Optional[Room]:
    """
    Load a room. With for_update the row stays locked (SELECT ... FOR UPDATE)
    until the transaction ends, serializing every allocation into that room.
    """
    stmt = select(Room).where(Room.id == room_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def _occupancy(room_id: int, exclude_user_id: Optional[int] = None):
    # Aliased so the count is never correlated with an outer UPDATE on bookings.
    occupant = bookings_table.alias("occupant")
    stmt = select(func.count(occupant.c.id)).where(occupant.c.room_id == room_id)
    if exclude_user_id is not None:
        stmt = stmt.where(occupant.c.user_id != exclude_user_id)
    return stmt


def _capacity(room_id: int):
    return (
        select(rooms_table.c.capacity)
        .where(rooms_table.c.id == room_id)
        .scalar_subquery()
    )


async def count_room_bookings(
    db: AsyncSession,
    room_id: int,
    exclude_user_id: Optional[int] = None,
) -> int:
    result = await db.execute(_occupancy(room_id, exclude_user_id))
    return result.scalar_one()


async def insert_booking_if_room_has_space(
    db: AsyncSession,
    user_id: int,
    room_id: int,
) -> Optional[int]:
    """
    INSERT INTO bookings (user_id, room_id)
    SELECT :user_id, :room_id WHERE (occupancy) < (capacity)

    Raises IntegrityError if the user already holds a booking.
    """
    has_space = _occupancy(room_id).scalar_subquery() < _capacity(room_id)
    stmt = (
        insert(bookings_table)
        .from_select(
            ["user_id", "room_id"],
            select(literal(user_id, Integer), literal(room_id, Integer)).where(has_space),
        )
        .returning(bookings_table.c.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def move_booking_if_room_has_space(
    db: AsyncSession,
    booking_id: int,
    user_id: int,
    room_id: int,
    exclude_user_id: Optional[int] = None,
) -> Optional[int]:
    """Reassign the user's booking to room_id and refresh updated_at."""
    has_space = (
        _occupancy(room_id, exclude_user_id).scalar_subquery() < _capacity(room_id)
    )
    stmt = (
        update(bookings_table)
        .where(
            bookings_table.c.id == booking_id,
            bookings_table.c.user_id == user_id,
            has_space,
        )
        .values(room_id=room_id, updated_at=func.now())
        .returning(bookings_table.c.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_booking(
    db: AsyncSession,
    existing_id: Optional[int],
    user_id: int,
    room_id: int,
) -> Booking:
    """
    Unconditional write: move the booking with existing_id, or create one.
    Only for seeding and administrative fixes; the allocator uses the
    conditional writes above.
    """
    booking = None
    if existing_id:
        booking = await db.get(Booking, existing_id)

    if booking is None:
        booking = Booking(user_id=user_id, room_id=room_id)
        db.add(booking)
    else:
        booking.room_id = room_id

    await db.flush()
    await db.refresh(booking)
    return booking
