"""
Tests for the booking repository writes that bypass the allocator.
"""

import pytest

from app.repositories.booking_repository import upsert_booking
from tests import factories


@pytest.mark.asyncio
async def test_upsert_without_existing_id_creates_booking(
    db_session, session_factory, eligible_user, room
):
    booking = await upsert_booking(db_session, None, eligible_user.id, room.id)
    await db_session.commit()

    assert booking.id is not None
    assert booking.user_id == eligible_user.id
    assert booking.room_id == room.id
    assert await factories.count_user_bookings(session_factory, eligible_user.id) == 1


@pytest.mark.asyncio
async def test_upsert_with_existing_id_moves_booking(
    db_session, session_factory, eligible_user, room, other_room
):
    existing = await factories.create_booking(db_session, eligible_user.id, room.id)

    booking = await upsert_booking(db_session, existing.id, eligible_user.id, other_room.id)
    await db_session.commit()

    assert booking.id == existing.id
    stored = await factories.fetch_booking(session_factory, existing.id)
    assert stored.room_id == other_room.id
    assert await factories.count_user_bookings(session_factory, eligible_user.id) == 1
    assert await factories.count_room_bookings(session_factory, room.id) == 0


@pytest.mark.asyncio
async def test_upsert_with_unknown_id_creates_booking(
    db_session, session_factory, eligible_user, room
):
    booking = await upsert_booking(db_session, 99999, eligible_user.id, room.id)
    await db_session.commit()

    assert booking.id != 99999
    assert await factories.count_room_bookings(session_factory, room.id) == 1
