"""
Booking allocator: one hotel room per eligible user.

CONCURRENCY STRATEGY: Locked room row + conditional write
==========================================================

Problem:
  Two requests race for the last bed in a room. Both count the room's
  bookings, both see one free slot, both insert. Result: overbooking.
  The same happens with two creates for one user: both see "no booking yet".

Solution:
  1. Lock the target room row (SELECT ... FOR UPDATE). Every allocation into
     that room now queues behind the lock until the holder commits.
  2. Validate against the locked state (occupancy >= capacity is rejected).
  3. Write with a statement that re-checks the rule itself:
       INSERT INTO bookings (user_id, room_id)
       SELECT :user_id, :room_id
       WHERE (SELECT count(*) FROM bookings WHERE room_id = :room_id)
           < (SELECT capacity FROM rooms WHERE id = :room_id)
     Zero rows written means the room filled up in the meantime.
  4. The unique constraint on bookings.user_id is the final word on "one
     booking per user"; a violation is reported as AlreadyBooked.

  SQLite has no row locks, so FOR UPDATE is dropped by the dialect there and
  the engine opens every transaction with BEGIN IMMEDIATE instead (see
  app.db.session), which serializes the whole unit of work.

Occupancy is always counted from booking rows; there is no stored counter.
No retries: every failure is handed back to the caller unchanged.
"""

import functools
import time
from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    AlreadyBookedError,
    BookingError,
    BookingErrorKind,
    CapacityExceededError,
    ForbiddenError,
    NotFoundError,
    StoreUnavailableError,
)
from app.core.logging import get_logger
from app.core.metrics import observe_booking_latency, record_booking_attempt
from app.models import Booking, Room
from app.repositories import booking_repository
from app.services.eligibility_service import check_ticket_eligible, resolve_enrollment

logger = get_logger(__name__)

SAME_ROOM_REJECT = "reject"
SAME_ROOM_NOOP = "noop"


def is_store_outage(error: Exception) -> bool:
    """Connection-level failures: refused, dropped, pool exhausted."""
    if isinstance(error, (OperationalError, InterfaceError, PoolTimeoutError, OSError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def allocator_operation(operation: str):
    """
    Record outcome and latency of an allocator call, and turn store outages
    into StoreUnavailableError so they never look like a rule violation.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except BookingError as e:
                record_booking_attempt(operation, e.kind.value)
                raise
            except (DBAPIError, PoolTimeoutError, OSError) as e:
                if not is_store_outage(e):
                    raise
                logger.error("booking_store_unavailable", operation=operation, error=str(e))
                record_booking_attempt(operation, BookingErrorKind.STORE_UNAVAILABLE.value)
                raise StoreUnavailableError("Booking store is unavailable") from e
            finally:
                observe_booking_latency(operation, time.perf_counter() - start)

            record_booking_attempt(operation, "success")
            return result

        return wrapper

    return decorator


async def _lock_room_with_space(
    db: AsyncSession,
    room_id: int,
    exclude_user_id: Optional[int] = None,
) -> Room:
    room = await booking_repository.find_room(db, room_id, for_update=True)

    if not room:
        raise NotFoundError(f"Room {room_id} not found")

    occupancy = await booking_repository.count_room_bookings(db, room.id, exclude_user_id)
    if occupancy >= room.capacity:
        logger.warning(
            "booking_rejected",
            reason=BookingErrorKind.CAPACITY_EXCEEDED.value,
            room_id=room.id,
            capacity=room.capacity,
            occupancy=occupancy,
        )
        raise CapacityExceededError(f"Room {room.id} is full")

    return room


@allocator_operation("get")
async def get_booking(db: AsyncSession, user_id: int) -> Booking:
    """
    The user's booking with its room loaded.
    Reading does not re-check the ticket; only writes do.
    """
    booking = await booking_repository.find_booking_by_user(db, user_id)

    if not booking:
        raise NotFoundError(f"User {user_id} has no booking")

    return booking


@allocator_operation("create")
async def create_booking(db: AsyncSession, user_id: int, room_id: int) -> int:
    """Reserve room_id for a user who holds no booking yet. Returns the booking id."""
    enrollment_id = await resolve_enrollment(db, user_id)
    await check_ticket_eligible(db, enrollment_id)

    await _lock_room_with_space(db, room_id)

    if await booking_repository.find_booking_by_user(db, user_id):
        logger.info(
            "booking_rejected",
            reason=BookingErrorKind.ALREADY_BOOKED.value,
            user_id=user_id,
        )
        raise AlreadyBookedError("User already has a booking; change it instead")

    try:
        booking_id = await booking_repository.insert_booking_if_room_has_space(
            db, user_id, room_id
        )
    except IntegrityError as e:
        await db.rollback()
        logger.info(
            "booking_rejected",
            reason=BookingErrorKind.ALREADY_BOOKED.value,
            user_id=user_id,
            detected_by="unique_constraint",
        )
        raise AlreadyBookedError("User already has a booking; change it instead") from e

    if booking_id is None:
        await db.rollback()
        logger.warning(
            "booking_rejected",
            reason=BookingErrorKind.CAPACITY_EXCEEDED.value,
            room_id=room_id,
            detected_by="conditional_write",
        )
        raise CapacityExceededError(f"Room {room_id} is full")

    await db.commit()

    logger.info("booking_created", booking_id=booking_id, user_id=user_id, room_id=room_id)
    return booking_id


@allocator_operation("update")
async def update_booking(
    db: AsyncSession,
    user_id: int,
    room_id: int,
    booking_id: int,
    same_room_policy: Optional[str] = None,
) -> int:
    """
    Move the user's booking to room_id. Returns the (unchanged) booking id.

    same_room_policy decides what asking for the room already held means:
    "reject" raises ForbiddenError, "noop" returns the id without writing.
    Only under "noop" is the caller's own bed left out of the capacity count,
    since under "reject" such a request never reaches the write.
    """
    policy = same_room_policy or get_settings().SAME_ROOM_UPDATE_POLICY
    noop_on_same_room = policy == SAME_ROOM_NOOP

    enrollment_id = await resolve_enrollment(db, user_id)
    await check_ticket_eligible(db, enrollment_id)

    own_bed = user_id if noop_on_same_room else None
    await _lock_room_with_space(db, room_id, exclude_user_id=own_bed)

    booking = await booking_repository.find_booking_by_user(db, user_id, for_update=True)

    if not booking or booking.id != booking_id:
        logger.warning(
            "booking_rejected",
            reason=BookingErrorKind.FORBIDDEN.value,
            user_id=user_id,
            booking_id=booking_id,
            detail="not_owner" if booking else "no_booking",
        )
        raise ForbiddenError(f"Booking {booking_id} does not belong to user {user_id}")

    if booking.room_id == room_id:
        if not noop_on_same_room:
            logger.info(
                "booking_rejected",
                reason=BookingErrorKind.FORBIDDEN.value,
                booking_id=booking.id,
                room_id=room_id,
                detail="same_room",
            )
            raise ForbiddenError(f"Booking {booking.id} already occupies room {room_id}")

        logger.info("booking_unchanged", booking_id=booking.id, room_id=room_id)
        return booking.id

    moved_id = await booking_repository.move_booking_if_room_has_space(
        db, booking.id, user_id, room_id, exclude_user_id=own_bed
    )

    if moved_id is None:
        await db.rollback()
        logger.warning(
            "booking_rejected",
            reason=BookingErrorKind.CAPACITY_EXCEEDED.value,
            room_id=room_id,
            detected_by="conditional_write",
        )
        raise CapacityExceededError(f"Room {room_id} is full")

    from_room_id = booking.room_id
    await db.commit()

    logger.info(
        "booking_updated",
        booking_id=moved_id,
        user_id=user_id,
        from_room_id=from_room_id,
        to_room_id=room_id,
    )
    return moved_id
