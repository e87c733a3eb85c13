#!/usr/bin/env python3
"""
Seed demo data for manual runs and the locust load test.

Creates one hotel with a small "contested" room plus a few roomy ones, and a
batch of users who each hold an enrollment and a paid, in-person,
hotel-inclusive ticket. With --prebooked N the first N users already
hold a bed in one of the spare rooms, so the move scenarios have bookings to
move. Access tokens are written to a JSON file that
locust/locustfile.py reads.

Usage (from backend/):
  python -m scripts.seed_demo_data --users 100 --contested-capacity 10
"""

import argparse
import asyncio
import json
import uuid

from app.core.logging import get_logger, setup_logging
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.repositories.booking_repository import upsert_booking
from app.models import Enrollment, Hotel, Room, Ticket, TicketStatus, TicketType, User

logger = get_logger(__name__)


async def seed(users: int, contested_capacity: int, output: str, prebooked: int = 0) -> dict:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    run_id = uuid.uuid4().hex[:6]

    async with SessionLocal() as db:
        hotel = Hotel(name=f"Demo Hotel {run_id}")
        ticket_type = TicketType(
            name="In-person + hotel", price=600, is_remote=False, includes_hotel=True
        )
        db.add_all([hotel, ticket_type])
        await db.flush()

        contested = Room(name="101", capacity=contested_capacity, hotel_id=hotel.id)
        spare_rooms = [
            Room(name=str(200 + i), capacity=3, hotel_id=hotel.id) for i in range(5)
        ]
        db.add(contested)
        db.add_all(spare_rooms)
        await db.flush()

        spare_beds = [room.id for room in spare_rooms for _ in range(room.capacity)]
        prebooked = min(prebooked, users, len(spare_beds))

        tokens = []
        for i in range(users):
            user = User(email=f"attendee_{run_id}_{i}@example.com")
            db.add(user)
            await db.flush()

            enrollment = Enrollment(name=f"Attendee {i}", user_id=user.id)
            db.add(enrollment)
            await db.flush()

            db.add(
                Ticket(
                    ticket_type_id=ticket_type.id,
                    enrollment_id=enrollment.id,
                    status=TicketStatus.PAID.value,
                )
            )
            if i < prebooked:
                await upsert_booking(db, None, user.id, spare_beds[i])

            tokens.append(create_access_token(data={"sub": str(user.id)}))

        await db.commit()

        data = {
            "contested_room_id": contested.id,
            "contested_capacity": contested_capacity,
            "spare_room_ids": [room.id for room in spare_rooms],
            "prebooked": prebooked,
            "tokens": tokens,
        }

    with open(output, "w") as f:
        json.dump(data, f)

    logger.info(
        "demo_data_seeded",
        users=users,
        prebooked=prebooked,
        contested_room_id=data["contested_room_id"],
        contested_capacity=contested_capacity,
        output=output,
    )
    await engine.dispose()
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--users", type=int, default=100)
    parser.add_argument("--contested-capacity", type=int, default=10)
    parser.add_argument("--prebooked", type=int, default=0)
    parser.add_argument("--output", default="seed_tokens.json")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(args.users, args.contested_capacity, args.output, args.prebooked))


if __name__ == "__main__":
    main()
