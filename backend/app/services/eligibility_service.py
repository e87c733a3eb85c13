"""
Eligibility resolver: decides whether a user may hold a hotel room at all.

resolve_enrollment runs first on every write, since nothing else can be
judged without an enrollment. check_ticket_eligible is kept separate because
create and update apply it the same way but pair it with different room
checks.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import IneligibleError, NotFoundError
from app.core.logging import get_logger
from app.models import Ticket, TicketStatus
from app.repositories import enrollment_repository, ticket_repository

logger = get_logger(__name__)


def ticket_grants_hotel(ticket: Ticket) -> bool:
    """Paid, in-person, and the ticket type includes a hotel stay."""
    ticket_type = ticket.ticket_type
    return (
        ticket.status == TicketStatus.PAID.value
        and bool(ticket_type.includes_hotel)
        and not ticket_type.is_remote
    )


async def resolve_enrollment(db: AsyncSession, user_id: int) -> int:
    enrollment = await enrollment_repository.find_by_user_id(db, user_id)

    if not enrollment:
        logger.info("eligibility_rejected", user_id=user_id, reason="no_enrollment")
        raise NotFoundError(f"No enrollment found for user {user_id}")

    return enrollment.id


async def check_ticket_eligible(db: AsyncSession, enrollment_id: int) -> None:
    """
    Raise IneligibleError unless the enrollment's ticket grants a hotel room.
    Missing ticket, unpaid ticket, remote ticket type and a type without
    hotel all collapse into the same failure.
    """
    ticket = await ticket_repository.find_by_enrollment_id(db, enrollment_id)

    if not ticket:
        logger.info("eligibility_rejected", enrollment_id=enrollment_id, reason="no_ticket")
        raise IneligibleError("Enrollment has no ticket")

    if not ticket_grants_hotel(ticket):
        logger.info(
            "eligibility_rejected",
            enrollment_id=enrollment_id,
            reason="ticket_not_hotel_eligible",
            status=ticket.status,
            is_remote=ticket.ticket_type.is_remote,
            includes_hotel=ticket.ticket_type.includes_hotel,
        )
        raise IneligibleError("Ticket does not include a hotel stay")
