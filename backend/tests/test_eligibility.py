"""
Tests for the eligibility resolver: enrollment lookup and ticket rules.
"""

import pytest

from app.core.exceptions import BookingErrorKind, IneligibleError, NotFoundError
from app.models import TicketStatus
from app.services.eligibility_service import check_ticket_eligible, resolve_enrollment
from tests import factories


@pytest.mark.asyncio
async def test_resolve_enrollment_returns_enrollment_id(db_session, session_factory):
    user = await factories.create_user(db_session)
    enrollment = await factories.create_enrollment(db_session, user.id)

    async with session_factory() as session:
        assert await resolve_enrollment(session, user.id) == enrollment.id


@pytest.mark.asyncio
async def test_resolve_enrollment_without_enrollment(session_factory, test_user):
    async with session_factory() as session:
        with pytest.raises(NotFoundError) as exc_info:
            await resolve_enrollment(session, test_user.id)

    assert exc_info.value.kind is BookingErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_ticket_missing_is_ineligible(db_session, session_factory):
    user = await factories.create_user(db_session)
    enrollment = await factories.create_enrollment(db_session, user.id)

    async with session_factory() as session:
        with pytest.raises(IneligibleError) as exc_info:
            await check_ticket_eligible(session, enrollment.id)

    assert exc_info.value.kind is BookingErrorKind.INELIGIBLE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, is_remote, includes_hotel",
    [
        (TicketStatus.RESERVED, False, True),   # not paid
        (TicketStatus.PAID, True, True),        # remote-only
        (TicketStatus.PAID, False, False),      # no hotel
        (TicketStatus.RESERVED, True, False),   # all three at once
    ],
)
async def test_ticket_conditions_share_one_failure_kind(
    db_session, session_factory, status, is_remote, includes_hotel
):
    user = await factories.create_user(db_session)
    enrollment = await factories.create_enrollment(db_session, user.id)
    ticket_type = await factories.create_ticket_type(
        db_session, is_remote=is_remote, includes_hotel=includes_hotel
    )
    await factories.create_ticket(db_session, enrollment.id, ticket_type.id, status=status)

    async with session_factory() as session:
        with pytest.raises(IneligibleError) as exc_info:
            await check_ticket_eligible(session, enrollment.id)

    assert exc_info.value.kind is BookingErrorKind.INELIGIBLE


@pytest.mark.asyncio
async def test_paid_hotel_ticket_is_eligible(db_session, session_factory):
    user = await factories.create_user(db_session)
    enrollment = await factories.create_enrollment(db_session, user.id)
    ticket_type = await factories.create_ticket_type(db_session)
    await factories.create_ticket(db_session, enrollment.id, ticket_type.id)

    async with session_factory() as session:
        assert await check_ticket_eligible(session, enrollment.id) is None
