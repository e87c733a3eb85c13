"""
Maps booking failures to HTTP responses.

The original contract answers every rule violation except "not found" with
403; the body's "kind" keeps them apart for clients.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.exceptions import BookingError, BookingErrorKind
from app.core.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND = {
    BookingErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.INELIGIBLE: status.HTTP_403_FORBIDDEN,
    BookingErrorKind.CAPACITY_EXCEEDED: status.HTTP_403_FORBIDDEN,
    BookingErrorKind.ALREADY_BOOKED: status.HTTP_403_FORBIDDEN,
    BookingErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    BookingErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    if status_code >= 500:
        logger.error("booking_request_failed", kind=exc.kind.value, detail=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
