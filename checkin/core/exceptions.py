"""
Domain exceptions and global exception handlers — prevents stack-trace
leakage to clients.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

if TYPE_CHECKING:
    from checkin.services.admission import Rejected

logger = logging.getLogger(__name__)

# Reason code -> HTTP status
REJECTION_STATUS = {
    "InvalidInput": 400,
    "LocationRequired": 400,
    "OutsideTimeWindow": 403,
    "OutsideGeofence": 403,
    "AlreadyCheckedIn": 409,
    "DeviceAlreadyUsed": 409,
    "StorageUnavailable": 503,
}


class StorageUnavailableError(Exception):
    """The attendance store could not be read or written."""


class CheckInRejectedError(Exception):
    """Raised at the HTTP boundary when the admission policy says no."""

    def __init__(self, rejection: Rejected) -> None:
        super().__init__(rejection.message)
        self.rejection = rejection


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _check_in_rejected_handler(_request: Request, exc: CheckInRejectedError) -> JSONResponse:
    rejection = exc.rejection
    content = {
        "detail": rejection.message,
        "reason": rejection.reason.value,
        "terminal": rejection.terminal,
        "success": False,
    }
    if rejection.distance_meters is not None:
        content["distance_meters"] = round(rejection.distance_meters, 1)
        content["radius_meters"] = rejection.radius_meters
    return JSONResponse(
        status_code=REJECTION_STATUS.get(rejection.reason.value, 400),
        content=content,
    )


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies get the same envelope as a policy InvalidInput rejection
    errors = exc.errors()
    fields = [
        ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body"
        for err in errors
    ]
    logger.info("Request validation failed: %s", fields)
    return JSONResponse(
        status_code=REJECTION_STATUS["InvalidInput"],
        content={
            "detail": f"Invalid request ({', '.join(dict.fromkeys(fields)) or 'body'})",
            "reason": "InvalidInput",
            "terminal": False,
            "success": False,
        },
    )


async def _storage_unavailable_handler(_request: Request, exc: StorageUnavailableError) -> JSONResponse:
    logger.error("Storage unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable, please try again", "success": False},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CheckInRejectedError, _check_in_rejected_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StorageUnavailableError, _storage_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
