"""
Domain errors and global exception handlers.

Workflow code raises the ``AbsenceError`` family; the handlers below turn
them (and database / unexpected failures) into JSON responses without
leaking stack traces to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class AbsenceError(Exception):
    """Base class for errors raised by the absence workflow."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Absence request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class NotAuthenticated(AbsenceError):
    """The actor has no linked employee identity."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "No employee profile is linked to this account"


class Unauthorized(AbsenceError):
    """The actor may not manage absences."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "Absence manager privileges required"


class AbsenceValidationError(AbsenceError):
    status_code = 422
    detail = "Invalid absence request"


class InvalidTransition(AbsenceError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Absence status cannot change in this direction"


class NoRecipientFound(AbsenceError):
    """Recipient lookup matched no user.

    Only raised while a notification is being dispatched, never while the
    triggering state change is persisted.
    """

    status_code = status.HTTP_404_NOT_FOUND
    detail = "No notification recipient found"


# ── Handlers ────────────────────────────────────────────────────────
async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _absence_error_handler(_request: Request, exc: AbsenceError) -> JSONResponse:
    logger.info("%s: %s", type(exc).__name__, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
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
    app.add_exception_handler(AbsenceError, _absence_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
