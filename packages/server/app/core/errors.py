"""
Error taxonomy and the handlers that render it as the error envelope.

Services raise these at the point of violation; "not found or not authorized"
outcomes inside an operation are returned as False/None instead.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rosterhub_shared.schemas.common import ErrorResponse

log = structlog.get_logger()


class AppError(HTTPException):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class BadRequestError(AppError):
    status_code = 400


class QuotaExceededError(BadRequestError):
    """Organization quota for the owner's tier is used up."""


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


def parse_id(value: uuid.UUID | str, label: str = "ID") -> uuid.UUID:
    """Coerce an opaque ID into a UUID, raising BadRequestError if malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise BadRequestError(f"Invalid {label}")


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            status="fail" if 400 <= status_code < 500 else "error",
            message=message,
        ).model_dump(),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("http.error", path=request.url.path, status=exc.status_code, detail=exc.detail)
    return _envelope(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = ", ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return _envelope(400, message or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("http.unhandled_error", path=request.url.path)
    return _envelope(500, "Something went wrong")
