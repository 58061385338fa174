"""Error handling middleware and exception handlers.

Every failure leaves the API in the same envelope::

    {"error": {"code", "message", "details", "request_id"}}

Domain exceptions map to a fixed status and code. Provider and persistence
failures hide their internal reason from the caller; it is logged instead.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    DuplicateVideoException,
    InvalidInputException,
    PersistenceException,
    ProviderException,
    UnauthorizedException,
    VideoNotFoundException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Error raised directly by a route, outside the domain taxonomy."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


@dataclass(frozen=True)
class _ErrorRule:
    code: str
    status_code: int
    level: int = logging.WARNING
    public_message: str | None = None
    details: Callable[[Any], dict[str, Any]] | None = None


def _duplicate_details(exc: DuplicateVideoException) -> dict[str, Any]:
    details = {"course_id": exc.course_id, "lesson_id": exc.lesson_id}
    if exc.existing_id:
        details["existing_id"] = exc.existing_id
    return details


# Checked in order; subclasses must come before DomainException
_RULES: list[tuple[type[DomainException], _ErrorRule]] = [
    (
        InvalidInputException,
        _ErrorRule(
            "INVALID_INPUT",
            status.HTTP_400_BAD_REQUEST,
            details=lambda e: {"field": e.field} if e.field else {},
        ),
    ),
    (
        UnauthorizedException,
        _ErrorRule("UNAUTHORIZED", status.HTTP_401_UNAUTHORIZED),
    ),
    (
        VideoNotFoundException,
        _ErrorRule(
            "VIDEO_NOT_FOUND",
            status.HTTP_404_NOT_FOUND,
            details=lambda e: {"video_id": e.video_id},
        ),
    ),
    (
        DuplicateVideoException,
        _ErrorRule(
            "DUPLICATE_VIDEO", status.HTTP_409_CONFLICT, details=_duplicate_details
        ),
    ),
    (
        ProviderException,
        _ErrorRule(
            "PROVIDER_ERROR",
            status.HTTP_502_BAD_GATEWAY,
            level=logging.ERROR,
            public_message="The video provider could not complete the request",
            details=lambda e: {"operation": e.operation},
        ),
    ),
    (
        PersistenceException,
        _ErrorRule(
            "PERSISTENCE_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            level=logging.ERROR,
            public_message="The video store could not complete the request",
        ),
    ),
    (
        DomainException,
        _ErrorRule("DOMAIN_ERROR", status.HTTP_400_BAD_REQUEST),
    ),
]


def error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the standard error envelope for ``request``."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": getattr(request.state, "request_id", "unknown"),
            }
        },
    )


def _handle_exception(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={"error_code": exc.code, "details": exc.details},
        )
        return error_response(
            request, exc.code, exc.message, exc.status_code, exc.details
        )

    for exc_type, rule in _RULES:
        if isinstance(exc, exc_type):
            logger.log(
                rule.level,
                f"{type(exc).__name__}: {exc}",
                extra={"error_code": rule.code, "path": request.url.path},
            )
            return error_response(
                request,
                rule.code,
                rule.public_message or str(exc),
                rule.status_code,
                rule.details(exc) if rule.details else None,
            )

    logger.exception(f"Unexpected error: {exc}")
    return error_response(
        request,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Report request validation failures as 400 INVALID_INPUT.

    ``details.fields`` lists the offending locations using the wire names
    (``courseId``, ``status.state``) with the ``body`` prefix dropped.
    """
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    fields = [
        ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        for err in errors
    ]
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning(f"Request validation failed: {message}", extra={"fields": fields})
    return error_response(
        request,
        "INVALID_INPUT",
        message,
        status.HTTP_400_BAD_REQUEST,
        {"fields": fields},
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Turn any exception escaping a route into the error envelope."""
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
