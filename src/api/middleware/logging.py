"""Request logging middleware."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.commons.telemetry.logger import (
    clear_log_context,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log each request's start and outcome.

    The request id (taken from ``X-Request-ID`` when the caller sends one)
    becomes the correlation id, so log lines from the upload intake, the
    webhook receiver and the reconciler can be tied back to one request.
    Server errors are logged at WARNING so provider retries are visible.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_correlation_id(request_id)
        clear_log_context()

        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info(
            "Request started",
            extra={
                **fields,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "Request completed",
            extra={
                **fields,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
