"""Request logging middleware."""

import time
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from uuid_utils.compat import uuid7

logger = structlog.get_logger("venuebook.api.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and logs every HTTP request.

    Sets:
        request.state.request_id: The generated request ID (UUIDv7)
        X-Request-ID response header: For client correlation
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid7()
        request.state.request_id = request_id
        start_time = time.perf_counter()

        structlog.contextvars.bind_contextvars(request_id=str(request_id))
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000

            status_code = response.status_code
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "request_completed",
                http_method=request.method,
                http_path=request.url.path,
                http_status=status_code,
                duration_ms=round(duration_ms, 2),
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers.setdefault("X-Request-ID", str(request_id))
        return response
