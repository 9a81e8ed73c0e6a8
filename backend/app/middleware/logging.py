"""
Quillpost Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request with status and duration.
How:   Measures time around call_next and logs at a level chosen from the
       status class (5xx ERROR, 4xx WARNING, otherwise INFO).
Who:   Applied to every request via Starlette middleware.

Logged: method, path, status, duration, client IP, request ID.
Not logged: request bodies (post content is user data).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("quillpost.access")


# Polled by load balancers every few seconds
UNLOGGED_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    A request whose handler raised past the exception handlers is logged as
    a 500 together with the traceback, then the exception propagates.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log_access(request, 500, started, exc_info=True)
            raise

        self._log_access(request, response.status_code, started)
        return response

    @staticmethod
    def _log_access(request: Request, status: int, started: float, exc_info: bool = False) -> None:
        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            # request.client is None under some test transports
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(status),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] from %(client_ip)s",
            fields,
            extra=fields,
            exc_info=exc_info,
        )
