"""
Quillpost Backend — Request ID Middleware
===========================================

What:  Assigns a short ID to each incoming request and returns it in the
       X-Request-ID response header.
How:   Reuses a well-formed client X-Request-ID (up to 64 characters of
       letters, digits, dot, underscore, dash), otherwise generates 8 hex
       characters. Stored in a ContextVar so exception handlers and loggers
       can read it.
Who:   Applied to every request via Starlette middleware.

Error envelopes carry only {"success", "error"}; the header is how a failed
request is correlated with the server log.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs end up in log lines and response headers
_ACCEPTED_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_request_id(supplied: Optional[str]) -> str:
    """Keep a well-formed client ID, otherwise issue a fresh one."""
    if supplied and _ACCEPTED_REQUEST_ID.fullmatch(supplied):
        return supplied
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    The ID is bound to request_id_var only for the duration of the request.
    Error responses built by the exception handlers read it from there.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid

        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
