"""
Quillpost Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the post workflow.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the flat error envelope {"success": false, "error": message}.
Who:   Raised by the connection manager, repository, schemas and client.

Exception Hierarchy:
    BlogError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── ConfigurationError       → 500 (connection string missing)
    ├── DatabaseConnectionError  → 500 (store unreachable)
    ├── PersistenceError         → 500 (read/write rejected)
    └── ApiClientError           → raised client-side by app.client

    Only ValidationError has its own status code. The other three server-side
    errors all map to 500 and the caller cannot tell them apart from the body.
"""

from typing import Any, Dict, Optional


class BlogError(Exception):
    """
    Base exception for all Quillpost application errors.

    Attributes:
        message:  Error description returned in the envelope's `error` field
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BlogError):
    """
    Raised when client input fails validation.

    When:    title/content missing or empty, body is not valid JSON.
    HTTP:    400 Bad Request

    Raised before any database access, so a rejected request has no side effects.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConfigurationError(BlogError):
    """Raised when a connection is attempted without a configured connection string."""

    def __init__(
        self,
        message: str = "COSMOS_DB_CONNECTION_STRING is not defined",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(BlogError):
    """
    Raised when the document store cannot be reached.

    What:    Building the client or ensuring the database/container failed.
    HTTP:    500 Internal Server Error

    The failed attempt is not cached by the connection manager; the next
    request starts a fresh attempt.
    """

    def __init__(
        self,
        message: str = "Could not connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceError(BlogError):
    """
    Raised when the document store rejects a read or a write.

    HTTP:    500 Internal Server Error
    The message carries the underlying store error text.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ApiClientError(BlogError):
    """
    Raised by app.client when an API call fails.

    Either the HTTP status was not 2xx, or the envelope reported success=false.
    `status_code` is None when the request never produced a response.
    """

    def __init__(
        self,
        message: str = "API request failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
