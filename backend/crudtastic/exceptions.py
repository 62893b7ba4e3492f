"""
Crudtastic: Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for the failure modes of the API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered by the Server) turn them into
       structured JSON error responses with the matching HTTP status.

Exception Hierarchy:
    CrudtasticError (base)
    ├── ValidationError            → 400 Bad Request
    ├── NotFoundError              → 404 Not Found
    ├── DatabaseError              → 500 Internal Server Error
    └── ConfigurationError         → raised at startup, never served
    HandlerNotImplementedError     → programming error (NotImplementedError)

Not-found lookups inside the route handlers never reach the exception
handlers: the handlers turn them into a terminal 404 response themselves.
"""

from typing import Any, Dict, Optional


class CrudtasticError(Exception):
    """
    Base exception for all Crudtastic application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only as `details`)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CrudtasticError):
    """
    Raised when client input cannot be applied to a table.

    When:    Unknown column names in a create/update payload, a body that is
             not a JSON object.
    HTTP:    400 Bad Request
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


class NotFoundError(CrudtasticError):
    """
    Raised by the data model when no row matches a primary key.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class DatabaseError(CrudtasticError):
    """
    Raised when database operations fail outside a request, e.g. reflection
    or the startup row-count check.

    HTTP:    500 Internal Server Error
    The message returned to the client is always generic; details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(CrudtasticError):
    """Raised when the Server is constructed with unusable settings."""

    def __init__(
        self,
        message: str = "Configuration validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class HandlerNotImplementedError(NotImplementedError):
    """
    Raised when a route handler variant does not implement handle().

    This is a programming error. Nothing in the request pipeline catches it;
    it surfaces as an unexpected 500.
    """

    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(f"{handler_name} did not implement handle()")
