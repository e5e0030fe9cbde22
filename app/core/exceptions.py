"""Application exception hierarchy.

Services raise these; the HTTP layer maps them to status codes in
``app.main``.  Persistence errors (``SQLAlchemyError``) are never wrapped and
propagate to the catch-all handler unchanged.
"""

from typing import Any, Optional


class BookPrepperError(Exception):
    """Base class for all application errors.

    ``message`` is safe to return to clients; ``context`` is for logs only.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BookPrepperError):
    """Client input broke a business rule (HTTP 400)."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(BookPrepperError):
    """A referenced record does not exist (HTTP 404)."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        ctx: dict[str, Any] = {"resource": resource}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message or f"{resource} not found.", context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(BookPrepperError):
    """The record is no longer in a state that allows the operation (HTTP 409)."""

    def __init__(
        self,
        message: str = "Suggestion already processed.",
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(BookPrepperError):
    """Missing or invalid bearer token (HTTP 401)."""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message=message)


class PermissionDeniedError(BookPrepperError):
    """Authenticated but not allowed (HTTP 403)."""

    def __init__(self, message: str = "Administrator access required"):
        super().__init__(message=message)
