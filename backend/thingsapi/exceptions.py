"""
Things API: Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a client-safe message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       HTTP status codes and `{"error": ...}` JSON bodies.
Who:   Raised by services, routes and the authentication dependency.

Exception Hierarchy:
    ThingsAPIError (base)
    ├── ValidationError          → 422 Unprocessable Entity (field-level messages)
    ├── NotFoundError            → 404 Not Found
    ├── UnauthorizedError        → 401 Unauthorized
    ├── UnsupportedFormatError   → 406 Not Acceptable
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Iterable, List, Optional


class ThingsAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ThingsAPIError):
    """
    Raised when a request body fails the resource's validation rules.

    `errors` maps each offending field to a list of messages, the shape
    returned to the client:

        {"error": {"name": ["can't be blank"]}}
    """

    status_code = 422

    def __init__(
        self,
        errors: Optional[Dict[str, List[str]]] = None,
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, field: str, *messages: str) -> "ValidationError":
        return cls(errors={field: list(messages)})


class NotFoundError(ThingsAPIError):
    """
    Raised when a requested resource does not exist.

    Also covers identifiers that could never exist (e.g. `/api/things/abc`):
    from the client's point of view both are an unknown identifier.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UnauthorizedError(ThingsAPIError):
    """Raised by the authentication dependency for missing or bad credentials."""

    status_code = 401

    def __init__(
        self,
        message: str = "HTTP Token: Access denied.",
        realm: str = "Application",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.realm = realm


class UnsupportedFormatError(ThingsAPIError):
    """Raised for a path format suffix other than `.json`."""

    status_code = 406

    def __init__(self, fmt: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["format"] = fmt
        super().__init__(
            message=f"Format '{fmt}' is not supported. Only 'json' is available.",
            context=ctx,
        )
        self.format = fmt


class DatabaseError(ThingsAPIError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the context
    (original exception type, ids) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ── Field messages for pydantic errors ────────────────────────────────────

# pydantic error types with a friendlier client message
FRIENDLY_MESSAGES = {
    "missing": "can't be blank",
    "string_type": "must be a string",
    "string_too_long": "is too long (maximum is 255 characters)",
    "json_invalid": "request body is not valid JSON",
    "model_type": "request body must be a JSON object",
    "model_attributes_type": "request body must be a JSON object",
    "dict_type": "request body must be a JSON object",
}


def validation_messages(errors: Iterable[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Convert pydantic error entries into `{field: [messages]}`."""
    fields: Dict[str, List[str]] = {}
    for err in errors:
        err_type = err.get("type", "")
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        key = ".".join(str(part) for part in loc)
        if not key or err_type == "json_invalid":
            key = "base"
        if key == "base" and err_type == "missing":
            message = "request body is required"
        else:
            message = FRIENDLY_MESSAGES.get(err_type, err.get("msg", "is invalid"))
        fields.setdefault(key, []).append(message)
    return fields
