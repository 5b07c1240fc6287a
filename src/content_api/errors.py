# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Content API error classes.

Every failure raised by a filter or a route handler ends up as a JSON error
envelope at the dispatch boundary:

```json
{
  "status": "error",
  "code": 403,
  "message": "Unauthorized"
}
```

Exceptions derived from ``ContentAPIError`` carry their own HTTP status code.
Foreign exceptions are inspected by ``error_details`` (Starlette
``HTTPException`` and any exception with an integer ``code`` attribute);
everything else maps to 500.
"""

from typing import Any

from starlette.exceptions import HTTPException

# Default messages for error envelopes without an explicit message.
HTTP_STATUS_MESSAGES: dict[int, str] = {
    200: "Success",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    500: "Internal Server Error",
}


def status_message(code: int) -> str:
    """Return the default message for an HTTP status code ("" if unknown)."""
    return HTTP_STATUS_MESSAGES.get(code, "")


class ContentAPIError(Exception):
    """Base exception for content API errors.

    Usage:
        raise ContentAPIError("Product 'abc' is not published", code=404)
    """

    default_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the error.

        Args:
            message: Human-readable message; falls back to the status table
            code: HTTP status code (defaults to the class default)
            details: Additional context for debugging
        """
        self.code = code or self.default_code
        self.message = message
        self.details = details
        super().__init__(message or status_message(self.code))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and debugging."""
        return {
            "code": self.code,
            "message": self.message or status_message(self.code),
            "details": self.details,
        }


# =============================================================================
# Specific Error Classes
# =============================================================================


class UnknownTransformerError(ContentAPIError):
    """Raised when a schema references a transformer that is not registered."""

    def __init__(self, name: Any, field: str | None = None):
        self.name = name
        self.field = field
        if field is not None:
            message = f'Invalid transformer for field "{field}"'
        else:
            message = f"Unknown transformer '{name}'"
        super().__init__(message=message, details={"transformer": repr(name), "field": field})


class UnknownFilterError(ContentAPIError):
    """Raised when a route references a named filter that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(message=f"Unknown filter '{name}'", details={"filter": name})


class InvalidHandlerResultError(ContentAPIError):
    """Raised when a route handler returns neither a response nor a mapping."""

    def __init__(self, result: Any):
        self.result = result
        super().__init__(
            message=(
                "Route handler must return a mapping or a Response, "
                f"got {type(result).__name__}"
            ),
            details={"type": type(result).__name__},
        )


class FilterRejectedError(ContentAPIError):
    """Raised by filters to abort a request before the handler runs.

    Usage:
        def require_token(context):
            if context.request.headers.get("X-Token") != "secret":
                raise FilterRejectedError("Unauthorized")
    """

    default_code = 403


# =============================================================================
# Helpers
# =============================================================================


def _is_status_code(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599


def status_code_of(exc: BaseException) -> int | None:
    """Return the HTTP status code an exception carries, or None."""
    if isinstance(exc, ContentAPIError):
        return exc.code
    if isinstance(exc, HTTPException):
        return exc.status_code
    code = getattr(exc, "code", None)
    if _is_status_code(code):
        return code
    return None


def error_details(exc: BaseException) -> tuple[int, str | None]:
    """Extract ``(code, message)`` from an exception raised by a filter or handler.

    The message is ``None`` when the error envelope should use the default
    message for the code. Exceptions without a status code map to 500.
    """
    code = status_code_of(exc)
    if code is None:
        return 500, None

    if isinstance(exc, ContentAPIError):
        return code, exc.message
    if isinstance(exc, HTTPException):
        return code, exc.detail if isinstance(exc.detail, str) else None
    return code, str(exc) or None
