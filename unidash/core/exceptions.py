"""
Dashboard-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from unidash.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="View", resource_id=42)
    raise ValidationError("key is required", details={"key": "required"})
"""


class NotFoundError(Exception):
    """Raised when a referenced View, University, Column or cell does not exist.

    Only raised by reads and updates. Deleting an id that does not exist is a
    no-op, never a NotFoundError.

    Args:
        resource: Human-readable entity name (e.g. "View", "University").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is malformed or breaks a rule (missing field,
    duplicate key within a view, unknown column type, ...).

    Maps to HTTP 422 in blueprint error handlers. The operation is not
    attempted.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class StoreUnavailableError(Exception):
    """Raised when the relational store cannot be reached.

    Fatal for the current request; surfaced as HTTP 503. Retrying belongs to
    the caller, not to this package.
    """


class AIConfigError(Exception):
    """Raised when the AI refresh transport is misconfigured (missing key or URL)."""


class AIProviderError(Exception):
    """Raised when the AI transport fails (network error, non-2xx response)."""


class AIResponseError(AIProviderError):
    """Raised when the AI response cannot be parsed into refresh results."""
