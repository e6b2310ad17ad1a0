"""
Platform-wide exception hierarchy.

Services raise these types; the admin action layer and the blueprints
translate them once into result dicts / HTTP responses.

Usage:
    from advocacy.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Profile", resource_id="u-1")
    raise ValidationError("Invalid space value", details={"space": "nope"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Profile").
        resource_id: The key that was looked up. Logged, not returned to clients.
    """

    def __init__(self, resource: str, resource_id: str | int | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails a business rule (bad enum value, scope mismatch).

    The message is shown to the caller verbatim, so it must be specific.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(Exception):
    """No authenticated identity on the request."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class AuthorizationError(Exception):
    """Authenticated, but the caller's platform role does not allow the action."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class StoreUnavailableError(Exception):
    """Raised when a backing table is missing because a migration was not applied.

    Args:
        table: Name of the missing relation.
        migration: Alembic revision that creates it.
        label: Short human name for the table used in the message.
    """

    def __init__(self, table: str, migration: str, label: str | None = None) -> None:
        self.table = table
        self.migration = migration
        label = label or table
        super().__init__(f"{label} table missing (migration {migration} required)")
