"""
Error kinds raised by the scheduling core.

Each kind maps to one HTTP status at the API boundary (see main.py).
DeliveryError never leaves the reminder loop.
"""


class SchedulingError(Exception):
    """Base class for errors surfaced to callers of the scheduling core."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input, e.g. a lesson ending before it starts."""

    status_code = 400


class ConflictError(SchedulingError):
    """The requested slot overlaps an existing lesson of the same teacher."""

    status_code = 409

    def __init__(self, message: str, conflicting_ids=None):
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids or [])


class NotFoundError(SchedulingError):
    """Unknown lesson or teacher id."""

    status_code = 404


class AuthorizationError(SchedulingError):
    """The acting teacher does not own the lesson."""

    status_code = 403


class DeliveryError(Exception):
    """A notifier could not deliver a reminder."""


class AuthTokenError(Exception):
    """A bearer token is missing, malformed or expired."""
