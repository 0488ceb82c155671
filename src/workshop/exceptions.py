"""Domain exception taxonomy.

Services raise these; the HTTP layer maps each one to a status code and a
stable ``error_code`` tag (see ``workshop.middleware.error_handler``).
"""

from __future__ import annotations


class WorkshopError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WorkshopError):
    """Malformed or missing input."""

    status_code = 400
    error_code = "validation_error"


class InsufficientSparksError(ValidationError):
    """Balance is lower than the requested debit."""

    error_code = "insufficient_sparks"


class NotFoundError(WorkshopError):
    """Entity absent or inactive."""

    status_code = 404
    error_code = "not_found"


class AuthorizationError(WorkshopError):
    """Non-admin calling an admin route."""

    status_code = 403
    error_code = "forbidden"


class CooldownError(WorkshopError):
    """Quiz retake attempted too soon."""

    status_code = 429
    error_code = "cooldown"


class SequenceError(WorkshopError):
    """Marathon day submitted out of order."""

    status_code = 409
    error_code = "sequence_error"


class StateError(WorkshopError):
    """Transition out of a terminal moderation state."""

    status_code = 409
    error_code = "invalid_state"


class ConflictError(WorkshopError):
    """Referential or uniqueness conflict."""

    status_code = 409
    error_code = "conflict"


class PersistenceError(WorkshopError):
    """Store unavailable or query failure."""

    status_code = 503
    error_code = "persistence_error"
