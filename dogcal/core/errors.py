"""Domain errors raised by the scheduling services.

Routes never catch these individually; ``dogcal.main`` registers a single
exception handler that renders ``{"detail": message}`` with the status code
carried by the error class.
"""


class SchedulingError(Exception):
    """Base class for every error the scheduling core raises."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input: bad time range, out-of-bounds recurrence count."""

    status_code = 400


class PermissionDeniedError(SchedulingError):
    """Role or ownership mismatch for the requested action."""

    status_code = 403


class ConstraintError(SchedulingError):
    """A referenced friendship does not exist for an assignment."""

    status_code = 400


class ConflictError(SchedulingError):
    """Overlapping time window, or a state that no longer allows the change."""

    status_code = 409


class NotFoundError(SchedulingError):
    """Referenced hangout, suggestion or pup does not exist."""

    status_code = 404
