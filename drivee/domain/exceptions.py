"""
Domain-specific exception hierarchy for the drivee core.
"""


class DriveeError(Exception):
    """Base class for all application-level errors."""


class EntityStoreError(DriveeError):
    """Raised when records cannot be read from or written to the entity store."""


class BookingConflictError(DriveeError):
    """Raised when a proposed booking overlaps an existing one at commit time."""

    def __init__(self, message: str = "", conflicts=None):
        super().__init__(
            message or "This time slot is no longer available. Please select another time."
        )
        self.conflicts = list(conflicts or [])


class BookingNotFoundError(DriveeError):
    """Raised when a booking id does not resolve to a stored record."""


class InvalidStatusTransitionError(DriveeError):
    """Raised when a booking status change would move the lifecycle backwards."""
