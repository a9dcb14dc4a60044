"""Error taxonomy for the garage domain and its persistence collaborators."""

from typing import Optional


class GarageError(Exception):
    """Base class for every garage failure. The message is one line, user facing."""


class ValidationError(GarageError):
    """Bad constructor or input arguments."""


class CapacityExceeded(GarageError):
    """A truck was asked to carry more than its capacity."""


class InvalidState(GarageError):
    """Operation not allowed in the vehicle's (or request's) current state."""


class PersistenceFailure(GarageError):
    """The persistence service failed or rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VehicleNotFound(PersistenceFailure):
    """The persistence service does not know the vehicle id."""


class AuthExpired(GarageError):
    """The bearer credential was rejected (expired, malformed or absent)."""
