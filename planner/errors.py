"""Exception taxonomy shared by the planner flows and the service clients."""
from __future__ import annotations


class PlannerError(Exception):
    """Base class for every error raised by the planner."""


class ServiceError(PlannerError):
    """An external collaborator (geocoder, place search, directions) failed."""


class TransientServiceError(ServiceError):
    """Network or timeout failure that is worth retrying once."""


class DirectionsUnavailable(ServiceError):
    """The routing service produced no usable route for a leg."""


class InsufficientAddresses(PlannerError):
    """Too few addresses resolved to real coordinates for a multi-stop trip."""

    def __init__(self, found: int, requested: int):
        self.found = found
        self.requested = requested
        super().__init__(
            f"Could only locate {found}/{requested} addresses; "
            "check the spelling or use simpler place names."
        )


class LocationTimeout(PlannerError):
    """No device location fix arrived within the allowed wait."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"No device location fix within {timeout:.0f}s")
