import asyncio
from typing import Optional, Protocol

from planner.errors import LocationTimeout
from planner.logs import get_logger
from planner.schemas import GeoPoint

logger = get_logger(__name__)


class LocationProvider(Protocol):
    async def current_location(self) -> Optional[GeoPoint]:
        ...


class StaticLocationProvider:
    """Serves a fix already reported by the client device (or none)."""

    def __init__(self, point: Optional[GeoPoint] = None):
        self.point = point

    async def current_location(self) -> Optional[GeoPoint]:
        return self.point


async def await_location_fix(provider: Optional[LocationProvider], timeout: float = 10.0) -> GeoPoint:
    """Wait up to ``timeout`` seconds for a device fix; no automatic retry."""
    if provider is None:
        raise LocationTimeout(timeout)
    try:
        point = await asyncio.wait_for(provider.current_location(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("No location fix after %.1fs", timeout)
        raise LocationTimeout(timeout) from exc
    if point is None:
        logger.warning("Location provider returned no fix")
        raise LocationTimeout(timeout)
    return point
