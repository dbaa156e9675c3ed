"""Per-leg travel time: live directions when available, speed model otherwise."""
from __future__ import annotations

import asyncio
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from planner.catalog import DAY_TRIP_SPEEDS
from planner.config import get_directions_config
from planner.errors import ServiceError
from planner.geo import distance_m
from planner.logs import get_logger
from planner.schemas import GeoPoint, TransportMode
from planner.tools.directions import Directions

logger = get_logger(__name__)


class LegEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration: float
    distance: float
    source: Literal["directions", "speed_model"]

    @property
    def degraded(self) -> bool:
        return self.source == "speed_model"


def speed_model_duration(distance: float, mode: TransportMode, speeds: Mapping[TransportMode, float]) -> float:
    """Seconds needed to cover ``distance`` metres at the preset speed for ``mode``."""
    kmh = speeds.get(mode) or DAY_TRIP_SPEEDS[TransportMode.walking]
    return distance / (kmh * 1000.0 / 3600.0)


class TravelEstimator:
    def __init__(
        self,
        directions: Optional[Directions] = None,
        *,
        speeds: Optional[Mapping[TransportMode, float]] = None,
        timeout: Optional[float] = None,
    ):
        self.directions = directions
        self.speeds = dict(speeds or DAY_TRIP_SPEEDS)
        self.timeout = get_directions_config()["timeout"] if timeout is None else timeout

    async def estimate(self, origin: GeoPoint, destination: GeoPoint, mode: TransportMode) -> float:
        leg = await self.estimate_leg(origin, destination, mode)
        return leg.duration

    async def estimate_leg(self, origin: GeoPoint, destination: GeoPoint, mode: TransportMode) -> LegEstimate:
        """Never raises: every directions failure degrades to the speed model."""
        distance = distance_m(origin, destination)
        if self.directions is not None:
            try:
                duration = await asyncio.wait_for(
                    self.directions.duration(origin, destination, mode), timeout=self.timeout
                )
                return LegEstimate(duration=max(0.0, float(duration)), distance=distance, source="directions")
            except asyncio.TimeoutError:
                logger.warning("Directions timed out after %.1fs; using %s speed model", self.timeout, mode.value)
            except ServiceError as exc:
                logger.warning("Directions unavailable (%s); using %s speed model", exc, mode.value)
            except Exception:
                logger.warning("Directions failed; using %s speed model", mode.value, exc_info=True)
        return LegEstimate(
            duration=speed_model_duration(distance, mode, self.speeds),
            distance=distance,
            source="speed_model",
        )
