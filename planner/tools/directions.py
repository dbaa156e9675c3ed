from typing import Optional, Protocol

import httpx

from planner.config import get_directions_config
from planner.errors import DirectionsUnavailable, TransientServiceError
from planner.logs import get_logger
from planner.schemas import GeoPoint, TransportMode

logger = get_logger(__name__)


class Directions(Protocol):
    async def duration(self, origin: GeoPoint, destination: GeoPoint, mode: TransportMode) -> float:
        ...


class OsrmDirections:
    """Expected travel time for one leg from an OSRM server (seconds)."""

    PROFILES = {
        TransportMode.walking: "foot",
        TransportMode.cycling: "bike",
        TransportMode.driving: "driving",
    }

    def __init__(self, *, base_url: Optional[str] = None, timeout: Optional[float] = None):
        cfg = get_directions_config()
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg["timeout"]

    async def duration(self, origin: GeoPoint, destination: GeoPoint, mode: TransportMode) -> float:
        profile = self.PROFILES.get(mode)
        if profile is None:
            raise DirectionsUnavailable(f"OSRM has no profile for {mode.value}")

        lonlat = f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        url = f"{self.base_url}/route/v1/{profile}/{lonlat}"
        params = {"overview": "false", "steps": "false"}

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=5.0)) as client:
                r = await client.get(url, params=params)
                r.raise_for_status()
                data = r.json()
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise TransientServiceError(f"OSRM unreachable: {exc}") from exc
        except (httpx.HTTPStatusError, ValueError) as exc:
            raise DirectionsUnavailable(f"OSRM request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise DirectionsUnavailable("Unexpected OSRM payload")
        if data.get("code") not in (None, "Ok"):
            raise DirectionsUnavailable(f"OSRM returned {data.get('code')}")
        routes = data.get("routes") or []
        if not routes or routes[0].get("duration") is None:
            raise DirectionsUnavailable("OSRM found no route")
        try:
            return float(routes[0]["duration"])
        except (TypeError, ValueError) as exc:
            raise DirectionsUnavailable(f"OSRM returned a bad duration: {exc}") from exc
