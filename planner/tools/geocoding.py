from typing import Any, Dict, List, Optional, Protocol

import httpx

from planner.config import get_geocoding_config
from planner.errors import ServiceError, TransientServiceError
from planner.logs import get_logger
from planner.schemas import GeoPoint, Placemark

logger = get_logger(__name__)


class Geocoder(Protocol):
    async def geocode(self, query: str, language: str = "en") -> List[Placemark]:
        ...

    async def reverse(self, point: GeoPoint, language: str = "en") -> Optional[Placemark]:
        ...


class NominatimGeocoder:
    """
    Forward and reverse geocoding against a Nominatim instance.
    Network failures surface as ``TransientServiceError`` so callers can retry.
    """

    def __init__(self, *, base_url: Optional[str] = None, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        cfg = get_geocoding_config()
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.user_agent = user_agent or cfg["user_agent"]
        self.timeout = timeout if timeout is not None else cfg["timeout"]

    async def geocode(self, query: str, language: str = "en") -> List[Placemark]:
        params = {"q": query, "format": "jsonv2", "addressdetails": 1, "limit": 1}
        data = await self._get("/search", params, language)
        if not isinstance(data, list):
            raise ServiceError(f"Unexpected geocoder payload for '{query}'")
        placemarks = [p for p in (self._placemark(item) for item in data) if p is not None]
        logger.debug("Geocoder returned %d placemark(s) for '%s'", len(placemarks), query)
        return placemarks

    async def reverse(self, point: GeoPoint, language: str = "en") -> Optional[Placemark]:
        params = {"lat": point.latitude, "lon": point.longitude, "format": "jsonv2", "addressdetails": 1}
        data = await self._get("/reverse", params, language)
        if not isinstance(data, dict) or data.get("error"):
            return None
        return self._placemark(data)

    async def _get(self, path: str, params: Dict[str, Any], language: str) -> Any:
        headers = {"User-Agent": self.user_agent, "Accept-Language": language}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}{path}", params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise TransientServiceError(f"Geocoder unreachable: {exc}") from exc
        except (httpx.HTTPStatusError, ValueError) as exc:
            raise ServiceError(f"Geocoder request failed: {exc}") from exc

    @staticmethod
    def _placemark(item: Dict[str, Any]) -> Optional[Placemark]:
        try:
            point = GeoPoint(latitude=float(item["lat"]), longitude=float(item["lon"]))
        except (KeyError, TypeError, ValueError):
            return None
        address = item.get("address") or {}
        locality = (
            address.get("city")
            or address.get("town")
            or address.get("village")
            or address.get("municipality")
        )
        return Placemark(
            point=point,
            name=item.get("name") or None,
            house_number=address.get("house_number"),
            street=address.get("road") or address.get("pedestrian"),
            locality=locality,
            postal_code=address.get("postcode"),
            country=address.get("country"),
        )
