from typing import Any, Dict, Iterable, List, Optional, Protocol

import httpx

from planner.config import get_places_config
from planner.errors import ServiceError, TransientServiceError
from planner.logs import get_logger
from planner.schemas import Category, GeoPoint, PlaceCandidate

logger = get_logger(__name__)


class PlaceSearch(Protocol):
    async def search(self, category: Category, center: GeoPoint, radius_m: float) -> List[PlaceCandidate]:
        ...


# OpenTripMap "kinds" queried for each category.
CATEGORY_KINDS: Dict[Category, str] = {
    Category.restaurant: "restaurants",
    Category.cafe: "cafes",
    Category.bar: "bars,pubs",
    Category.museum: "museums",
    Category.culture: "cultural,theatres_and_entertainments",
    Category.sport: "sport",
    Category.shopping: "shops,marketplaces",
    Category.nature: "natural,gardens_and_parks",
    Category.entertainment: "amusements,cinemas",
    Category.historical: "historic",
    Category.religious: "religion",
    Category.adventure_park: "amusement_parks",
    Category.ice_rink: "winter_sports",
    Category.swimming_pool: "pools",
    Category.climbing_gym: "climbing",
    Category.escape_room: "amusements",
    Category.laser_tag: "amusements",
    Category.bowling: "bowling_alleys",
    Category.mini_golf: "miniature_parks",
    Category.paintball: "amusements",
    Category.karting: "kart",
    Category.trampoline_park: "amusements",
    Category.water_park: "water_parks",
    Category.zoo: "zoos",
    Category.aquarium: "aquariums",
}


class OpenTripMapPlaces:
    """
    Radius search on OpenTripMap. Results are tagged with the requested
    category; OpenTripMap ``kinds`` become the description tags.
    """

    def __init__(self, *, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, limit: Optional[int] = None):
        cfg = get_places_config()
        self.api_key = api_key or cfg["api_key"]
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg["timeout"]
        self.limit = limit or cfg["limit"]

    async def search(self, category: Category, center: GeoPoint, radius_m: float) -> List[PlaceCandidate]:
        if not self.api_key:
            raise ServiceError("OPENTRIPMAP_API_KEY environment variable not configured")

        params = {
            "radius": int(radius_m),
            "lon": center.longitude,
            "lat": center.latitude,
            "kinds": CATEGORY_KINDS.get(category, "interesting_places"),
            "format": "json",
            "limit": self.limit,
            "apikey": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}/places/radius", params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise TransientServiceError(f"Place search unreachable: {exc}") from exc
        except (httpx.HTTPStatusError, ValueError) as exc:
            raise ServiceError(f"Place search failed: {exc}") from exc

        if not isinstance(data, list):
            raise ServiceError("Unexpected place search payload")
        return self._candidates(data, category)

    def _candidates(self, items: Iterable[Dict[str, Any]], category: Category) -> List[PlaceCandidate]:
        out: List[PlaceCandidate] = []
        seen: set[str] = set()
        for item in items:
            name = (item.get("name") or "").strip()
            xid = item.get("xid")
            point = item.get("point") or {}
            if not name or not xid or xid in seen:
                continue
            try:
                geo = GeoPoint(latitude=float(point["lat"]), longitude=float(point["lon"]))
            except (KeyError, TypeError, ValueError):
                continue
            kinds = {k.strip() for k in str(item.get("kinds") or "").split(",") if k.strip()}
            out.append(
                PlaceCandidate(
                    id=str(xid),
                    name=name,
                    category=category,
                    point=geo,
                    rating=self._rating(item.get("rate")),
                    description_tags=frozenset(kinds),
                )
            )
            seen.add(xid)
        return out

    @staticmethod
    def _rating(rate: Any) -> Optional[float]:
        """OpenTripMap rates 1-3 (optionally suffixed "h"); map onto 0-5 stars."""
        if rate in (None, ""):
            return None
        digits = "".join(ch for ch in str(rate) if ch.isdigit())
        if not digits:
            return None
        value = min(int(digits), 3)
        return round(value / 3 * 5, 1) if value else None
