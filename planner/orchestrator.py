# planner/orchestrator.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from planner.agents.address_resolver import AddressResolver
from planner.agents.adventure_generator import AdventureGenerator
from planner.agents.budget_selector import BudgetSelector
from planner.agents.route_optimizer import build_itinerary, order
from planner.agents.suggestion_scorer import rank
from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import DAY_TRIP_SPEEDS, SUGGESTION_SPEEDS, UNUSUAL_CATEGORIES, CategoryDurationTable
from planner.config import get_planner_config
from planner.errors import InsufficientAddresses, ServiceError
from planner.geo import distance_m
from planner.logs import get_logger
from planner.schemas import (
    AdventureRequest,
    AdventureResult,
    Budget,
    Category,
    DayTripRequest,
    GuidedTourRequest,
    Itinerary,
    PlaceCandidate,
    ReplacementRequest,
    ResolvedAddress,
    StartPoint,
    SuggestionPlan,
    SuggestionRequest,
)
from planner.tools.directions import Directions, OsrmDirections
from planner.tools.geocoding import Geocoder, NominatimGeocoder
from planner.tools.location import LocationProvider, StaticLocationProvider, await_location_fix
from planner.tools.places import OpenTripMapPlaces, PlaceSearch

logger = get_logger(__name__)


@dataclass
class PlannerServices:
    """External collaborators and tunables injected into every flow."""

    geocoder: Geocoder
    places: PlaceSearch
    directions: Optional[Directions] = None
    location: Optional[LocationProvider] = None
    durations: CategoryDurationTable = field(default_factory=CategoryDurationTable)
    default_city: str = "Luxembourg"
    geocode_retry_delay: float = 1.0
    location_timeout: float = 10.0
    tolerance_margin: float = 600.0
    min_real_addresses: int = 2

    def resolver(self) -> AddressResolver:
        return AddressResolver(self.geocoder, default_city=self.default_city, retry_delay=self.geocode_retry_delay)

    def estimator(self, speeds=DAY_TRIP_SPEEDS) -> TravelEstimator:
        return TravelEstimator(self.directions, speeds=speeds)


def default_services() -> PlannerServices:
    cfg = get_planner_config()
    return PlannerServices(
        geocoder=NominatimGeocoder(),
        places=OpenTripMapPlaces(),
        directions=OsrmDirections(),
        default_city=cfg["default_city"],
        geocode_retry_delay=cfg["geocode_retry_delay"],
        location_timeout=cfg["location_timeout"],
        tolerance_margin=cfg["tolerance_margin"],
    )


# Keyword → category for typed day-trip addresses, first match wins.
_NAME_CATEGORIES = (
    (("restaurant", "café", "cafe", "bar"), Category.restaurant),
    (("museum", "musée", "musee"), Category.culture),
    (("park", "parc"), Category.nature),
    (("shop", "store", "magasin"), Category.shopping),
)


def categorize_place_name(name: str) -> Category:
    lowered = name.lower()
    for keywords, category in _NAME_CATEGORIES:
        if any(k in lowered for k in keywords):
            return category
    return Category.cafe


async def resolve_start(request: StartPoint, services: PlannerServices) -> ResolvedAddress:
    """Typed address first; otherwise wait for a device fix."""
    if request.address.strip():
        resolved = await services.resolver().resolve(request.address)
        if resolved is not None:
            return resolved

    if request.device_location is not None:
        provider: Optional[LocationProvider] = StaticLocationProvider(request.device_location)
    else:
        provider = services.location
    point = await await_location_fix(provider, services.location_timeout)
    return ResolvedAddress(
        input_text=request.address,
        point=point,
        display_name="Current position",
        confidence=1.0,
        source="device",
    )


async def _search_categories(
    categories: Sequence[Category],
    start: ResolvedAddress,
    radius_m: float,
    services: PlannerServices,
) -> Dict[Category, List[PlaceCandidate]]:
    found: Dict[Category, List[PlaceCandidate]] = {}
    for category in dict.fromkeys(categories):
        try:
            results = await services.places.search(category, start.point, radius_m)
        except ServiceError:
            logger.warning("Place search failed for %s; skipping", category.value, exc_info=True)
            continue
        in_radius = [c for c in results if distance_m(start.point, c.point) <= radius_m]
        logger.info("Found %d %s place(s) within %.0fm", len(in_radius), category.value, radius_m)
        found[category] = in_radius
    return found


async def plan_day_trip(request: DayTripRequest, services: PlannerServices) -> Itinerary:
    texts = [request.start_address] + [d for d in request.destinations if d.strip()]
    if not request.start_address.strip():
        raise InsufficientAddresses(0, len(texts))
    resolved = [r for r in await services.resolver().resolve_many(texts) if r is not None]

    real = [r for r in resolved if not r.is_fallback]
    if len(real) < services.min_real_addresses:
        raise InsufficientAddresses(len(real), len(texts))
    if len(resolved) < len(texts):
        logger.warning("%d address(es) could not be resolved and were dropped", len(texts) - len(resolved))

    start, *others = resolved
    places = [
        PlaceCandidate(
            id=f"address-{idx}",
            name=address.display_name,
            category=categorize_place_name(address.display_name),
            point=address.point,
        )
        for idx, address in enumerate(others, start=1)
    ]
    ordered = order(start.point, places)
    return await build_itinerary(
        start,
        ordered,
        services.estimator(DAY_TRIP_SPEEDS),
        request.mode,
        services.durations,
        round_trip=request.round_trip,
    )


async def plan_suggestions(request: SuggestionRequest, services: PlannerServices) -> SuggestionPlan:
    start = await resolve_start(request, services)
    radius_m = request.radius_km * 1000.0
    budget = Budget(
        time_budget=request.available_time,
        radius_budget=radius_m,
        tolerance_margin=services.tolerance_margin,
        round_trip=request.round_trip,
    )
    candidates = await _search_categories(request.categories, start, radius_m, services)

    estimator = services.estimator(SUGGESTION_SPEEDS)
    selector = BudgetSelector(estimator, services.durations)
    if request.fill_in:
        picks = await selector.select(candidates, request.categories, start.point, budget, request.mode)
    else:
        picks = selector.select_mandatory(candidates, request.categories, start.point, budget)

    itinerary = await build_itinerary(
        start, order(start.point, picks), estimator, request.mode, services.durations, budget
    )
    covered = {p.category for p in picks}
    missing = [c for c in dict.fromkeys(request.categories) if c not in covered]
    if missing:
        logger.info("No place fits for: %s", ", ".join(c.value for c in missing))
    return SuggestionPlan(
        itinerary=itinerary,
        suggestions=rank(picks, start.point, services.durations),
        missing_categories=missing,
    )


async def plan_adventure(request: AdventureRequest, services: PlannerServices) -> AdventureResult:
    start = await resolve_start(request, services)
    radius_m = request.radius_km * 1000.0
    budget = Budget(
        time_budget=request.available_time,
        radius_budget=radius_m,
        tolerance_margin=services.tolerance_margin,
    )
    categories = [c for c in UNUSUAL_CATEGORIES if c != request.excluded_category]
    found = await _search_categories(categories, start, radius_m, services)

    pool: List[PlaceCandidate] = []
    seen = set()
    for candidates in found.values():
        for candidate in candidates:
            if candidate.id not in seen:
                seen.add(candidate.id)
                pool.append(candidate)

    estimator = services.estimator(SUGGESTION_SPEEDS)
    generator = AdventureGenerator(estimator, services.durations)
    stops, description = generator.generate(start.point, pool, request.excluded_category, budget)
    itinerary = await build_itinerary(start, stops, estimator, request.mode, services.durations, budget)
    chosen = {s.id for s in stops}
    return AdventureResult(
        itinerary=itinerary,
        description=description,
        candidate_pool=[c for c in pool if c.id not in chosen],
    )


async def replace_adventure_stop(request: ReplacementRequest, services: PlannerServices) -> Itinerary:
    generator = AdventureGenerator(services.estimator(SUGGESTION_SPEEDS), services.durations)
    return await generator.replace(request.itinerary, request.index_to_replace, request.remaining_pool)


async def plan_guided_tour(request: GuidedTourRequest, services: PlannerServices) -> Itinerary:
    """Re-order a curated tour from the visitor's position and time every stop."""
    start = await resolve_start(request, services)
    ordered = order(start.point, request.tour.stops)
    logger.info("Guided tour '%s' with %d stop(s)", request.tour.title, len(ordered))
    return await build_itinerary(start, ordered, services.estimator(DAY_TRIP_SPEEDS), request.mode, services.durations)
