"""Surprise itineraries ("adventures") and single-stop replacement."""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from planner.agents.route_optimizer import build_itinerary
from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import CategoryDurationTable
from planner.geo import distance_m
from planner.logs import get_logger
from planner.schemas import Budget, Category, GeoPoint, Itinerary, PlaceCandidate

logger = get_logger(__name__)

MAX_ADVENTURE_STOPS = 3


def describe(stops: Sequence[PlaceCandidate]) -> str:
    if not stops:
        return "No adventure found"
    if len(stops) == 1:
        return f"A unique discovery: {stops[0].name}"
    categories: List[Category] = []
    for stop in stops:
        if stop.category not in categories:
            categories.append(stop.category)
    if len(categories) == 1:
        return f"An immersion in {categories[0].display_name} with {len(stops)} places"
    return "A varied route: " + ", ".join(c.display_name for c in categories)


class AdventureGenerator:
    def __init__(
        self,
        estimator: TravelEstimator,
        durations: Optional[CategoryDurationTable] = None,
        max_stops: int = MAX_ADVENTURE_STOPS,
    ):
        self.estimator = estimator
        self.durations = durations or CategoryDurationTable()
        self.max_stops = max_stops

    def generate(
        self,
        start: GeoPoint,
        pool: Sequence[PlaceCandidate],
        excluded_category: Optional[Category],
        budget: Budget,
    ) -> Tuple[List[PlaceCandidate], str]:
        """Closest-first pick of up to ``max_stops`` places that fit the budget."""
        eligible = []
        for candidate in pool:
            if excluded_category is not None and candidate.category == excluded_category:
                continue
            dist = distance_m(start, candidate.point)
            if self.durations.duration_for(candidate.category) > budget.time_budget:
                continue
            if dist > budget.radius_budget:
                continue
            eligible.append((dist, candidate))
        eligible.sort(key=lambda pair: pair[0])

        remaining_time = budget.time_budget
        remaining_radius = budget.radius_budget
        stops: List[PlaceCandidate] = []
        seen = set()
        for dist, candidate in eligible:
            if len(stops) >= self.max_stops:
                break
            if candidate.id in seen:
                continue
            duration = self.durations.duration_for(candidate.category)
            if duration <= remaining_time and dist <= remaining_radius:
                stops.append(candidate)
                seen.add(candidate.id)
                remaining_time -= duration
                remaining_radius -= dist

        description = describe(stops)
        logger.info("Adventure with %d stop(s): %s", len(stops), description)
        return stops, description

    async def replace(self, itinerary: Itinerary, index: int, pool: Sequence[PlaceCandidate]) -> Itinerary:
        """
        Swap the stop at ``index`` for the first pool candidate of a category
        the itinerary no longer covers. Returns ``itinerary`` itself when no
        candidate fits the time left over by the remaining stops.
        """
        places = itinerary.places
        if not 0 <= index < len(places):
            raise IndexError(f"No stop at index {index} (itinerary has {len(places)})")

        remaining = places[:index] + places[index + 1:]
        kept_categories = {p.category for p in remaining}
        taken_ids = {p.id for p in places}
        time_budget = itinerary.budget.time_budget if itinerary.budget else math.inf
        remaining_time = time_budget - self.durations.total(p.category for p in remaining)

        for candidate in pool:
            if candidate.category in kept_categories or candidate.id in taken_ids:
                continue
            if self.durations.duration_for(candidate.category) > remaining_time:
                continue
            logger.info("Replacing %s with %s", places[index].name, candidate.name)
            return await build_itinerary(
                itinerary.start,
                remaining + [candidate],
                self.estimator,
                itinerary.mode,
                self.durations,
                itinerary.budget,
            )

        logger.info("No replacement fits for %s; keeping the itinerary", places[index].name)
        return itinerary
