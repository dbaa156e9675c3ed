"""Nearest-neighbour visit ordering and itinerary timing."""
from __future__ import annotations

from typing import List, Optional, Sequence

from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import CategoryDurationTable
from planner.geo import distance_m
from planner.logs import get_logger
from planner.schemas import Budget, GeoPoint, Itinerary, ItineraryStop, PlaceCandidate, ResolvedAddress, TransportMode

logger = get_logger(__name__)


def order(start: GeoPoint, stops: Sequence[PlaceCandidate]) -> List[PlaceCandidate]:
    """Greedy nearest-neighbour tour from ``start``. Ties go to the earlier input."""
    remaining = list(stops)
    route: List[PlaceCandidate] = []
    current = start
    while remaining:
        best_idx = 0
        best_dist = distance_m(current, remaining[0].point)
        for idx in range(1, len(remaining)):
            d = distance_m(current, remaining[idx].point)
            if d < best_dist:
                best_idx, best_dist = idx, d
        nxt = remaining.pop(best_idx)
        route.append(nxt)
        current = nxt.point
    return route


async def build_itinerary(
    start: ResolvedAddress,
    ordered: Sequence[PlaceCandidate],
    estimator: TravelEstimator,
    mode: TransportMode = TransportMode.walking,
    durations: Optional[CategoryDurationTable] = None,
    budget: Optional[Budget] = None,
    round_trip: Optional[bool] = None,
) -> Itinerary:
    """
    Time each leg in the given order. ``arrival``/``departure`` are seconds
    since leaving the start. The return leg is timed only for round trips,
    which default to ``budget.round_trip``.
    """
    table = durations or CategoryDurationTable()
    stops: List[ItineraryStop] = []
    clock = 0.0
    travel_total = 0.0
    visit_total = 0.0
    distance_total = 0.0
    degraded = 0
    previous = start.point

    for idx, place in enumerate(ordered, start=1):
        leg = await estimator.estimate_leg(previous, place.point, mode)
        visit = table.duration_for(place.category)
        arrival = clock + leg.duration
        departure = arrival + visit
        stops.append(
            ItineraryStop(
                place=place,
                order=idx,
                visit_duration=visit,
                travel_time=leg.duration,
                distance_from_previous=leg.distance,
                arrival=arrival,
                departure=departure,
                travel_source=leg.source,
            )
        )
        clock = departure
        travel_total += leg.duration
        visit_total += visit
        distance_total += leg.distance
        degraded += int(leg.degraded)
        previous = place.point

    return_time = 0.0
    if round_trip is None:
        round_trip = budget is not None and budget.round_trip
    if round_trip and stops:
        leg = await estimator.estimate_leg(previous, start.point, mode)
        return_time = leg.duration
        travel_total += leg.duration
        distance_total += leg.distance
        degraded += int(leg.degraded)

    if degraded:
        logger.info("%d of the itinerary legs were timed with the speed model", degraded)

    return Itinerary(
        start=start,
        stops=tuple(stops),
        mode=mode,
        total_visit_time=visit_total,
        total_travel_time=travel_total,
        total_distance=distance_total,
        return_travel_time=return_time,
        degraded_legs=degraded,
        budget=budget,
    )
