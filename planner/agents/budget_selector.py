"""Budget-constrained candidate selection: one pick per category, then fill-in."""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Set

from planner.agents.route_optimizer import order
from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import CategoryDurationTable
from planner.geo import distance_m
from planner.logs import get_logger
from planner.schemas import Budget, Category, GeoPoint, PlaceCandidate, TransportMode

logger = get_logger(__name__)

CandidatesByCategory = Mapping[Category, Sequence[PlaceCandidate]]


class BudgetSelector:
    """
    Picks the places of a suggestion itinerary.

    The mandatory pass walks the requested categories in order and keeps the
    closest candidate that still fits the remaining time and radius. The
    fill-in pass then greedily adds the nearest unused candidates while the
    projected total stays within ``time_budget + tolerance_margin``.
    Infeasible budgets and empty pools give short or empty selections.
    """

    def __init__(self, estimator: TravelEstimator, durations: Optional[CategoryDurationTable] = None):
        self.estimator = estimator
        self.durations = durations or CategoryDurationTable()

    def select_mandatory(
        self,
        candidates_by_category: CandidatesByCategory,
        requested_categories: Sequence[Category],
        start: GeoPoint,
        budget: Budget,
    ) -> List[PlaceCandidate]:
        remaining_time = budget.time_budget
        remaining_radius = budget.radius_budget
        picks: List[PlaceCandidate] = []
        used_ids: Set[str] = set()

        for category in requested_categories:
            if any(p.category == category for p in picks):
                continue
            pool = [c for c in candidates_by_category.get(category, ()) if c.category == category]
            pool.sort(key=lambda c: distance_m(start, c.point))
            chosen = None
            for candidate in pool:
                if candidate.id in used_ids:
                    continue
                duration = self.durations.duration_for(category)
                dist = distance_m(start, candidate.point)
                if duration <= remaining_time and dist <= remaining_radius:
                    chosen = candidate
                    remaining_time -= duration
                    remaining_radius -= dist
                    break
            if chosen is None:
                logger.info("No %s fits the remaining budget; skipping category", category.value)
                continue
            picks.append(chosen)
            used_ids.add(chosen.id)

        return picks

    async def select(
        self,
        candidates_by_category: CandidatesByCategory,
        requested_categories: Sequence[Category],
        start: GeoPoint,
        budget: Budget,
        mode: TransportMode = TransportMode.walking,
    ) -> List[PlaceCandidate]:
        picks = self.select_mandatory(candidates_by_category, requested_categories, start, budget)
        used_ids = {p.id for p in picks}
        pool: List[PlaceCandidate] = []
        seen: Set[str] = set(used_ids)
        for category in requested_categories:
            for candidate in candidates_by_category.get(category, ()):
                if candidate.category != category or candidate.id in seen:
                    continue
                if distance_m(start, candidate.point) > budget.radius_budget:
                    continue
                seen.add(candidate.id)
                pool.append(candidate)

        visit_time = self.durations.total(p.category for p in picks)
        travel_time = 0.0
        last = start
        for place in order(start, picks):
            travel_time += await self.estimator.estimate(last, place.point, mode)
            last = place.point

        limit = budget.time_budget + budget.tolerance_margin
        selected = list(picks)
        while pool:
            idx = _nearest_index(last, pool)
            candidate = pool.pop(idx)
            eta = await self.estimator.estimate(last, candidate.point, mode)
            duration = self.durations.duration_for(candidate.category)
            projected = visit_time + travel_time + eta + duration
            if budget.round_trip:
                projected += await self.estimator.estimate(candidate.point, start, mode)
            if projected > limit:
                logger.debug("Fill-in: %s would take the plan to %.0fs (limit %.0fs)", candidate.name, projected, limit)
                continue
            selected.append(candidate)
            visit_time += duration
            travel_time += eta
            last = candidate.point

        logger.info(
            "Selected %d place(s): %d mandatory, %d fill-in", len(selected), len(picks), len(selected) - len(picks)
        )
        return selected


def _nearest_index(point: GeoPoint, pool: Sequence[PlaceCandidate]) -> int:
    best_idx = 0
    best = distance_m(point, pool[0].point)
    for idx in range(1, len(pool)):
        d = distance_m(point, pool[idx].point)
        if d < best:
            best_idx, best = idx, d
    return best_idx


def group_by_category(candidates: Sequence[PlaceCandidate]) -> Dict[Category, List[PlaceCandidate]]:
    grouped: Dict[Category, List[PlaceCandidate]] = {}
    for candidate in candidates:
        grouped.setdefault(candidate.category, []).append(candidate)
    return grouped
