"""Interest scoring for suggested places. Ranking only, never a filter."""
from __future__ import annotations

from typing import List, Optional, Sequence

from planner.catalog import CategoryDurationTable
from planner.geo import distance_m
from planner.schemas import GeoPoint, PlaceCandidate, ScoredCandidate

BASE_SCORE = 100.0
RATING_WEIGHT = 10.0
DISTANCE_PENALTY_PER_KM = 5.0
UNIQUE_BONUS = 20.0
UNIQUE_TAGS = ("unique", "original")


def score(candidate: PlaceCandidate, distance_from_start: float) -> float:
    value = BASE_SCORE + (candidate.rating or 0.0) * RATING_WEIGHT
    value -= distance_from_start / 1000.0 * DISTANCE_PENALTY_PER_KM
    tags = {t.lower() for t in candidate.description_tags}
    if any(tag in tags for tag in UNIQUE_TAGS):
        value += UNIQUE_BONUS
    return max(0.0, value)


def describe(candidate: PlaceCandidate, distance_from_start: float) -> str:
    text = f"{candidate.category.display_name}, {distance_from_start / 1000.0:.1f} km away"
    if candidate.rating:
        text += f", rated {candidate.rating:.1f}/5"
    return text


def rank(
    candidates: Sequence[PlaceCandidate],
    start: GeoPoint,
    durations: Optional[CategoryDurationTable] = None,
) -> List[ScoredCandidate]:
    """Score every candidate against ``start``; highest first, ties keep input order."""
    table = durations or CategoryDurationTable()
    scored: List[ScoredCandidate] = []
    for candidate in candidates:
        dist = distance_m(start, candidate.point)
        scored.append(
            ScoredCandidate(
                place=candidate,
                distance=dist,
                visit_duration=table.duration_for(candidate.category),
                score=score(candidate, dist),
                description=describe(candidate, dist),
            )
        )
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored
