import asyncio
from math import degrees

import pytest

from conftest import FailingDirections
from planner.agents.travel_estimator import TravelEstimator
from planner.catalog import SUGGESTION_SPEEDS
from planner.geo import EARTH_RADIUS_M
from planner.schemas import GeoPoint, TransportMode

ORIGIN = GeoPoint(latitude=0.0, longitude=0.0)
TEN_KM_NORTH = GeoPoint(latitude=degrees(10_000 / EARTH_RADIUS_M), longitude=0.0)


class FixedDirections:
    def __init__(self, seconds):
        self.seconds = seconds

    async def duration(self, origin, destination, mode):
        return self.seconds


class SlowDirections:
    async def duration(self, origin, destination, mode):
        await asyncio.sleep(1)
        return 1.0


def test_failing_directions_fall_back_to_walking_speed():
    async def run() -> None:
        directions = FailingDirections()
        estimator = TravelEstimator(directions)
        leg = await estimator.estimate_leg(ORIGIN, TEN_KM_NORTH, TransportMode.walking)

        assert directions.calls == 1
        assert leg.source == "speed_model"
        assert leg.degraded
        assert leg.distance == pytest.approx(10_000)
        assert leg.duration == pytest.approx(7200)

    asyncio.run(run())


def test_live_directions_are_preferred():
    async def run() -> None:
        estimator = TravelEstimator(FixedDirections(654.0))
        leg = await estimator.estimate_leg(ORIGIN, TEN_KM_NORTH, TransportMode.driving)
        assert leg.source == "directions"
        assert leg.duration == 654.0
        assert await estimator.estimate(ORIGIN, TEN_KM_NORTH, TransportMode.driving) == 654.0

    asyncio.run(run())


def test_slow_directions_time_out_to_speed_model():
    async def run() -> None:
        estimator = TravelEstimator(SlowDirections(), timeout=0.01)
        duration = await estimator.estimate(ORIGIN, TEN_KM_NORTH, TransportMode.cycling)
        assert duration == pytest.approx(10_000 / (15_000 / 3600))

    asyncio.run(run())


def test_speed_presets_without_directions():
    async def run() -> None:
        day_trip = TravelEstimator()
        suggestion = TravelEstimator(speeds=SUGGESTION_SPEEDS)

        assert await day_trip.estimate(ORIGIN, TEN_KM_NORTH, TransportMode.driving) == pytest.approx(900)
        assert await suggestion.estimate(ORIGIN, TEN_KM_NORTH, TransportMode.driving) == pytest.approx(1200)
        assert await suggestion.estimate(ORIGIN, TEN_KM_NORTH, TransportMode.public_transport) == pytest.approx(1800)
        assert await day_trip.estimate(ORIGIN, ORIGIN, TransportMode.walking) == 0.0

    asyncio.run(run())


class ResetDirections:
    async def duration(self, origin, destination, mode):
        raise ConnectionError("socket reset")


class EmptyDirections:
    async def duration(self, origin, destination, mode):
        return None


@pytest.mark.parametrize("directions", [ResetDirections(), EmptyDirections()])
def test_unexpected_directions_failures_fall_back_to_speed_model(directions):
    async def run() -> None:
        leg = await TravelEstimator(directions).estimate_leg(ORIGIN, TEN_KM_NORTH, TransportMode.walking)
        assert leg.source == "speed_model"
        assert leg.duration == pytest.approx(7200)

    asyncio.run(run())
