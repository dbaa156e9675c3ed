import asyncio

import pytest

from conftest import FakeGeocoder
from planner.agents.address_resolver import AddressResolver, relevance_score
from planner.errors import ServiceError, TransientServiceError
from planner.schemas import GeoPoint, Placemark, ResolutionContext

DOWNING = Placemark(
    point=GeoPoint(latitude=51.5034, longitude=-0.1276),
    name="10 Downing Street",
    house_number="10",
    street="Downing Street",
    locality="London",
    postal_code="SW1A 2AA",
    country="United Kingdom",
)

BERLIN_HIT = Placemark(point=GeoPoint(latitude=52.52, longitude=13.405), name="Somewhere", locality="Berlin")


def _resolver(geocoder, **kwargs):
    return AddressResolver(geocoder, default_city="Luxembourg", retry_delay=0.0, **kwargs)


def test_downing_street_is_accepted_on_first_attempt():
    async def run() -> None:
        text = "10 Downing Street, London"
        geocoder = FakeGeocoder({text: [DOWNING]})
        resolved = await _resolver(geocoder).resolve(text)

        assert resolved.attempt == 1
        assert resolved.source == "geocoder"
        assert resolved.confidence >= 0.3
        assert resolved.point == DOWNING.point
        assert resolved.display_name == "10 Downing Street"
        assert geocoder.queries == [text]

    asyncio.run(run())


def test_relevance_score_is_clamped_and_penalises_foreign_locality():
    assert relevance_score("10 Downing Street, London", DOWNING) == 1.0
    assert relevance_score("Lidl, 9 Route d'Arlon, Strassen", BERLIN_HIT) == 0.0
    exact = Placemark(point=GeoPoint(latitude=0, longitude=0), name="Louvre")
    assert relevance_score("louvre", exact) == 1.0


def test_low_relevance_hits_are_rejected_until_attempt_four():
    async def run() -> None:
        text = "Lidl, 9 Route d'Arlon, Strassen"
        geocoder = FakeGeocoder(
            {
                text: [BERLIN_HIT],
                "9 Route d'Arlon, Strassen": [BERLIN_HIT],
            }
        )
        resolved = await _resolver(geocoder).resolve(text)

        # no postal code to strip and no known city: attempts 2 and 4 repeat the text
        assert geocoder.queries == [
            text,
            text,
            "9 Route d'Arlon, Strassen",
            text,
        ]
        assert resolved.attempt == 4
        assert resolved.source == "geocoder"
        assert resolved.confidence == 0.0
        assert resolved.point == BERLIN_HIT.point

    asyncio.run(run())


def test_postal_code_is_stripped_on_second_attempt():
    async def run() -> None:
        match = Placemark(
            point=GeoPoint(latitude=48.86, longitude=2.29),
            name="Champ de Mars",
            street="Avenue Anatole France",
            locality="Paris",
        )
        geocoder = FakeGeocoder({"Champ de Mars Paris": [match]})
        resolved = await _resolver(geocoder).resolve("Champ de Mars 75007 Paris")

        assert geocoder.queries[:2] == ["Champ de Mars 75007 Paris", "Champ de Mars Paris"]
        assert resolved.attempt == 2
        assert resolved.confidence >= 0.3

    asyncio.run(run())


def test_city_centroid_fallback_when_nothing_is_found():
    async def run() -> None:
        geocoder = FakeGeocoder()
        resolved = await _resolver(geocoder).resolve("Unknown Bakery, Paris")

        assert geocoder.queries[-1] == "Paris"
        assert resolved.is_fallback
        assert resolved.confidence == pytest.approx(0.1)
        assert resolved.display_name == "Unknown Bakery"
        assert resolved.point == GeoPoint(latitude=48.8566, longitude=2.3522)
        assert resolved.attempt == 5

    asyncio.run(run())


def test_fallback_uses_default_city_from_context():
    async def run() -> None:
        resolver = _resolver(FakeGeocoder())
        resolved = await resolver.resolve("Nowhere lane")
        assert resolved.point == GeoPoint(latitude=49.6116, longitude=6.1319)

        berlin = await resolver.resolve("Nowhere lane", ResolutionContext(default_city="Berlin"))
        assert berlin.point == GeoPoint(latitude=52.52, longitude=13.405)

    asyncio.run(run())


def test_transient_failure_is_retried_once():
    async def run() -> None:
        text = "10 Downing Street, London"
        geocoder = FakeGeocoder({text: [DOWNING]}, errors=[TransientServiceError("timeout")])
        resolved = await _resolver(geocoder).resolve(text)

        assert geocoder.queries == [text, text]
        assert resolved.attempt == 1

    asyncio.run(run())


def test_service_errors_move_on_to_next_strategy():
    async def run() -> None:
        geocoder = FakeGeocoder(errors=[ServiceError("bad request")] * 10)
        resolved = await _resolver(geocoder).resolve("Rue Inconnue, Lyon")

        assert resolved.is_fallback
        assert len(geocoder.queries) == 4

    asyncio.run(run())


def test_coordinates_short_circuit_with_reverse_lookup():
    async def run() -> None:
        reverse = Placemark(point=GeoPoint(latitude=49.6, longitude=6.1), name="Place d'Armes", locality="Luxembourg")
        geocoder = FakeGeocoder(reverse_result=reverse)
        resolved = await _resolver(geocoder).resolve("49.6, 6.1")

        assert geocoder.queries == []
        assert resolved.source == "coordinates"
        assert resolved.confidence == 1.0
        assert resolved.point == GeoPoint(latitude=49.6, longitude=6.1)
        assert resolved.display_name == "Place d'Armes"

        failing = FakeGeocoder(reverse_result=ServiceError("down"))
        plain = await _resolver(failing).resolve("49.6,6.1")
        assert plain.display_name == "49.6,6.1"

    asyncio.run(run())


def test_blank_text_is_unresolved():
    async def run() -> None:
        assert await _resolver(FakeGeocoder()).resolve("   ") is None

    asyncio.run(run())


def test_resolution_is_deterministic_and_order_preserving():
    async def run() -> None:
        text = "10 Downing Street, London"
        resolver = _resolver(FakeGeocoder({text: [DOWNING]}))

        first = await resolver.resolve(text)
        second = await resolver.resolve(text)
        assert first == second

        many = await resolver.resolve_many(["Unknown Bakery, Paris", "", text])
        assert many[0].is_fallback
        assert many[1] is None
        assert many[2] == first

    asyncio.run(run())


def test_network_errors_fall_through_to_city_centroid():
    async def run() -> None:
        geocoder = FakeGeocoder(errors=[OSError("dns failure")] * 10)
        resolved = await _resolver(geocoder).resolve("Tour Eiffel, Paris")

        assert len(geocoder.queries) == 4
        assert resolved.is_fallback
        assert resolved.confidence == pytest.approx(0.1)
        assert resolved.point == GeoPoint(latitude=48.8566, longitude=2.3522)

        unreachable = FakeGeocoder(reverse_result=OSError("dns failure"))
        plain = await _resolver(unreachable).resolve("49.6, 6.1")
        assert plain.source == "coordinates"
        assert plain.display_name == "49.6, 6.1"

    asyncio.run(run())
