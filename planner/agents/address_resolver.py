"""Free-text address resolution with a fallback chain of query strategies."""
from __future__ import annotations

import asyncio
import re
from typing import Callable, Iterable, List, Optional, Tuple

from planner.catalog import city_centroid, extract_city
from planner.config import get_planner_config
from planner.errors import TransientServiceError
from planner.geo import parse_coordinates
from planner.logs import get_logger
from planner.schemas import GeoPoint, Placemark, ResolutionContext, ResolvedAddress
from planner.tools.geocoding import Geocoder

logger = get_logger(__name__)

ACCEPT_SCORE = 0.3
LENIENT_ATTEMPT = 4
FALLBACK_CONFIDENCE = 0.1

_POSTAL_CODE = re.compile(r"\b\d{4,5}\b")


def relevance_score(search_term: str, placemark: Placemark) -> float:
    """Heuristic [0, 1] match between the user's text and a geocoder hit."""
    query = search_term.lower()
    score = 0.0

    name = (placemark.name or "").lower()
    if name:
        if name == query:
            score += 1.0
        elif query in name:
            score += 0.8
        elif name in query:
            score += 0.6

    street = (placemark.street or "").lower()
    if street:
        if street == query:
            score += 0.9
        elif street in query or query in street:
            score += 0.4

    locality = (placemark.locality or "").lower()
    if locality:
        if locality == query:
            score += 0.7
        elif locality in query or query in locality:
            score += 0.3

    country = (placemark.country or "").lower()
    if country and (country in query or query in country):
        score += 0.2

    if placemark.name and placemark.street and placemark.locality:
        score += 0.3

    if locality:
        words = query.split()
        if not any(word in locality or locality in word for word in words):
            score -= 0.2

    return max(0.0, min(score, 1.0))


def _strip_postal_codes(text: str) -> str:
    return re.sub(r"\s+", " ", _POSTAL_CODE.sub("", text)).strip(" ,")


def _drop_first_segment(text: str) -> str:
    # "Lidl, 9 Route d'Arlon, Strassen" -> "9 Route d'Arlon, Strassen"
    if "," not in text:
        return text
    return ",".join(text.split(",")[1:]).strip()


def _city_only(text: str) -> str:
    return extract_city(text) or text


def _first_segment(text: str) -> str:
    return text.split(",")[0].strip() or text


class AddressResolver:
    """
    Turns noisy user text into a coordinate. Attempts run in order and the
    first acceptable geocoder hit wins; the city-centroid table guarantees a
    (low-confidence) answer for any non-empty text.
    """

    STRATEGIES: Tuple[Tuple[str, Callable[[str], str]], ...] = (
        ("verbatim", lambda text: text),
        ("without postal code", _strip_postal_codes),
        ("address part", _drop_first_segment),
        ("city only", _city_only),
    )

    def __init__(
        self,
        geocoder: Geocoder,
        *,
        default_city: Optional[str] = None,
        retry_delay: Optional[float] = None,
        transient_retries: int = 1,
    ):
        cfg = get_planner_config()
        self.geocoder = geocoder
        self.default_city = default_city or cfg["default_city"]
        self.retry_delay = cfg["geocode_retry_delay"] if retry_delay is None else retry_delay
        self.transient_retries = transient_retries

    async def resolve(self, text: str, context: Optional[ResolutionContext] = None) -> Optional[ResolvedAddress]:
        ctx = context or ResolutionContext()
        cleaned = (text or "").strip()
        if not cleaned:
            return None

        point = parse_coordinates(cleaned)
        if point is not None:
            return await self._resolve_coordinates(cleaned, point, ctx)

        for attempt, (label, transform) in enumerate(self.STRATEGIES, start=1):
            query = transform(cleaned).strip()
            if not query:
                continue
            placemark = await self._lookup(query, ctx)
            if placemark is None:
                logger.info("Attempt %d (%s) found nothing for '%s'", attempt, label, cleaned)
                continue

            score = relevance_score(cleaned, placemark)
            if score < ACCEPT_SCORE and attempt < LENIENT_ATTEMPT:
                logger.info("Attempt %d (%s) scored %.2f for '%s'; trying next strategy", attempt, label, score, cleaned)
                continue
            if score < ACCEPT_SCORE:
                logger.warning("Accepting low relevance %.2f for '%s' on attempt %d", score, cleaned, attempt)

            return ResolvedAddress(
                input_text=cleaned,
                point=placemark.point,
                display_name=placemark.name or cleaned,
                confidence=score,
                source="geocoder",
                attempt=attempt,
                address=placemark.formatted_address or cleaned,
            )

        return self._fallback(cleaned, ctx)

    async def resolve_many(
        self, texts: Iterable[str], context: Optional[ResolutionContext] = None
    ) -> List[Optional[ResolvedAddress]]:
        """Resolve one address after the other; output order matches input order."""
        results: List[Optional[ResolvedAddress]] = []
        for text in texts:
            results.append(await self.resolve(text, context))
        return results

    async def _lookup(self, query: str, ctx: ResolutionContext) -> Optional[Placemark]:
        retries = 0
        while True:
            try:
                placemarks = await self.geocoder.geocode(query, ctx.language)
            except TransientServiceError:
                if retries < self.transient_retries:
                    retries += 1
                    logger.warning("Transient geocoding failure for '%s'; retrying in %.1fs", query, self.retry_delay)
                    await asyncio.sleep(self.retry_delay)
                    continue
                logger.warning("Geocoding '%s' failed after retry", query, exc_info=True)
                return None
            except Exception:
                logger.warning("Geocoding '%s' failed", query, exc_info=True)
                return None
            return placemarks[0] if placemarks else None

    async def _resolve_coordinates(self, text: str, point: GeoPoint, ctx: ResolutionContext) -> ResolvedAddress:
        display_name = text
        address: Optional[str] = None
        try:
            placemark = await self.geocoder.reverse(point, ctx.language)
        except Exception:
            logger.warning("Reverse geocoding failed for %s", text, exc_info=True)
            placemark = None
        if placemark is not None:
            address = placemark.formatted_address or None
            display_name = placemark.name or address or text
        return ResolvedAddress(
            input_text=text,
            point=point,
            display_name=display_name,
            confidence=1.0,
            source="coordinates",
            attempt=1,
            address=address,
        )

    def _fallback(self, text: str, ctx: ResolutionContext) -> ResolvedAddress:
        city, point = city_centroid(text, ctx.default_city or self.default_city)
        logger.warning("Geocoding exhausted for '%s'; using %s centroid", text, city)
        return ResolvedAddress(
            input_text=text,
            point=point,
            display_name=_first_segment(text),
            confidence=FALLBACK_CONFIDENCE,
            source="fallback",
            attempt=len(self.STRATEGIES) + 1,
            address=text,
        )
