from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from planner.config import get_allowed_origins
from planner.errors import InsufficientAddresses, LocationTimeout
from planner.logs import get_logger
from planner.orchestrator import (
    PlannerServices,
    default_services,
    plan_adventure,
    plan_day_trip,
    plan_guided_tour,
    plan_suggestions,
    replace_adventure_stop,
)
from planner.schemas import (
    AdventureRequest,
    DayTripRequest,
    GuidedTourRequest,
    ReplacementRequest,
    SuggestionRequest,
)

logger = get_logger(__name__)

app = FastAPI(title="Itinerary Planner API")

# Browser clients are scoped through PLANNER_ALLOWED_ORIGINS (comma separated).
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_services: Optional[PlannerServices] = None


def get_services() -> PlannerServices:
    global _services
    if _services is None:
        _services = default_services()
    return _services


M = TypeVar("M", bound=BaseModel)


def _validate(model: Type[M], payload: Dict[str, Any]) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc


async def _run(flow, request: BaseModel) -> Dict[str, Any]:
    """Run one planning flow and map domain errors onto HTTP statuses."""
    try:
        result = await flow(request, get_services())
    except InsufficientAddresses as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except LocationTimeout as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    return result.model_dump(mode="json")


@app.post("/api/day-trip")
async def api_day_trip(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return await _run(plan_day_trip, _validate(DayTripRequest, payload))


@app.post("/api/suggestions")
async def api_suggestions(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return await _run(plan_suggestions, _validate(SuggestionRequest, payload))


@app.post("/api/adventure")
async def api_adventure(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return await _run(plan_adventure, _validate(AdventureRequest, payload))


@app.post("/api/adventure/replace")
async def api_adventure_replace(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    request = _validate(ReplacementRequest, payload)
    try:
        return await _run(replace_adventure_stop, request)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/api/guided-tour")
async def api_guided_tour(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return await _run(plan_guided_tour, _validate(GuidedTourRequest, payload))
