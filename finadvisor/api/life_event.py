# =============================================================================
# Life Event API — Life Event Impact Endpoint
# =============================================================================
#
# POST /life-event reads the user's data, derives the summary, then asks
# the LLM for the event's cash flows and compounds them onto the current
# life path. Both paths use the shared projection assumptions.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from finadvisor.agents.orchestrator import analyse_user_data
from finadvisor.models.requests import LifeEventRequest
from finadvisor.models.responses import LifeEventResponse
from finadvisor.services.llm import ProviderUnavailable, get_llm_provider
from finadvisor.services.projections import project_life_event
from finadvisor.services.store import DataFetchFailure, fetch_user_data, get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projections"])


@router.post(
    "/life-event",
    response_model=LifeEventResponse,
    summary="Project how a life event changes the user's path to retirement",
)
async def life_event_endpoint(request: LifeEventRequest) -> LifeEventResponse:
    """
    Error handling:
    - Store unreachable → 503
    - No LLM provider configured → 503
    - LLM failure or unusable answer → 200 with a zero-impact projection
    """
    logger.info(
        "Life event request: user=%s, event='%s', age=%d",
        request.user_id, request.event[:60], request.event_age,
    )

    try:
        data = await fetch_user_data(get_store(), request.user_id)
    except DataFetchFailure as e:
        logger.warning("Life event for %s unavailable: %s", request.user_id, e)
        raise HTTPException(status_code=503, detail="Data store unavailable") from e

    profile, _, _, summary = analyse_user_data(request.user_id, data)

    try:
        llm = get_llm_provider()
    except ProviderUnavailable as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e

    projection = await project_life_event(
        profile, summary, request.event, request.event_age, llm,
    )
    return LifeEventResponse(user_id=request.user_id, **asdict(projection))
