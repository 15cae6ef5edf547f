# =============================================================================
# Summary API — Derived Financial Summary Endpoint
# =============================================================================
#
# GET /summary/{user_id} runs the deterministic half of the pipeline
# (reconcile → summarize) with no LLM calls, then adds the rule-based
# alerts, the linear net-worth projection and the compounding
# life-path projection to retirement.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from finadvisor.agents.orchestrator import analyse_user_data
from finadvisor.models.responses import SummaryResponse
from finadvisor.services.alerts import derive_alerts
from finadvisor.services.projections import project_life_path, project_net_worth
from finadvisor.services.store import DataFetchFailure, fetch_user_data, get_store
from finadvisor.services.summary import summary_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Summary"])


@router.get(
    "/summary/{user_id}",
    response_model=SummaryResponse,
    summary="Financial summary, alerts and projections for a user",
)
async def summary_endpoint(user_id: str) -> SummaryResponse:
    """
    Error handling:
    - Store unreachable → 503 (there is no caller context to fall back to)
    """
    try:
        data = await fetch_user_data(get_store(), user_id)
    except DataFetchFailure as e:
        logger.warning("Summary for %s unavailable: %s", user_id, e)
        raise HTTPException(status_code=503, detail="Data store unavailable") from e

    profile, _, _, summary = analyse_user_data(user_id, data)

    return SummaryResponse(
        user_id=user_id,
        **summary_to_dict(summary),
        alerts=[asdict(a) for a in derive_alerts(profile, summary)],
        projected_net_worth=asdict(project_net_worth(summary)),
        life_path=asdict(project_life_path(profile, summary)),
    )
