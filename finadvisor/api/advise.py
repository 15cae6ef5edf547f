# =============================================================================
# Advise API — Advisory Question Endpoint
# =============================================================================
#
# Provides the POST /advise endpoint that invokes the LangGraph advisory
# pipeline for one user question.
#
# FLOW:
#   1. Receive user_id + query + optional pre-fetched context
#   2. Invoke the advisor graph (load → ... → persist)
#   3. Return the advisory response in its camelCase wire shape
#
# This endpoint is thin by design — just request validation, error
# handling, and response mapping. The pipeline itself never fails a
# request except for a missing LLM configuration (→ 503).
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from finadvisor.agents.orchestrator import advise
from finadvisor.models.requests import AdviceRequest
from finadvisor.models.responses import AdvisoryResponse
from finadvisor.services.llm import ProviderUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Advisor"])


@router.post(
    "/advise",
    response_model=AdvisoryResponse,
    response_model_exclude_none=True,
    summary="Ask the financial advisor a question",
    description=(
        "Runs the advisory pipeline: reconciles the user's records, derives "
        "a financial summary, consults the relevant specialist agents "
        "concurrently and synthesises one answer, optionally with a chart."
    ),
)
async def advise_endpoint(request: AdviceRequest) -> AdvisoryResponse:
    """
    Error handling:
    - No LLM provider configured → 503 Service Unavailable
    - Anything else → 200 with a best-effort (possibly apology) response
    """
    logger.info(
        "Advise request: user=%s, query='%s'", request.user_id, request.query[:80],
    )

    try:
        return await advise(
            query=request.query,
            user_id=request.user_id,
            context=request.context,
        )
    except ProviderUnavailable as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e
