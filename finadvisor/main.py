# =============================================================================
# FastAPI Application — Entry Point
# =============================================================================
#
# Run locally:
#   uvicorn finadvisor.main:app --reload
#
# Routes:
#   GET  /health             liveness check
#   POST /advise             advisory question (LangGraph pipeline)
#   GET  /summary/{user_id}  derived summary, alerts, projections
#   POST /life-event        life path with and without a life event
# =============================================================================

import logging

from fastapi import FastAPI

from finadvisor.api.advise import router as advise_router
from finadvisor.api.life_event import router as life_event_router
from finadvisor.api.summary import router as summary_router
from finadvisor.config import settings
from finadvisor.models.responses import HealthResponse

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Reconciles manual and provider-imported financial records and "
        "answers free-text questions with a multi-agent advisor."
    ),
)

app.include_router(advise_router)
app.include_router(summary_router)
app.include_router(life_event_router)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        service=settings.app_name,
    )
