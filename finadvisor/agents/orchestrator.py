# =============================================================================
# LangGraph Orchestrator — Advisory Pipeline Assembly
# =============================================================================
#
# Wires the per-request advisory pipeline into a LangGraph StateGraph:
#
#   START ─▶ load ─▶ analyse ─▶ select ─▶ consult ─▶ chart ─▶ synthesize ─▶ persist ─▶ END
#
#   load        read profile, ledger records and goals from the store
#               (store failure → caller context → empty collections)
#   analyse     reconcile records into the ledger, derive the summary
#   select      LLM picks optional agents; mandatory agents are added
#   consult     optional agents fan out concurrently
#   chart       chartSelection + chartFormatting fan out, then the
#               visualization cascade builds the dataset
#   synthesize  one call merges everything into the AdvisoryResponse
#   persist     save a real (non-generated) chart back to the store
#
# DESIGN DECISION: Linear graph (no conditional edges).
# Every step always runs; each one degrades to a documented fallback
# internally, so there is nothing to branch on at the graph level.
#
# DESIGN DECISION: Plain TypedDict state, compiled once at module level.
# Same as any stateless pipeline: structured data flows through, no
# message history, no checkpointer (so non-serialisable objects such as
# the provider and store can ride along in state).
#
# ERROR CONTRACT:
# advise() raises only ProviderUnavailable (no LLM configured). Any other
# failure is logged and answered with the apology response.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from langgraph.graph import END, START, StateGraph
from pydantic import BaseModel, ValidationError
from typing_extensions import TypedDict

from finadvisor.agents.catalog import (
    CHART_AGENTS,
    OPTIONAL_AGENTS,
    AgentContext,
    AgentName,
)
from finadvisor.agents.runner import run_agents
from finadvisor.agents.selector import select_agents
from finadvisor.agents.synthesizer import fallback_response, synthesize
from finadvisor.config import settings
from finadvisor.models.agent_results import ChartFormatting, ChartSelection
from finadvisor.models.ledger import LedgerEntry
from finadvisor.models.profile import Goal, UserProfile
from finadvisor.models.responses import AdvisoryResponse
from finadvisor.services.llm import LLMProvider, ProviderUnavailable, get_llm_provider
from finadvisor.services.reconciler import reconcile
from finadvisor.services.store import (
    DataFetchFailure,
    FinancialDataStore,
    PersistFailure,
    UserData,
    fetch_user_data,
    get_store,
)
from finadvisor.services.summary import FinancialSummary, summarize
from finadvisor.services.visualization import (
    PROVENANCE_REAL,
    ChartDataset,
    build_chart,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Agent State Schema
# ---------------------------------------------------------------------------


class AdvisorState(TypedDict, total=False):
    """
    State that flows through the LangGraph graph.

    Uses total=False so nodes only need to return the keys they update.
    """

    # --- Input (set by caller) ---
    user_id: str
    query: str
    context: dict[str, Any] | None
    llm: LLMProvider
    store: FinancialDataStore

    # --- Intermediate (set by nodes) ---
    user_data: UserData
    profile: UserProfile
    goals: list[Goal]
    ledger: list[LedgerEntry]
    summary: FinancialSummary
    selected: frozenset[AgentName]
    agent_results: dict[AgentName, BaseModel]
    chart_selection: ChartSelection
    chart_dataset: ChartDataset

    # --- Output ---
    response: AdvisoryResponse
    visualization_id: str | None


# ---------------------------------------------------------------------------
# Node Functions
# ---------------------------------------------------------------------------


async def load_node(state: AdvisorState) -> dict:
    """Read the user's data; degrade to caller context, then to empties."""
    context_data = UserData.from_context(state.get("context"))
    try:
        data = await fetch_user_data(state["store"], state["user_id"])
    except DataFetchFailure as e:
        logger.warning(
            "Store unavailable for user %s (%s). Using %s.",
            state["user_id"], e,
            "request context" if state.get("context") else "empty data",
        )
        return {"user_data": context_data}

    # Fill anything the store has no record of from the caller's context
    if data.profile is None:
        data.profile = context_data.profile
    if not data.manual_entries:
        data.manual_entries = context_data.manual_entries
    if not data.provider_records:
        data.provider_records = context_data.provider_records
    if not data.goals:
        data.goals = context_data.goals
    return {"user_data": data}


async def analyse_node(state: AdvisorState) -> dict:
    """Reconcile the ledger and derive the summary."""
    now = datetime.now(timezone.utc)
    profile, goals, ledger, summary = analyse_user_data(
        state["user_id"], state["user_data"], now,
    )
    logger.info(
        "Summary for %s: source=%s, entries=%d, goals=%d",
        state["user_id"], summary.data_source, len(ledger), len(goals),
    )
    return {"profile": profile, "goals": goals, "ledger": ledger, "summary": summary}


async def select_node(state: AdvisorState) -> dict:
    selected = await select_agents(state["query"], OPTIONAL_AGENTS, state["llm"])
    return {"selected": selected}


async def consult_node(state: AdvisorState) -> dict:
    """Fan out to the selected optional agents."""
    results = await run_agents(state["selected"] & OPTIONAL_AGENTS, _agent_context(state))
    return {"agent_results": results}


async def chart_node(state: AdvisorState) -> dict:
    """Run the chart agents, then build the dataset via the cascade."""
    chart_results = await run_agents(state["selected"] & CHART_AGENTS, _agent_context(state))

    selection = chart_results.get(AgentName.CHART_SELECTION)
    formatting = chart_results.get(AgentName.CHART_FORMATTING)
    if not isinstance(selection, ChartSelection):
        selection = ChartSelection()
    points = formatting.data if isinstance(formatting, ChartFormatting) else []

    dataset = await build_chart(
        state["ledger"], points, state["query"],
        profile=state["profile"], llm=state["llm"],
    )
    return {"chart_selection": selection, "chart_dataset": dataset}


async def synthesize_node(state: AdvisorState) -> dict:
    response = await synthesize(
        profile=state["profile"],
        summary=state["summary"],
        agent_results=state.get("agent_results", {}),
        chart_dataset=state["chart_dataset"],
        query=state["query"],
        llm=state["llm"],
        chart_selection=state.get("chart_selection"),
    )
    return {"response": response}


async def persist_node(state: AdvisorState) -> dict:
    """Save real charts to the store. Failures never affect the response."""
    response: AdvisoryResponse = state["response"]
    dataset: ChartDataset = state["chart_dataset"]
    if (
        not settings.persist_visualizations
        or response.visualization is None
        or dataset.provenance != PROVENANCE_REAL
    ):
        return {"visualization_id": None}

    descriptor = response.visualization.model_dump(by_alias=True)
    try:
        visualization_id = await state["store"].save_visualization(
            state["user_id"], descriptor,
        )
    except PersistFailure as e:
        logger.warning("Could not save visualization: %s", e)
        return {"visualization_id": None}
    return {"visualization_id": visualization_id}


# ---------------------------------------------------------------------------
# Graph Assembly
# ---------------------------------------------------------------------------
# Compiled once at module level; safe for concurrent requests.
# ---------------------------------------------------------------------------

_builder = StateGraph(AdvisorState)
_builder.add_node("load", load_node)
_builder.add_node("analyse", analyse_node)
_builder.add_node("select", select_node)
_builder.add_node("consult", consult_node)
_builder.add_node("chart", chart_node)
_builder.add_node("synthesize", synthesize_node)
_builder.add_node("persist", persist_node)

_builder.add_edge(START, "load")
_builder.add_edge("load", "analyse")
_builder.add_edge("analyse", "select")
_builder.add_edge("select", "consult")
_builder.add_edge("consult", "chart")
_builder.add_edge("chart", "synthesize")
_builder.add_edge("synthesize", "persist")
_builder.add_edge("persist", END)

graph = _builder.compile()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def advise(
    query: str,
    user_id: str,
    context: Mapping[str, Any] | None = None,
    llm: LLMProvider | None = None,
    store: FinancialDataStore | None = None,
) -> AdvisoryResponse:
    """
    Entry point: answer one advisory query.

    Args:
        query: The user's free-text question.
        user_id: Whose data to load.
        context: Optional pre-fetched data, used when the store fails or
            has no record.
        llm: Optional provider override (defaults to the configured one).
        store: Optional store override (defaults to the SQL store).

    Returns:
        A complete AdvisoryResponse, the apology response on failure.

    Raises:
        ProviderUnavailable: No LLM provider is configured.
    """
    # Resolved before any work so a missing provider fails fast
    llm = llm or get_llm_provider()

    initial_state: AdvisorState = {
        "user_id": user_id,
        "query": query,
        "context": dict(context) if context else None,
        "llm": llm,
        "store": store or get_store(),
    }

    logger.info("Invoking advisor graph: user=%s, query='%s'", user_id, query[:80])

    try:
        result = await graph.ainvoke(initial_state)
    except ProviderUnavailable:
        raise
    except Exception:
        logger.exception("Advisor pipeline failed for user %s", user_id)
        return fallback_response()

    response = result.get("response")
    if response is None:
        return fallback_response()

    logger.info(
        "Advisor graph complete: agents=%s, chart=%s",
        sorted(n.value for n in result.get("selected", ())),
        "yes" if response.visualization else "no",
    )
    return response


def analyse_user_data(
    user_id: str, data: UserData, now: datetime | None = None,
) -> tuple[UserProfile, list[Goal], list[LedgerEntry], FinancialSummary]:
    """
    Turn raw store documents into profile, goals, ledger and summary.

    Malformed profile or goal documents are logged and replaced (profile)
    or skipped (goals) rather than failing the request.
    """
    now = now or datetime.now(timezone.utc)

    try:
        profile = UserProfile.model_validate(data.profile or {})
    except ValidationError as e:
        logger.warning("Invalid profile for user %s (%d errors)", user_id, e.error_count())
        profile = UserProfile()
    if not profile.user_id:
        profile = profile.model_copy(update={"user_id": user_id})

    goals: list[Goal] = []
    for doc in data.goals:
        try:
            goals.append(Goal.model_validate(doc))
        except ValidationError as e:
            logger.warning("Skipping invalid goal for user %s: %s", user_id, e.error_count())

    ledger = reconcile(data.manual_entries, data.provider_records, as_of=now)
    summary = summarize(profile, ledger, goals, now=now)
    return profile, goals, ledger, summary


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _agent_context(state: AdvisorState) -> AgentContext:
    return AgentContext(
        query=state["query"],
        profile=state["profile"],
        summary=state["summary"],
        llm=state["llm"],
        ledger=state.get("ledger", []),
        goals=state.get("goals", []),
    )
