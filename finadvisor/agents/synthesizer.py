# =============================================================================
# Response Synthesizer — One Advisory Answer From Every Result
# =============================================================================
#
# The final LLM call. Its prompt embeds:
#   - the user's profile and the derived financial summary
#   - every sub-agent result (defaults included, so the model sees
#     "no analysis available" rather than a missing section)
#   - the chart that will accompany the answer, if any
#
# The response is safe-parsed into a SynthesisDraft. Any failure (provider
# error, timeout, undecodable or empty response) yields the apology
# response: a complete AdvisoryResponse with empty lists.
#
# The visualization is attached only on success and only when the chart
# dataset holds real data points. A missing chart is a normal outcome.
# =============================================================================

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from pydantic import BaseModel

from finadvisor.agents.catalog import AGENTS, AgentName
from finadvisor.models.agent_results import ChartSelection, SynthesisDraft
from finadvisor.models.profile import UserProfile
from finadvisor.models.responses import AdvisoryResponse, Visualization
from finadvisor.services.llm import LLMProvider, ProviderCallFailed, generate
from finadvisor.services.parser import safe_parse
from finadvisor.services.summary import FinancialSummary, summary_to_dict
from finadvisor.services.visualization import ChartDataset, to_visualization

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = (
    "I'm sorry, I couldn't generate personalized advice right now. "
    "Please try again in a moment."
)

# Sentinel: safe_parse returns this exact object on any parse failure
_UNPARSED = SynthesisDraft()


def fallback_response() -> AdvisoryResponse:
    """The apology response used whenever advice can't be generated."""
    return AdvisoryResponse(response=FALLBACK_MESSAGE)


async def synthesize(
    profile: UserProfile,
    summary: FinancialSummary,
    agent_results: Mapping[AgentName, BaseModel],
    chart_dataset: ChartDataset,
    query: str,
    llm: LLMProvider,
    chart_selection: ChartSelection | None = None,
) -> AdvisoryResponse:
    """
    Combine everything into the final advisory response.

    Args:
        profile: The user's profile.
        summary: Derived financial summary.
        agent_results: Results keyed by agent name (optional agents that
            weren't selected are simply absent).
        chart_dataset: Dataset from the visualization builder.
        query: The user's question.
        llm: Provider for the synthesis call.
        chart_selection: Chart type/title; defaults when None.

    Returns:
        A fully populated AdvisoryResponse. Never raises for provider or
        parse failures.
    """
    descriptor = None
    if not chart_dataset.is_empty:
        descriptor = to_visualization(chart_dataset, chart_selection)

    prompt = _build_prompt(profile, summary, agent_results, descriptor, query)
    spec = AGENTS[AgentName.RESPONSE_SYNTHESIS]

    try:
        raw = await generate(
            llm, prompt,
            system=spec.system_prompt,
            timeout=spec.timeout,
        )
    except ProviderCallFailed as e:
        logger.warning("Synthesis call failed: %s. Returning fallback.", e)
        return fallback_response()

    draft = safe_parse(raw, _UNPARSED)
    if draft is _UNPARSED or not draft.response.strip():
        logger.warning("Synthesis produced no usable response. Returning fallback.")
        return fallback_response()

    return AdvisoryResponse(
        response=draft.response.strip(),
        insights=draft.insights,
        suggestions=draft.suggestions,
        visualization=Visualization.model_validate(descriptor) if descriptor else None,
        follow_up_questions=draft.follow_up_questions,
    )


def _build_prompt(
    profile: UserProfile,
    summary: FinancialSummary,
    agent_results: Mapping[AgentName, BaseModel],
    descriptor: dict | None,
    query: str,
) -> str:
    results = {
        name.value: result.model_dump(mode="json")
        for name, result in agent_results.items()
    }
    chart = (
        {"type": descriptor["type"], "title": descriptor["title"],
         "labels": descriptor["data"]["labels"],
         "values": descriptor["data"]["datasets"][0]["data"]}
        if descriptor else None
    )
    profile_info = {
        "firstName": profile.first_name,
        "age": profile.age,
        "riskTolerance": profile.risk_tolerance,
        "primaryGoals": profile.primary_goals,
    }
    return (
        f"USER PROFILE:\n{json.dumps(profile_info)}\n\n"
        f"FINANCIAL SUMMARY:\n{json.dumps(summary_to_dict(summary))}\n\n"
        f"SPECIALIST RESULTS:\n{json.dumps(results)}\n\n"
        f"CHART SHOWN WITH YOUR ANSWER:\n{json.dumps(chart)}\n\n"
        f"USER QUESTION: {query}\n\n"
        "Provide:\n"
        "1. A clear, personalised response to the question\n"
        "2. 3-5 specific insights based on the data\n"
        "3. 3-4 concrete suggestions they can act on now\n"
        "4. 2 follow-up questions they might ask next\n\n"
        "Format as JSON:\n"
        '{"response": "...", "insights": ["..."], "suggestions": ["..."], '
        '"followUpQuestions": ["..."]}'
    )
