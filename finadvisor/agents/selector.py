# =============================================================================
# Agent Selector — Pick the Optional Sub-Agents for a Query
# =============================================================================
#
# One LLM call ranks the two most relevant optional agents for the query.
# Whatever comes back is treated as untrusted:
#
#   1. Provider failure / timeout      → default pair
#   2. Unparseable or empty response   → default pair (via safe parser)
#   3. Names outside the candidate set → dropped
#   4. More than max_selected_agents   → truncated, in ranked order
#   5. Nothing left after filtering    → default pair ∩ candidates
#
# The mandatory agents (responseSynthesis, chartSelection, chartFormatting)
# are always added on top of the selection.
#
# DESIGN DECISION: Fail open to a fixed default rather than to "all".
# Running every agent on a selector failure would triple the call count
# exactly when the provider is struggling.
# =============================================================================

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from pydantic import BaseModel, Field, model_validator

from finadvisor.agents.catalog import (
    AGENTS,
    DEFAULT_PAIR,
    MANDATORY_AGENTS,
    AgentName,
)
from finadvisor.config import settings
from finadvisor.services.llm import LLMProvider, ProviderCallFailed, generate
from finadvisor.services.parser import safe_parse

logger = logging.getLogger(__name__)

SELECTOR_SYSTEM_PROMPT = (
    "You are an agent router for a personal finance advisor. Given a user "
    "question and a list of specialist agents, pick the two most relevant "
    "agents, most relevant first. Use only the listed agent names.\n"
    'Respond with JSON only: {"agents": ["name1", "name2"]}'
)


class AgentSelection(BaseModel):
    agents: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value):
        # Models sometimes answer ["a", "b"] instead of {"agents": [...]}
        if isinstance(value, list):
            return {"agents": value}
        return value


# Lookup ignoring case and separators: "Budget Planner" → budgetPlanner
_NAME_LOOKUP = {re.sub(r"[^a-z]", "", n.value.lower()): n for n in AgentName}


def resolve_name(raw: object) -> AgentName | None:
    if isinstance(raw, AgentName):
        return raw
    if not isinstance(raw, str):
        return None
    return _NAME_LOOKUP.get(re.sub(r"[^a-z]", "", raw.lower()))


async def select_agents(
    query: str,
    candidates: Iterable[AgentName | str],
    llm: LLMProvider,
) -> frozenset[AgentName]:
    """
    Choose which optional agents to consult, plus the mandatory set.

    Args:
        query: The user's free-text question.
        candidates: Optional agents that may be selected.
        llm: Provider for the ranking call.

    Returns:
        Selected candidates (at most max_selected_agents) unioned with
        MANDATORY_AGENTS. Never raises for provider or parse failures.
    """
    allowed = [name for name in (resolve_name(c) for c in candidates) if name]
    allowed_set = frozenset(allowed)
    fallback = AgentSelection(agents=[n.value for n in DEFAULT_PAIR])

    try:
        raw = await generate(
            llm,
            _selection_prompt(query, allowed),
            system=SELECTOR_SYSTEM_PROMPT,
            timeout=settings.selection_timeout_seconds,
            temperature=0.0,
            max_tokens=128,
        )
        selection = safe_parse(raw, fallback)
    except ProviderCallFailed as e:
        logger.warning("Agent selection call failed: %s. Using default pair.", e)
        selection = fallback

    chosen: list[AgentName] = []
    for raw_name in selection.agents:
        name = resolve_name(raw_name)
        if name is None or name not in allowed_set:
            logger.warning("Ignoring unknown or disallowed agent '%s'", raw_name)
            continue
        if name not in chosen:
            chosen.append(name)
    chosen = chosen[:settings.max_selected_agents]

    if not chosen:
        chosen = [n for n in DEFAULT_PAIR if n in allowed_set]

    selected = frozenset(chosen) | MANDATORY_AGENTS
    logger.info(
        "Selected agents for query '%s': %s",
        query[:80], sorted(n.value for n in selected),
    )
    return selected


def _selection_prompt(query: str, allowed: list[AgentName]) -> str:
    lines = "\n".join(
        f"- {name.value}: {AGENTS[name].description}" for name in allowed
    )
    return f"AGENTS:\n{lines}\n\nUSER QUESTION: {query}"
