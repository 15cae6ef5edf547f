# =============================================================================
# Agent Runner — Concurrent Fan-Out / Fan-In Over the Catalog
# =============================================================================
#
# run_agents() dispatches every selected, dispatchable agent at once and
# waits for all of them to settle:
#
#   selected ──▶ [run_agent(a), run_agent(b), run_agent(c)]  (asyncio.gather)
#                      │             │              │
#                 AgentOutcome  AgentOutcome   AgentOutcome   (never raise)
#                      └─────────────┴──────────────┘
#                                    ▼
#              {name: parsed result, or spec.default() on error}
#
# DESIGN DECISION: each task returns an AgentOutcome instead of raising.
# One agent's timeout or provider error can't abort its siblings, and
# the fan-in step maps every failure to that agent's documented default,
# so every dispatched agent has a fully populated entry.
#
# Cancellation is not caught: if the request is cancelled, gather()
# cancels every in-flight provider call with it.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel

from finadvisor.agents.catalog import AGENTS, AgentContext, AgentName, AgentSpec
from finadvisor.services.llm import generate
from finadvisor.services.parser import safe_parse

logger = logging.getLogger(__name__)


@dataclass
class AgentOutcome:
    """Result of one agent call: a parsed value or an error message."""

    name: AgentName
    value: BaseModel | None = None
    error: str | None = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_agent(spec: AgentSpec, context: AgentContext) -> AgentOutcome:
    """Call one agent. Never raises except on cancellation."""
    start = time.monotonic()
    try:
        raw = await generate(
            context.llm,
            spec.build_prompt(context),
            system=spec.system_prompt,
            timeout=spec.timeout,
        )
    except Exception as e:
        elapsed = int((time.monotonic() - start) * 1000)
        return AgentOutcome(name=spec.name, error=str(e), latency_ms=elapsed)

    elapsed = int((time.monotonic() - start) * 1000)
    return AgentOutcome(
        name=spec.name,
        value=safe_parse(raw, spec.default()),
        latency_ms=elapsed,
    )


async def run_agents(
    selected: Iterable[AgentName],
    context: AgentContext,
) -> dict[AgentName, BaseModel]:
    """
    Run the selected agents concurrently and collect their results.

    Args:
        selected: Agent names to run. Non-dispatchable agents
            (responseSynthesis) are ignored.
        context: Shared per-request inputs.

    Returns:
        One entry per dispatched agent, keyed by name. Failed agents map
        to their default result.
    """
    selected_set = set(selected)
    # Catalog order keeps dispatch and logging deterministic
    specs = [
        spec for name, spec in AGENTS.items()
        if name in selected_set and spec.dispatchable
    ]
    if not specs:
        return {}

    outcomes: list[AgentOutcome] = await asyncio.gather(
        *(run_agent(spec, context) for spec in specs),
    )

    results: dict[AgentName, BaseModel] = {}
    for outcome in outcomes:
        if outcome.ok:
            results[outcome.name] = outcome.value
            logger.info("Agent %s completed in %dms", outcome.name.value, outcome.latency_ms)
        else:
            logger.warning(
                "Agent %s failed after %dms: %s. Using default result.",
                outcome.name.value, outcome.latency_ms, outcome.error,
            )
            results[outcome.name] = AGENTS[outcome.name].default()
    return results
