# =============================================================================
# Shared Test Fixtures
# =============================================================================
#
# Tests never touch a real LLM or database:
#   - ScriptedLLM answers by matching a phrase in the system prompt, so one
#     instance can play every agent in a pipeline run
#   - InMemoryStore implements the FinancialDataStore protocol over dicts
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from finadvisor.services.llm import LLMResponse
from finadvisor.services.store import DataFetchFailure, PersistFailure

# System prompt phrases identifying each call site
SELECTOR = "agent router"
SPENDING = "spending analyst"
GOALS = "goal optimization"
BUDGET = "budget planner"
CHART_SELECTION = "chart selection"
CHART_FORMATTING = "chart formatting"
SYNTHESIS = "financial advisor"
CHART_GENERATION = "illustrative chart data"
LIFE_EVENT = "life event impact analyst"


class ScriptedLLM:
    """
    LLM provider double. `routes` maps a system-prompt phrase to either a
    reply string, an exception to raise, or a float meaning "sleep this
    long" (to trigger timeouts).
    """

    def __init__(self, routes: dict[str, Any] | None = None, default: str = "") -> None:
        self.routes = routes or {}
        self.default = default
        self.calls: list[tuple[str, str]] = []

    async def complete(self, messages, system=None, temperature=None, max_tokens=None):
        system = system or ""
        prompt = messages[-1]["content"]
        self.calls.append((system, prompt))

        reply: Any = self.default
        for phrase, scripted in self.routes.items():
            if phrase in system:
                reply = scripted
                break

        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, float):
            await asyncio.sleep(reply)
            reply = "{}"
        return LLMResponse(content=reply, model="scripted", input_tokens=10, output_tokens=5)

    def called(self, phrase: str) -> int:
        return sum(1 for system, _ in self.calls if phrase in system)


class InMemoryStore:
    """FinancialDataStore over plain dicts, with switchable failures."""

    def __init__(
        self,
        profiles: dict[str, dict] | None = None,
        manual: dict[str, list] | None = None,
        provider: dict[str, dict] | None = None,
        goals: dict[str, list] | None = None,
        fail_reads: bool = False,
        fail_writes: bool = False,
    ) -> None:
        self.profiles = profiles or {}
        self.manual = manual or {}
        self.provider = provider or {}
        self.goals = goals or {}
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.saved: list[tuple[str, dict]] = []

    def _check(self) -> None:
        if self.fail_reads:
            raise DataFetchFailure("store offline")

    async def get_profile(self, user_id):
        self._check()
        return self.profiles.get(user_id)

    async def get_manual_entries(self, user_id):
        self._check()
        return list(self.manual.get(user_id, []))

    async def get_provider_records(self, user_id):
        self._check()
        return dict(self.provider.get(user_id, {}))

    async def get_goals(self, user_id):
        self._check()
        return list(self.goals.get(user_id, []))

    async def save_visualization(self, user_id, descriptor):
        if self.fail_writes:
            raise PersistFailure("disk full")
        self.saved.append((user_id, descriptor))
        return f"viz-{len(self.saved)}"


@pytest.fixture
def scripted_llm():
    return ScriptedLLM


@pytest.fixture
def memory_store():
    return InMemoryStore
