# =============================================================================
# Integration Tests — Advisory Pipeline
# =============================================================================
#
# Runs the compiled graph end-to-end with a scripted provider and an
# in-memory store. No network or database.
# =============================================================================

from __future__ import annotations

import asyncio
import json

import pytest

from conftest import (
    BUDGET,
    CHART_FORMATTING,
    CHART_GENERATION,
    CHART_SELECTION,
    SELECTOR,
    SPENDING,
    SYNTHESIS,
    InMemoryStore,
    ScriptedLLM,
)
from finadvisor.agents.orchestrator import advise, analyse_user_data
from finadvisor.agents.synthesizer import FALLBACK_MESSAGE
from finadvisor.services.llm import ProviderUnavailable
from finadvisor.services.store import UserData

PROFILE_DOC = {
    "firstName": "Sam",
    "age": 34,
    "riskTolerance": "moderate",
    "financialProfile": {"monthlyIncome": 6250, "monthlyExpenses": 4000,
                         "currentSavings": 12000},
}

MANUAL = [
    {"amount": 450, "type": "expense", "category": "Food", "date": "2026-03-05"},
    {"amount": 1800, "type": "expense", "category": "Rent", "date": "2026-03-06"},
]

SYNTHESIS_REPLY = json.dumps({
    "response": "Rent is 80% of your spending.",
    "insights": ["Food is 20% of spending"],
    "suggestions": ["Set a grocery budget"],
    "followUpQuestions": ["How much should I save?"],
})


def _run(coro):
    return asyncio.run(coro)


def _llm(**overrides):
    routes = {
        SELECTOR: '{"agents": ["spendingAnalysis", "budgetPlanner"]}',
        SPENDING: '{"summary": "Rent dominates"}',
        BUDGET: '{"budget_method": "50/30/20"}',
        CHART_SELECTION: '{"type": "pie", "title": "Where it goes"}',
        CHART_FORMATTING: '{"data": []}',
        SYNTHESIS: SYNTHESIS_REPLY,
    }
    routes.update(overrides)
    return ScriptedLLM(routes, default="{}")


def _store(**kwargs):
    return InMemoryStore(
        profiles={"u1": PROFILE_DOC},
        manual={"u1": MANUAL},
        **kwargs,
    )


class TestAdvise:

    def test_end_to_end(self):
        llm, store = _llm(), _store()

        result = _run(advise("Where is my money going?", "u1", llm=llm, store=store))

        assert result.response == "Rent is 80% of your spending."
        assert result.follow_up_questions == ["How much should I save?"]
        assert result.visualization.type == "pie"
        assert result.visualization.title == "Where it goes"
        assert result.visualization.data.labels == ["Housing", "Food"]
        assert result.visualization.data_source == "real"

        # Selector, two optional agents, two chart agents, synthesis
        assert len(llm.calls) == 6
        assert llm.called(CHART_GENERATION) == 0
        assert store.saved[0][0] == "u1"
        assert store.saved[0][1]["dataSource"] == "real"

    def test_synthesis_prompt_sees_agent_output(self):
        llm = _llm()
        _run(advise("Where is my money going?", "u1", llm=llm, store=_store()))
        synthesis_prompt = [p for s, p in llm.calls if SYNTHESIS in s][0]
        assert "Rent dominates" in synthesis_prompt
        assert "50/30/20" in synthesis_prompt

    def test_store_failure_uses_context(self):
        llm = _llm()
        store = _store(fail_reads=True)
        context = {"profile": PROFILE_DOC, "manualEntries": MANUAL}

        result = _run(advise("Where is my money going?", "u1", context=context,
                             llm=llm, store=store))

        assert result.visualization.data.labels == ["Housing", "Food"]

    def test_store_failure_without_context_still_answers(self):
        llm = _llm(**{CHART_GENERATION: '{"data": [{"label": "Rent", "value": 1500}]}'})
        result = _run(advise("Help me budget", "u1", llm=llm, store=_store(fail_reads=True)))

        assert result.response == "Rent is 80% of your spending."
        assert result.visualization.data_source == "generated"

    def test_generated_chart_not_persisted(self):
        llm = _llm(**{CHART_GENERATION: '{"data": [{"label": "Rent", "value": 1500}]}'})
        store = InMemoryStore()
        _run(advise("Help me budget", "nobody", llm=llm, store=store))
        assert store.saved == []

    def test_persist_failure_is_swallowed(self):
        result = _run(advise("Where is my money going?", "u1", llm=_llm(),
                             store=_store(fail_writes=True)))
        assert result.response == "Rent is 80% of your spending."
        assert result.visualization is not None

    def test_every_agent_failing_still_answers(self):
        llm = ScriptedLLM({SYNTHESIS: SYNTHESIS_REPLY}, default="")
        llm.routes.update({
            SELECTOR: RuntimeError("down"),
            SPENDING: RuntimeError("down"),
            BUDGET: RuntimeError("down"),
            CHART_SELECTION: RuntimeError("down"),
            CHART_FORMATTING: RuntimeError("down"),
        })
        result = _run(advise("Where is my money going?", "u1", llm=llm, store=_store()))

        assert result.response == "Rent is 80% of your spending."
        # Default chart selection with real ledger data
        assert result.visualization.type == "doughnut"

    def test_synthesis_failure_is_apology(self):
        llm = _llm(**{SYNTHESIS: RuntimeError("down")})
        result = _run(advise("Where is my money going?", "u1", llm=llm, store=_store()))
        assert result.response == FALLBACK_MESSAGE
        assert result.visualization is None

    def test_unexpected_error_is_apology(self):
        class BrokenStore(InMemoryStore):
            async def get_profile(self, user_id):
                raise KeyError("corrupt index")

        result = _run(advise("Where is my money going?", "u1", llm=_llm(), store=BrokenStore()))
        assert result.response == FALLBACK_MESSAGE

    def test_provider_unavailable_propagates(self, monkeypatch):
        def _no_provider():
            raise ProviderUnavailable("no key")

        monkeypatch.setattr("finadvisor.agents.orchestrator.get_llm_provider", _no_provider)
        with pytest.raises(ProviderUnavailable):
            _run(advise("Where is my money going?", "u1", store=_store()))


class TestAnalyseUserData:

    def test_invalid_documents_degrade(self):
        data = UserData(
            profile={"age": "thirty-something", "riskTolerance": "yolo",
                     "financialProfile": "not a mapping"},
            manual_entries=MANUAL,
            goals=[{"title": "No date"}, {"title": "House", "targetAmount": 50000,
                                          "targetDate": "2030-01-01T00:00:00Z"}],
        )
        profile, goals, ledger, summary = analyse_user_data("u9", data)

        assert profile.user_id == "u9"
        assert [g.title for g in goals] == ["House"]
        assert len(ledger) == 2
        assert summary.monthly_expenses == 2250
