# =============================================================================
# Unit Tests — Visualization Builder
# =============================================================================

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from conftest import CHART_GENERATION, ScriptedLLM
from finadvisor.models.agent_results import ChartPoint, ChartSelection
from finadvisor.services.reconciler import reconcile
from finadvisor.services.visualization import (
    CHART_COLORS,
    NO_DATA,
    NO_DATA_LABEL,
    PROVENANCE_GENERATED,
    PROVENANCE_REAL,
    ChartDataset,
    build_chart,
    from_formatted,
    from_ledger,
    to_visualization,
)

NOW = datetime(2026, 3, 31, tzinfo=timezone.utc)

CATEGORIES = [
    "Rent", "Groceries", "Gas", "Electric", "Movies", "Retail", "Medical",
    "Flights", "Books", "Software", "Insurance", "Charity",
]


def _run(coro):
    return asyncio.run(coro)


def _expenses(amounts):
    manual = [
        {"amount": amount, "type": "expense", "category": category, "date": "2026-03-10"}
        for category, amount in amounts
    ]
    return reconcile(manual, {}, as_of=NOW)


class TestRealTier:

    def test_sorted_descending_and_capped(self):
        ledger = _expenses((c, 100 + i * 10) for i, c in enumerate(CATEGORIES))
        dataset = _run(build_chart(ledger, None, "Where does my money go?"))

        assert dataset.provenance == PROVENANCE_REAL
        assert len(dataset.entries) == 10
        assert dataset.values == sorted(dataset.values, reverse=True)
        assert dataset.labels[0] == "Charity"  # the largest

    def test_income_and_investments_not_charted(self):
        ledger = reconcile(
            [
                {"amount": 5000, "type": "income", "date": "2026-03-01"},
                {"amount": 900, "type": "investment", "date": "2026-03-01"},
                {"amount": 60, "type": "expense", "category": "Dining", "date": "2026-03-02"},
            ],
            {},
            as_of=NOW,
        )
        dataset = from_ledger(ledger)
        assert dataset.labels == ["Food"]
        assert dataset.entries[0].percentage == 100.0

    def test_categories_aggregate_and_label(self):
        dataset = from_ledger(_expenses([("debt_payment", 300), ("Mortgage", 200), ("Rent", 150)]))
        assert dict(zip(dataset.labels, dataset.values)) == {"Housing": 350.0, "Debt Payment": 300.0}

    def test_ledger_wins_over_formatted(self):
        dataset = _run(build_chart(_expenses([("Rent", 1800)]), [{"label": "X", "value": 1}], "q"))
        assert dataset.labels == ["Housing"]


class TestFormattedTier:

    def test_used_when_ledger_empty(self):
        points = [ChartPoint(label="Savings", value=500), {"label": "Debt", "value": "1,250"}]
        llm = ScriptedLLM()

        dataset = _run(build_chart([], points, "q", llm=llm))

        assert dataset.provenance == PROVENANCE_REAL
        assert dataset.labels == ["Savings", "Debt"]
        assert dataset.values == [500.0, 1250.0]
        assert llm.calls == []

    def test_invalid_values_become_zero(self):
        dataset = from_formatted([
            {"label": "A", "value": "lots"},
            {"label": "B", "value": -40},
            {"label": "C", "value": float("nan")},
            {"label": "D", "value": 10},
        ])
        assert dataset.values == [0.0, 0.0, 0.0, 10.0]
        assert dataset.entries[3].percentage == 100.0

    def test_unlabelled_points_skipped(self):
        assert from_formatted([{"value": 3}, {"label": "", "value": 4}]).entries == ()


class TestGeneratedTier:

    def test_generated_when_nothing_real(self):
        llm = ScriptedLLM({CHART_GENERATION: '{"data": [{"label": "Rent", "value": 1500},'
                                             ' {"label": "Food", "value": "400"}]}'})
        dataset = _run(build_chart([], [], "What would a budget look like?", llm=llm))

        assert dataset.provenance == PROVENANCE_GENERATED
        assert dataset.labels == ["Rent", "Food"]
        assert not dataset.is_empty

    def test_generation_failure_gives_no_data(self):
        llm = ScriptedLLM({CHART_GENERATION: RuntimeError("down")})
        dataset = _run(build_chart([], [], "q", llm=llm))
        assert dataset == NO_DATA
        assert dataset.is_empty

    def test_generation_garbage_gives_no_data(self):
        llm = ScriptedLLM({CHART_GENERATION: '{"data": "none"}'})
        assert _run(build_chart([], None, "q", llm=llm)) == NO_DATA

    def test_without_provider_skips_generation(self):
        dataset = _run(build_chart([], None, "q"))
        assert dataset.labels == [NO_DATA_LABEL]
        assert dataset.values == [0.0]
        assert dataset.provenance == PROVENANCE_GENERATED


class TestDescriptor:

    def test_shape_and_colours(self):
        labels = [f"c{i}" for i in range(9)]
        dataset = from_formatted([{"label": label, "value": 1} for label in labels])

        descriptor = to_visualization(dataset, ChartSelection(chart_type="pie", title="Mix"))

        assert descriptor["type"] == "pie"
        assert descriptor["title"] == "Mix"
        assert descriptor["dataSource"] == "real"
        series = descriptor["data"]["datasets"][0]
        assert series["label"] == "Mix"
        assert series["data"] == [1.0] * 9
        assert series["backgroundColor"][:7] == list(CHART_COLORS)
        assert series["backgroundColor"][7] == CHART_COLORS[0]

    def test_default_selection(self):
        descriptor = to_visualization(from_formatted([{"label": "a", "value": 1}]))
        assert descriptor["type"] == "doughnut"
        assert descriptor["title"] == "Spending by Category"

    def test_empty_dataset_flags(self):
        assert ChartDataset().is_empty
        assert NO_DATA.is_empty
        assert not from_formatted([{"label": NO_DATA_LABEL, "value": 1},
                                   {"label": "x", "value": 2}]).is_empty
