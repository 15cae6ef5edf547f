# =============================================================================
# Visualization Builder — Chart Dataset Cascade
# =============================================================================
#
# Produces the data behind the optional chart in an advisory response.
# Sources are tried in strict priority order, stopping at the first that
# yields at least one entry:
#
#   1. Real ledger      — expense totals by category, top N, descending  → "real"
#   2. Formatted data   — label/value pairs from the chartFormatting step → "real"
#   3. Generated        — LLM-synthesised dataset for the query/profile   → "generated"
#   4. No data          — a single explicit "No data" entry               → "generated"
#
# Every value is coerced to a finite, non-negative number; anything that
# doesn't parse becomes 0 instead of raising.
#
# to_visualization() renders a dataset into the wire descriptor consumed
# by the presentation layer (chart.js-style labels/datasets/colours).
# =============================================================================

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from finadvisor.config import settings
from finadvisor.models.agent_results import ChartSelection
from finadvisor.models.ledger import LedgerEntry
from finadvisor.models.profile import UserProfile
from finadvisor.services.categories import CanonicalCategory
from finadvisor.services.llm import LLMProvider, ProviderCallFailed, generate
from finadvisor.services.parser import coerce_number, safe_parse

logger = logging.getLogger(__name__)

PROVENANCE_REAL = "real"
PROVENANCE_GENERATED = "generated"
NO_DATA_LABEL = "No data"

CHART_COLORS = (
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#C9CBCF",
)

GENERATION_SYSTEM_PROMPT = (
    "You generate illustrative chart data for a personal finance app. "
    "Respond with JSON only."
)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChartEntry:
    label: str
    value: float
    percentage: float


@dataclass(frozen=True)
class ChartDataset:
    entries: tuple[ChartEntry, ...] = field(default_factory=tuple)
    provenance: str = PROVENANCE_REAL

    @property
    def is_empty(self) -> bool:
        """True for no entries or the explicit "No data" placeholder."""
        if not self.entries:
            return True
        return len(self.entries) == 1 and self.entries[0].label == NO_DATA_LABEL

    @property
    def labels(self) -> list[str]:
        return [e.label for e in self.entries]

    @property
    def values(self) -> list[float]:
        return [e.value for e in self.entries]


NO_DATA = ChartDataset(
    entries=(ChartEntry(label=NO_DATA_LABEL, value=0.0, percentage=0.0),),
    provenance=PROVENANCE_GENERATED,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def build_chart(
    ledger: Sequence[LedgerEntry],
    previously_formatted: Iterable[Any] | None,
    query: str,
    profile: UserProfile | None = None,
    llm: LLMProvider | None = None,
) -> ChartDataset:
    """
    Build a chart dataset via the real → formatted → generated → empty cascade.

    Args:
        ledger: Reconciled ledger (only expense entries are charted).
        previously_formatted: Label/value pairs from the formatting step,
            as mappings or objects with `label` and `value` attributes.
        query: The user's question, used to steer generated data.
        profile: Optional profile for generated data.
        llm: Provider for the generated tier. None skips that tier.

    Returns:
        A ChartDataset; never raises for provider or parse failures.
    """
    dataset = from_ledger(ledger)
    if dataset.entries:
        logger.info("Chart built from ledger (%d categories)", len(dataset.entries))
        return dataset

    dataset = from_formatted(previously_formatted)
    if dataset.entries:
        logger.info("Chart built from formatted data (%d points)", len(dataset.entries))
        return dataset

    if llm is not None:
        dataset = await generate_dataset(query, profile, llm)
        if dataset.entries:
            logger.info("Chart generated by provider (%d points)", len(dataset.entries))
            return dataset

    logger.info("No chart data available")
    return NO_DATA


def from_ledger(
    ledger: Sequence[LedgerEntry], limit: int | None = None,
) -> ChartDataset:
    """Expense totals per canonical category, top `limit`, descending."""
    limit = limit or settings.chart_max_categories
    totals: dict[CanonicalCategory, float] = defaultdict(float)
    for entry in ledger:
        if entry.is_expense:
            totals[entry.category] += float(abs(entry.amount))

    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return _dataset(
        [(category_label(cat), total) for cat, total in ranked if total > 0],
        PROVENANCE_REAL,
    )


def from_formatted(points: Iterable[Any] | None) -> ChartDataset:
    if not points:
        return ChartDataset()
    pairs = []
    for point in points:
        if isinstance(point, Mapping):
            label, value = point.get("label"), point.get("value")
        else:
            label, value = getattr(point, "label", None), getattr(point, "value", None)
        if label:
            pairs.append((str(label), value))
    return _dataset(pairs, PROVENANCE_REAL)


async def generate_dataset(
    query: str, profile: UserProfile | None, llm: LLMProvider,
) -> ChartDataset:
    """Ask the provider for a plausible dataset. Empty on any failure."""
    prompt = _generation_prompt(query, profile)
    try:
        raw = await generate(
            llm, prompt,
            system=GENERATION_SYSTEM_PROMPT,
            timeout=settings.chart_timeout_seconds,
        )
    except ProviderCallFailed as e:
        logger.warning("Chart generation failed: %s", e)
        return ChartDataset()

    parsed = safe_parse(raw, {})
    points = parsed.get("data", []) if isinstance(parsed, dict) else []
    if isinstance(points, dict):
        points = [{"label": k, "value": v} for k, v in points.items()]
    if not isinstance(points, list):
        return ChartDataset()

    dataset = from_formatted(points)
    return ChartDataset(entries=dataset.entries, provenance=PROVENANCE_GENERATED)


def to_visualization(
    dataset: ChartDataset, selection: ChartSelection | None = None,
) -> dict[str, Any]:
    """
    Render the wire descriptor:

        {type, title, data: {labels, datasets: [{label, data, backgroundColor}]},
         dataSource}
    """
    selection = selection or ChartSelection()
    colors = [CHART_COLORS[i % len(CHART_COLORS)] for i in range(len(dataset.entries))]
    return {
        "type": selection.chart_type,
        "title": selection.title,
        "data": {
            "labels": dataset.labels,
            "datasets": [
                {
                    "label": selection.title,
                    "data": dataset.values,
                    "backgroundColor": colors,
                }
            ],
        },
        "dataSource": dataset.provenance,
    }


def category_label(category: CanonicalCategory) -> str:
    """Human-readable label, e.g. debt_payment → Debt Payment."""
    return category.value.replace("_", " ").title()


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _dataset(pairs: Sequence[tuple[str, Any]], provenance: str) -> ChartDataset:
    values = [max(coerce_number(value), 0.0) for _, value in pairs]
    total = sum(values)
    entries = tuple(
        ChartEntry(
            label=label,
            value=round(value, 2),
            percentage=round(value / total * 100, 2) if total > 0 else 0.0,
        )
        for (label, _), value in zip(pairs, values)
    )
    return ChartDataset(entries=entries, provenance=provenance)


def _generation_prompt(query: str, profile: UserProfile | None) -> str:
    profile_json = "{}"
    if profile is not None:
        profile_json = json.dumps({
            "age": profile.age,
            "riskTolerance": profile.risk_tolerance,
            "monthlyIncome": profile.financial_profile.monthly_income,
            "monthlyExpenses": profile.financial_profile.monthly_expenses,
        })
    return (
        f"USER QUESTION: {query}\n"
        f"USER PROFILE: {profile_json}\n\n"
        "The user has no recorded transactions. Produce a small, plausible "
        "dataset (3-8 points) that would illustrate an answer to the question.\n"
        'Format as JSON: {"data": [{"label": "Food", "value": 450}, ...]}'
    )
