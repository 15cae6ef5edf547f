# =============================================================================
# Summary Calculator — Tiered Financial Summary
# =============================================================================
#
# Three sources can describe the same numbers, and they often disagree:
#
#   1. integrations  — aggregates computed by connected providers
#   2. transactions  — recomputed here from the reconciled ledger
#   3. profile       — the user's self-reported onboarding numbers
#
# Each source is turned into a SummaryPatch (fields it can supply, None
# where it can't). merge_tiers() folds the ordered tiers left-to-right:
# the first tier that supplies a field wins it. The data_source tag then
# records which tiers actually won something:
#
#   integrations won, transactions also won  → "hybrid"
#   integrations won alone                   → "integrations"
#   transactions won (no integrations)       → "transactions"
#   otherwise                                → "profile"
#
# Goal projections and monthly trends are computed independently and
# attached regardless of which tier won.
# =============================================================================

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from typing import NamedTuple

from finadvisor.models.ledger import EntryKind, LedgerEntry, LedgerSource
from finadvisor.models.profile import Goal, UserProfile
from finadvisor.services.categories import CanonicalCategory, normalize

TIER_INTEGRATIONS = "integrations"
TIER_TRANSACTIONS = "transactions"
TIER_PROFILE = "profile"
TAG_HYBRID = "hybrid"

# A goal is on track when progress reaches this share of the
# progress expected from elapsed time.
ON_TRACK_TOLERANCE = 0.9


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class CategoryTotal:
    total: float
    percentage: float
    count: int = 0


@dataclass
class GoalProjection:
    goal_id: str
    title: str
    target_amount: float
    current_amount: float
    remaining: float
    days_remaining: int
    required_daily: float
    progress_percentage: float
    on_track: bool | None
    status: str = "active"


@dataclass
class MonthlyTrend:
    month: str
    income: float
    expenses: float
    net: float


@dataclass
class FinancialSummary:
    net_worth: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    savings_rate: float = 0.0
    category_totals: dict[CanonicalCategory, CategoryTotal] = field(default_factory=dict)
    data_source: str = TIER_PROFILE
    goal_projections: list[GoalProjection] = field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = field(default_factory=list)
    total_entries: int = 0

    @property
    def monthly_savings(self) -> float:
        return round(self.monthly_income - self.monthly_expenses, 2)

    def top_categories(self, limit: int = 5) -> list[tuple[CanonicalCategory, CategoryTotal]]:
        ranked = sorted(
            self.category_totals.items(), key=lambda item: item[1].total, reverse=True,
        )
        return ranked[:limit]


@dataclass
class SummaryPatch:
    """Partial summary from one source tier. None = not supplied."""

    net_worth: float | None = None
    monthly_income: float | None = None
    monthly_expenses: float | None = None
    category_totals: dict[CanonicalCategory, CategoryTotal] | None = None


class SourceTier(NamedTuple):
    name: str
    patch: SummaryPatch


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def summarize(
    profile: UserProfile | None,
    ledger: Sequence[LedgerEntry],
    goals: Iterable[Goal] = (),
    now: datetime | None = None,
) -> FinancialSummary:
    """
    Derive the financial summary for one request.

    Args:
        profile: The user's profile (None is treated as an empty profile).
        ledger: Reconciled ledger entries.
        goals: Goals to project.
        now: Reference time for goal projections. Defaults to now (UTC).

    Returns:
        A fully populated FinancialSummary.
    """
    profile = profile or UserProfile()
    now = now or datetime.now(timezone.utc)

    tiers = [
        SourceTier(TIER_INTEGRATIONS, integrations_patch(profile)),
        SourceTier(TIER_TRANSACTIONS, ledger_patch(ledger)),
        SourceTier(TIER_PROFILE, profile_patch(profile)),
    ]
    merged, winners = merge_tiers(tiers)

    income = merged.monthly_income or 0.0
    expenses = merged.monthly_expenses or 0.0

    return FinancialSummary(
        net_worth=round(merged.net_worth or 0.0, 2),
        monthly_income=round(income, 2),
        monthly_expenses=round(expenses, 2),
        savings_rate=savings_rate(income, expenses),
        category_totals=merged.category_totals or {},
        data_source=data_source_tag(winners),
        goal_projections=[project_goal(goal, now) for goal in goals],
        monthly_trends=monthly_trends(ledger),
        total_entries=len(ledger),
    )


def merge_tiers(tiers: Sequence[SourceTier]) -> tuple[SummaryPatch, list[str]]:
    """
    Left-to-right merge: an earlier tier's present field always wins.

    Returns the merged patch and the names of tiers that won at least one
    field, in tier order.
    """
    merged = SummaryPatch()
    winners: list[str] = []
    for tier in tiers:
        won = False
        for f in fields(SummaryPatch):
            if getattr(merged, f.name) is None and getattr(tier.patch, f.name) is not None:
                setattr(merged, f.name, getattr(tier.patch, f.name))
                won = True
        if won:
            winners.append(tier.name)
    return merged, winners


def data_source_tag(winners: Sequence[str]) -> str:
    if TIER_INTEGRATIONS in winners:
        return TAG_HYBRID if TIER_TRANSACTIONS in winners else TIER_INTEGRATIONS
    if TIER_TRANSACTIONS in winners:
        return TIER_TRANSACTIONS
    return TIER_PROFILE


def summary_to_dict(summary: FinancialSummary) -> dict:
    """JSON-ready dict with category keys as plain strings."""
    data = asdict(summary)
    data["category_totals"] = {
        category.value: asdict(total)
        for category, total in summary.category_totals.items()
    }
    data["monthly_savings"] = summary.monthly_savings
    return data


def savings_rate(monthly_income: float, monthly_expenses: float) -> float:
    """(income - expenses) / income as a percentage. 0 without income."""
    if monthly_income <= 0:
        return 0.0
    return round((monthly_income - monthly_expenses) / monthly_income * 100, 2)


# ---------------------------------------------------------------------------
# Tier Patches
# ---------------------------------------------------------------------------


def integrations_patch(profile: UserProfile) -> SummaryPatch:
    """Provider-computed insights. Zero means the provider never computed it."""
    insights = profile.insights
    if insights is None:
        return SummaryPatch()

    totals: dict[CanonicalCategory, float] = defaultdict(float)
    for share in insights.spending_by_category:
        if share.amount > 0:
            totals[normalize(share.category)] += share.amount

    return SummaryPatch(
        net_worth=insights.total_net_worth or None,
        monthly_income=insights.monthly_income or None,
        monthly_expenses=insights.monthly_spending or None,
        category_totals=_with_percentages(totals, {}) or None,
    )


def ledger_patch(ledger: Sequence[LedgerEntry]) -> SummaryPatch:
    """
    Recompute from the ledger. A field is supplied only when the ledger
    holds entries of the kind it is derived from.
    """
    income_entries = [e for e in ledger if e.kind is EntryKind.INCOME]
    expense_entries = [e for e in ledger if e.is_expense]
    asset_entries = [
        e for e in ledger
        if e.kind in (EntryKind.INVESTMENT, EntryKind.RETIREMENT_BALANCE)
    ]

    months = {e.month for e in income_entries + expense_entries}
    month_count = len(months) or 1

    patch = SummaryPatch()
    if income_entries:
        patch.monthly_income = float(_sum(income_entries)) / month_count
    if expense_entries:
        patch.monthly_expenses = float(abs(_sum(expense_entries))) / month_count

        totals: dict[CanonicalCategory, float] = defaultdict(float)
        counts: dict[CanonicalCategory, int] = defaultdict(int)
        for entry in expense_entries:
            totals[entry.category] += float(abs(entry.amount))
            counts[entry.category] += 1
        patch.category_totals = _with_percentages(totals, counts) or None
    if asset_entries:
        patch.net_worth = float(_sum(_latest_balances(asset_entries)))
    return patch


def profile_patch(profile: UserProfile) -> SummaryPatch:
    fp = profile.financial_profile
    return SummaryPatch(
        net_worth=fp.current_savings - fp.debt,
        monthly_income=fp.monthly_income,
        monthly_expenses=fp.monthly_expenses,
    )


# ---------------------------------------------------------------------------
# Goals & Trends
# ---------------------------------------------------------------------------


def project_goal(goal: Goal, now: datetime) -> GoalProjection:
    """Days remaining, required daily saving, progress and on-track status."""
    target_date = _aware(goal.target_date)
    remaining = max(goal.target_amount - goal.current_amount, 0.0)
    days_remaining = math.ceil((target_date - now).total_seconds() / 86400)
    required_daily = remaining / days_remaining if days_remaining > 0 else remaining

    if goal.target_amount > 0:
        progress = min(goal.current_amount / goal.target_amount * 100, 100.0)
    else:
        progress = 100.0

    on_track: bool | None = None
    if goal.created_at is not None:
        created = _aware(goal.created_at)
        span = (target_date - created).total_seconds()
        if span > 0:
            elapsed = (now - created).total_seconds()
            expected = min(max(elapsed / span * 100, 0.0), 100.0)
        else:
            expected = 100.0
        on_track = progress >= ON_TRACK_TOLERANCE * expected

    return GoalProjection(
        goal_id=goal.goal_id,
        title=goal.title,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        remaining=round(remaining, 2),
        days_remaining=days_remaining,
        required_daily=round(required_daily, 2),
        progress_percentage=round(progress, 2),
        on_track=on_track,
        status=goal.status,
    )


def monthly_trends(ledger: Sequence[LedgerEntry]) -> list[MonthlyTrend]:
    """Per-month income, expenses and net, oldest month first."""
    income: dict[str, Decimal] = defaultdict(Decimal)
    expenses: dict[str, Decimal] = defaultdict(Decimal)
    for entry in ledger:
        if entry.kind is EntryKind.INCOME:
            income[entry.month] += entry.amount
        elif entry.is_expense:
            expenses[entry.month] += abs(entry.amount)

    return [
        MonthlyTrend(
            month=month,
            income=float(income[month]),
            expenses=float(expenses[month]),
            net=float(income[month] - expenses[month]),
        )
        for month in sorted(set(income) | set(expenses))
    ]


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _sum(entries: Iterable[LedgerEntry]) -> Decimal:
    return sum((e.amount for e in entries), Decimal("0"))


def _latest_balances(entries: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    """
    Provider balances are snapshots: keep only the newest per account.
    Manual investment entries are contributions and are all kept.
    """
    seen: set[tuple] = set()
    kept = []
    for entry in sorted(entries, key=lambda e: e.occurred_at, reverse=True):
        if entry.source is LedgerSource.MANUAL:
            kept.append(entry)
            continue
        account = (entry.source, entry.provenance, entry.description, entry.category)
        if account not in seen:
            seen.add(account)
            kept.append(entry)
    return kept


def _with_percentages(
    totals: dict[CanonicalCategory, float],
    counts: dict[CanonicalCategory, int],
) -> dict[CanonicalCategory, CategoryTotal]:
    grand_total = sum(totals.values())
    if grand_total <= 0:
        return {}
    return {
        category: CategoryTotal(
            total=round(total, 2),
            percentage=round(total / grand_total * 100, 2),
            count=counts.get(category, 0),
        )
        for category, total in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    }


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
