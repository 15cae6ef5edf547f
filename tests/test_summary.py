# =============================================================================
# Unit Tests — Summary Calculator
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from finadvisor.models.profile import Goal, UserProfile
from finadvisor.services.categories import CanonicalCategory
from finadvisor.services.reconciler import reconcile
from finadvisor.services.summary import (
    CategoryTotal,
    SourceTier,
    SummaryPatch,
    merge_tiers,
    summarize,
)

NOW = datetime(2026, 3, 31, tzinfo=timezone.utc)


def _ledger(manual=(), providers=None):
    return reconcile(list(manual), providers or {}, as_of=NOW)


class TestMergeTiers:
    """The precedence rule as a pure function."""

    def test_earlier_tier_wins(self):
        merged, winners = merge_tiers([
            SourceTier("a", SummaryPatch(net_worth=1.0)),
            SourceTier("b", SummaryPatch(net_worth=2.0, monthly_income=10.0)),
        ])
        assert merged.net_worth == 1.0
        assert merged.monthly_income == 10.0
        assert winners == ["a", "b"]

    def test_tier_that_wins_nothing_is_not_listed(self):
        _, winners = merge_tiers([
            SourceTier("a", SummaryPatch(net_worth=1.0, monthly_income=2.0,
                                         monthly_expenses=3.0, category_totals={})),
            SourceTier("b", SummaryPatch(net_worth=5.0)),
        ])
        assert winners == ["a"]

    def test_empty_tiers(self):
        merged, winners = merge_tiers([])
        assert merged == SummaryPatch()
        assert winners == []


class TestPrecedence:

    def test_integration_net_worth_wins(self):
        profile = UserProfile.model_validate({
            "financialProfile": {"currentSavings": 1000, "monthlyIncome": 4000},
            "insights": {
                "totalNetWorth": 85000, "monthlyIncome": 7000, "monthlySpending": 3000,
                "spendingByCategory": [{"category": "Groceries", "amount": 600}],
            },
        })
        ledger = _ledger(providers={"investment": [{"marketValue": 999999, "date": "2026-03-01"}]})

        summary = summarize(profile, ledger, [], now=NOW)

        assert summary.net_worth == 85000
        assert summary.data_source == "integrations"

    def test_integrations_plus_ledger_is_hybrid(self):
        profile = UserProfile.model_validate({"insights": {"totalNetWorth": 50000}})
        ledger = _ledger([{"amount": 300, "type": "expense", "category": "Food",
                           "date": "2026-03-02"}])

        summary = summarize(profile, ledger, [], now=NOW)

        assert summary.net_worth == 50000
        assert summary.monthly_expenses == 300
        assert summary.data_source == "hybrid"

    def test_zero_insights_are_absent(self):
        profile = UserProfile.model_validate({
            "financialProfile": {"monthlyIncome": 5000, "monthlyExpenses": 4000},
            "insights": {"totalNetWorth": 0, "monthlyIncome": 0},
        })
        summary = summarize(profile, [], [], now=NOW)
        assert summary.monthly_income == 5000
        assert summary.data_source == "profile"

    def test_ledger_only_is_transactions(self):
        ledger = _ledger([
            {"amount": 5000, "type": "income", "date": "2026-02-01"},
            {"amount": 1000, "type": "expense", "category": "Rent", "date": "2026-02-03"},
            {"amount": 5000, "type": "income", "date": "2026-03-01"},
            {"amount": 2000, "type": "expense", "category": "Rent", "date": "2026-03-03"},
        ])
        summary = summarize(None, ledger, [], now=NOW)

        assert summary.data_source == "transactions"
        assert summary.monthly_income == 5000      # 10000 over 2 months
        assert summary.monthly_expenses == 1500
        assert summary.savings_rate == 70.0

    def test_profile_fallback(self):
        profile = UserProfile.model_validate({
            "financialProfile": {"currentSavings": 20000, "debt": 5000,
                                 "monthlyIncome": 4000, "monthlyExpenses": 3000},
        })
        summary = summarize(profile, [], [], now=NOW)

        assert summary.net_worth == 15000
        assert summary.savings_rate == 25.0
        assert summary.data_source == "profile"
        assert summary.category_totals == {}


class TestCategoryTotals:

    def test_food_and_housing_percentages(self):
        profile = UserProfile.model_validate({"financialProfile": {"monthlyIncome": 6250}})
        ledger = _ledger([
            {"amount": 450, "type": "expense", "category": "Food", "date": "2026-03-05"},
            {"amount": 1800, "type": "expense", "category": "Housing", "date": "2026-03-06"},
        ])

        summary = summarize(profile, ledger, [], now=NOW)

        food = summary.category_totals[CanonicalCategory.FOOD]
        assert food.percentage == pytest.approx(20.0)
        assert food.total == 450
        assert food.count == 1
        assert summary.category_totals[CanonicalCategory.HOUSING].percentage == pytest.approx(80.0)
        assert summary.monthly_income == 6250

    def test_income_excluded_from_breakdown(self):
        ledger = _ledger([
            {"amount": 9000, "type": "income", "date": "2026-03-01"},
            {"amount": 100, "type": "expense", "category": "Movies", "date": "2026-03-02"},
        ])
        summary = summarize(None, ledger, [], now=NOW)
        assert list(summary.category_totals) == [CanonicalCategory.ENTERTAINMENT]
        assert summary.category_totals[CanonicalCategory.ENTERTAINMENT] == CategoryTotal(100.0, 100.0, 1)

    def test_latest_balance_per_account(self):
        ledger = _ledger(providers={"retirement": [
            {"balance": 50000, "accountType": "401k", "provider": "fidelity", "date": "2026-02-01"},
            {"balance": 52000, "accountType": "401k", "provider": "fidelity", "date": "2026-03-01"},
        ]})
        summary = summarize(None, ledger, [], now=NOW)
        assert summary.net_worth == 52000


class TestGoalProjections:

    def test_days_and_required_daily(self):
        goal = Goal(title="Emergency fund", target_amount=1000, current_amount=400,
                    target_date=NOW + timedelta(days=30))
        projection = summarize(None, [], [goal], now=NOW).goal_projections[0]

        assert projection.days_remaining == 30
        assert projection.required_daily == 20.0
        assert projection.progress_percentage == 40.0
        assert projection.on_track is None

    def test_past_deadline_requires_full_remaining(self):
        goal = Goal(target_amount=1000, current_amount=900, target_date=NOW - timedelta(days=5))
        projection = summarize(None, [], [goal], now=NOW).goal_projections[0]
        assert projection.days_remaining <= 0
        assert projection.required_daily == 100.0

    def test_on_track_against_elapsed_time(self):
        created = NOW - timedelta(days=50)
        target = NOW + timedelta(days=50)
        behind = Goal(target_amount=1000, current_amount=100, target_date=target, created_at=created)
        ahead = Goal(target_amount=1000, current_amount=600, target_date=target, created_at=created)

        projections = summarize(None, [], [behind, ahead], now=NOW).goal_projections

        assert projections[0].on_track is False
        assert projections[1].on_track is True


class TestMonthlyTrends:

    def test_trends_by_month(self):
        ledger = _ledger([
            {"amount": 3000, "type": "income", "date": "2026-02-01"},
            {"amount": 1000, "type": "expense", "date": "2026-02-10"},
            {"amount": 500, "type": "expense", "date": "2026-03-10"},
        ])
        trends = summarize(None, ledger, [], now=NOW).monthly_trends
        assert [t.month for t in trends] == ["2026-02", "2026-03"]
        assert trends[0].net == 2000
        assert trends[1].income == 0
