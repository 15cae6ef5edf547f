# =============================================================================
# Unit Tests — Alerts and Projections
# =============================================================================

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from conftest import LIFE_EVENT, ScriptedLLM
from finadvisor.models.agent_results import LifeEventImpact
from finadvisor.models.profile import UserProfile
from finadvisor.services.alerts import derive_alerts
from finadvisor.services.categories import CanonicalCategory
from finadvisor.services.projections import (
    PROJECTION_ASSUMPTIONS,
    ProjectionAssumptions,
    apply_life_event,
    describe_assumptions,
    project_life_event,
    project_life_path,
    project_net_worth,
)
from finadvisor.services.summary import CategoryTotal, FinancialSummary, summarize

NOW = datetime(2026, 3, 31, tzinfo=timezone.utc)


def _profile(**financial):
    return UserProfile.model_validate({"financialProfile": financial})


class TestAlerts:

    def test_healthy_user_has_no_alerts(self):
        profile = _profile(monthlyIncome=6000, monthlyExpenses=3000)
        assert derive_alerts(profile, summarize(profile, [], [], now=NOW)) == []

    def test_low_savings_rate(self):
        profile = _profile(monthlyIncome=5000, monthlyExpenses=4800)
        alerts = derive_alerts(profile, summarize(profile, [], [], now=NOW))
        assert [a.type for a in alerts] == ["savings_rate"]
        assert alerts[0].severity == "medium"

    def test_spending_concentration(self):
        summary = FinancialSummary(
            net_worth=0, monthly_income=5000, monthly_expenses=1000, savings_rate=80,
            category_totals={CanonicalCategory.HOUSING: CategoryTotal(total=900, percentage=90.0, count=1)},
        )
        alerts = derive_alerts(None, summary)
        assert alerts[0].type == "spending_pattern"
        assert alerts[0].amount == 900

    def test_debt_without_income(self):
        profile = _profile(debt=5000)
        alerts = derive_alerts(profile, summarize(profile, [], [], now=NOW))
        debt_alert = [a for a in alerts if a.type == "debt_management"][0]
        assert debt_alert.severity == "high"
        assert "no recorded income" in debt_alert.message

    def test_manageable_debt(self):
        profile = _profile(monthlyIncome=6000, monthlyExpenses=3000, debt=10000)
        alerts = derive_alerts(profile, summarize(profile, [], [], now=NOW))
        assert alerts == []


class TestNetWorthProjection:

    def test_linear_projection(self):
        profile = _profile(currentSavings=10000, monthlyIncome=5000, monthlyExpenses=4000)
        projection = project_net_worth(summarize(profile, [], [], now=NOW))
        assert projection.one_year == 22000
        assert projection.five_year == 70000
        assert projection.ten_year == 130000


class TestLifePath:

    def test_years_to_retirement(self):
        profile = UserProfile.model_validate({
            "age": "55", "riskTolerance": "aggressive",
            "financialProfile": {"monthlyIncome": 5000, "monthlyExpenses": 4000},
        })
        path = project_life_path(profile, summarize(profile, [], [], now=NOW))

        assert path.annual_return == 0.09
        assert len(path.points) == 11
        assert path.points[-1].age == 65
        assert path.optimized_savings_rate == 30.0

    def test_optimized_path_never_below_current(self):
        profile = _profile(monthlyIncome=5000, monthlyExpenses=1000)
        path = project_life_path(profile, summarize(profile, [], [], now=NOW))

        assert path.optimized_savings_rate == 50.0
        assert all(p.optimized_path >= p.current_path for p in path.points)

    def test_past_retirement_projects_one_year(self):
        profile = UserProfile.model_validate({"age": 70})
        path = project_life_path(profile, summarize(profile, [], [], now=NOW))
        assert len(path.points) == 2

    def test_compounding(self):
        assumptions = ProjectionAssumptions(retirement_age=32, default_age=30)
        summary = FinancialSummary(net_worth=1000, monthly_income=0,
                                   monthly_expenses=0, savings_rate=0)
        path = project_life_path(None, summary, assumptions)
        assert path.points[1].current_path == pytest.approx(1070.0)
        assert path.points[2].current_path == pytest.approx(1144.9)


class TestAssumptions:

    @pytest.mark.parametrize("current,expected", [(0, 20.0), (15, 25.0), (45, 50.0)])
    def test_optimized_rate_clamped(self, current, expected):
        assert PROJECTION_ASSUMPTIONS.optimized_rate(current) == expected

    def test_unknown_risk_uses_moderate(self):
        assert PROJECTION_ASSUMPTIONS.annual_return("reckless") == 0.07

    def test_description(self):
        text = describe_assumptions("conservative")
        assert "annual return 5% (conservative)" in text
        assert "retirement age 65" in text


class TestLifeEvent:

    def _baseline(self):
        assumptions = ProjectionAssumptions(retirement_age=33, default_age=30)
        summary = FinancialSummary(net_worth=1000, monthly_income=0,
                                   monthly_expenses=0, savings_rate=0)
        return project_life_path(None, summary, assumptions)

    def test_event_cash_flows_compound(self):
        impact = LifeEventImpact(immediate_cost=500, annual_ongoing_cost=100, income_change=200)
        projection = apply_life_event(self._baseline(), impact, "Buy a car", 31)

        deltas = [p.with_event - p.baseline for p in projection.points]
        assert [p.age for p in projection.points] == [30, 31, 32, 33]
        assert deltas == pytest.approx([0, -500, -435, -365.45])
        assert projection.net_lifetime_impact == pytest.approx(-365.45)

    def test_past_event_age_happens_now(self):
        impact = LifeEventImpact(immediate_cost=500)
        projection = apply_life_event(self._baseline(), impact, "Wedding", 20)
        assert projection.event_age == 30
        assert projection.points[0].with_event == 500

    def test_no_impact_keeps_baseline(self):
        projection = apply_life_event(self._baseline(), LifeEventImpact(), "Nothing", 31)
        assert all(p.with_event == p.baseline for p in projection.points)
        assert projection.net_lifetime_impact == 0

    def test_estimate_from_llm(self):
        profile = UserProfile.model_validate({
            "age": 30, "financialProfile": {"monthlyIncome": 5000, "monthlyExpenses": 4000},
        })
        llm = ScriptedLLM({LIFE_EVENT: (
            '```json\n{"impact_analysis": {"immediate_cost": "$80,000", '
            '"annual_ongoing_cost": 0, "income_change": 15000}, '
            '"risk_factors": "Job market"}\n```'
        )})

        projection = asyncio.run(project_life_event(
            profile, summarize(profile, [], [], now=NOW), "Start an MBA", 32, llm,
        ))

        assert projection.immediate_cost == 80000
        assert projection.income_change == 15000
        assert projection.risk_factors == ["Job market"]
        assert projection.points[-1].age == 65
        assert projection.net_lifetime_impact > 0
        _, prompt = llm.calls[0]
        assert "LIFE EVENT: Start an MBA" in prompt
        assert "annual return 7% (moderate)" in prompt

    def test_llm_failure_means_no_impact(self):
        llm = ScriptedLLM({LIFE_EVENT: RuntimeError("overloaded")})
        profile = _profile(monthlyIncome=5000, monthlyExpenses=4000)

        projection = asyncio.run(project_life_event(
            profile, summarize(profile, [], [], now=NOW), "Have a child", 35, llm,
        ))

        assert projection.net_lifetime_impact == 0
        assert all(p.with_event == p.baseline for p in projection.points)
