# =============================================================================
# Dashboard Alerts — Rule-Based Financial Warnings
# =============================================================================
#
# Deterministic checks over the derived summary; no LLM involved.
#
#   Rule                   Fires when                                  Severity
#   ────────────────────   ─────────────────────────────────────────   ────────
#   spending_pattern       top category > 40% of categorised spending  medium
#   goal_progress          active goal not on track, days left > 0     high
#   savings_rate           savings rate < 10%                          medium
#   debt_management        debt / (12 × monthly income) > 0.4          high
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass

from finadvisor.models.profile import UserProfile
from finadvisor.services.summary import FinancialSummary
from finadvisor.services.visualization import category_label

CONCENTRATION_THRESHOLD = 40.0     # percent of categorised spending
LOW_SAVINGS_THRESHOLD = 10.0       # percent of income
DEBT_TO_INCOME_THRESHOLD = 0.4     # debt / annual income


@dataclass
class Alert:
    type: str
    title: str
    message: str
    recommendation: str
    severity: str
    amount: float | None = None
    goal_id: str | None = None


def derive_alerts(profile: UserProfile | None, summary: FinancialSummary) -> list[Alert]:
    """Run every rule and return the alerts that fire, in rule order."""
    profile = profile or UserProfile()
    alerts: list[Alert] = []

    top = summary.top_categories(limit=1)
    if top:
        category, total = top[0]
        if total.percentage > CONCENTRATION_THRESHOLD:
            alerts.append(Alert(
                type="spending_pattern",
                title="Spending Concentration Alert",
                message=(
                    f"{round(total.percentage)}% of your spending is on "
                    f"{category_label(category)}"
                ),
                recommendation=(
                    "Consider diversifying your expenses or finding ways to "
                    "reduce this category"
                ),
                severity="medium",
                amount=total.total,
            ))

    for goal in summary.goal_projections:
        if goal.status != "active":
            continue
        if goal.on_track is False and goal.days_remaining > 0:
            alerts.append(Alert(
                type="goal_progress",
                title=f"{goal.title} - Behind Schedule",
                message=(
                    f"You need to save ${goal.required_daily:.2f} daily to "
                    "reach this goal"
                ),
                recommendation=(
                    "Consider increasing your contribution or extending the deadline"
                ),
                severity="high",
                goal_id=goal.goal_id,
            ))

    if summary.savings_rate < LOW_SAVINGS_THRESHOLD:
        alerts.append(Alert(
            type="savings_rate",
            title="Low Savings Rate",
            message=(
                f"Your savings rate is {round(summary.savings_rate)}%. "
                "Experts recommend 20% minimum"
            ),
            recommendation="Try the 50/30/20 rule: 50% needs, 30% wants, 20% savings",
            severity="medium",
        ))

    debt = profile.financial_profile.debt
    if debt > 0:
        annual_income = summary.monthly_income * 12
        ratio = debt / annual_income if annual_income > 0 else float("inf")
        if ratio > DEBT_TO_INCOME_THRESHOLD:
            message = (
                f"Your debt is {round(ratio * 100)}% of your annual income"
                if annual_income > 0
                else f"You carry ${debt:,.2f} of debt with no recorded income"
            )
            alerts.append(Alert(
                type="debt_management",
                title="High Debt-to-Income Ratio",
                message=message,
                recommendation=(
                    "Focus on debt repayment using the avalanche or snowball method"
                ),
                severity="high",
                amount=debt,
            ))

    return alerts
