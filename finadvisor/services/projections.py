# =============================================================================
# Net Worth Projections — One Shared Set of Assumptions
# =============================================================================
#
# Three projections are offered:
#
#   project_net_worth()   linear: net_worth + monthly_savings × months,
#                         at 1, 5 and 10 years
#   project_life_path()   yearly compounding from the user's age to
#                         retirement, for the current savings rate and an
#                         optimized one
#   project_life_event()  the current life path with one life event
#                         applied. The LLM only estimates the event's
#                         cash flows; the path itself is compounded here.
#
# DESIGN DECISION: a single PROJECTION_ASSUMPTIONS object
# Return rates, retirement age and the optimized savings rate live in one
# place. The goalOptimization agent's prompt embeds describe_assumptions()
# so LLM advice and local projections use the same numbers.
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from finadvisor.config import settings
from finadvisor.models.agent_results import LifeEventImpact
from finadvisor.models.profile import UserProfile
from finadvisor.services.llm import LLMProvider, ProviderCallFailed, generate
from finadvisor.services.parser import safe_parse
from finadvisor.services.summary import FinancialSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionAssumptions:
    retirement_age: int = 65
    default_age: int = 30
    annual_returns: dict[str, float] = field(default_factory=lambda: {
        "conservative": 0.05,
        "moderate": 0.07,
        "aggressive": 0.09,
    })
    # Optimized path: current savings rate + boost, clamped to [min, max]
    optimized_rate_boost: float = 10.0
    optimized_rate_min: float = 20.0
    optimized_rate_max: float = 50.0

    def annual_return(self, risk_tolerance: str) -> float:
        return self.annual_returns.get(risk_tolerance, self.annual_returns["moderate"])

    def optimized_rate(self, current_rate: float) -> float:
        boosted = max(current_rate + self.optimized_rate_boost, self.optimized_rate_min)
        return min(boosted, self.optimized_rate_max)


PROJECTION_ASSUMPTIONS = ProjectionAssumptions()


@dataclass
class NetWorthProjection:
    one_year: float
    five_year: float
    ten_year: float


@dataclass
class LifePathPoint:
    age: int
    year: int
    current_path: float
    optimized_path: float


@dataclass
class LifePath:
    annual_return: float
    current_savings_rate: float
    optimized_savings_rate: float
    retirement_age: int
    points: list[LifePathPoint]


def project_net_worth(summary: FinancialSummary) -> NetWorthProjection:
    savings = summary.monthly_savings
    return NetWorthProjection(
        one_year=round(summary.net_worth + savings * 12, 2),
        five_year=round(summary.net_worth + savings * 60, 2),
        ten_year=round(summary.net_worth + savings * 120, 2),
    )


def project_life_path(
    profile: UserProfile | None,
    summary: FinancialSummary,
    assumptions: ProjectionAssumptions = PROJECTION_ASSUMPTIONS,
) -> LifePath:
    """
    Compound net worth yearly until retirement on two paths.

    Each year: balance = balance × (1 + return) + annual savings. The
    optimized path never saves less than the current path, so it never
    ends below it.
    """
    profile = profile or UserProfile()
    age = profile.age or assumptions.default_age
    years = max(assumptions.retirement_age - age, 1)
    rate = assumptions.annual_return(profile.risk_tolerance)

    current_annual = max(summary.monthly_savings, 0.0) * 12
    optimized_rate = assumptions.optimized_rate(summary.savings_rate)
    optimized_annual = max(
        summary.monthly_income * optimized_rate / 100 * 12, current_annual,
    )

    current = optimized = summary.net_worth
    points = [LifePathPoint(age=age, year=0, current_path=round(current, 2),
                            optimized_path=round(optimized, 2))]
    for year in range(1, years + 1):
        current = current * (1 + rate) + current_annual
        optimized = optimized * (1 + rate) + optimized_annual
        points.append(LifePathPoint(
            age=age + year,
            year=year,
            current_path=round(current, 2),
            optimized_path=round(optimized, 2),
        ))

    return LifePath(
        annual_return=rate,
        current_savings_rate=summary.savings_rate,
        optimized_savings_rate=optimized_rate,
        retirement_age=assumptions.retirement_age,
        points=points,
    )


def describe_assumptions(
    risk_tolerance: str,
    assumptions: ProjectionAssumptions = PROJECTION_ASSUMPTIONS,
) -> str:
    """One-line summary embedded in goal-optimization prompts."""
    return (
        f"annual return {assumptions.annual_return(risk_tolerance) * 100:.0f}% "
        f"({risk_tolerance}), retirement age {assumptions.retirement_age}, "
        f"optimized savings rate = current + {assumptions.optimized_rate_boost:.0f} "
        f"points (min {assumptions.optimized_rate_min:.0f}%, "
        f"max {assumptions.optimized_rate_max:.0f}%)"
    )


# ---------------------------------------------------------------------------
# Life Event Impact
# ---------------------------------------------------------------------------

LIFE_EVENT_SYSTEM_PROMPT = (
    "You are a life event impact analyst for a personal finance app. "
    "Estimate how one life event (education, a home purchase, children, a "
    "career change...) changes the user's cash flows, using typical "
    "published costs. Respond with valid JSON only, no prose outside the JSON."
)


@dataclass
class LifeEventPoint:
    age: int
    year: int
    baseline: float
    with_event: float


@dataclass
class LifeEventProjection:
    event: str
    event_age: int
    annual_return: float
    retirement_age: int
    immediate_cost: float
    annual_ongoing_cost: float
    income_change: float
    net_lifetime_impact: float
    event_sources: list[str]
    risk_factors: list[str]
    points: list[LifeEventPoint]


def apply_life_event(
    baseline: LifePath,
    impact: LifeEventImpact,
    event: str,
    event_age: int,
) -> LifeEventProjection:
    """
    Overlay an event's cash flows on the current path of `baseline`.

    The immediate cost is paid in the year the event happens. Every later
    year adds income_change - annual_ongoing_cost. The difference from the
    baseline compounds at the baseline's annual return. An event before
    the first projected age happens in the first year.
    """
    start_age = baseline.points[0].age
    event_age = max(event_age, start_age)
    yearly_net = impact.income_change - impact.annual_ongoing_cost

    delta = 0.0
    points = []
    for point in baseline.points:
        if point.year > 0:
            delta *= 1 + baseline.annual_return
            if point.age > event_age:
                delta += yearly_net
        if point.age == event_age:
            delta -= impact.immediate_cost
        points.append(LifeEventPoint(
            age=point.age,
            year=point.year,
            baseline=point.current_path,
            with_event=round(point.current_path + delta, 2),
        ))

    return LifeEventProjection(
        event=event,
        event_age=event_age,
        annual_return=baseline.annual_return,
        retirement_age=baseline.retirement_age,
        immediate_cost=impact.immediate_cost,
        annual_ongoing_cost=impact.annual_ongoing_cost,
        income_change=impact.income_change,
        net_lifetime_impact=round(delta, 2),
        event_sources=list(impact.event_sources),
        risk_factors=list(impact.risk_factors),
        points=points,
    )


async def project_life_event(
    profile: UserProfile | None,
    summary: FinancialSummary,
    event: str,
    event_age: int,
    llm: LLMProvider,
    assumptions: ProjectionAssumptions = PROJECTION_ASSUMPTIONS,
) -> LifeEventProjection:
    """
    Project the user's life path with and without a life event.

    One LLM call estimates the event's cash flows. A provider failure or
    an unparseable answer is treated as an event with no financial
    effect, so the two paths coincide.
    """
    profile = profile or UserProfile()
    baseline = project_life_path(profile, summary, assumptions)

    try:
        raw = await generate(
            llm,
            _life_event_prompt(profile, summary, baseline, event, event_age, assumptions),
            system=LIFE_EVENT_SYSTEM_PROMPT,
            timeout=settings.agent_timeout_seconds,
        )
        impact = safe_parse(raw, LifeEventImpact())
    except ProviderCallFailed as e:
        logger.warning("Life event estimate failed: %s. Assuming no impact.", e)
        impact = LifeEventImpact()

    projection = apply_life_event(baseline, impact, event, event_age)
    logger.info(
        "Life event '%s' at %d: net lifetime impact %.2f",
        event[:60], projection.event_age, projection.net_lifetime_impact,
    )
    return projection


def _life_event_prompt(
    profile: UserProfile,
    summary: FinancialSummary,
    baseline: LifePath,
    event: str,
    event_age: int,
    assumptions: ProjectionAssumptions,
) -> str:
    sample = [
        {"age": p.age, "netWorth": p.current_path} for p in baseline.points[:10]
    ]
    return (
        "USER DATA:\n"
        f"- Current Age: {baseline.points[0].age}\n"
        f"- Monthly Income: {summary.monthly_income:.2f}\n"
        f"- Monthly Expenses: {summary.monthly_expenses:.2f}\n"
        f"- Net Worth: {summary.net_worth:.2f}\n"
        f"- Risk Tolerance: {profile.risk_tolerance}\n\n"
        "PROJECTION ASSUMPTIONS (use these, do not invent others):\n"
        f"{describe_assumptions(profile.risk_tolerance, assumptions)}\n\n"
        f"BASELINE PROJECTION:\n{json.dumps(sample)}\n\n"
        f"LIFE EVENT: {event}\n"
        f"AGE WHEN EVENT OCCURS: {event_age}\n\n"
        "Estimate the one-time cost when the event happens, the yearly "
        "ongoing cost afterwards and the yearly change in income.\n"
        "Format as JSON:\n"
        '{"immediate_cost": 0, "annual_ongoing_cost": 0, "income_change": 0, '
        '"event_sources": ["..."], "risk_factors": ["..."]}'
    )
