# =============================================================================
# Agent Catalog — The Fixed Set of Sub-Agents
# =============================================================================
#
# Every sub-agent the advisor can consult is a member of AgentName, and
# each member has exactly one AgentSpec in AGENTS:
#
#   Name                 Kind        Result model        Timeout
#   ──────────────────   ─────────   ─────────────────   ─────────────────────
#   spendingAnalysis     optional    SpendingAnalysis    agent_timeout_seconds
#   goalOptimization     optional    GoalOptimization    agent_timeout_seconds
#   budgetPlanner        optional    BudgetPlan          agent_timeout_seconds
#   chartSelection       mandatory   ChartSelection      chart_timeout_seconds
#   chartFormatting      mandatory   ChartFormatting     chart_timeout_seconds
#   responseSynthesis    mandatory   SynthesisDraft      synthesis_timeout_seconds
#
# DESIGN DECISION: Enum + static table over a runtime registry.
# The runner iterates this table; there is no lookup by arbitrary string,
# so an LLM that invents an agent name can never dispatch anything.
#
# DESIGN DECISION: Result model class doubles as the failure default.
# Every field of every result model is defaulted, so `spec.default()` is
# the documented empty value substituted when the agent fails.
#
# responseSynthesis is listed for completeness (selector output, prompts)
# but is not dispatched by the runner; the synthesizer calls it directly
# once all other results are in.
# =============================================================================

from __future__ import annotations

import enum
import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel

from finadvisor.config import settings
from finadvisor.models.agent_results import (
    BudgetPlan,
    ChartFormatting,
    ChartSelection,
    GoalOptimization,
    SpendingAnalysis,
    SynthesisDraft,
)
from finadvisor.models.ledger import LedgerEntry
from finadvisor.models.profile import Goal, UserProfile
from finadvisor.services.llm import LLMProvider
from finadvisor.services.projections import describe_assumptions
from finadvisor.services.summary import FinancialSummary, summary_to_dict

# Most recent expense entries shown to the spending analyst
_MAX_PROMPT_TRANSACTIONS = 25


class AgentName(str, enum.Enum):
    SPENDING_ANALYSIS = "spendingAnalysis"
    GOAL_OPTIMIZATION = "goalOptimization"
    BUDGET_PLANNER = "budgetPlanner"
    RESPONSE_SYNTHESIS = "responseSynthesis"
    CHART_SELECTION = "chartSelection"
    CHART_FORMATTING = "chartFormatting"


OPTIONAL_AGENTS: frozenset[AgentName] = frozenset({
    AgentName.SPENDING_ANALYSIS,
    AgentName.GOAL_OPTIMIZATION,
    AgentName.BUDGET_PLANNER,
})

MANDATORY_AGENTS: frozenset[AgentName] = frozenset({
    AgentName.RESPONSE_SYNTHESIS,
    AgentName.CHART_SELECTION,
    AgentName.CHART_FORMATTING,
})

CHART_AGENTS: frozenset[AgentName] = frozenset({
    AgentName.CHART_SELECTION,
    AgentName.CHART_FORMATTING,
})

# Used when selection fails or selects nothing usable
DEFAULT_PAIR: tuple[AgentName, ...] = (
    AgentName.SPENDING_ANALYSIS,
    AgentName.BUDGET_PLANNER,
)


# ---------------------------------------------------------------------------
# Agent Context
# ---------------------------------------------------------------------------


@dataclass
class AgentContext:
    """Read-only inputs shared by every sub-agent in one request."""

    query: str
    profile: UserProfile
    summary: FinancialSummary
    llm: LLMProvider
    ledger: Sequence[LedgerEntry] = field(default_factory=list)
    goals: Sequence[Goal] = field(default_factory=list)


@dataclass(frozen=True)
class AgentSpec:
    name: AgentName
    description: str
    system_prompt: str
    result_type: type[BaseModel]
    timeout_setting: str
    build_prompt: Callable[[AgentContext], str] | None = None
    dispatchable: bool = True

    def default(self) -> BaseModel:
        return self.result_type()

    @property
    def timeout(self) -> float:
        return getattr(settings, self.timeout_setting)


# ---------------------------------------------------------------------------
# Prompt Builders
# ---------------------------------------------------------------------------


def _profile_block(ctx: AgentContext) -> str:
    s = ctx.summary
    return (
        "USER PROFILE:\n"
        f"- Age: {ctx.profile.age or 'Not specified'}\n"
        f"- Risk Tolerance: {ctx.profile.risk_tolerance}\n"
        f"- Primary Goals: {', '.join(ctx.profile.primary_goals) or 'General financial health'}\n"
        f"- Monthly Income: {s.monthly_income:.2f}\n"
        f"- Monthly Expenses: {s.monthly_expenses:.2f}\n"
        f"- Savings Rate: {s.savings_rate:.1f}%\n"
        f"- Net Worth: {s.net_worth:.2f}\n"
        f"- Current Savings: {ctx.profile.financial_profile.current_savings:.2f}\n"
        f"- Debt: {ctx.profile.financial_profile.debt:.2f}\n"
        f"- Data Source: {s.data_source}\n"
    )


def _spending_prompt(ctx: AgentContext) -> str:
    transactions = [
        {
            "date": e.occurred_at.date().isoformat(),
            "amount": float(e.amount),
            "category": e.category.value,
            "description": e.description,
        }
        for e in ctx.ledger
        if e.is_expense
    ][:_MAX_PROMPT_TRANSACTIONS]
    categories = summary_to_dict(ctx.summary)["category_totals"]
    return (
        f"{_profile_block(ctx)}\n"
        f"SPENDING BY CATEGORY:\n{json.dumps(categories)}\n\n"
        f"RECENT TRANSACTIONS:\n{json.dumps(transactions)}\n\n"
        f"USER QUESTION: {ctx.query}\n\n"
        "Format as JSON:\n"
        '{"summary": "...", "insights": ["..."], "concerns": ["..."], '
        '"recommendations": [{"category": "...", "current": 0, '
        '"recommended": 0, "strategy": "..."}], '
        '"efficiency_score": 0, "potential_savings": 0}'
    )


def _goal_prompt(ctx: AgentContext) -> str:
    goals = [
        {
            "goal": g.title,
            "remaining": g.remaining,
            "daysRemaining": g.days_remaining,
            "requiredDaily": g.required_daily,
            "progress": g.progress_percentage,
            "onTrack": g.on_track,
        }
        for g in ctx.summary.goal_projections
    ]
    return (
        f"{_profile_block(ctx)}\n"
        f"CURRENT GOALS:\n{json.dumps(goals)}\n\n"
        "PROJECTION ASSUMPTIONS (use these, do not invent others):\n"
        f"{describe_assumptions(ctx.profile.risk_tolerance)}\n\n"
        f"USER QUESTION: {ctx.query}\n\n"
        "Format as JSON:\n"
        '{"prioritized_goals": [{"goal": "...", "priority": 1, '
        '"reasoning": "...", "recommended_monthly": 0, '
        '"projected_completion": "YYYY-MM"}], '
        '"optimization_strategies": ["..."], '
        '"timeline_adjustments": {"goal": "..."}, "overall_advice": "..."}'
    )


def _budget_prompt(ctx: AgentContext) -> str:
    return (
        f"{_profile_block(ctx)}\n"
        f"USER QUESTION: {ctx.query}\n\n"
        "Create a realistic budget using a proven method (50/30/20, "
        "zero-based, or custom).\n"
        "Format as JSON:\n"
        '{"budget_method": "...", "categories": {"needs": {"amount": 0, '
        '"percentage": 0, "items": ["..."]}, "wants": {...}, '
        '"savings": {...}, "debt_payment": {...}}, "monthly_surplus": 0, '
        '"recommendations": ["..."], "adjustments_needed": ["..."], '
        '"success_tips": ["..."]}'
    )


def _chart_selection_prompt(ctx: AgentContext) -> str:
    categories = [c.value for c, _ in ctx.summary.top_categories(limit=10)]
    return (
        f"USER QUESTION: {ctx.query}\n"
        f"AVAILABLE DATA: spending categories {categories}, "
        f"{len(ctx.summary.monthly_trends)} months of trends, "
        f"{len(ctx.summary.goal_projections)} goals\n\n"
        "Pick the single chart that best supports an answer.\n"
        'Format as JSON: {"type": "pie|doughnut|bar|line|area|radar", '
        '"title": "...", "description": "..."}'
    )


def _chart_formatting_prompt(ctx: AgentContext) -> str:
    summary = summary_to_dict(ctx.summary)
    data = {
        "category_totals": summary["category_totals"],
        "monthly_trends": summary["monthly_trends"],
        "net_worth": summary["net_worth"],
        "monthly_income": summary["monthly_income"],
        "monthly_expenses": summary["monthly_expenses"],
    }
    return (
        f"USER QUESTION: {ctx.query}\n"
        f"SUMMARIZED DATA:\n{json.dumps(data)}\n\n"
        "Turn the most relevant part of this data into chart points. "
        "Use only numbers present above.\n"
        'Format as JSON: {"data": [{"label": "...", "value": 0}]}'
    )


# ---------------------------------------------------------------------------
# The Catalog
# ---------------------------------------------------------------------------

_JSON_ONLY = "Respond with valid JSON only, no prose outside the JSON."

AGENTS: dict[AgentName, AgentSpec] = {
    AgentName.SPENDING_ANALYSIS: AgentSpec(
        name=AgentName.SPENDING_ANALYSIS,
        description="Analyses spending patterns, concerns and savings opportunities",
        system_prompt=(
            "You are a spending analyst for a personal finance app. Analyse "
            "the user's spending and identify insights, concerns and "
            f"concrete savings opportunities. {_JSON_ONLY}"
        ),
        result_type=SpendingAnalysis,
        timeout_setting="agent_timeout_seconds",
        build_prompt=_spending_prompt,
    ),
    AgentName.GOAL_OPTIMIZATION: AgentSpec(
        name=AgentName.GOAL_OPTIMIZATION,
        description="Prioritises savings goals and recommends contributions and timelines",
        system_prompt=(
            "You are a goal optimization expert. Rank the user's financial "
            "goals, recommend monthly contributions and realistic timelines. "
            f"{_JSON_ONLY}"
        ),
        result_type=GoalOptimization,
        timeout_setting="agent_timeout_seconds",
        build_prompt=_goal_prompt,
    ),
    AgentName.BUDGET_PLANNER: AgentSpec(
        name=AgentName.BUDGET_PLANNER,
        description="Builds a monthly budget split into needs, wants, savings and debt",
        system_prompt=(
            "You are a budget planner. Build a personalised monthly budget "
            f"from the user's income, expenses and goals. {_JSON_ONLY}"
        ),
        result_type=BudgetPlan,
        timeout_setting="agent_timeout_seconds",
        build_prompt=_budget_prompt,
    ),
    AgentName.CHART_SELECTION: AgentSpec(
        name=AgentName.CHART_SELECTION,
        description="Chooses the chart type and title for the answer",
        system_prompt=(
            "You are a chart selection assistant for financial dashboards. "
            f"{_JSON_ONLY}"
        ),
        result_type=ChartSelection,
        timeout_setting="chart_timeout_seconds",
        build_prompt=_chart_selection_prompt,
    ),
    AgentName.CHART_FORMATTING: AgentSpec(
        name=AgentName.CHART_FORMATTING,
        description="Formats summarized data into chart label/value pairs",
        system_prompt=(
            "You are a chart formatting assistant. Convert summarized "
            f"financial data into label/value pairs. {_JSON_ONLY}"
        ),
        result_type=ChartFormatting,
        timeout_setting="chart_timeout_seconds",
        build_prompt=_chart_formatting_prompt,
    ),
    AgentName.RESPONSE_SYNTHESIS: AgentSpec(
        name=AgentName.RESPONSE_SYNTHESIS,
        description="Combines every result into the final answer",
        system_prompt=(
            "You are a highly experienced financial advisor. You give "
            "personalised, actionable advice grounded in the user's real "
            "numbers. Prefer provider integration data over self-reported "
            f"profile figures. Keep it practical and encouraging. {_JSON_ONLY}"
        ),
        result_type=SynthesisDraft,
        timeout_setting="synthesis_timeout_seconds",
        dispatchable=False,
    ),
}
