# =============================================================================
# Agent Result Models — Typed Sub-Agent Outputs
# =============================================================================
#
# Each sub-agent's free-form LLM output is validated into one of these
# models by the safe parser. Every field has a default, so:
#   - `Model()` is the agent's documented empty/neutral value on failure
#   - partial LLM output still validates (missing keys take defaults)
#
# LLMs are sloppy with types ("$1,200" for a number, a bare string where a
# list was asked for). The LooseFloat / TextList annotated types coerce
# those at validation time instead of failing the whole result.
#
# DESIGN DECISION: to_camel aliases + populate_by_name
# Prompts ask for snake_case keys, but models drift to camelCase
# ("followUpQuestions"). Both spellings validate.
# =============================================================================

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from finadvisor.services.parser import coerce_number


def _text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


LooseFloat = Annotated[float, BeforeValidator(lambda v: coerce_number(v))]
TextList = Annotated[list[str], BeforeValidator(_text_list)]

_LENIENT = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

CHART_TYPES = frozenset({"pie", "doughnut", "bar", "line", "area", "radar"})


# ---------------------------------------------------------------------------
# spendingAnalysis
# ---------------------------------------------------------------------------


class SpendingRecommendation(BaseModel):
    category: str = ""
    current: LooseFloat = 0.0
    recommended: LooseFloat = 0.0
    strategy: str = ""

    model_config = _LENIENT


class SpendingAnalysis(BaseModel):
    summary: str = ""
    insights: TextList = Field(default_factory=list)
    concerns: TextList = Field(default_factory=list)
    recommendations: list[SpendingRecommendation] = Field(default_factory=list)
    efficiency_score: LooseFloat = 0.0
    potential_savings: LooseFloat = 0.0

    model_config = _LENIENT


# ---------------------------------------------------------------------------
# goalOptimization
# ---------------------------------------------------------------------------


class PrioritizedGoal(BaseModel):
    goal: str = ""
    priority: int = 0
    reasoning: str = ""
    recommended_monthly: LooseFloat = 0.0
    projected_completion: str = ""

    model_config = _LENIENT

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return int(coerce_number(value))


class GoalOptimization(BaseModel):
    prioritized_goals: list[PrioritizedGoal] = Field(default_factory=list)
    optimization_strategies: TextList = Field(default_factory=list)
    timeline_adjustments: dict[str, str] = Field(default_factory=dict)
    overall_advice: str = ""

    model_config = _LENIENT


# ---------------------------------------------------------------------------
# budgetPlanner
# ---------------------------------------------------------------------------


class BudgetBucket(BaseModel):
    amount: LooseFloat = 0.0
    percentage: LooseFloat = 0.0
    items: TextList = Field(default_factory=list)

    model_config = _LENIENT


class BudgetPlan(BaseModel):
    budget_method: str = ""
    categories: dict[str, BudgetBucket] = Field(default_factory=dict)
    monthly_surplus: LooseFloat = 0.0
    recommendations: TextList = Field(default_factory=list)
    adjustments_needed: TextList = Field(default_factory=list)
    success_tips: TextList = Field(default_factory=list)

    model_config = _LENIENT


# ---------------------------------------------------------------------------
# chartSelection / chartFormatting
# ---------------------------------------------------------------------------


class ChartSelection(BaseModel):
    """Which chart to draw. Defaults describe a spending breakdown."""

    chart_type: str = Field(default="doughnut", validation_alias="type")
    title: str = "Spending by Category"
    description: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("chart_type", mode="before")
    @classmethod
    def _known_type(cls, value):
        if isinstance(value, str) and value.strip().lower() in CHART_TYPES:
            return value.strip().lower()
        return "bar"


class ChartPoint(BaseModel):
    label: str = ""
    value: LooseFloat = 0.0

    model_config = _LENIENT


class ChartFormatting(BaseModel):
    """Label/value pairs formatted from summarized data."""

    data: list[ChartPoint] = Field(default_factory=list)

    model_config = _LENIENT

    @field_validator("data", mode="before")
    @classmethod
    def _points(cls, value):
        # Accept {"Food": 450, ...} as well as [{"label": ..., "value": ...}]
        if isinstance(value, dict):
            return [{"label": k, "value": v} for k, v in value.items()]
        return value


# ---------------------------------------------------------------------------
# responseSynthesis
# ---------------------------------------------------------------------------


class SynthesisDraft(BaseModel):
    """The synthesizer's structured answer before the chart is attached."""

    response: str = ""
    insights: TextList = Field(default_factory=list)
    suggestions: TextList = Field(default_factory=list)
    follow_up_questions: TextList = Field(default_factory=list)

    model_config = _LENIENT


# ---------------------------------------------------------------------------
# Life event impact
# ---------------------------------------------------------------------------


class LifeEventImpact(BaseModel):
    """
    Cash-flow effect of one life event, estimated by the LLM.

    Amounts are yearly except immediate_cost. The defaults describe an
    event with no financial effect.
    """

    immediate_cost: LooseFloat = 0.0
    annual_ongoing_cost: LooseFloat = 0.0
    income_change: LooseFloat = 0.0
    event_sources: TextList = Field(default_factory=list)
    risk_factors: TextList = Field(default_factory=list)

    model_config = _LENIENT

    @model_validator(mode="before")
    @classmethod
    def _flatten_analysis(cls, value):
        # Models often nest the numbers under "impact_analysis"
        if isinstance(value, dict):
            nested = value.get("impact_analysis", value.get("impactAnalysis"))
            if isinstance(nested, dict):
                return {**nested, **{k: v for k, v in value.items() if k not in nested}}
        return value
