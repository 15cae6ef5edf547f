# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API. The
# advisory response is consumed by a presentation layer that expects
# exact camelCase field names (followUpQuestions, backgroundColor,
# dataSource), so those models serialise by alias.
#
# DESIGN DECISION: every AdvisoryResponse field is defaulted.
# The pipeline must always return a structurally complete response,
# including on failure, so a bare AdvisoryResponse(response=...) is valid.
# =============================================================================

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


# ---------------------------------------------------------------------------
# POST /advise
# ---------------------------------------------------------------------------


class ChartSeries(BaseModel):
    label: str
    data: list[float]
    background_color: list[str]

    model_config = _CAMEL


class ChartData(BaseModel):
    labels: list[str]
    datasets: list[ChartSeries]


class Visualization(BaseModel):
    """Chart descriptor; rendered by the client, not by this service."""

    type: str
    title: str
    data: ChartData
    data_source: Literal["real", "generated"]

    model_config = _CAMEL


class AdvisoryResponse(BaseModel):
    """
    Final answer to an advisory query.

    Example:
        {
            "response": "You're saving 18% of your income...",
            "insights": ["Housing is 45% of spending"],
            "suggestions": ["Move $200/month into a high-yield account"],
            "visualization": {"type": "doughnut", ...},
            "followUpQuestions": ["Should I pay down debt first?"]
        }
    """

    response: str
    insights: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    visualization: Visualization | None = None
    follow_up_questions: list[str] = Field(default_factory=list)

    model_config = _CAMEL


# ---------------------------------------------------------------------------
# GET /summary/{user_id}
# ---------------------------------------------------------------------------


class CategoryTotalResponse(BaseModel):
    total: float
    percentage: float
    count: int


class GoalProjectionResponse(BaseModel):
    goal_id: str
    title: str
    target_amount: float
    current_amount: float
    remaining: float
    days_remaining: int
    required_daily: float
    progress_percentage: float
    on_track: bool | None
    status: str


class MonthlyTrendResponse(BaseModel):
    month: str
    income: float
    expenses: float
    net: float


class AlertResponse(BaseModel):
    type: str
    title: str
    message: str
    recommendation: str
    severity: str
    amount: float | None = None
    goal_id: str | None = None


class NetWorthProjectionResponse(BaseModel):
    one_year: float
    five_year: float
    ten_year: float


class LifePathPointResponse(BaseModel):
    age: int
    year: int
    current_path: float
    optimized_path: float


class LifePathResponse(BaseModel):
    annual_return: float
    current_savings_rate: float
    optimized_savings_rate: float
    retirement_age: int
    points: list[LifePathPointResponse]


class SummaryResponse(BaseModel):
    """Derived financial summary plus rule-based alerts and projections."""

    user_id: str
    net_worth: float
    monthly_income: float
    monthly_expenses: float
    monthly_savings: float
    savings_rate: float
    data_source: str
    total_entries: int
    category_totals: dict[str, CategoryTotalResponse]
    goal_projections: list[GoalProjectionResponse]
    monthly_trends: list[MonthlyTrendResponse]
    alerts: list[AlertResponse]
    projected_net_worth: NetWorthProjectionResponse
    life_path: LifePathResponse


# ---------------------------------------------------------------------------
# POST /life-event
# ---------------------------------------------------------------------------


class LifeEventPointResponse(BaseModel):
    age: int
    year: int
    baseline: float
    with_event: float


class LifeEventResponse(BaseModel):
    """The current life path with and without one life event."""

    user_id: str
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
    points: list[LifeEventPointResponse]
