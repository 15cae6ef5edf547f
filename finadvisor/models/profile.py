# =============================================================================
# User Profile Models — What the Store Supplies About a User
# =============================================================================
#
# The persistent store (and callers passing pre-fetched context) hand us
# camelCase JSON documents: {"userId": ..., "financialProfile": {...},
# "insights": {...}}. These models accept that shape as-is and expose
# snake_case attributes to the rest of the code.
#
# DESIGN DECISION: alias_generator=to_camel + populate_by_name
# Store payloads and request bodies use camelCase; Python code and tests
# use snake_case. With both enabled either spelling validates, and
# model_dump(by_alias=True) round-trips back to the store's shape.
# =============================================================================

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FinancialProfile(BaseModel):
    """Self-reported numbers from onboarding. Lowest-priority summary tier."""

    current_savings: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    debt: float = 0.0
    credit_score: int | None = None

    model_config = _CAMEL


class CategoryShare(BaseModel):
    """One row of a provider-computed spending breakdown."""

    category: str
    amount: float = 0.0
    percentage: float = 0.0

    model_config = _CAMEL


class IntegrationInsights(BaseModel):
    """
    Aggregates computed by connected providers (highest-priority tier).

    A value of 0 means "not computed" — providers default every field to
    zero until the first sync.
    """

    total_net_worth: float = 0.0
    total_investments: float = 0.0
    total_debt: float = 0.0
    monthly_spending: float = 0.0
    monthly_income: float = 0.0
    spending_by_category: list[CategoryShare] = Field(default_factory=list)
    last_calculated: datetime | None = None

    model_config = _CAMEL


class UserProfile(BaseModel):
    """
    A user's identity plus everything the advisor knows about them.

    Example (store shape):
        {
            "userId": "u-42",
            "firstName": "Ada",
            "age": "34",
            "riskTolerance": "moderate",
            "financialProfile": {"monthlyIncome": 6250, "debt": 12000},
            "insights": {"totalNetWorth": 85000}
        }
    """

    user_id: str = ""
    first_name: str | None = None
    age: int | None = None
    risk_tolerance: Literal["conservative", "moderate", "aggressive"] = "moderate"
    primary_goals: list[str] = Field(default_factory=list)
    financial_profile: FinancialProfile = Field(default_factory=FinancialProfile)
    insights: IntegrationInsights | None = None

    model_config = _CAMEL

    @field_validator("age", mode="before")
    @classmethod
    def _parse_age(cls, value):
        # Onboarding stores ages as free text ("34", "25-34")
        if isinstance(value, str):
            match = re.search(r"\d+", value)
            return int(match.group()) if match else None
        return value

    @field_validator("risk_tolerance", mode="before")
    @classmethod
    def _normalize_risk(cls, value):
        if isinstance(value, str) and value.lower() in (
            "conservative", "moderate", "aggressive",
        ):
            return value.lower()
        return "moderate"


class Goal(BaseModel):
    """A savings goal tracked against a target amount and date."""

    goal_id: str = ""
    title: str = "Goal"
    category: str = "savings"
    target_amount: float = 0.0
    current_amount: float = 0.0
    target_date: datetime
    created_at: datetime | None = None
    status: str = "active"

    model_config = _CAMEL
