# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API.
# FastAPI uses them for request body validation (automatic 422 errors)
# and OpenAPI documentation (visible at /docs).
# =============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AdviceRequest(BaseModel):
    """
    Request body for POST /advise — ask the advisor a question.

    `context` is optional pre-fetched data used when the store is
    unreachable. It accepts the store's own shape:
    {"profile": {...}, "manualEntries": [...], "providerRecords": {...},
     "goals": [...]}.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="ID of the user asking the question",
        examples=["u-42"],
    )

    query: str = Field(
        ...,
        min_length=3,
        max_length=2000,
        description="The free-text financial question",
        examples=["How can I save more each month?"],
    )

    context: dict[str, Any] | None = Field(
        default=None,
        description="Optional pre-fetched profile, ledger records and goals",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "user_id": "u-42",
                    "query": "How can I save more each month?",
                },
                {
                    "user_id": "u-42",
                    "query": "Am I on track for my emergency fund?",
                    "context": {
                        "profile": {"financialProfile": {"monthlyIncome": 6250}},
                        "goals": [{
                            "title": "Emergency fund",
                            "targetAmount": 10000,
                            "currentAmount": 2500,
                            "targetDate": "2027-06-30T00:00:00Z",
                        }],
                    },
                },
            ]
        }
    )


class LifeEventRequest(BaseModel):
    """Request body for POST /life-event — project one life event's impact."""

    user_id: str = Field(..., min_length=1, max_length=64, examples=["u-42"])

    event: str = Field(
        ...,
        min_length=3,
        max_length=500,
        description="The life event, in the user's own words",
        examples=["Start an MBA"],
    )

    event_age: int = Field(
        ...,
        ge=0,
        le=120,
        description="Age at which the event happens",
        examples=[35],
    )
