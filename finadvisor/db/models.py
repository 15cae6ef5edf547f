# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# Minimal storage for the advisor's external inputs and its one output.
# Each row keeps the document the rest of the system consumes as a JSON
# payload, keyed by user.
#
# SCHEMA OVERVIEW:
#
# ┌────────────────┐  ┌──────────────────────┐  ┌──────────────┐  ┌──────────────────┐
# │ user_profiles  │  │ ledger_records       │  │ goals        │  │ visualizations   │
# ├────────────────┤  ├──────────────────────┤  ├──────────────┤  ├──────────────────┤
# │ user_id (PK)   │  │ id (PK)              │  │ id (PK)      │  │ id (PK)          │
# │ payload (json) │  │ user_id (idx)        │  │ user_id (idx)│  │ user_id (idx)    │
# │ updated_at     │  │ source               │  │ status       │  │ chart_type       │
# └────────────────┘  │ occurred_at          │  │ payload      │  │ title            │
#                     │ payload (json)       │  │ created_at   │  │ data_source      │
#                     │ created_at           │  └──────────────┘  │ descriptor (json)│
#                     └──────────────────────┘                    │ created_at       │
#                                                                 └──────────────────┘
#
# DESIGN DECISIONS:
#
# 1. JSON payload columns: profiles, provider imports and goals arrive in
#    provider-specific shapes. Storing them verbatim keeps this layer a thin
#    adapter; the pydantic models and the reconciler give them structure.
#
# 2. `source` on ledger_records: "manual" for user-entered rows, otherwise
#    the provider source ("spending", "investment", "retirement", "wealth").
#
# 3. Generic JSON type (not JSONB) so tests can run against SQLite.
# =============================================================================

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class for all ORM models."""

    pass


class UserProfileRecord(Base):
    """The profile document for one user (identity, self-reported numbers, insights)."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class LedgerRecord(Base):
    """One manual entry or provider import record."""

    __tablename__ = "ledger_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    source: Mapped[str] = mapped_column(String(32))
    occurred_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_ledger_records_user_source_date", "user_id", "source", "occurred_at"),
    )


class GoalRecord(Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class VisualizationRecord(Base):
    """A chart descriptor produced by the advisor and saved for the dashboard."""

    __tablename__ = "visualizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    chart_type: Mapped[str] = mapped_column(String(20))
    title: Mapped[str] = mapped_column(String(200))
    data_source: Mapped[str] = mapped_column(String(20))
    descriptor: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
