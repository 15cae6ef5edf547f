# =============================================================================
# Financial Data Store — Persistent Store Adapter
# =============================================================================
#
# The advisor reads four things about a user and writes one back:
#
#   get_profile(user_id)           → profile document (or None)
#   get_manual_entries(user_id)    → user-entered ledger records
#   get_provider_records(user_id)  → provider imports grouped by source
#   get_goals(user_id)             → active goals
#   save_visualization(user_id, d) → id of the saved chart descriptor
#
# FinancialDataStore is the Protocol the pipeline depends on; tests pass
# in-memory implementations. SqlAlchemyStore is the production adapter.
#
# ERROR CONTRACT:
#   Any database/driver error on read  → DataFetchFailure
#   Any database/driver error on write → PersistFailure
# The pipeline degrades on both (see agents/orchestrator.py).
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finadvisor.config import settings
from finadvisor.db.engine import async_session_factory
from finadvisor.db.models import (
    GoalRecord,
    LedgerRecord,
    UserProfileRecord,
    VisualizationRecord,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DataFetchFailure(RuntimeError):
    """The store is unreachable or a read failed."""


class PersistFailure(RuntimeError):
    """Saving a visualization failed."""


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class FinancialDataStore(Protocol):
    async def get_profile(self, user_id: str) -> dict[str, Any] | None: ...

    async def get_manual_entries(self, user_id: str) -> list[dict[str, Any]]: ...

    async def get_provider_records(
        self, user_id: str,
    ) -> dict[str, list[dict[str, Any]]]: ...

    async def get_goals(self, user_id: str) -> list[dict[str, Any]]: ...

    async def save_visualization(
        self, user_id: str, descriptor: dict[str, Any],
    ) -> str: ...


# ---------------------------------------------------------------------------
# Implementation: SQLAlchemy
# ---------------------------------------------------------------------------


class SqlAlchemyStore:
    """
    Store backed by the JSON-payload tables in finadvisor/db/models.py.

    Manual entries are limited to the last `ledger_lookback_months`
    months and at most `ledger_max_entries` rows, newest first.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
        lookback_months: int | None = None,
        max_entries: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lookback_months = lookback_months or settings.ledger_lookback_months
        self._max_entries = max_entries or settings.ledger_max_entries

    async def get_profile(self, user_id: str) -> dict[str, Any] | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(UserProfileRecord, user_id)
        except (SQLAlchemyError, OSError) as e:
            raise DataFetchFailure(f"Failed to load profile for {user_id}: {e}") from e

        if record is None:
            return None
        return {"userId": user_id, **(record.payload or {})}

    async def get_manual_entries(self, user_id: str) -> list[dict[str, Any]]:
        # Approximate months as 30 days; the window is a soft bound.
        since = datetime.now(timezone.utc) - timedelta(days=30 * self._lookback_months)
        stmt = (
            select(LedgerRecord)
            .where(
                LedgerRecord.user_id == user_id,
                LedgerRecord.source == "manual",
                LedgerRecord.occurred_at >= since,
            )
            .order_by(LedgerRecord.occurred_at.desc())
            .limit(self._max_entries)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise DataFetchFailure(f"Failed to load manual entries for {user_id}: {e}") from e

        return [dict(r.payload or {}) for r in records]

    async def get_provider_records(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        stmt = (
            select(LedgerRecord)
            .where(LedgerRecord.user_id == user_id, LedgerRecord.source != "manual")
            .order_by(LedgerRecord.id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise DataFetchFailure(f"Failed to load provider records for {user_id}: {e}") from e

        grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for r in records:
            grouped[r.source].append(dict(r.payload or {}))
        return dict(grouped)

    async def get_goals(self, user_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(GoalRecord)
            .where(GoalRecord.user_id == user_id, GoalRecord.status == "active")
            .order_by(GoalRecord.id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise DataFetchFailure(f"Failed to load goals for {user_id}: {e}") from e

        return [
            {"goalId": str(r.id), "status": r.status, **(r.payload or {})}
            for r in records
        ]

    async def save_visualization(self, user_id: str, descriptor: dict[str, Any]) -> str:
        record = VisualizationRecord(
            user_id=user_id,
            chart_type=str(descriptor.get("type", "bar")),
            title=str(descriptor.get("title", ""))[:200],
            data_source=str(descriptor.get("dataSource", "real")),
            descriptor=descriptor,
        )
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise PersistFailure(f"Failed to save visualization for {user_id}: {e}") from e

        logger.info("Saved visualization %s for user %s", record.id, user_id)
        return str(record.id)


# ---------------------------------------------------------------------------
# Bulk Loading
# ---------------------------------------------------------------------------


@dataclass
class UserData:
    """Everything the advisor reads about one user, in store shape."""

    profile: dict[str, Any] | None = None
    manual_entries: list[dict[str, Any]] = field(default_factory=list)
    provider_records: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    goals: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_context(cls, context: Mapping[str, Any] | None) -> UserData:
        """
        Build from caller-supplied context. Accepts camelCase or snake_case
        keys: profile, manualEntries, providerRecords, goals.
        """
        context = context or {}

        def pick(camel: str, snake: str, default):
            value = context.get(camel, context.get(snake))
            return value if value is not None else default

        return cls(
            profile=pick("profile", "profile", None),
            manual_entries=list(pick("manualEntries", "manual_entries", [])),
            provider_records=dict(pick("providerRecords", "provider_records", {})),
            goals=list(pick("goals", "goals", [])),
        )


async def fetch_user_data(store: FinancialDataStore, user_id: str) -> UserData:
    """
    Read all four inputs concurrently. The first failure cancels the
    reads still in flight.

    Raises:
        DataFetchFailure: Any read failed.
    """
    reads = [
        asyncio.ensure_future(store.get_profile(user_id)),
        asyncio.ensure_future(store.get_manual_entries(user_id)),
        asyncio.ensure_future(store.get_provider_records(user_id)),
        asyncio.ensure_future(store.get_goals(user_id)),
    ]
    try:
        profile, manual, provider, goals = await asyncio.gather(*reads)
    except BaseException:
        for read in reads:
            read.cancel()
        raise
    return UserData(
        profile=profile,
        manual_entries=list(manual or []),
        provider_records=dict(provider or {}),
        goals=list(goals or []),
    )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

_store: FinancialDataStore | None = None


def get_store() -> FinancialDataStore:
    """Return the process-wide store (created on first use)."""
    global _store
    if _store is None:
        _store = SqlAlchemyStore()
    return _store
