# =============================================================================
# Ledger Models — Canonical Ledger Entries
# =============================================================================
#
# Every financial event, whether typed in by the user or imported from a
# provider, becomes one immutable LedgerEntry with:
#   - a signed Decimal amount (expenses negative, income/assets positive)
#   - a canonical category (never the raw provider string)
#   - a provenance tag ("manual" or the provider's name)
#   - the original record, kept for audit as a read-only mapping
#
# DESIGN DECISION: frozen dataclass rather than a Pydantic model
# Entries are produced only by the reconciler from already-validated input
# and are never deserialised from requests, so validation buys nothing.
# frozen=True makes "immutable once created" a language guarantee.
# =============================================================================

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from finadvisor.services.categories import CanonicalCategory


class EntryKind(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    RETIREMENT_BALANCE = "retirement-balance"


class LedgerSource(str, enum.Enum):
    """Where an entry came from. Provider sources have their own transform."""

    MANUAL = "manual"
    SPENDING = "spending"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    WEALTH = "wealth"


@dataclass(frozen=True)
class LedgerEntry:
    entry_id: str
    amount: Decimal
    occurred_at: datetime
    category: CanonicalCategory
    kind: EntryKind
    provenance: str
    source: LedgerSource
    description: str = ""
    # Read-only view over a copy of the original record. Excluded from
    # equality: two entries are the same event if their canonical fields
    # match, regardless of provider payload noise.
    raw_source: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        if not isinstance(self.raw_source, MappingProxyType):
            object.__setattr__(self, "raw_source", MappingProxyType(dict(self.raw_source)))

    @property
    def is_expense(self) -> bool:
        return self.kind is EntryKind.EXPENSE

    @property
    def month(self) -> str:
        """Calendar month key, e.g. "2026-03"."""
        return self.occurred_at.strftime("%Y-%m")

    def key(self) -> tuple:
        """The canonical tuple compared by idempotence checks."""
        return (self.amount, self.occurred_at, self.category, self.kind, self.provenance)
