# =============================================================================
# Record Reconciler — Manual + Provider Records → One Canonical Ledger
# =============================================================================
#
# Each provider source has its own record shape. A per-source transform
# converts a raw record into a LedgerEntry:
#
#   Source       Amount field(s)                   Kind                 Category
#   ──────────   ───────────────────────────────   ──────────────────   ─────────────────────
#   spending     amount (<0 expense, >0 income)    expense / income     normalize(category)
#   investment   marketValue | value | amount      investment           normalize_asset_class
#   retirement   balance | value | amount          retirement-balance   retirement
#   wealth       balance | value | amount          investment           cash or asset class
#   manual       amount, sign from `type`          income/expense/inv.  normalize(category)
#
# The transformed entries are concatenated with the manual entries and
# returned sorted newest-first.
#
# IDEMPOTENCE:
# entry_id is a content hash of (source, raw record), and missing dates use
# a single `as_of` timestamp. When the caller gives none, `as_of` is the
# newest date found in the input (or the Unix epoch when nothing is dated),
# never the wall clock, so reconciling the same input twice always yields
# identical ledgers.
# =============================================================================

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any

from finadvisor.models.ledger import EntryKind, LedgerEntry, LedgerSource
from finadvisor.services.categories import (
    CanonicalCategory,
    normalize,
    normalize_asset_class,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_DATE_KEYS = ("date", "lastUpdated")

Transform = Callable[[Mapping[str, Any], datetime], "LedgerEntry | None"]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reconcile(
    manual_entries: Iterable[Mapping[str, Any]],
    provider_records_by_source: Mapping[str, Iterable[Mapping[str, Any]]],
    as_of: datetime | None = None,
) -> list[LedgerEntry]:
    """
    Merge manual entries and provider imports into one canonical ledger.

    Args:
        manual_entries: User-entered records ({amount, type, category,
            date, description}).
        provider_records_by_source: Provider records keyed by source name
            ("spending", "investment", "retirement", "wealth"). Unknown
            sources are skipped with a warning.
        as_of: Timestamp used for records without a date. Defaults to the
            newest date in the input, or the Unix epoch if none is dated.

    Returns:
        Ledger entries sorted descending by occurred_at. Entries with equal
        timestamps keep their input order.
    """
    manual_entries = list(manual_entries or ())
    provider_records_by_source = {
        source: list(records or ()) for source, records in provider_records_by_source.items()
    }
    if as_of is None:
        as_of = _newest_date(manual_entries, provider_records_by_source)
    else:
        as_of = _as_utc(as_of)

    entries: list[LedgerEntry] = []
    for source_name, records in provider_records_by_source.items():
        transform = _TRANSFORMS.get(str(source_name).lower())
        if transform is None:
            logger.warning("Skipping unknown provider source '%s'", source_name)
            continue
        entries.extend(_apply(transform, records, source_name, as_of))

    entries.extend(_apply(_from_manual, manual_entries, "manual", as_of))

    # sorted() is stable, so ties keep provider-then-manual input order
    entries = sorted(entries, key=lambda e: e.occurred_at, reverse=True)

    logger.info(
        "Reconciled %d ledger entries from %d provider sources",
        len(entries), len(provider_records_by_source),
    )
    return entries


# ---------------------------------------------------------------------------
# Source Transforms
# ---------------------------------------------------------------------------


def _from_spending(record: Mapping[str, Any], as_of: datetime) -> LedgerEntry | None:
    amount = _parse_amount(record.get("amount"))
    if amount is None:
        return None

    is_income = amount > 0
    return _entry(
        record,
        source=LedgerSource.SPENDING,
        amount=amount,
        kind=EntryKind.INCOME if is_income else EntryKind.EXPENSE,
        category=(
            CanonicalCategory.INCOME if is_income
            else normalize(record.get("category"))
        ),
        occurred_at=_parse_date(record, ("date", "lastUpdated"), as_of),
        description=str(
            record.get("description") or record.get("merchant") or "Imported transaction"
        ),
    )


def _from_investment(record: Mapping[str, Any], as_of: datetime) -> LedgerEntry | None:
    amount = _parse_amount(_first(record, ("marketValue", "value", "amount")))
    if amount is None:
        return None

    name = record.get("fundName") or record.get("symbol") or record.get("name") or "Investment"
    return _entry(
        record,
        source=LedgerSource.INVESTMENT,
        amount=abs(amount),
        kind=EntryKind.INVESTMENT,
        category=normalize_asset_class(record.get("assetClass") or record.get("assetType")),
        occurred_at=_parse_date(record, ("lastUpdated", "date"), as_of),
        description=f"{name} Holdings",
    )


def _from_retirement(record: Mapping[str, Any], as_of: datetime) -> LedgerEntry | None:
    amount = _parse_amount(_first(record, ("balance", "value", "amount")))
    if amount is None:
        return None

    account = record.get("accountType") or "Retirement Account"
    return _entry(
        record,
        source=LedgerSource.RETIREMENT,
        amount=abs(amount),
        kind=EntryKind.RETIREMENT_BALANCE,
        category=CanonicalCategory.RETIREMENT,
        occurred_at=_parse_date(record, ("date", "lastUpdated"), as_of),
        description=f"{account} Balance",
    )


def _from_wealth(record: Mapping[str, Any], as_of: datetime) -> LedgerEntry | None:
    amount = _parse_amount(_first(record, ("balance", "value", "amount")))
    if amount is None:
        return None

    asset_class = record.get("assetClass") or record.get("accountType")
    account = record.get("accountName") or record.get("institution") or "Account"
    return _entry(
        record,
        source=LedgerSource.WEALTH,
        amount=abs(amount),
        kind=EntryKind.INVESTMENT,
        category=normalize_asset_class(asset_class),
        occurred_at=_parse_date(record, ("lastUpdated", "date"), as_of),
        description=f"{account} Balance",
    )


def _from_manual(record: Mapping[str, Any], as_of: datetime) -> LedgerEntry | None:
    amount = _parse_amount(record.get("amount"))
    if amount is None:
        return None

    entry_type = str(record.get("type") or "").lower()
    if entry_type == "income":
        kind, signed = EntryKind.INCOME, abs(amount)
        default_category = CanonicalCategory.INCOME
    elif entry_type == "investment":
        kind, signed = EntryKind.INVESTMENT, abs(amount)
        default_category = CanonicalCategory.INVESTMENT
    else:
        kind, signed = EntryKind.EXPENSE, -abs(amount)
        default_category = CanonicalCategory.OTHER

    category = normalize(record.get("category"))
    if category is CanonicalCategory.OTHER:
        category = default_category

    return _entry(
        record,
        source=LedgerSource.MANUAL,
        amount=signed,
        kind=kind,
        category=category,
        occurred_at=_parse_date(record, ("date",), as_of),
        description=str(record.get("description") or ""),
        provenance="manual",
    )


_TRANSFORMS: dict[str, Transform] = {
    LedgerSource.SPENDING.value: _from_spending,
    LedgerSource.INVESTMENT.value: _from_investment,
    LedgerSource.RETIREMENT.value: _from_retirement,
    LedgerSource.WEALTH.value: _from_wealth,
}


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _apply(
    transform: Transform,
    records: Iterable[Mapping[str, Any]],
    source_name: str,
    as_of: datetime,
) -> list[LedgerEntry]:
    converted = []
    for record in records or ():
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-object %s record: %r", source_name, record)
            continue
        entry = transform(record, as_of)
        if entry is None:
            logger.warning(
                "Skipping %s record with unparseable amount: %r",
                source_name, record.get("amount", record),
            )
            continue
        converted.append(entry)
    return converted


def _entry(
    record: Mapping[str, Any],
    *,
    source: LedgerSource,
    amount: Decimal,
    kind: EntryKind,
    category: CanonicalCategory,
    occurred_at: datetime,
    description: str,
    provenance: str | None = None,
) -> LedgerEntry:
    raw = dict(record)
    return LedgerEntry(
        entry_id=_content_hash(source, raw),
        amount=amount,
        occurred_at=occurred_at,
        category=category,
        kind=kind,
        provenance=provenance or str(record.get("provider") or source.value),
        source=source,
        description=description,
        raw_source=MappingProxyType(raw),
    )


def _content_hash(source: LedgerSource, raw: dict[str, Any]) -> str:
    payload = json.dumps(
        {"source": source.value, "record": raw}, sort_keys=True, default=str,
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:16]


def _first(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """First present, non-empty value among keys."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_amount(value: Any) -> Decimal | None:
    """Decimal rounded to cents, or None when not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def _parse_date(
    record: Mapping[str, Any], keys: tuple[str, ...], as_of: datetime,
) -> datetime:
    occurred_at = _record_date(record, keys)
    if occurred_at is None:
        raw = _first(record, keys)
        if raw is not None:
            logger.warning("Unparseable date '%s', using as_of", raw)
        return as_of
    return occurred_at


def _record_date(record: Mapping[str, Any], keys: tuple[str, ...]) -> datetime | None:
    raw = _first(record, keys)
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if isinstance(raw, str):
        try:
            return _as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _newest_date(
    manual_entries: list[Mapping[str, Any]],
    provider_records_by_source: Mapping[str, list[Mapping[str, Any]]],
) -> datetime:
    """Latest parseable date across every record, or the Unix epoch."""
    records = [*manual_entries]
    for source_records in provider_records_by_source.values():
        records.extend(source_records)
    dates = [
        occurred_at for occurred_at in (
            _record_date(r, _DATE_KEYS) for r in records if isinstance(r, Mapping)
        )
        if occurred_at is not None
    ]
    return max(dates, default=_EPOCH)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
