# =============================================================================
# Category Normalizer — Provider Categories → Canonical Taxonomy
# =============================================================================
#
# Providers label transactions with free-form strings ("Groceries",
# "Fast Food Restaurants", "ELECTRIC BILL"). Every ledger entry must carry
# a member of the fixed CanonicalCategory taxonomy instead, so the
# normalizer maps each raw string onto it:
#
#   1. Exact canonical value (case-insensitive) → itself
#   2. First table entry whose key is a substring of the raw string
#   3. Otherwise → "other" (or "investment" for asset classes)
#
# Table order matters: matching stops at the first hit.
# =============================================================================

from __future__ import annotations

import enum


class CanonicalCategory(str, enum.Enum):
    """Fixed category taxonomy for ledger entries."""

    # Spending / cash-flow categories
    INCOME = "income"
    FOOD = "food"
    TRANSPORTATION = "transportation"
    HOUSING = "housing"
    UTILITIES = "utilities"
    HEALTHCARE = "healthcare"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    EDUCATION = "education"
    INVESTMENT = "investment"
    SAVINGS = "savings"
    DEBT_PAYMENT = "debt_payment"
    INSURANCE = "insurance"
    TRAVEL = "travel"
    SUBSCRIPTION = "subscription"
    CHARITY = "charity"
    RETIREMENT = "retirement"
    OTHER = "other"

    # Asset classes (investment holdings)
    STOCKS = "stocks"
    BONDS = "bonds"
    REAL_ESTATE = "real_estate"
    INTERNATIONAL_STOCKS = "international_stocks"
    EMERGING_MARKETS = "emerging_markets"
    CASH = "cash"
    MUTUAL_FUNDS = "mutual_funds"
    ETF = "etf"
    INDEX_FUNDS = "index_funds"
    CRYPTO = "crypto"
    COMMODITIES = "commodities"


# ---------------------------------------------------------------------------
# Mapping Tables
# ---------------------------------------------------------------------------

PROVIDER_CATEGORY_MAP: tuple[tuple[str, CanonicalCategory], ...] = (
    ("Food", CanonicalCategory.FOOD),
    ("Dining", CanonicalCategory.FOOD),
    ("Restaurants", CanonicalCategory.FOOD),
    ("Groceries", CanonicalCategory.FOOD),
    ("Transportation", CanonicalCategory.TRANSPORTATION),
    ("Gas", CanonicalCategory.TRANSPORTATION),
    ("Automotive", CanonicalCategory.TRANSPORTATION),
    ("Housing", CanonicalCategory.HOUSING),
    ("Rent", CanonicalCategory.HOUSING),
    ("Mortgage", CanonicalCategory.HOUSING),
    ("Utilities", CanonicalCategory.UTILITIES),
    ("Electric", CanonicalCategory.UTILITIES),
    ("Internet", CanonicalCategory.UTILITIES),
    ("Entertainment", CanonicalCategory.ENTERTAINMENT),
    ("Movies", CanonicalCategory.ENTERTAINMENT),
    ("Music", CanonicalCategory.ENTERTAINMENT),
    ("Shopping", CanonicalCategory.SHOPPING),
    ("Retail", CanonicalCategory.SHOPPING),
    ("Online", CanonicalCategory.SHOPPING),
    ("Health", CanonicalCategory.HEALTHCARE),
    ("Medical", CanonicalCategory.HEALTHCARE),
    ("Fitness", CanonicalCategory.HEALTHCARE),
    ("Travel", CanonicalCategory.TRAVEL),
    ("Hotels", CanonicalCategory.TRAVEL),
    ("Flights", CanonicalCategory.TRAVEL),
    ("Education", CanonicalCategory.EDUCATION),
    ("Books", CanonicalCategory.EDUCATION),
    ("Subscriptions", CanonicalCategory.SUBSCRIPTION),
    ("Software", CanonicalCategory.SUBSCRIPTION),
    ("Insurance", CanonicalCategory.INSURANCE),
)

ASSET_CLASS_MAP: tuple[tuple[str, CanonicalCategory], ...] = (
    # Specific keys first: "International Stock" also contains "Stock"
    ("International Stock", CanonicalCategory.INTERNATIONAL_STOCKS),
    ("Emerging Markets", CanonicalCategory.EMERGING_MARKETS),
    ("Stock", CanonicalCategory.STOCKS),
    ("Equity", CanonicalCategory.STOCKS),
    ("Bond", CanonicalCategory.BONDS),
    ("Fixed Income", CanonicalCategory.BONDS),
    ("Real Estate", CanonicalCategory.REAL_ESTATE),
    ("REITs", CanonicalCategory.REAL_ESTATE),
    ("Cash", CanonicalCategory.CASH),
    ("Money Market", CanonicalCategory.CASH),
    ("Mutual Fund", CanonicalCategory.MUTUAL_FUNDS),
    ("ETF", CanonicalCategory.ETF),
    ("Index Fund", CanonicalCategory.INDEX_FUNDS),
    ("Cryptocurrency", CanonicalCategory.CRYPTO),
    ("Commodities", CanonicalCategory.COMMODITIES),
)

_CANONICAL_VALUES = {c.value: c for c in CanonicalCategory}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(raw_category: object) -> CanonicalCategory:
    """
    Map a free-form provider category string to the canonical taxonomy.

    Pure and total: never raises, unmatched input (including None and
    non-strings) maps to OTHER.

    Examples:
        normalize("Groceries")            → FOOD
        normalize("fast food RESTAURANTS") → FOOD
        normalize("Pet supplies")         → OTHER
    """
    return _lookup(raw_category, PROVIDER_CATEGORY_MAP, CanonicalCategory.OTHER)


def normalize_asset_class(raw_asset_class: object) -> CanonicalCategory:
    """Map an investment asset class to the taxonomy (default INVESTMENT)."""
    return _lookup(
        raw_asset_class, ASSET_CLASS_MAP, CanonicalCategory.INVESTMENT,
    )


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _lookup(
    raw: object,
    table: tuple[tuple[str, CanonicalCategory], ...],
    default: CanonicalCategory,
) -> CanonicalCategory:
    if isinstance(raw, CanonicalCategory):
        return raw
    if not isinstance(raw, str):
        return default

    lowered = raw.strip().lower()
    if not lowered:
        return default

    exact = _CANONICAL_VALUES.get(lowered)
    if exact is not None:
        return exact

    for key, category in table:
        if key.lower() in lowered:
            return category
    return default
