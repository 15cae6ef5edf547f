# =============================================================================
# Database Package
# =============================================================================
# Provides the async SQLAlchemy engine, session management, and ORM models
# backing the persistent store adapter (services/store.py).
#
# Key exports:
#   - async_session_factory: one short-lived session per store operation
#   - Base: SQLAlchemy declarative base for ORM models
#   - UserProfileRecord, LedgerRecord, GoalRecord, VisualizationRecord
# =============================================================================
