# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core business logic, separated from API handlers:
#   - categories.py: provider category → canonical taxonomy normalizer
#   - reconciler.py: manual + provider records → one canonical ledger
#   - summary.py: tiered financial summary (integrations/ledger/profile)
#   - parser.py: safe parser for free-form LLM output
#   - visualization.py: chart dataset cascade + wire descriptor
#   - llm.py: multi-provider LLM abstraction (Anthropic, OpenAI-compatible)
#   - store.py: persistent store adapter (profiles, ledger, goals, charts)
#   - alerts.py: rule-based dashboard alerts
#   - projections.py: net worth / life path projections
# =============================================================================
