# =============================================================================
# Personal Finance Advisor
# =============================================================================
# Reconciles a user's manually entered and provider-imported financial
# records into one canonical ledger, derives summary metrics, and answers
# free-text advisory questions by orchestrating a small set of specialised
# LLM sub-agents whose outputs are merged into one response plus an
# optional chart-ready visualization.
#
# Package structure:
#   finadvisor/
#   ├── api/          → FastAPI route handlers (advise, summary)
#   ├── agents/       → Sub-agent catalog, selection, concurrent fan-out,
#   │                    response synthesis, LangGraph pipeline
#   ├── db/           → Database engine, session, and ORM models
#   ├── models/       → Pydantic V2 schemas (profile, requests, responses)
#   └── services/     → Business logic (categories, reconciliation,
#                        summary, safe parsing, charts, LLM providers,
#                        store adapter, alerts, projections)
# =============================================================================
