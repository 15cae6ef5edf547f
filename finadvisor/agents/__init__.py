# =============================================================================
# Agents Package — LangGraph Advisory Orchestration
# =============================================================================
# Implements the per-request advisory pipeline:
#   - catalog.py: the fixed set of sub-agents (prompts, result models,
#     defaults, timeouts)
#   - selector.py: LLM picks the optional agents relevant to a query
#   - runner.py: concurrent fan-out / fan-in with per-agent fallbacks
#   - synthesizer.py: merges every result into the final response
#   - orchestrator.py: LangGraph graph — load → analyse → select →
#     consult → chart → synthesize → persist
# =============================================================================
