# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - advise.py: advisory question endpoint (POST /advise)
#   - summary.py: derived summary, alerts and projections (GET /summary)
# =============================================================================
