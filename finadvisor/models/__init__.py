# =============================================================================
# Models Package — Domain Types and Pydantic V2 Schemas
# =============================================================================
#   - profile.py: user profile, integration insights, goals (store shape)
#   - ledger.py: canonical ledger entries produced by the reconciler
#   - requests.py / responses.py: API request and response schemas
#
# These are SEPARATE from the database models (finadvisor/db/models.py):
# the store keeps raw JSON payloads, these types give them structure.
# =============================================================================
