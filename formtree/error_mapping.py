"""Central error mapping for domain errors surfaced over HTTP.

Single source of truth for mapping error codes to problem+json titles and
HTTP statuses. Route and handler modules import from here instead of
hardcoding strings or numbers.
"""

from __future__ import annotations

DOMAIN_ERROR_MAP = {
    "QUE_8": {"title": "Invalid Questionnaire Definition", "status": 422},
    "QUE_11": {"title": "Invalid Questionnaire Definition", "status": 422},
    "QUE_13": {"title": "Invalid Questionnaire Definition", "status": 422},
    "STRUCTURAL_MISMATCH": {"title": "Structural Mismatch", "status": 409},
    "NODE_NOT_FOUND": {"title": "Not Found", "status": 404},
    "SESSION_NOT_FOUND": {"title": "Not Found", "status": 404},
}

__all__ = ["DOMAIN_ERROR_MAP"]
