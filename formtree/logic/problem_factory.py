"""Centralised construction of problem+json payloads for domain errors.

Provides helpers that return dicts carrying the domain error code so route
and handler modules never embed code strings or status numbers.
"""

from __future__ import annotations

from typing import Dict, Optional
import logging

from formtree.error_mapping import DOMAIN_ERROR_MAP
from formtree.logic.errors import InvalidDefinitionError, NodeNotFoundError, StructuralMismatchError


logger = logging.getLogger(__name__)


def _problem(code: str, detail: str, **extra: object) -> Dict[str, object]:
    mapping = DOMAIN_ERROR_MAP[code]
    problem: Dict[str, object] = {
        "title": mapping["title"],
        "status": mapping["status"],
        "detail": detail,
        "code": code,
    }
    problem.update({k: v for k, v in extra.items() if v is not None})
    logger.info("error_handler.handle code=%s status=%s", code, mapping["status"])
    return problem


def problem_invalid_definition(exc: InvalidDefinitionError) -> Dict[str, object]:
    """Return a 422 problem naming the violated initial-value rule."""
    return _problem(exc.code.value, exc.message, link_id=exc.link_id)


def problem_structural_mismatch(exc: StructuralMismatchError) -> Dict[str, object]:
    """Return a 409 problem for a response that does not fit its questionnaire."""
    return _problem(exc.code, exc.message, link_id=exc.link_id)


def problem_node_not_found(exc: NodeNotFoundError) -> Dict[str, object]:
    return _problem(exc.code, str(exc), path=exc.path)


def problem_session_not_found(session_id: Optional[str]) -> Dict[str, object]:
    return _problem("SESSION_NOT_FOUND", "form session not found", session_id=session_id)


__all__ = [
    "problem_invalid_definition",
    "problem_structural_mismatch",
    "problem_node_not_found",
    "problem_session_not_found",
]
