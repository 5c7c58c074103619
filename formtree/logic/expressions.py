"""Expression-backed initial values.

Expression semantics (FHIRPath, x-fhir-query) live outside this package. The
caller supplies an evaluator ``evaluate(expression, context)`` returning the
evaluated values, or an awaitable of them. Evaluator errors propagate as-is;
nothing here retries or swallows them.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union
import logging

from formtree.config import DEFAULT_POLICY, ValidationPolicy
from formtree.logic.flattener import flattened
from formtree.logic.initializer import build_response_node
from formtree.models.definition import DefinitionItem, Expression, Questionnaire
from formtree.models.response import QuestionnaireResponse

logger = logging.getLogger(__name__)

EvaluatorResult = Union[Sequence[Any], Awaitable[Sequence[Any]]]
Evaluator = Callable[[Expression, Mapping[str, Any]], EvaluatorResult]


def evaluate_initial_values(
    questionnaire: Questionnaire,
    evaluator: Evaluator,
    context: Optional[Mapping[str, Any]] = None,
) -> Dict[int, Sequence[Any]]:
    """Evaluate every ``initialExpression`` with a synchronous evaluator.

    Returns evaluated values keyed by ``id()`` of the definition item.
    """
    results: Dict[int, Sequence[Any]] = {}
    for item in _items_with_expression(questionnaire):
        values = evaluator(item.initial_expression, _context_for(item, context))
        if inspect.isawaitable(values):
            if inspect.iscoroutine(values):
                values.close()
            raise TypeError("evaluator returned an awaitable; use abuild_response instead")
        results[id(item)] = list(values or [])
        logger.debug("initial_expression link_id=%s values=%s", item.link_id, len(results[id(item)]))
    return results


async def aevaluate_initial_values(
    questionnaire: Questionnaire,
    evaluator: Evaluator,
    context: Optional[Mapping[str, Any]] = None,
) -> Dict[int, Sequence[Any]]:
    """Like evaluate_initial_values, awaiting evaluators that return awaitables."""
    results: Dict[int, Sequence[Any]] = {}
    for item in _items_with_expression(questionnaire):
        values = evaluator(item.initial_expression, _context_for(item, context))
        if inspect.isawaitable(values):
            values = await values
        results[id(item)] = list(values or [])
    return results


def build_response(
    questionnaire: Questionnaire,
    evaluator: Optional[Evaluator] = None,
    context: Optional[Mapping[str, Any]] = None,
    *,
    policy: ValidationPolicy = DEFAULT_POLICY,
) -> QuestionnaireResponse:
    """Fresh packed response for ``questionnaire`` with initial answers filled in."""
    evaluated = evaluate_initial_values(questionnaire, evaluator, context) if evaluator else {}
    return _build(questionnaire, evaluated, policy)


async def abuild_response(
    questionnaire: Questionnaire,
    evaluator: Optional[Evaluator] = None,
    context: Optional[Mapping[str, Any]] = None,
    *,
    policy: ValidationPolicy = DEFAULT_POLICY,
) -> QuestionnaireResponse:
    evaluated = await aevaluate_initial_values(questionnaire, evaluator, context) if evaluator else {}
    return _build(questionnaire, evaluated, policy)


def _build(
    questionnaire: Questionnaire,
    evaluated: Dict[int, Sequence[Any]],
    policy: ValidationPolicy,
) -> QuestionnaireResponse:
    def source_for(item: DefinitionItem) -> Optional[Sequence[Any]]:
        return evaluated.get(id(item))

    nodes = [
        build_response_node(item, source_for(item), policy=policy, initial_source_for=source_for)
        for item in questionnaire.items
    ]
    logger.info("build_response questionnaire=%s nodes=%s", questionnaire.url, len(nodes))
    return QuestionnaireResponse(questionnaire=questionnaire.url, items=nodes)


def _items_with_expression(questionnaire: Questionnaire) -> List[DefinitionItem]:
    return [item for item in flattened(questionnaire.items) if item.initial_expression is not None]


def _context_for(item: DefinitionItem, context: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    out = dict(context or {})
    out.setdefault("linkId", item.link_id)
    return out


__all__ = [
    "Evaluator",
    "evaluate_initial_values",
    "aevaluate_initial_values",
    "build_response",
    "abuild_response",
]
