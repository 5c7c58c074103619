"""Build fresh response nodes from definition items.

A new node carries the item's initial answers, taken either from
expression-evaluated values supplied by the caller or from the item's static
``initial`` values plus initially selected answer options, and the nested
nodes placed according to ``formtree.logic.placement``.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence
import logging

from formtree.config import DEFAULT_POLICY, ValidationPolicy
from formtree.logic.errors import DefinitionErrorCode, InvalidDefinitionError
from formtree.logic.placement import place_nested_items
from formtree.models.definition import DefinitionItem
from formtree.models.item_type import NON_QUESTION_TYPES
from formtree.models.response import Answer, ResponseNode
from formtree.models.values import AnswerValue, is_unit_only_quantity

logger = logging.getLogger(__name__)

# Returns expression-evaluated initial values for an item, or None when the
# item has no evaluated values
InitialSource = Callable[[DefinitionItem], Optional[Sequence[Any]]]


def build_response_node(
    item: DefinitionItem,
    initial_answer_source: Optional[Sequence[Any]] = None,
    *,
    policy: ValidationPolicy = DEFAULT_POLICY,
    initial_source_for: Optional[InitialSource] = None,
) -> ResponseNode:
    """Create the response node for ``item`` and its nested nodes.

    ``initial_answer_source`` holds expression-evaluated values for ``item``
    itself; ``initial_source_for`` supplies them for nested items.

    Raises InvalidDefinitionError (QUE_8, QUE_11, QUE_13) when the initial
    values break the definition rules.
    """
    answers = _initial_answers(item, initial_answer_source, policy)
    node = ResponseNode(link_id=item.link_id, answers=answers)
    if item.children:
        child_nodes = create_nested_response_nodes(
            item, policy=policy, initial_source_for=initial_source_for
        )
        place_nested_items(item, node, child_nodes)
    return node


def create_nested_response_nodes(
    item: DefinitionItem,
    *,
    policy: ValidationPolicy = DEFAULT_POLICY,
    initial_source_for: Optional[InitialSource] = None,
) -> List[ResponseNode]:
    """Fresh response nodes for every child of ``item``, in definition order."""
    nodes: List[ResponseNode] = []
    for child in item.children:
        source = initial_source_for(child) if initial_source_for is not None else None
        nodes.append(
            build_response_node(child, source, policy=policy, initial_source_for=initial_source_for)
        )
    return nodes


def _initial_answers(
    item: DefinitionItem,
    expression_values: Optional[Sequence[Any]],
    policy: ValidationPolicy,
) -> List[Answer]:
    if _expression_exempt(expression_values, policy):
        values = [_as_value(v) for v in expression_values or []]
    else:
        static = list(item.initial_values)
        selected = item.selected_options
        if static and selected:
            raise InvalidDefinitionError(DefinitionErrorCode.QUE_11, item.link_id)
        values = static + selected

    # A unit-only quantity is a unit hint, not an answer
    if len(values) == 1 and is_unit_only_quantity(values[0]):
        return []
    if not values:
        return []

    if item.type in NON_QUESTION_TYPES:
        raise InvalidDefinitionError(DefinitionErrorCode.QUE_8, item.link_id)
    if len(values) > 1 and not item.repeats:
        raise InvalidDefinitionError(DefinitionErrorCode.QUE_13, item.link_id)

    logger.debug("initial_answers link_id=%s count=%s", item.link_id, len(values))
    return [Answer(value=value.as_value()) for value in values]


def _expression_exempt(values: Optional[Sequence[Any]], policy: ValidationPolicy) -> bool:
    if values is None:
        return False
    if policy.expression_exemption == "non_empty":
        return len(values) > 0
    return True


def _as_value(raw: Any) -> AnswerValue:
    return raw if isinstance(raw, AnswerValue) else AnswerValue.of(raw)


__all__ = ["InitialSource", "build_response_node", "create_nested_response_nodes"]
