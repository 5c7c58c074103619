"""Placement of nested response nodes.

Non-repeating groups hold their nested nodes directly. Questions with nested
items and repeating groups hold a separate copy of the nested nodes under
each answer (one answer per repeating-group instance).
"""

from __future__ import annotations

from typing import List, Optional, Sequence
import logging

from formtree.models.definition import DefinitionItem
from formtree.models.item_type import ItemType
from formtree.models.response import ResponseNode

logger = logging.getLogger(__name__)


def nested_items_under_answers(item: DefinitionItem) -> bool:
    """Return True when nested nodes for ``item`` belong under its answers.

    This is the case for questions with nested items and for repeating
    groups with nested items. Non-repeating groups keep nested nodes directly.
    """
    return bool(item.children) and (item.type != ItemType.GROUP or item.repeats)


def place_nested_items(
    item: DefinitionItem,
    node: ResponseNode,
    child_nodes: Optional[Sequence[ResponseNode]] = None,
) -> None:
    """Attach nested nodes for ``item`` to ``node`` in place.

    ``child_nodes`` is the template to attach; when omitted a fresh template
    is built from the definition. Answers that already carry nested nodes are
    left untouched so loaded or user-entered content is never overwritten.
    """
    if not item.children:
        return
    if child_nodes is None:
        from formtree.logic.initializer import create_nested_response_nodes

        child_nodes = create_nested_response_nodes(item)

    if not nested_items_under_answers(item):
        node.children = list(child_nodes)
        return

    seeded = 0
    for answer in node.answers:
        if answer.children:
            continue
        answer.children = _fresh_copies(child_nodes)
        seeded += 1
    if seeded:
        logger.debug("place_nested_items link_id=%s seeded_answers=%s", item.link_id, seeded)


def _fresh_copies(nodes: Sequence[ResponseNode]) -> List[ResponseNode]:
    # Each answer owns its subtree; nodes are never shared between answers
    return [node.model_copy(deep=True) for node in nodes]


__all__ = ["nested_items_under_answers", "place_nested_items"]
