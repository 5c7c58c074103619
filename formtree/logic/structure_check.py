"""Structural consistency checks between a response and its questionnaire.

A packed response is consistent with its questionnaire when, at every level:
- each node's linkId names a definition item at that level,
- nodes appear in definition order,
- non-repeating items carry at most one answer,
- answer values match the item type.

Missing nodes are not an error; disabled or not yet visited items are simply
absent from the response.
"""

from __future__ import annotations

from typing import List, Sequence
import logging

from formtree.logic.errors import StructuralMismatchError
from formtree.logic.packer import pack
from formtree.logic.zipper import orphan_nodes
from formtree.models.definition import DefinitionItem, Questionnaire, find_item
from formtree.models.item_type import ItemType
from formtree.models.response import Answer, QuestionnaireResponse, ResponseNode
from formtree.models.values import ALLOWED_VALUE_KINDS

logger = logging.getLogger(__name__)


def check_response(
    questionnaire: Questionnaire,
    response: QuestionnaireResponse,
    *,
    packed: bool = False,
) -> None:
    """Raise StructuralMismatchError when ``response`` does not fit ``questionnaire``.

    A wire-format response is packed first; pass ``packed=True`` when it is
    already in packed form.
    """
    if response.questionnaire is not None and questionnaire.url is not None:
        if response.questionnaire != questionnaire.url:
            raise StructuralMismatchError(
                None,
                f"Mismatching Questionnaire {questionnaire.url} and QuestionnaireResponse "
                f"(for Questionnaire {response.questionnaire})",
            )
    nodes = response.items if packed else pack(response.items, questionnaire.items, wire=True)
    check_nodes(questionnaire.items, nodes)


def check_nodes(items: Sequence[DefinitionItem], nodes: Sequence[ResponseNode]) -> None:
    """Check one packed level and everything below it."""
    position = 0
    for node in nodes:
        while position < len(items) and items[position].link_id != node.link_id:
            position += 1
        if position == len(items):
            if find_item(items, node.link_id) is not None:
                raise StructuralMismatchError(
                    node.link_id, f"Questionnaire response item {node.link_id} is out of order"
                )
            raise StructuralMismatchError(
                node.link_id, f"Missing questionnaire item for questionnaire response item {node.link_id}"
            )
        _check_node(items[position], node)
        # A linkId may occur once per level in packed form
        position += 1


def _check_node(item: DefinitionItem, node: ResponseNode) -> None:
    if item.type == ItemType.DISPLAY:
        return
    if item.type == ItemType.GROUP and not item.repeats:
        check_nodes(item.children, node.children)
        return
    if not item.repeats and len(node.answers) > 1:
        raise StructuralMismatchError(
            item.link_id, f"Multiple answers for non-repeat questionnaire item {item.link_id}"
        )
    for answer in node.answers:
        _check_answer(item, answer)


def _check_answer(item: DefinitionItem, answer: Answer) -> None:
    if answer.value is not None:
        allowed = ALLOWED_VALUE_KINDS.get(item.type)
        if allowed is not None and answer.value.kind not in allowed:
            raise StructuralMismatchError(
                item.link_id,
                f"Mismatching question type {item.type.value} and answer type "
                f"{answer.value.kind} for {item.link_id}",
            )
    check_nodes(item.children, answer.children)


def drop_orphans(items: Sequence[DefinitionItem], nodes: Sequence[ResponseNode]) -> List[ResponseNode]:
    """Copy of ``nodes`` without nodes that have no definition at their level.

    Applied recursively to node children and answer children.
    """
    for orphan in orphan_nodes(items, nodes):
        logger.warning("drop_orphans link_id=%s dropped", orphan.link_id)

    by_link_id = {item.link_id: item for item in items}
    kept: List[ResponseNode] = []
    for node in nodes:
        item = by_link_id.get(node.link_id)
        if item is None:
            continue
        kept.append(
            ResponseNode(
                link_id=node.link_id,
                text=node.text,
                answers=[
                    Answer(value=answer.value, children=drop_orphans(item.children, answer.children))
                    for answer in node.answers
                ],
                children=drop_orphans(item.children, node.children),
            )
        )
    return kept


__all__ = ["check_response", "check_nodes", "drop_orphans"]
