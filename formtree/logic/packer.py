"""Fold unpacked (wire) response nodes into packed form.

In the wire format every instance of a repeating group is its own sibling
node. The packed form used while editing keeps one node per definition item
and stores each instance as an answer holding that instance's nested nodes.

Example: three sibling ``g1`` nodes become one ``g1`` node with three
value-less answers, answer ``i`` carrying the children of sibling ``i``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence
import logging

from formtree.models.definition import DefinitionItem, Questionnaire
from formtree.models.response import Answer, QuestionnaireResponse, ResponseNode
from formtree.logic.zipper import group_by_link_id

logger = logging.getLogger(__name__)


def pack(
    nodes: Sequence[ResponseNode],
    items: Optional[Sequence[DefinitionItem]] = None,
    *,
    wire: bool = False,
) -> List[ResponseNode]:
    """Return the packed form of ``nodes``; the input is not modified.

    Base case: a node without children and answers is copied as is.

    Without ``items`` a linkId shared by several siblings is folded into one
    node and a lone node is kept. With ``items`` a repeating group is folded
    even when a single instance is present (an already packed group node is
    left alone), and nested levels are packed against the matching child
    definitions.

    Pass ``wire=True`` when ``nodes`` are known to be in wire form: every
    node of a repeating group is then an instance and is folded, including
    a lone instance without nested nodes.
    """
    by_link_id: Dict[str, DefinitionItem] = {item.link_id: item for item in items or ()}

    packed_level: List[ResponseNode] = []
    for link_id, group in group_by_link_id(nodes).items():
        item = by_link_id.get(link_id)
        child_items = item.children if item is not None else None
        packed_group = [_pack_nested(node, child_items, wire) for node in group]

        fold = len(packed_group) > 1 or (
            item is not None and item.is_repeated_group and (wire or is_unpacked_instance(packed_group[0]))
        )
        if not fold:
            packed_level.extend(packed_group)
            continue
        packed_level.append(
            ResponseNode(
                link_id=link_id,
                answers=[Answer(children=instance.children) for instance in packed_group],
            )
        )
        logger.debug("pack folded link_id=%s instances=%s", link_id, len(packed_group))
    return packed_level


def is_unpacked_instance(node: ResponseNode) -> bool:
    """True for a repeating-group node in wire form (one instance, no answers).

    A packed repeating group keeps its instances as answers, never as children.
    """
    return not node.answers and bool(node.children)


def _pack_nested(
    node: ResponseNode,
    child_items: Optional[Sequence[DefinitionItem]],
    wire: bool,
) -> ResponseNode:
    return ResponseNode(
        link_id=node.link_id,
        text=node.text,
        answers=[
            Answer(
                value=answer.value,
                children=pack(answer.children, child_items, wire=wire),
            )
            for answer in node.answers
        ],
        children=pack(node.children, child_items, wire=wire),
    )


def pack_response(
    response: QuestionnaireResponse,
    questionnaire: Optional[Questionnaire] = None,
) -> QuestionnaireResponse:
    """Pack a whole wire response, against ``questionnaire`` when given."""
    items = questionnaire.items if questionnaire is not None else None
    packed = pack(response.items, items, wire=True)
    logger.info("pack_response nodes_in=%s nodes_out=%s", len(response.items), len(packed))
    return QuestionnaireResponse(questionnaire=response.questionnaire, items=packed)


__all__ = ["pack", "pack_response", "is_unpacked_instance"]
