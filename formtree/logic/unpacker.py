"""Expand packed repeating groups back into wire-format siblings.

Inverse of ``formtree.logic.packer``: each answer of a repeating-group node
becomes its own sibling node carrying the group's linkId and text and the
answer's nested nodes. Answer values of repeating groups are discarded; a
group instance has no scalar value.
"""

from __future__ import annotations

from typing import List, Sequence
import logging

from formtree.logic.packer import is_unpacked_instance
from formtree.logic.zipper import zip_by_link_id
from formtree.models.definition import DefinitionItem, Questionnaire
from formtree.models.response import Answer, QuestionnaireResponse, ResponseNode

logger = logging.getLogger(__name__)


def unpack(items: Sequence[DefinitionItem], nodes: Sequence[ResponseNode]) -> List[ResponseNode]:
    """Return the unpacked (wire) form of ``nodes``; the input is not modified.

    Nodes are paired with ``items`` by linkId, so the output follows
    definition order and nodes without a definition at their level are
    dropped. Both nesting layers (node children and answer children) are
    unpacked against the item's child definitions.
    """
    expanded = zip_by_link_id(items, nodes, _unpack_node)
    return [node for group in expanded for node in group]


def _unpack_node(item: DefinitionItem, node: ResponseNode) -> List[ResponseNode]:
    children = unpack(item.children, node.children)
    answers = [
        Answer(value=answer.value, children=unpack(item.children, answer.children))
        for answer in node.answers
    ]
    if item.is_repeated_group:
        if is_unpacked_instance(node):
            return [ResponseNode(link_id=node.link_id, text=node.text, children=children)]
        return [
            ResponseNode(link_id=item.link_id, text=item.text, children=answer.children)
            for answer in answers
        ]
    return [ResponseNode(link_id=node.link_id, text=node.text, answers=answers, children=children)]


def unpack_response(questionnaire: Questionnaire, response: QuestionnaireResponse) -> QuestionnaireResponse:
    """Unpack a whole packed response for hand-off in wire format."""
    unpacked = unpack(questionnaire.items, response.items)
    logger.info("unpack_response nodes_in=%s nodes_out=%s", len(response.items), len(unpacked))
    return QuestionnaireResponse(questionnaire=response.questionnaire, items=unpacked)


__all__ = ["unpack", "unpack_response"]
