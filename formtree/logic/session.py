"""Editing session over one packed questionnaire response.

Load pipeline: wire response -> pack against the questionnaire -> orphan
policy -> structure check -> missing nodes created from the definition.
Answer mutations go through ``on_answers_changed`` so nested items stay
attached to the right answers. ``to_wire`` unpacks for hand-off.

A session has a single writer; callers serialize mutations (the HTTP layer
holds ``session.lock`` around every call).
"""

from __future__ import annotations

import re
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from formtree.config import DEFAULT_POLICY, ValidationPolicy
from formtree.logic.errors import NodeNotFoundError, StructuralMismatchError
from formtree.logic.expressions import Evaluator, build_response, evaluate_initial_values
from formtree.logic.flattener import all_items
from formtree.logic.initializer import build_response_node, create_nested_response_nodes
from formtree.logic.packer import pack
from formtree.logic.placement import nested_items_under_answers, place_nested_items
from formtree.logic.structure_check import check_nodes, check_response, drop_orphans
from formtree.logic.unpacker import unpack_response
from formtree.logic.zipper import group_and_zip_by_link_id, zip_by_link_id
from formtree.models.definition import DefinitionItem, Questionnaire
from formtree.models.item_type import NON_QUESTION_TYPES
from formtree.models.response import Answer, QuestionnaireResponse, ResponseNode

logger = logging.getLogger(__name__)

_PATH_SEGMENT = re.compile(r"^(?P<link_id>[^\[\]/]+)(?:\[(?P<index>\d+)\])?$")


class FormSession:
    def __init__(
        self,
        questionnaire: Questionnaire,
        response: Optional[QuestionnaireResponse] = None,
        *,
        policy: ValidationPolicy = DEFAULT_POLICY,
        evaluator: Optional[Evaluator] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.questionnaire = questionnaire
        self.policy = policy
        self.modification_count = 0
        self.lock = threading.Lock()
        self._items_by_node: Dict[int, DefinitionItem] = {}
        self._evaluated: Dict[int, Sequence[Any]] = {}
        self.response = self._load(response, evaluator, context)
        self._reindex()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(
        self,
        response: Optional[QuestionnaireResponse],
        evaluator: Optional[Evaluator],
        context: Optional[Mapping[str, Any]],
    ) -> QuestionnaireResponse:
        if response is None or not response.items:
            return build_response(self.questionnaire, evaluator, context, policy=self.policy)

        items = self.questionnaire.items
        nodes = pack(response.items, items, wire=True)
        if self.policy.orphan_policy == "drop":
            nodes = drop_orphans(items, nodes)
        packed = QuestionnaireResponse(questionnaire=response.questionnaire, items=nodes)
        check_response(self.questionnaire, packed, packed=True)

        if evaluator is not None:
            self._evaluated = evaluate_initial_values(self.questionnaire, evaluator, context)
        packed.items = self._fill_missing(items, packed.items)
        if packed.questionnaire is None:
            packed.questionnaire = self.questionnaire.url
        logger.info(
            "session_load questionnaire=%s nodes_in=%s nodes_packed=%s",
            self.questionnaire.url,
            len(response.items),
            len(packed.items),
        )
        return packed

    def _fill_missing(self, items: Sequence[DefinitionItem], nodes: Sequence[ResponseNode]) -> List[ResponseNode]:
        def source_for(item: DefinitionItem) -> Optional[Sequence[Any]]:
            return self._evaluated.get(id(item))

        def combine(item_group: List[DefinitionItem], node_group: List[ResponseNode]) -> List[ResponseNode]:
            if not item_group:
                return node_group
            item = item_group[0]
            if not node_group:
                return [
                    build_response_node(
                        item, source_for(item), policy=self.policy, initial_source_for=source_for
                    )
                ]
            for node in node_group:
                if nested_items_under_answers(item):
                    for answer in node.answers:
                        if answer.children:
                            answer.children = self._fill_missing(item.children, answer.children)
                    self._seed_answers(item, node)
                elif item.children:
                    node.children = self._fill_missing(item.children, node.children)
            return node_group

        filled = group_and_zip_by_link_id(items, nodes, combine)
        return [node for group in filled for node in group]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _reindex(self) -> None:
        index: Dict[int, DefinitionItem] = {}

        def visit(item: DefinitionItem, node: ResponseNode) -> None:
            index[id(node)] = item
            zip_by_link_id(item.children, node.children, visit)
            for answer in node.answers:
                zip_by_link_id(item.children, answer.children, visit)

        zip_by_link_id(self.questionnaire.items, self.response.items, visit)
        self._items_by_node = index

    def item_for(self, node: ResponseNode) -> DefinitionItem:
        """Definition item the session paired with ``node``."""
        try:
            return self._items_by_node[id(node)]
        except KeyError:
            raise StructuralMismatchError(
                node.link_id, f"Response item {node.link_id} is not part of this session"
            ) from None

    def find_node(self, path: str) -> ResponseNode:
        """Resolve a path such as ``household/members[1]/name``.

        Segments are linkIds separated by ``/``. ``linkId[i]`` steps into the
        children of answer ``i`` of that node; a bare linkId steps into the
        node's direct children. The node named by the last segment is
        returned.
        """
        segments = [s for s in (path or "").strip("/").split("/") if s]
        if not segments:
            raise NodeNotFoundError(path)
        level: Sequence[ResponseNode] = self.response.items
        node: Optional[ResponseNode] = None
        for position, segment in enumerate(segments):
            match = _PATH_SEGMENT.match(segment)
            if match is None:
                raise NodeNotFoundError(path)
            node = next((n for n in level if n.link_id == match.group("link_id")), None)
            if node is None:
                raise NodeNotFoundError(path)
            index = match.group("index")
            if index is None:
                level = node.children
                continue
            if int(index) >= len(node.answers) or position == len(segments) - 1:
                raise NodeNotFoundError(path)
            level = node.answers[int(index)].children
        return node  # type: ignore[return-value]

    def nodes(self) -> List[ResponseNode]:
        """Pre-order list of every node in the session."""
        return all_items(self.response)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def on_answers_changed(self, node: ResponseNode, new_answers: Sequence[Answer]) -> None:
        """Replace the answers of ``node`` and re-attach nested items.

        Each answer without nested nodes receives a fresh copy of the nested
        items from the definition; answers that already carry nested nodes
        keep them. Raises StructuralMismatchError when the answers do not fit
        the item (answers on a group or display item, several answers on a
        non-repeating item, or a value of the wrong type).
        """
        item = self.item_for(node)
        answers = list(new_answers)
        if answers and item.type in NON_QUESTION_TYPES and not item.is_repeated_group:
            raise StructuralMismatchError(item.link_id, f"Item {item.link_id} does not accept answers")
        check_nodes([item], [ResponseNode(link_id=node.link_id, answers=answers)])

        node.answers = answers
        if nested_items_under_answers(item):
            self._seed_answers(item, node)
        self.modification_count += 1
        self._reindex()
        logger.info(
            "answers_changed link_id=%s answers=%s modification_count=%s",
            item.link_id,
            len(answers),
            self.modification_count,
        )

    def add_instance(self, node: ResponseNode) -> Answer:
        """Append a new instance to a repeating group and return its answer."""
        item = self.item_for(node)
        if not item.is_repeated_group:
            raise StructuralMismatchError(item.link_id, f"Item {item.link_id} is not a repeating group")
        self.on_answers_changed(node, [*node.answers, Answer()])
        return node.answers[-1]

    def remove_instance(self, node: ResponseNode, index: int) -> None:
        answers = list(node.answers)
        if not 0 <= index < len(answers):
            raise IndexError(f"no instance {index} on {node.link_id}")
        del answers[index]
        self.on_answers_changed(node, answers)

    def _seed_answers(self, item: DefinitionItem, node: ResponseNode) -> None:
        template = create_nested_response_nodes(item, policy=self.policy)
        place_nested_items(item, node, template)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_wire(self) -> QuestionnaireResponse:
        """Unpacked copy of the current response, ready for hand-off."""
        return unpack_response(self.questionnaire, self.response)


__all__ = ["FormSession"]
