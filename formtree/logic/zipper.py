"""LinkId-based pairing of definition items and response nodes.

Several response nodes may share one linkId (the unpacked instances of a
repeating group); they are paired with the same definition item in the
order they occurred.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, TypeVar

from formtree.models.definition import DefinitionItem
from formtree.models.response import ResponseNode

T = TypeVar("T")


def group_by_link_id(nodes: Sequence[ResponseNode]) -> Dict[str, List[ResponseNode]]:
    """Group nodes by linkId; keys and group members keep first-seen order."""
    groups: Dict[str, List[ResponseNode]] = {}
    for node in nodes:
        groups.setdefault(node.link_id, []).append(node)
    return groups


def zip_by_link_id(
    items: Sequence[DefinitionItem],
    nodes: Sequence[ResponseNode],
    combine: Callable[[DefinitionItem, ResponseNode], T],
) -> List[T]:
    """Apply ``combine`` to every (item, node) pair sharing a linkId.

    Output follows definition order, then node order within each linkId.
    Items without nodes contribute nothing; nodes without items are skipped.
    """
    groups = group_by_link_id(nodes)
    out: List[T] = []
    for item in items:
        for node in groups.get(item.link_id, ()):
            out.append(combine(item, node))
    return out


def group_and_zip_by_link_id(
    items: Sequence[DefinitionItem],
    nodes: Sequence[ResponseNode],
    combine: Callable[[List[DefinitionItem], List[ResponseNode]], T],
) -> List[T]:
    """Apply ``combine`` once per distinct linkId across both sequences.

    Definition linkIds come first in definition order, followed by linkIds
    only present in ``nodes`` in first-seen order. Either list passed to
    ``combine`` may be empty.
    """
    item_groups: Dict[str, List[DefinitionItem]] = {}
    for item in items:
        item_groups.setdefault(item.link_id, []).append(item)
    node_groups = group_by_link_id(nodes)
    link_ids = list(item_groups) + [lid for lid in node_groups if lid not in item_groups]
    return [combine(item_groups.get(lid, []), node_groups.get(lid, [])) for lid in link_ids]


def orphan_nodes(items: Sequence[DefinitionItem], nodes: Sequence[ResponseNode]) -> List[ResponseNode]:
    """Nodes whose linkId names no definition item at this level."""
    known = {item.link_id for item in items}
    return [node for node in nodes if node.link_id not in known]


__all__ = ["group_by_link_id", "zip_by_link_id", "group_and_zip_by_link_id", "orphan_nodes"]
