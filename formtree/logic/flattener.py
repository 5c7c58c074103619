"""Read-only pre-order traversal of response and definition trees."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence

from formtree.models.definition import DefinitionItem
from formtree.models.response import QuestionnaireResponse, ResponseNode


class Descendants(Iterable[ResponseNode]):
    """Lazy pre-order view of ``node`` and everything nested below it.

    Order: the node, then the descendants of each direct child, then the
    descendants of each answer's children in answer order. Every call to
    ``iter()`` starts a fresh traversal, so the view can be consumed more
    than once.
    """

    def __init__(self, node: ResponseNode) -> None:
        self.node = node

    def __iter__(self) -> Iterator[ResponseNode]:
        # Explicit stack; children are pushed in reverse to pop in order
        stack: List[ResponseNode] = [self.node]
        while stack:
            current = stack.pop()
            yield current
            nested = list(current.children)
            for answer in current.answers:
                nested.extend(answer.children)
            stack.extend(reversed(nested))


def descendants(node: ResponseNode) -> Descendants:
    """Restartable pre-order sequence starting at ``node``."""
    return Descendants(node)


def all_items(response: QuestionnaireResponse) -> List[ResponseNode]:
    """Pre-order list of every node in ``response``."""
    return [node for top in response.items for node in descendants(top)]


def flattened(items: Sequence[DefinitionItem]) -> List[DefinitionItem]:
    """Pre-order list of ``items`` and all nested definition items."""
    out: List[DefinitionItem] = []
    for item in items:
        out.append(item)
        out.extend(flattened(item.children))
    return out


__all__ = ["Descendants", "descendants", "all_items", "flattened"]
