"""Domain errors raised by the tree engine.

Both error types are ``ValueError`` subclasses raised synchronously while
building, checking, packing or unpacking trees. Callers decide whether an
error aborts the whole form load or only the offending subtree.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DefinitionErrorCode(str, Enum):
    QUE_8 = "QUE_8"
    QUE_11 = "QUE_11"
    QUE_13 = "QUE_13"


_RULE_MESSAGES = {
    DefinitionErrorCode.QUE_8: "has initial value(s) and is a group or display item",
    DefinitionErrorCode.QUE_11: "has both initial value(s) and initially selected answer option(s)",
    DefinitionErrorCode.QUE_13: "can only have multiple initial values for repeating items",
}


class InvalidDefinitionError(ValueError):
    """A definition item violates an initial-value rule (que-8, que-11, que-13)."""

    def __init__(self, code: DefinitionErrorCode, link_id: str, message: Optional[str] = None) -> None:
        self.code = code
        self.link_id = link_id
        self.message = message or f"Questionnaire item {link_id} {_RULE_MESSAGES[code]}"
        super().__init__(self.message)


class StructuralMismatchError(ValueError):
    """A response node does not line up with the definition tree."""

    code = "STRUCTURAL_MISMATCH"

    def __init__(self, link_id: Optional[str], message: str) -> None:
        self.link_id = link_id
        self.message = message
        super().__init__(message)


class NodeNotFoundError(LookupError):
    """No response node at the requested path."""

    code = "NODE_NOT_FOUND"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"no response node at path {path!r}")


__all__ = ["DefinitionErrorCode", "InvalidDefinitionError", "StructuralMismatchError", "NodeNotFoundError"]
