"""Response tree models (collected answers).

Nodes are mutable for the length of an editing session. Nested nodes live
either directly on a node (``children``) or on each of its answers
(``Answer.children``); see ``formtree.logic.placement``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from formtree.models.values import AnswerValue


def _mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _entries(data: Dict[str, Any], key: str) -> List[Any]:
    """The list under ``key``; a missing or null key is an empty list."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a JSON array, got {type(value).__name__}")
    return value


class Answer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    # Unset only for answers synthesized when packing repeated groups
    value: Optional[AnswerValue] = None
    children: List["ResponseNode"] = Field(default_factory=list, alias="item")

    @classmethod
    def of(cls, raw: Any) -> "Answer":
        return cls(value=raw if isinstance(raw, AnswerValue) else AnswerValue.of(raw))

    def to_wire(self) -> Dict[str, Any]:
        """Flatten ``value[x]`` into the answer object as the wire format expects."""
        out: Dict[str, Any] = {}
        if self.value is not None:
            out.update(self.value.model_dump(by_alias=True, exclude_none=True))
        if self.children:
            out["item"] = [child.to_wire() for child in self.children]
        return out

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "Answer":
        data = _mapping(data, "answer")
        value_fields = {k: v for k, v in data.items() if k.startswith("value")}
        children = [ResponseNode.from_wire(child) for child in _entries(data, "item")]
        value = AnswerValue.model_validate(value_fields) if value_fields else None
        return cls(value=value, children=children)


class ResponseNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    link_id: str = Field(alias="linkId", min_length=1)
    text: Optional[str] = None
    answers: List[Answer] = Field(default_factory=list, alias="answer")
    children: List["ResponseNode"] = Field(default_factory=list, alias="item")

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"linkId": self.link_id}
        if self.text is not None:
            out["text"] = self.text
        if self.answers:
            out["answer"] = [answer.to_wire() for answer in self.answers]
        if self.children:
            out["item"] = [child.to_wire() for child in self.children]
        return out

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "ResponseNode":
        data = _mapping(data, "item")
        return cls(
            link_id=data["linkId"],
            text=data.get("text"),
            answers=[Answer.from_wire(a) for a in _entries(data, "answer")],
            children=[cls.from_wire(child) for child in _entries(data, "item")],
        )


Answer.model_rebuild()


class QuestionnaireResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    questionnaire: Optional[str] = None
    items: List[ResponseNode] = Field(default_factory=list, alias="item")

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"resourceType": "QuestionnaireResponse"}
        if self.questionnaire is not None:
            out["questionnaire"] = self.questionnaire
        if self.items:
            out["item"] = [node.to_wire() for node in self.items]
        return out

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "QuestionnaireResponse":
        data = _mapping(data, "QuestionnaireResponse")
        return cls(
            questionnaire=data.get("questionnaire"),
            items=[ResponseNode.from_wire(node) for node in _entries(data, "item")],
        )


__all__ = ["Answer", "ResponseNode", "QuestionnaireResponse"]
