"""Pydantic models for request and response bodies of the HTTP surface.

Response trees travel in their wire JSON shape (``linkId``, ``answer`` with
flattened ``value[x]``, ``item``) and are converted with
``QuestionnaireResponse.from_wire`` / ``to_wire`` at the route boundary.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from formtree.models.definition import DefinitionItem, Questionnaire
from formtree.models.values import AnswerValue


class PackRequest(BaseModel):
    questionnaire: Optional[Questionnaire] = None
    response: Dict[str, Any]


class UnpackRequest(BaseModel):
    questionnaire: Questionnaire
    response: Dict[str, Any]


class InitializeRequest(BaseModel):
    item: DefinitionItem
    # Expression-evaluated initial values in value[x] form, e.g. {"valueInteger": 3}
    initial_values: Optional[List[AnswerValue]] = None


class FlattenRequest(BaseModel):
    response: Dict[str, Any]


class CheckRequest(BaseModel):
    questionnaire: Questionnaire
    response: Dict[str, Any]
    packed: bool = False


class CreateSessionRequest(BaseModel):
    questionnaire: Questionnaire
    response: Optional[Dict[str, Any]] = None


class AnswersChangedRequest(BaseModel):
    path: str = Field(min_length=1)
    # Wire answers; an empty object adds a repeating-group instance
    answers: List[Dict[str, Any]] = Field(default_factory=list)


class SessionView(BaseModel):
    session_id: str
    modification_count: int
    response: Dict[str, Any]


class FlattenedNode(BaseModel):
    link_id: str
    answer_count: int


__all__ = [
    "PackRequest",
    "UnpackRequest",
    "InitializeRequest",
    "FlattenRequest",
    "CheckRequest",
    "CreateSessionRequest",
    "AnswersChangedRequest",
    "SessionView",
    "FlattenedNode",
]
