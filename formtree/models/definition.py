"""Definition tree models (the questionnaire).

Definition items are immutable once loaded. Child order is significant and
``link_id`` is unique among siblings only.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from formtree.models.item_type import ItemType
from formtree.models.values import AnswerValue


class AnswerOption(AnswerValue):
    """A permitted answer, optionally preselected when the form opens."""

    initial_selected: bool = Field(default=False, alias="initialSelected")


class Expression(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str = "text/fhirpath"
    expression: str
    name: Optional[str] = None


class DefinitionItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    link_id: str = Field(alias="linkId", min_length=1)
    text: Optional[str] = None
    type: ItemType
    repeats: bool = False
    children: List["DefinitionItem"] = Field(default_factory=list, alias="item")
    initial_values: List[AnswerValue] = Field(default_factory=list, alias="initial")
    answer_options: List[AnswerOption] = Field(default_factory=list, alias="answerOption")
    initial_expression: Optional[Expression] = Field(default=None, alias="initialExpression")

    @property
    def is_repeated_group(self) -> bool:
        return self.type == ItemType.GROUP and self.repeats

    @property
    def selected_options(self) -> List[AnswerValue]:
        """Values of answer options flagged ``initialSelected``, in option order."""
        return [opt.as_value() for opt in self.answer_options if opt.initial_selected]


class Questionnaire(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: Optional[str] = None
    title: Optional[str] = None
    items: List[DefinitionItem] = Field(default_factory=list, alias="item")


def find_item(items: Sequence[DefinitionItem], link_id: str) -> Optional[DefinitionItem]:
    """Return the sibling with ``link_id`` or None."""
    for item in items:
        if item.link_id == link_id:
            return item
    return None


__all__ = ["AnswerOption", "Expression", "DefinitionItem", "Questionnaire", "find_item"]
