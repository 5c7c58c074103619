"""Answer value models shared by definition and response trees.

An ``AnswerValue`` holds exactly one typed value using the FHIR ``value[x]``
field names on the wire (``valueBoolean``, ``valueCoding``, ...). Multiplicity
is always expressed with several answers, never with a multi-valued value.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from formtree.models.item_type import ItemType


class Coding(BaseModel):
    model_config = ConfigDict(frozen=True)

    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None


class Quantity(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Optional[float] = None
    unit: Optional[str] = None
    system: Optional[str] = None
    code: Optional[str] = None


class Reference(BaseModel):
    model_config = ConfigDict(frozen=True)

    reference: Optional[str] = None
    display: Optional[str] = None


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content_type: Optional[str] = Field(default=None, alias="contentType")
    url: Optional[str] = None
    title: Optional[str] = None
    data: Optional[str] = None
    size: Optional[int] = None


# attribute name -> value kind, in wire declaration order
VALUE_FIELDS: Dict[str, str] = {
    "value_boolean": "boolean",
    "value_decimal": "decimal",
    "value_integer": "integer",
    "value_date": "date",
    "value_date_time": "dateTime",
    "value_time": "time",
    "value_string": "string",
    "value_uri": "uri",
    "value_coding": "coding",
    "value_quantity": "quantity",
    "value_reference": "reference",
    "value_attachment": "attachment",
}

# Value kinds an answer may carry for each item type
_CHOICE_KINDS = frozenset({"coding", "string", "integer", "date", "time", "reference"})
ALLOWED_VALUE_KINDS: Dict[ItemType, frozenset] = {
    ItemType.BOOLEAN: frozenset({"boolean"}),
    ItemType.DECIMAL: frozenset({"decimal"}),
    ItemType.INTEGER: frozenset({"integer"}),
    ItemType.DATE: frozenset({"date"}),
    ItemType.DATETIME: frozenset({"dateTime"}),
    ItemType.TIME: frozenset({"time"}),
    ItemType.STRING: frozenset({"string"}),
    ItemType.TEXT: frozenset({"string"}),
    ItemType.URL: frozenset({"uri"}),
    ItemType.CHOICE: _CHOICE_KINDS,
    ItemType.OPEN_CHOICE: _CHOICE_KINDS,
    ItemType.ATTACHMENT: frozenset({"attachment"}),
    ItemType.REFERENCE: frozenset({"reference"}),
    ItemType.QUANTITY: frozenset({"quantity"}),
}


class AnswerValue(BaseModel):
    """A single typed value; exactly one ``value_*`` field is set."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value_boolean: Optional[bool] = Field(default=None, alias="valueBoolean")
    value_decimal: Optional[float] = Field(default=None, alias="valueDecimal")
    value_integer: Optional[int] = Field(default=None, alias="valueInteger")
    value_date: Optional[str] = Field(default=None, alias="valueDate")
    value_date_time: Optional[str] = Field(default=None, alias="valueDateTime")
    value_time: Optional[str] = Field(default=None, alias="valueTime")
    value_string: Optional[str] = Field(default=None, alias="valueString")
    value_uri: Optional[str] = Field(default=None, alias="valueUri")
    value_coding: Optional[Coding] = Field(default=None, alias="valueCoding")
    value_quantity: Optional[Quantity] = Field(default=None, alias="valueQuantity")
    value_reference: Optional[Reference] = Field(default=None, alias="valueReference")
    value_attachment: Optional[Attachment] = Field(default=None, alias="valueAttachment")

    @model_validator(mode="after")
    def _exactly_one_value(self) -> "AnswerValue":
        present = [name for name in VALUE_FIELDS if getattr(self, name) is not None]
        if len(present) != 1:
            raise ValueError(f"exactly one value[x] field must be set, got {len(present)}")
        return self

    @property
    def field_name(self) -> str:
        for name in VALUE_FIELDS:
            if getattr(self, name) is not None:
                return name
        raise AssertionError("unreachable: validator guarantees one value")

    @property
    def kind(self) -> str:
        return VALUE_FIELDS[self.field_name]

    @property
    def raw(self) -> Any:
        return getattr(self, self.field_name)

    def as_value(self) -> "AnswerValue":
        """Return a plain ``AnswerValue`` carrying only the value field."""
        return AnswerValue(**{self.field_name: self.raw})

    @classmethod
    def of(cls, raw: Any) -> "AnswerValue":
        """Wrap a Python value, inferring the value kind from its type.

        Strings always map to ``valueString``; use the explicit field for
        dates, times and URIs.
        """
        if isinstance(raw, bool):
            return cls(value_boolean=raw)
        if isinstance(raw, int):
            return cls(value_integer=raw)
        if isinstance(raw, float):
            return cls(value_decimal=raw)
        if isinstance(raw, str):
            return cls(value_string=raw)
        if isinstance(raw, Coding):
            return cls(value_coding=raw)
        if isinstance(raw, Quantity):
            return cls(value_quantity=raw)
        if isinstance(raw, Reference):
            return cls(value_reference=raw)
        if isinstance(raw, Attachment):
            return cls(value_attachment=raw)
        raise TypeError(f"unsupported answer value type: {type(raw).__name__}")


def is_unit_only_quantity(value: AnswerValue) -> bool:
    """True for a Quantity carrying a unit but no numeric value.

    Such initial values are a unit hint for the input widget, not an answer.
    """
    return value.value_quantity is not None and value.value_quantity.value is None


__all__ = [
    "Coding",
    "Quantity",
    "Reference",
    "Attachment",
    "AnswerValue",
    "VALUE_FIELDS",
    "ALLOWED_VALUE_KINDS",
    "is_unit_only_quantity",
]
