"""ItemType enumeration for questionnaire definition items.

The set of item types is closed; the core dispatches on it directly instead
of relying on per-type subclasses.
"""

from __future__ import annotations

from enum import Enum


class ItemType(str, Enum):
    GROUP = "group"
    DISPLAY = "display"
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    INTEGER = "integer"
    DATE = "date"
    DATETIME = "dateTime"
    TIME = "time"
    STRING = "string"
    TEXT = "text"
    URL = "url"
    CHOICE = "choice"
    OPEN_CHOICE = "open-choice"
    ATTACHMENT = "attachment"
    REFERENCE = "reference"
    QUANTITY = "quantity"


# Item types that never carry answers of their own
NON_QUESTION_TYPES = frozenset({ItemType.GROUP, ItemType.DISPLAY})


__all__ = ["ItemType", "NON_QUESTION_TYPES"]
