"""Conversion of wire JSON bodies into response models at the route boundary."""

from __future__ import annotations

from typing import Any, Dict, List
import logging

from fastapi import HTTPException
from pydantic import ValidationError

from formtree.models.response import Answer, QuestionnaireResponse

logger = logging.getLogger(__name__)


def _invalid(detail: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"title": "Invalid Request", "status": 422, "detail": detail, "code": "WIRE_FORMAT_INVALID"},
    )


def parse_wire_response(data: Dict[str, Any]) -> QuestionnaireResponse:
    """Parse a wire QuestionnaireResponse, mapping shape errors to a 422 problem."""
    try:
        return QuestionnaireResponse.from_wire(data)
    except KeyError as e:
        logger.warning("wire_response_invalid missing_key=%s", e)
        raise _invalid(f"response item is missing {e}") from e
    except TypeError as e:
        logger.warning("wire_response_invalid shape=%s", e)
        raise _invalid(f"response has the wrong shape: {e}") from e
    except ValidationError as e:
        logger.warning("wire_response_invalid errors=%s", e.error_count())
        raise _invalid(f"response is not a valid questionnaire response: {e.error_count()} error(s)") from e


def parse_wire_answers(data: List[Dict[str, Any]]) -> List[Answer]:
    try:
        return [Answer.from_wire(answer) for answer in data]
    except (KeyError, TypeError, ValidationError) as e:
        logger.warning("wire_answers_invalid error=%s", e)
        raise _invalid("answers are not valid questionnaire response answers") from e


__all__ = ["parse_wire_response", "parse_wire_answers"]
