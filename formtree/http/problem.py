"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that turn domain errors
and request validation failures into application/problem+json responses.
"""

from __future__ import annotations

import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from formtree.logic.errors import InvalidDefinitionError, NodeNotFoundError, StructuralMismatchError
from formtree.logic.problem_factory import (
    problem_invalid_definition,
    problem_node_not_found,
    problem_structural_mismatch,
)

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def _respond(problem: dict) -> JSONResponse:
    return JSONResponse(problem, status_code=int(problem["status"]), media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"title": "Error", "status": int(exc.status_code), "detail": str(exc.detail)}
    return JSONResponse(
        detail,
        status_code=int(exc.status_code),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=dict(exc.headers or {}),
    )


async def handle_invalid_definition(request: Request, exc: InvalidDefinitionError) -> JSONResponse:  # noqa: D401
    logger.warning("invalid_definition path=%s code=%s link_id=%s", request.url.path, exc.code.value, exc.link_id)
    return _respond(problem_invalid_definition(exc))


async def handle_structural_mismatch(request: Request, exc: StructuralMismatchError) -> JSONResponse:  # noqa: D401
    logger.warning("structural_mismatch path=%s link_id=%s", request.url.path, exc.link_id)
    return _respond(problem_structural_mismatch(exc))


async def handle_node_not_found(request: Request, exc: NodeNotFoundError) -> JSONResponse:  # noqa: D401
    return _respond(problem_node_not_found(exc))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        # ctx may hold exception objects that are not JSON serializable
        "errors": [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()],
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_http_exception",
    "handle_invalid_definition",
    "handle_structural_mismatch",
    "handle_node_not_found",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
