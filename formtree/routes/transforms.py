"""Stateless tree transform endpoints.

Each handler converts the wire body into models, delegates to the engine in
``formtree.logic`` and maps the result back to wire JSON. Domain errors are
turned into problem+json responses by the global handlers.
"""

from __future__ import annotations

from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Request

from formtree.http.wire import parse_wire_response
from formtree.logic.flattener import all_items
from formtree.logic.initializer import build_response_node
from formtree.logic.packer import pack_response
from formtree.logic.structure_check import check_response
from formtree.logic.unpacker import unpack_response
from formtree.models.api_types import (
    CheckRequest,
    FlattenRequest,
    FlattenedNode,
    InitializeRequest,
    PackRequest,
    UnpackRequest,
)


logger = logging.getLogger(__name__)


router = APIRouter()


@router.post("/transforms/pack", summary="Fold wire-format repetitions into packed form")
def post_pack(body: PackRequest) -> Dict[str, Any]:
    response = parse_wire_response(body.response)
    packed = pack_response(response, body.questionnaire)
    return packed.to_wire()


@router.post("/transforms/unpack", summary="Expand packed repeating groups into wire form")
def post_unpack(body: UnpackRequest) -> Dict[str, Any]:
    response = parse_wire_response(body.response)
    return unpack_response(body.questionnaire, response).to_wire()


@router.post("/transforms/initialize", summary="Build a fresh response item for a definition item")
def post_initialize(body: InitializeRequest, request: Request) -> Dict[str, Any]:
    """Build the response item for ``body.item``.

    ``initial_values`` stands for expression-evaluated initials; when present
    they replace the item's static initial values.
    """
    node = build_response_node(body.item, body.initial_values, policy=request.app.state.config.policy)
    logger.info("transforms_initialize link_id=%s answers=%s", body.item.link_id, len(node.answers))
    return node.to_wire()


@router.post("/transforms/flatten", summary="Pre-order list of response items", response_model=List[FlattenedNode])
def post_flatten(body: FlattenRequest) -> List[FlattenedNode]:
    response = parse_wire_response(body.response)
    return [FlattenedNode(link_id=node.link_id, answer_count=len(node.answers)) for node in all_items(response)]


@router.post("/transforms/check", summary="Check a response against its questionnaire")
def post_check(body: CheckRequest) -> Dict[str, Any]:
    response = parse_wire_response(body.response)
    check_response(body.questionnaire, response, packed=body.packed)
    return {"consistent": True}


__all__ = ["router"]
