"""formtree: questionnaire definition / response tree reconciliation.

The engine lives in `formtree/logic/` (initializer, placement, zipper,
packer, unpacker, flattener, structure check, editing session) over the
pydantic models in `formtree/models/`. A small FastAPI application factory
exposes the transforms and editing sessions over HTTP.
"""

from __future__ import annotations

from formtree.logic.errors import InvalidDefinitionError, StructuralMismatchError
from formtree.logic.flattener import all_items, descendants
from formtree.logic.initializer import build_response_node
from formtree.logic.packer import pack
from formtree.logic.placement import place_nested_items
from formtree.logic.session import FormSession
from formtree.logic.unpacker import unpack
from formtree.logic.zipper import zip_by_link_id
from formtree.main import create_app

__all__ = [
    "InvalidDefinitionError",
    "StructuralMismatchError",
    "all_items",
    "build_response_node",
    "create_app",
    "descendants",
    "FormSession",
    "pack",
    "place_nested_items",
    "unpack",
    "zip_by_link_id",
]
