from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from formtree.config import load_config
from formtree.http.problem import (
    handle_http_exception,
    handle_invalid_definition,
    handle_node_not_found,
    handle_request_validation_error,
    handle_structural_mismatch,
    handle_unexpected_error,
)
from formtree.http.request_id import RequestIdMiddleware
from formtree.logging_setup import configure_logging
from formtree.logic.errors import InvalidDefinitionError, NodeNotFoundError, StructuralMismatchError
from formtree.routes import api_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    config = load_config()
    # Configure global logging before app instantiation so all modules emit
    configure_logging(config.logging.level)
    app = FastAPI(title="formtree")
    app.state.config = config

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(InvalidDefinitionError, handle_invalid_definition)
    app.add_exception_handler(StructuralMismatchError, handle_structural_mismatch)
    app.add_exception_handler(NodeNotFoundError, handle_node_not_found)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(api_router, prefix="/api/v1")
    logger.info(
        "app_created orphan_policy=%s expression_exemption=%s",
        config.policy.orphan_policy,
        config.policy.expression_exemption,
    )
    return app
