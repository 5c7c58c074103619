"""Editing session endpoints.

Implements:
- POST /sessions: load a questionnaire and optional wire response
- GET /sessions/{session_id}: packed view of the current response
- PATCH /sessions/{session_id}/answers: replace the answers of one item
- GET /sessions/{session_id}/response: unpacked (wire) response
- DELETE /sessions/{session_id}
"""

from __future__ import annotations

from typing import Any, Dict
import logging
import uuid

from fastapi import APIRouter, HTTPException, Request, Response

from formtree.http.wire import parse_wire_answers, parse_wire_response
from formtree.logic.inmemory_state import SESSIONS, get_session, store_session
from formtree.logic.problem_factory import problem_session_not_found
from formtree.logic.session import FormSession
from formtree.models.api_types import AnswersChangedRequest, CreateSessionRequest, SessionView


logger = logging.getLogger(__name__)

router = APIRouter()


def _get_session(session_id: str) -> FormSession:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=problem_session_not_found(session_id))
    return session


def _view(session_id: str, session: FormSession) -> SessionView:
    return SessionView(
        session_id=session_id,
        modification_count=session.modification_count,
        response=session.response.to_wire(),
    )


@router.post("/sessions", status_code=201, response_model=SessionView, summary="Open an editing session")
def create_session(body: CreateSessionRequest, request: Request) -> SessionView:
    response = parse_wire_response(body.response) if body.response is not None else None
    session = FormSession(body.questionnaire, response, policy=request.app.state.config.policy)
    session_id = str(uuid.uuid4())
    store_session(session_id, session, limit=request.app.state.config.sessions.max_sessions)
    logger.info("session_created session_id=%s questionnaire=%s", session_id, body.questionnaire.url)
    return _view(session_id, session)


@router.get("/sessions/{session_id}", response_model=SessionView, summary="Packed view of a session")
def get_session_view(session_id: str) -> SessionView:
    session = _get_session(session_id)
    with session.lock:
        return _view(session_id, session)


@router.patch("/sessions/{session_id}/answers", response_model=SessionView, summary="Replace answers of one item")
def patch_answers(session_id: str, body: AnswersChangedRequest) -> SessionView:
    session = _get_session(session_id)
    answers = parse_wire_answers(body.answers)
    with session.lock:
        node = session.find_node(body.path)
        session.on_answers_changed(node, answers)
        return _view(session_id, session)


@router.get("/sessions/{session_id}/response", summary="Wire-format response for hand-off")
def get_wire_response(session_id: str) -> Dict[str, Any]:
    session = _get_session(session_id)
    with session.lock:
        return session.to_wire().to_wire()


@router.delete("/sessions/{session_id}", status_code=204, summary="Close a session")
def delete_session(session_id: str) -> Response:
    if SESSIONS.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail=problem_session_not_found(session_id))
    logger.info("session_deleted session_id=%s", session_id)
    return Response(status_code=204)


__all__ = ["router"]
