"""Central in-memory state holders for editing sessions.

Sessions live for the lifetime of the process only; the wire format is the
sole way a response survives a session. The store is bounded: once it holds
more than the configured number of sessions, the least recently used ones
are evicted.
"""

from __future__ import annotations

from typing import Dict, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:  # pragma: no cover
    from formtree.logic.session import FormSession

logger = logging.getLogger(__name__)

# session_id -> FormSession, least recently used first
SESSIONS: Dict[str, "FormSession"] = {}


def store_session(session_id: str, session: "FormSession", *, limit: int) -> None:
    """Add ``session`` and evict least recently used sessions beyond ``limit``."""
    SESSIONS.pop(session_id, None)
    SESSIONS[session_id] = session
    while len(SESSIONS) > limit:
        evicted = next(iter(SESSIONS))
        del SESSIONS[evicted]
        logger.info("session_evicted session_id=%s limit=%s", evicted, limit)


def get_session(session_id: str) -> Optional["FormSession"]:
    """Return the session and mark it most recently used."""
    session = SESSIONS.pop(session_id, None)
    if session is not None:
        SESSIONS[session_id] = session
    return session


__all__ = ["SESSIONS", "store_session", "get_session"]
