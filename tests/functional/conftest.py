from __future__ import annotations

"""Functional test bootstrap.

Pins the configuration the application factory reads so tests do not pick up
a developer's local ``formtree_config.json`` overrides, and clears the
in-memory session store between tests.
"""

from typing import Iterator

import pytest

from formtree.logic.inmemory_state import SESSIONS


@pytest.fixture(autouse=True)
def pinned_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FORMTREE_ORPHAN_POLICY", "strict")
    monkeypatch.setenv("FORMTREE_EXPRESSION_EXEMPTION", "always")
    monkeypatch.setenv("FORMTREE_LOG_LEVEL", "INFO")
    monkeypatch.setenv("FORMTREE_MAX_SESSIONS", "1000")


@pytest.fixture(autouse=True)
def clear_sessions() -> Iterator[None]:
    SESSIONS.clear()
    yield
    SESSIONS.clear()


@pytest.fixture
def client():
    """TestClient over a freshly created app (config read after env pinning)."""
    from fastapi.testclient import TestClient

    from formtree.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
