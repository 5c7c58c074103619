"""Functional tests for the HTTP surface.

Exercises the transform and session endpoints through FastAPI's TestClient
and asserts the problem+json contract for every domain error.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from formtree.http.problem import PROBLEM_MEDIA_TYPE

URL = "http://example.org/q/household"

QUESTIONNAIRE: Dict[str, Any] = {
    "url": URL,
    "item": [
        {
            "linkId": "household",
            "type": "group",
            "item": [
                {
                    "linkId": "members",
                    "type": "group",
                    "repeats": True,
                    "item": [
                        {"linkId": "name", "type": "string"},
                        {"linkId": "age", "type": "integer"},
                    ],
                },
                {
                    "linkId": "has_pets",
                    "type": "boolean",
                    "item": [{"linkId": "pet_name", "type": "string"}],
                },
            ],
        }
    ],
}


def _member(name: str, age: int) -> Dict[str, Any]:
    return {
        "linkId": "members",
        "item": [
            {"linkId": "name", "answer": [{"valueString": name}]},
            {"linkId": "age", "answer": [{"valueInteger": age}]},
        ],
    }


WIRE_RESPONSE: Dict[str, Any] = {
    "resourceType": "QuestionnaireResponse",
    "questionnaire": URL,
    "item": [
        {
            "linkId": "household",
            "item": [
                _member("Ann", 34),
                _member("Bob", 7),
                {
                    "linkId": "has_pets",
                    "answer": [
                        {"valueBoolean": True, "item": [{"linkId": "pet_name", "answer": [{"valueString": "Rex"}]}]}
                    ],
                },
            ],
        }
    ],
}


def _assert_problem(resp, status: int, code: str) -> Dict[str, Any]:
    assert resp.status_code == status, resp.text
    assert resp.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
    body = resp.json()
    assert body["status"] == status
    assert body["code"] == code
    return body


# --------------------
# Transforms
# --------------------


def test_pack_folds_member_instances(client):
    resp = client.post("/api/v1/transforms/pack", json={"questionnaire": QUESTIONNAIRE, "response": WIRE_RESPONSE})

    assert resp.status_code == 200
    members = resp.json()["item"][0]["item"][0]
    assert members["linkId"] == "members"
    assert "item" not in members
    assert [a["item"][0]["answer"][0]["valueString"] for a in members["answer"]] == ["Ann", "Bob"]
    assert all(set(a) == {"item"} for a in members["answer"])


def test_pack_without_questionnaire_is_accepted(client):
    resp = client.post("/api/v1/transforms/pack", json={"response": WIRE_RESPONSE})

    assert resp.status_code == 200
    assert len(resp.json()["item"][0]["item"]) == 2


def test_unpack_restores_the_wire_response(client):
    packed = client.post(
        "/api/v1/transforms/pack", json={"questionnaire": QUESTIONNAIRE, "response": WIRE_RESPONSE}
    ).json()

    resp = client.post("/api/v1/transforms/unpack", json={"questionnaire": QUESTIONNAIRE, "response": packed})

    assert resp.status_code == 200
    assert resp.json() == WIRE_RESPONSE


def test_initialize_builds_nested_nodes(client):
    item = {
        "linkId": "smoker",
        "type": "boolean",
        "initial": [{"valueBoolean": False}],
        "item": [{"linkId": "per_day", "type": "integer"}],
    }

    resp = client.post("/api/v1/transforms/initialize", json={"item": item})

    assert resp.status_code == 200
    assert resp.json() == {
        "linkId": "smoker",
        "answer": [{"valueBoolean": False, "item": [{"linkId": "per_day"}]}],
    }


def test_initialize_prefers_supplied_initial_values(client):
    item = {"linkId": "size", "type": "integer", "initial": [{"valueInteger": 1}]}

    resp = client.post(
        "/api/v1/transforms/initialize", json={"item": item, "initial_values": [{"valueInteger": 5}]}
    )

    assert resp.json()["answer"] == [{"valueInteger": 5}]


@pytest.mark.parametrize(
    "item, code",
    [
        ({"linkId": "g", "type": "group", "initial": [{"valueString": "x"}]}, "QUE_8"),
        (
            {
                "linkId": "c",
                "type": "choice",
                "initial": [{"valueString": "x"}],
                "answerOption": [{"valueString": "y", "initialSelected": True}],
            },
            "QUE_11",
        ),
        ({"linkId": "n", "type": "integer", "initial": [{"valueInteger": 1}, {"valueInteger": 2}]}, "QUE_13"),
    ],
)
def test_initialize_reports_definition_rule_violations(client, item, code):
    resp = client.post("/api/v1/transforms/initialize", json={"item": item})

    body = _assert_problem(resp, 422, code)
    assert body["link_id"] == item["linkId"]


def test_flatten_lists_nodes_in_pre_order(client):
    resp = client.post("/api/v1/transforms/flatten", json={"response": WIRE_RESPONSE})

    assert resp.status_code == 200
    assert [n["link_id"] for n in resp.json()] == [
        "household",
        "members",
        "name",
        "age",
        "members",
        "name",
        "age",
        "has_pets",
        "pet_name",
    ]
    assert resp.json()[7]["answer_count"] == 1


def test_check_accepts_consistent_response(client):
    resp = client.post("/api/v1/transforms/check", json={"questionnaire": QUESTIONNAIRE, "response": WIRE_RESPONSE})

    assert resp.status_code == 200
    assert resp.json() == {"consistent": True}


def test_check_reports_structural_mismatch(client):
    response = copy.deepcopy(WIRE_RESPONSE)
    response["item"].append({"linkId": "ghost"})

    resp = client.post("/api/v1/transforms/check", json={"questionnaire": QUESTIONNAIRE, "response": response})

    body = _assert_problem(resp, 409, "STRUCTURAL_MISMATCH")
    assert body["link_id"] == "ghost"


def test_malformed_wire_response_is_rejected(client):
    resp = client.post("/api/v1/transforms/flatten", json={"response": {"item": [{"answer": []}]}})

    _assert_problem(resp, 422, "WIRE_FORMAT_INVALID")


def test_request_validation_errors_use_problem_json(client):
    resp = client.post("/api/v1/transforms/unpack", json={"response": WIRE_RESPONSE})

    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
    assert resp.json()["title"] == "Invalid Request"
    assert resp.json()["errors"]


# --------------------
# Sessions
# --------------------


def _open(client, response=None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"questionnaire": QUESTIONNAIRE}
    if response is not None:
        body["response"] = response
    resp = client.post("/api/v1/sessions", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_session_lifecycle(client):
    view = _open(client, WIRE_RESPONSE)
    session_id = view["session_id"]
    assert view["modification_count"] == 0
    assert len(view["response"]["item"][0]["item"][0]["answer"]) == 2

    resp = client.patch(
        f"/api/v1/sessions/{session_id}/answers",
        json={"path": "household/members[0]/name", "answers": [{"valueString": "Anna"}]},
    )
    assert resp.status_code == 200
    assert resp.json()["modification_count"] == 1

    wire = client.get(f"/api/v1/sessions/{session_id}/response").json()
    assert wire["item"][0]["item"][0]["item"][0]["answer"] == [{"valueString": "Anna"}]
    assert [n["linkId"] for n in wire["item"][0]["item"]] == ["members", "members", "has_pets"]

    assert client.get(f"/api/v1/sessions/{session_id}").json()["modification_count"] == 1
    assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 204
    _assert_problem(client.get(f"/api/v1/sessions/{session_id}"), 404, "SESSION_NOT_FOUND")


def test_answering_attaches_nested_items(client):
    session_id = _open(client)["session_id"]

    resp = client.patch(
        f"/api/v1/sessions/{session_id}/answers",
        json={"path": "household/has_pets", "answers": [{"valueBoolean": True}]},
    )

    has_pets = resp.json()["response"]["item"][0]["item"][1]
    assert has_pets == {"linkId": "has_pets", "answer": [{"valueBoolean": True, "item": [{"linkId": "pet_name"}]}]}


def test_empty_answer_adds_a_group_instance(client):
    session_id = _open(client)["session_id"]

    resp = client.patch(f"/api/v1/sessions/{session_id}/answers", json={"path": "household/members", "answers": [{}]})

    members = resp.json()["response"]["item"][0]["item"][0]
    assert members["answer"] == [{"item": [{"linkId": "name"}, {"linkId": "age"}]}]


def test_session_errors_map_to_problem_json(client):
    session_id = _open(client)["session_id"]
    patch = f"/api/v1/sessions/{session_id}/answers"

    _assert_problem(client.patch(patch, json={"path": "household/nope", "answers": []}), 404, "NODE_NOT_FOUND")
    _assert_problem(
        client.patch(
            patch,
            json={"path": "household/has_pets", "answers": [{"valueBoolean": True}, {"valueBoolean": False}]},
        ),
        409,
        "STRUCTURAL_MISMATCH",
    )
    _assert_problem(
        client.patch(patch, json={"path": "household/has_pets", "answers": [{"valueBoolean": 1, "valueString": "x"}]}),
        422,
        "WIRE_FORMAT_INVALID",
    )
    _assert_problem(client.delete("/api/v1/sessions/unknown"), 404, "SESSION_NOT_FOUND")


def test_session_rejects_orphans_under_strict_policy(client):
    response = copy.deepcopy(WIRE_RESPONSE)
    response["item"].append({"linkId": "ghost"})

    resp = client.post("/api/v1/sessions", json={"questionnaire": QUESTIONNAIRE, "response": response})

    _assert_problem(resp, 409, "STRUCTURAL_MISMATCH")


def test_drop_policy_from_environment(monkeypatch):
    from fastapi.testclient import TestClient

    from formtree.main import create_app

    monkeypatch.setenv("FORMTREE_ORPHAN_POLICY", "drop")
    response = copy.deepcopy(WIRE_RESPONSE)
    response["item"].append({"linkId": "ghost"})

    with TestClient(create_app()) as client:
        resp = client.post("/api/v1/sessions", json={"questionnaire": QUESTIONNAIRE, "response": response})

    assert resp.status_code == 201
    assert [n["linkId"] for n in resp.json()["response"]["item"]] == ["household"]


# --------------------
# Ambient
# --------------------


def test_health_and_request_id(client):
    resp = client.get("/health", headers={"X-Request-Id": "abc-123"})

    assert resp.json() == {"status": "ok"}
    assert resp.headers["x-request-id"] == "abc-123"
    assert client.get("/health").headers["x-request-id"]


@pytest.mark.parametrize(
    "path, body",
    [
        ("/api/v1/transforms/check", {"questionnaire": QUESTIONNAIRE, "response": {"item": ["x"]}}),
        ("/api/v1/transforms/flatten", {"response": {"item": "x"}}),
        ("/api/v1/transforms/flatten", {"response": {"item": [{"linkId": "a", "answer": "oops"}]}}),
        ("/api/v1/transforms/pack", {"response": {"item": [{"linkId": "a", "answer": ["oops"]}]}}),
        ("/api/v1/transforms/unpack", {"questionnaire": QUESTIONNAIRE, "response": {"item": [{"linkId": "a", "item": [5]}]}}),
        ("/api/v1/sessions", {"questionnaire": QUESTIONNAIRE, "response": {"item": [{"linkId": "household", "item": {}}]}}),
    ],
)
def test_wrongly_shaped_wire_documents_are_rejected(client, path, body):
    resp = client.post(path, json=body)

    _assert_problem(resp, 422, "WIRE_FORMAT_INVALID")


def test_pack_keeps_a_lone_empty_group_instance(client):
    questionnaire = {"url": URL, "item": [{"linkId": "g1", "type": "group", "repeats": True}]}
    body = {"questionnaire": questionnaire, "response": {"item": [{"linkId": "g1"}]}}

    resp = client.post("/api/v1/transforms/pack", json=body)

    assert resp.json()["item"] == [{"linkId": "g1", "answer": [{}]}]


def test_least_recently_used_session_is_evicted(monkeypatch):
    from fastapi.testclient import TestClient

    from formtree.main import create_app

    monkeypatch.setenv("FORMTREE_MAX_SESSIONS", "2")
    with TestClient(create_app()) as client:
        first = _open(client)["session_id"]
        second = _open(client)["session_id"]
        assert client.get(f"/api/v1/sessions/{first}").status_code == 200
        _open(client)

        assert client.get(f"/api/v1/sessions/{first}").status_code == 200
        _assert_problem(client.get(f"/api/v1/sessions/{second}"), 404, "SESSION_NOT_FOUND")
