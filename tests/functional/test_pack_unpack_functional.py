"""Functional tests for folding wire-format repetitions and expanding them again.

Covers:
- folding sibling repetitions into one node with value-less answers
- expanding packed repeating groups into siblings in definition order
- round trips in both directions and idempotence
- behaviour with and without the definition tree
"""

from __future__ import annotations

from formtree.logic.packer import pack, pack_response
from formtree.logic.unpacker import unpack, unpack_response
from formtree.models.response import QuestionnaireResponse

from tree_builders import (
    ans,
    household_definition,
    item,
    node,
    packed_household,
    questionnaire,
    unpacked_household,
)


def test_three_siblings_fold_into_one_node_with_three_instances():
    wire = [
        node("g1", children=[node("q1", [ans("a")])]),
        node("g1", children=[node("q1", [ans("b")])]),
        node("g1", children=[node("q1", [ans("c")])]),
    ]

    packed = pack(wire)

    assert len(packed) == 1
    group = packed[0]
    assert group.link_id == "g1"
    assert group.children == []
    assert [a.value for a in group.answers] == [None, None, None]
    assert [a.children[0].answers[0].value.raw for a in group.answers] == ["a", "b", "c"]


def test_lone_nodes_are_copied_not_shared():
    wire = [node("q", [ans("x")])]

    packed = pack(wire)

    assert packed == wire
    assert packed[0] is not wire[0]


def test_pack_does_not_modify_its_input():
    wire = unpacked_household()
    before = wire.model_copy(deep=True)

    pack([wire])

    assert wire == before


def test_packed_instances_unpack_into_siblings():
    group = item("g1", "group", repeats=True, text="Group", children=[item("q1")])
    packed = node("g1", answers=[ans(children=[node("q1", [ans("a")])]), ans(children=[node("q1")])])

    wire = unpack([group], [packed])

    assert [n.link_id for n in wire] == ["g1", "g1"]
    assert [n.text for n in wire] == ["Group", "Group"]
    assert all(n.answers == [] for n in wire)
    assert wire[0].children[0].answers[0].value.raw == "a"


def test_repeating_group_without_instances_unpacks_to_nothing():
    group = item("g1", "group", repeats=True, children=[item("q1")])

    assert unpack([group], [node("g1")]) == []


def test_nested_levels_pack_and_unpack():
    definition = household_definition()

    assert pack([unpacked_household()]) == [packed_household()]
    assert unpack(definition.items, [packed_household()]) == [unpacked_household()]


def test_round_trip_from_packed_form():
    definition = household_definition()
    packed = [packed_household()]

    assert pack(unpack(definition.items, packed), definition.items) == packed
    assert pack(unpack(definition.items, packed)) == packed


def test_round_trip_from_wire_form():
    definition = household_definition()
    wire = [unpacked_household()]

    assert unpack(definition.items, pack(wire)) == wire


def test_single_instance_folds_only_when_definition_is_known():
    group = item("g1", "group", repeats=True, children=[item("q1")])
    wire = [node("g1", children=[node("q1", [ans("a")])])]

    assert pack(wire) == wire
    folded = pack(wire, [group])
    assert folded == [node("g1", answers=[ans(children=[node("q1", [ans("a")])])])]
    assert pack(unpack([group], folded), [group]) == folded


def test_pack_and_unpack_are_idempotent():
    definition = household_definition()
    wire = [unpacked_household()]
    packed = [packed_household()]

    assert pack(pack(wire)) == pack(wire)
    assert pack(pack(wire, definition.items), definition.items) == pack(wire, definition.items)
    assert unpack(definition.items, unpack(definition.items, packed)) == unpack(definition.items, packed)


def test_unpack_drops_nodes_without_definition():
    definition = questionnaire(item("a"), item("b"))

    wire = unpack(definition.items, [node("b"), node("ghost"), node("a")])

    assert [n.link_id for n in wire] == ["a", "b"]


def test_response_level_helpers_keep_questionnaire_reference():
    definition = household_definition()
    wire = QuestionnaireResponse(questionnaire=definition.url, items=[unpacked_household()])

    packed = pack_response(wire, definition)
    assert packed.questionnaire == definition.url
    assert packed.items == [packed_household()]

    back = unpack_response(definition, packed)
    assert back.items == wire.items
    assert back.to_wire()["resourceType"] == "QuestionnaireResponse"


def test_wire_mode_folds_a_lone_instance_without_nested_nodes():
    group = item("g1", "group", repeats=True, children=[item("q1")])
    wire = [node("g1")]

    # outside wire mode an answerless, childless node reads as a group with no instances
    assert pack(wire, [group]) == wire

    folded = pack(wire, [group], wire=True)

    assert folded == [node("g1", answers=[ans()])]
    assert unpack([group], folded) == [node("g1")]


def test_wire_mode_folds_instances_at_nested_levels():
    definition = household_definition()
    wire = [node("household", children=[node("members"), node("has_pets")])]

    packed = pack(wire, definition.items, wire=True)

    members = packed[0].children[0]
    assert members.link_id == "members"
    assert len(members.answers) == 1
    assert unpack(definition.items, packed) == wire
