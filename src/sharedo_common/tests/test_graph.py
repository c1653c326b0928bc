# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import json
from types import SimpleNamespace

import pytest

from sharedo_common.validation.graph import (
    build_adjacency,
    connection_targets,
    has_outgoing_connection,
    reachable_steps,
    referenced_steps,
    to_object,
)


def _action(connections=None):
    return SimpleNamespace(connections=connections)


def _step(name, *actions):
    return SimpleNamespace(system_name=name, actions=list(actions))


def _workflow(*steps):
    return SimpleNamespace(steps=list(steps))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"a": 1}, {"a": 1}),
        ('{"a": 1}', {"a": 1}),
        (b'{"a": 1}', {"a": 1}),
        ("", {}),
        ("not json", {}),
        ("[1, 2]", {}),
        (None, {}),
        (42, {}),
        ([{"a": 1}], {}),
    ],
)
def test_to_object(raw, expected):
    assert to_object(raw) == expected


def test_connection_targets_follow_slot_order():
    connections = {
        "complete": {"step": "done"},
        "no": {"step": "reject"},
        "yes": {"step": "approve"},
    }
    assert connection_targets(connections) == [
        ("yes", "approve"),
        ("no", "reject"),
        ("complete", "done"),
    ]


def test_connection_targets_accepts_json_string():
    assert connection_targets(json.dumps({"execute": {"step": "next"}})) == [("execute", "next")]


@pytest.mark.parametrize(
    "connections",
    [
        None,
        "",
        "{broken",
        {"execute": None},
        {"execute": {"step": ""}},
        {"execute": {"step": 5}},
        {"execute": "next"},
        {"otherwise": {"step": "next"}},
    ],
)
def test_connection_targets_ignores_unresolvable_slots(connections):
    assert connection_targets(connections) == []


def test_has_outgoing_connection():
    assert has_outgoing_connection([_action(None), _action({"execute": {"step": "b"}})])
    assert not has_outgoing_connection([_action(None), _action({"execute": {}})])
    assert not has_outgoing_connection([])


def test_build_adjacency_deduplicates_and_keeps_dangling_targets():
    workflow = _workflow(
        _step(
            "a",
            _action({"yes": {"step": "b"}, "no": {"step": "b"}}),
            _action('{"execute": {"step": "ghost"}}'),
        ),
        _step("b"),
    )
    assert build_adjacency(workflow) == {"a": ["b", "ghost"], "b": []}


def test_referenced_and_reachable_steps():
    graph = {"start": ["mid"], "mid": ["end"], "end": [], "island": ["mid"]}
    assert referenced_steps(graph) == {"mid", "end"}
    assert reachable_steps(graph, ["start"]) == {"start", "mid", "end"}
    assert reachable_steps(graph, []) == set()


def test_reachable_steps_terminates_on_cycles():
    graph = {"a": ["b"], "b": ["a", "c"], "c": []}
    assert reachable_steps(graph, ["a"]) == {"a", "b", "c"}
