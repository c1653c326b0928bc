# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Directed-graph view of a ShareDo workflow.

Nodes are step system names, edges are the step targets named in the outcome
slots of each action's ``connections`` payload.  ``config`` and
``connections`` arrive either as JSON strings or as already-parsed objects;
:func:`to_object` is the single normalization point for both.
"""

import json
from collections import deque
from typing import Any, Dict, Iterable, List, Set, Tuple

from sharedo_common.constants import CONNECTION_SLOTS

Adjacency = Dict[str, List[str]]


def to_object(raw: Any) -> Dict[str, Any]:
    """Return *raw* as a dict, parsing it first when it is a JSON string.

    ``None``, unparseable strings and JSON values that are not objects all
    normalize to an empty dict.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def connection_targets(connections: Any) -> List[Tuple[str, str]]:
    """Return ``(slot, step)`` pairs for every resolvable outcome slot."""
    conns = to_object(connections)
    targets: List[Tuple[str, str]] = []
    for slot in CONNECTION_SLOTS:
        outcome = conns.get(slot)
        if not isinstance(outcome, dict):
            continue
        step = outcome.get("step")
        if isinstance(step, str) and step:
            targets.append((slot, step))
    return targets


def has_outgoing_connection(actions: Iterable[Any]) -> bool:
    return any(connection_targets(a.connections) for a in actions)


def build_adjacency(workflow: Any) -> Adjacency:
    """Map each step system name to the ordered, de-duplicated step names it connects to.

    *workflow* needs ``steps``, each with ``system_name`` and ``actions``;
    every action needs ``connections``.  Targets that are not declared steps
    are kept so callers can decide how to treat dangling references.
    """
    graph: Adjacency = {}
    for step in workflow.steps:
        targets = graph.setdefault(step.system_name, [])
        for action in step.actions:
            for _slot, target in connection_targets(action.connections):
                if target not in targets:
                    targets.append(target)
    return graph


def referenced_steps(graph: Adjacency) -> Set[str]:
    """Return every step name that appears as a connection target."""
    return {target for targets in graph.values() for target in targets}


def reachable_steps(graph: Adjacency, roots: Iterable[str]) -> Set[str]:
    """Return the step names reachable from *roots* (roots included)."""
    seen: Set[str] = set()
    queue = deque(roots)
    while queue:
        node = queue.popleft()
        if node in seen:
            continue
        seen.add(node)
        queue.extend(t for t in graph.get(node, ()) if t not in seen)
    return seen
