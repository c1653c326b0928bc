# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Workflow graph helpers used by the rule-based validator.

Public API
----------
to_object               Normalize a JSON-string-or-object payload to a dict.
connection_targets      ``(slot, step)`` targets of an action's connections.
has_outgoing_connection True when any action of a step connects somewhere.
build_adjacency         Step graph of a workflow.
referenced_steps        Every step named as a connection target.
reachable_steps         Steps reachable from a set of roots.
detect_cycle            First cycle in a graph, as an ordered path.
suggest                 Edit-distance suggestions for a misspelled reference.
"""

from .cycle_detector import detect_cycle
from .graph import (
    Adjacency,
    build_adjacency,
    connection_targets,
    has_outgoing_connection,
    reachable_steps,
    referenced_steps,
    to_object,
)
from .suggestions import suggest

__all__ = [
    "Adjacency",
    "build_adjacency",
    "connection_targets",
    "has_outgoing_connection",
    "reachable_steps",
    "referenced_steps",
    "to_object",
    "detect_cycle",
    "suggest",
]
