# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Cycle detection for workflow step graphs.

The search keeps its own explicit stack instead of recursing, so very large
workflows are not bounded by the interpreter's recursion limit.
"""

from typing import Iterable, Iterator, List, Mapping, Optional, Set, Tuple


def detect_cycle(
    nodes: Iterable[str],
    graph: Mapping[str, Iterable[str]],
) -> Optional[List[str]]:
    """Return the first cycle found as an ordered path, or ``None``.

    Parameters
    ----------
    nodes:
        Start candidates, visited in order.  Usually every step name.
    graph:
        Adjacency mapping ``node -> successors``.  Successors missing from
        the mapping are treated as leaves.

    The returned path starts and ends with the same node, so its last two
    entries are the back-edge that closed the cycle, e.g.
    ``['A', 'B', 'A']`` for ``A -> B -> A``.  Only the first back-edge is
    reported.
    """
    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for root in nodes:
        if root in visited:
            continue
        visited.add(root)
        on_stack.add(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.get(root, ())))]

        while stack:
            node, successors = stack[-1]
            for nbr in successors:
                if nbr not in visited:
                    visited.add(nbr)
                    on_stack.add(nbr)
                    stack.append((nbr, iter(graph.get(nbr, ()))))
                    break
                if nbr in on_stack:
                    path = [name for name, _ in stack]
                    return path[path.index(nbr):] + [nbr]
            else:
                on_stack.discard(node)
                stack.pop()

    return None
