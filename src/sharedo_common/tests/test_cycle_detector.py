# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from sharedo_common.validation.cycle_detector import detect_cycle


class TestCycleDetector:
    def _graph(self, pairs):
        graph = {}
        for src, dst in pairs:
            graph.setdefault(src, []).append(dst)
        return graph

    def test_no_cycle_linear(self):
        graph = self._graph([("A", "B"), ("B", "C")])
        assert detect_cycle(["A", "B", "C"], graph) is None

    def test_two_node_cycle_reports_path(self):
        graph = self._graph([("A", "B"), ("B", "A")])
        assert detect_cycle(["A", "B"], graph) == ["A", "B", "A"]

    def test_three_node_cycle_reports_path(self):
        graph = self._graph([("A", "B"), ("B", "C"), ("C", "A")])
        cycle = detect_cycle(["A", "B", "C"], graph)
        assert cycle == ["A", "B", "C", "A"]
        # last two entries are the back-edge
        assert (cycle[-2], cycle[-1]) == ("C", "A")

    def test_self_loop(self):
        graph = self._graph([("A", "A"), ("A", "B")])
        assert detect_cycle(["A", "B"], graph) == ["A", "A"]

    def test_disconnected_no_cycle(self):
        graph = self._graph([("A", "B")])
        assert detect_cycle(["A", "B", "C"], graph) is None

    def test_empty_graph(self):
        assert detect_cycle([], {}) is None

    def test_single_node_no_edges(self):
        assert detect_cycle(["A"], {}) is None

    def test_cycle_in_subgraph(self):
        # D->E->D cycle; A->B->C is clean
        graph = self._graph([("A", "B"), ("B", "C"), ("D", "E"), ("E", "D")])
        assert detect_cycle(["A", "B", "C", "D", "E"], graph) == ["D", "E", "D"]

    def test_returns_none_for_diamond(self):
        graph = self._graph([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        assert detect_cycle(["A", "B", "C", "D"], graph) is None

    def test_cycle_path_excludes_lead_in(self):
        graph = self._graph([("S", "A"), ("A", "B"), ("B", "A")])
        assert detect_cycle(["S", "A", "B"], graph) == ["A", "B", "A"]

    def test_successor_missing_from_graph_is_leaf(self):
        graph = self._graph([("A", "ghost")])
        assert detect_cycle(["A"], graph) is None

    def test_deep_chain_does_not_hit_recursion_limit(self):
        names = [f"s{i}" for i in range(5000)]
        graph = {a: [b] for a, b in zip(names, names[1:])}
        assert detect_cycle(names, graph) is None
        graph[names[-1]] = [names[0]]
        cycle = detect_cycle(names, graph)
        assert cycle is not None
        assert cycle[0] == cycle[-1] == "s0"
        assert len(cycle) == 5001
