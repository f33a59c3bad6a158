"""Dijkstra on hand-built (non-complete) graphs."""

from __future__ import annotations

import math

from routewise.modules.planning.graph_builder import Edge, TravelGraph
from routewise.modules.planning.shortest_path import shortest_path


def _graph(edges: dict[str, list[tuple[str, float]]]) -> TravelGraph:
    return TravelGraph(
        adjacency={
            node: tuple(Edge(to=to, weight_minutes=w, distance_km=w / 2.0) for to, w in out)
            for node, out in edges.items()
        },
        nodes=(),
    )


GRAPH = _graph({
    "a": [("b", 5.0), ("c", 20.0)],
    "b": [("c", 5.0), ("d", 1.0)],
    "c": [],
    "d": [("c", 10.0)],
})


def test_prefers_cheaper_indirect_path():
    answer = shortest_path(GRAPH, "a", "c")
    assert answer.path == ["a", "b", "c"]
    assert answer.total_weight == 10.0
    assert answer.reachable


def test_start_equals_end():
    answer = shortest_path(GRAPH, "b", "b")
    assert answer.path == ["b"]
    assert answer.total_weight == 0.0


def test_unreachable_target():
    answer = shortest_path(GRAPH, "c", "a")
    assert answer.path == []
    assert math.isinf(answer.total_weight)
    assert not answer.reachable


def test_unknown_nodes_never_raise():
    assert shortest_path(GRAPH, "a", "zzz").path == []
    assert math.isinf(shortest_path(GRAPH, "zzz", "a").total_weight)


def test_zero_weight_edges():
    g = _graph({"x": [("y", 0.0)], "y": [("z", 0.0)], "z": []})
    answer = shortest_path(g, "x", "z")
    assert answer.path == ["x", "y", "z"]
    assert answer.total_weight == 0.0
