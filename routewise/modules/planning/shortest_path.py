"""
modules/planning/shortest_path.py
-----------------------------------
Single-source / single-target Dijkstra over a TravelGraph.

Only used for point-to-point questions; the multi-stop round trip is handled
by the nearest-neighbour router in route_planner.py.  All weights are travel
minutes (>= 0), so the classic relaxation is correct.

Ties on tentative distance are broken by push order, which keeps the result
stable within a call.
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass, field

from routewise.modules.planning.graph_builder import TravelGraph


@dataclass
class ShortestPath:
    path: list[str] = field(default_factory=list)
    total_weight: float = math.inf

    @property
    def reachable(self) -> bool:
        return math.isfinite(self.total_weight)


def shortest_path(graph: TravelGraph, start: str, end: str) -> ShortestPath:
    """
    Return the minimum-weight path from ``start`` to ``end``.

    Unknown or unreachable nodes give ``ShortestPath([], inf)``; never raises.
    """
    if start not in graph.adjacency or end not in graph.adjacency:
        return ShortestPath()
    if start == end:
        return ShortestPath(path=[start], total_weight=0.0)

    dist: dict[str, float] = {node: math.inf for node in graph.adjacency}
    prev: dict[str, str | None] = {node: None for node in graph.adjacency}
    dist[start] = 0.0
    visited: set[str] = set()
    counter = itertools.count()
    heap: list[tuple[float, int, str]] = [(0.0, next(counter), start)]

    while heap:
        d, _, current = heapq.heappop(heap)
        if current in visited:
            continue
        visited.add(current)
        if current == end:
            break
        for edge in graph.adjacency[current]:
            if edge.to in visited:
                continue
            candidate = d + edge.weight_minutes
            if candidate < dist[edge.to]:
                dist[edge.to] = candidate
                prev[edge.to] = current
                heapq.heappush(heap, (candidate, next(counter), edge.to))

    if not math.isfinite(dist[end]):
        return ShortestPath()

    path: list[str] = []
    node: str | None = end
    while node is not None:
        path.append(node)
        node = prev[node]
    path.reverse()
    return ShortestPath(path=path, total_weight=dist[end])
