"""
modules/planning/graph_builder.py
-----------------------------------
Lodging + points of interest → complete weighted directed graph.

  Nodes : lodging (if it has a valid location) + every point with a valid location
  Edges : every ordered pair, self-loops excluded
  Weight: estimated travel minutes (DistanceTool), distance_km kept alongside

Invalid points are left out of the node set and reported in ``excluded_ids``.
Fewer than two usable nodes yields ``InsufficientData`` instead of a graph.
The result is read-only; solvers never mutate it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Union

from routewise.modules.tool_usage.distance_tool import DistanceTool
from routewise.schemas.itinerary import LODGING_ID, Lodging, NodeRef, PointOfInterest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    to: str
    weight_minutes: float
    distance_km: float


@dataclass(frozen=True)
class TravelGraph:
    adjacency: Mapping[str, tuple[Edge, ...]]
    nodes: tuple[NodeRef, ...]
    excluded_ids: tuple[str, ...] = ()

    def node(self, node_id: str) -> Optional[NodeRef]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def edge(self, from_id: str, to_id: str) -> Optional[Edge]:
        for e in self.adjacency.get(from_id, ()):
            if e.to == to_id:
                return e
        return None

    @property
    def has_lodging(self) -> bool:
        return LODGING_ID in self.adjacency


@dataclass(frozen=True)
class InsufficientData:
    """Fewer than two valid nodes: a route cannot be built (not an error)."""
    nodes: tuple[NodeRef, ...] = ()
    excluded_ids: tuple[str, ...] = ()
    reason: str = "Insufficient data to build route"


GraphBuildResult = Union[TravelGraph, InsufficientData]


@dataclass
class _NodeSplit:
    nodes: list[NodeRef] = field(default_factory=list)
    excluded_ids: list[str] = field(default_factory=list)


def split_valid_nodes(
    points: list[PointOfInterest],
    lodging: Optional[Lodging] = None,
) -> _NodeSplit:
    """
    Separate routable nodes from points without a usable location.
    Lodging (when valid) is always the first node.
    """
    split = _NodeSplit()
    seen: set[str] = {LODGING_ID}

    if lodging is not None:
        if lodging.has_location:
            split.nodes.append(NodeRef.of(lodging))
        else:
            split.excluded_ids.append(lodging.id)

    for p in points:
        if p.id in seen:
            raise ValueError(
                f"duplicate node id {p.id!r} (ids must be unique; {LODGING_ID!r} is reserved)"
            )
        seen.add(p.id)
        if p.has_location:
            split.nodes.append(NodeRef.of(p))
        else:
            split.excluded_ids.append(p.id)
    return split


def build_graph(
    points: list[PointOfInterest],
    lodging: Optional[Lodging] = None,
    distance_tool: Optional[DistanceTool] = None,
) -> GraphBuildResult:
    """
    Build the complete travel graph for one optimisation call.

    Deterministic: the same points (by id) and coordinates always yield the
    same graph; no randomness and no external calls.
    """
    tool = distance_tool or DistanceTool()
    split = split_valid_nodes(points, lodging)

    if split.excluded_ids:
        logger.info("graph: excluded %d node(s) without a valid location: %s",
                    len(split.excluded_ids), ", ".join(split.excluded_ids))

    if len(split.nodes) < 2:
        return InsufficientData(nodes=tuple(split.nodes), excluded_ids=tuple(split.excluded_ids))

    matrix = tool.distance_matrix([n.location for n in split.nodes])
    adjacency: dict[str, tuple[Edge, ...]] = {}
    for i, a in enumerate(split.nodes):
        adjacency[a.id] = tuple(
            Edge(to=b.id, weight_minutes=tool.minutes_for_distance(matrix[i][j]), distance_km=matrix[i][j])
            for j, b in enumerate(split.nodes)
            if j != i
        )

    return TravelGraph(
        adjacency=MappingProxyType(adjacency),
        nodes=tuple(split.nodes),
        excluded_ids=tuple(split.excluded_ids),
    )
