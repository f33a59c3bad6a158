"""
modules/planning/route_planner.py
-----------------------------------
Single-route planner: visiting order + segment metrics for one set of stops.

Architecture:
  - Primary solver: greedy nearest neighbour over the TravelGraph, anchored at
    the lodging (round trip lodging → N stops → lodging).
  - preserve_order: stops connected in the caller's order (simple path).
  - point_to_point: Dijkstra between two nodes of the same graph.

Per route:
  1. build_graph() — validated nodes, complete graph, excluded ids.
  2. Order the stops (nearest neighbour / caller order / Dijkstra path).
  3. Close the loop back to the lodging unless the last stop sits on it.
  4. Optionally refine each segment with a live provider, concurrently,
     under one deadline; unresolved segments keep the estimate.

The order is always decided on haversine distances, so the same input gives
the same order whether or not a live provider is configured.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional

from routewise import config
from routewise.db.redis_client import RouteCache
from routewise.modules.observability.logger import get_event_log
from routewise.modules.planning.graph_builder import InsufficientData, TravelGraph, build_graph
from routewise.modules.planning.shortest_path import shortest_path
from routewise.modules.tool_usage.directions_tool import (
    DirectionsTool,
    LiveRoute,
    RouteProviderChain,
    RouteProviderConfig,
)
from routewise.modules.tool_usage.distance_tool import DistanceTool
from routewise.schemas.itinerary import (
    LODGING_ID,
    DataSource,
    Lodging,
    NodeRef,
    PointOfInterest,
    RouteAlgorithm,
    RouteResult,
    RouteSegment,
)

logger = logging.getLogger(__name__)
_events = get_event_log()

_NO_POINTS = "No attractions with a valid location"
_INSUFFICIENT = "Insufficient data to build route"


# ── Graph walkers ─────────────────────────────────────────────────────────────

def _segment(graph: TravelGraph, from_id: str, to_id: str) -> RouteSegment:
    edge = graph.edge(from_id, to_id)
    if edge is None:
        raise KeyError(f"no edge {from_id!r} -> {to_id!r}")
    return RouteSegment(
        from_node=graph.node(from_id),
        to_node=graph.node(to_id),
        distance_km=edge.distance_km,
        duration_minutes=edge.weight_minutes,
    )


def nearest_neighbor_order(graph: TravelGraph) -> list[str]:
    """
    Greedy visiting order over every non-lodging node.

    Starts at the lodging when the graph has one, otherwise at the first
    point in input order (which is then the first stop).  Ties go to the
    earliest candidate in input order.
    """
    candidates = [n.id for n in graph.nodes if n.id != LODGING_ID]
    if not candidates:
        return []

    if graph.has_lodging:
        current = LODGING_ID
        order: list[str] = []
    else:
        current = candidates.pop(0)
        order = [current]

    unvisited = candidates
    while unvisited:
        dist = {e.to: e.distance_km for e in graph.adjacency[current]}
        nearest = unvisited[0]
        for cand in unvisited[1:]:
            if dist[cand] < dist[nearest]:
                nearest = cand
        unvisited.remove(nearest)
        order.append(nearest)
        current = nearest
    return order


def _chain_segments(graph: TravelGraph, stop_ids: list[str]) -> list[RouteSegment]:
    """Outbound segments from the lodging (if any) through ``stop_ids``."""
    path = ([LODGING_ID] if graph.has_lodging else []) + stop_ids
    return [_segment(graph, a, b) for a, b in zip(path, path[1:])]


def nearest_neighbor_route(
    points: list[PointOfInterest],
    lodging: Optional[Lodging] = None,
    distance_tool: DistanceTool | None = None,
) -> list[RouteSegment]:
    """
    Outbound nearest-neighbour segments only.  The closing leg back to the
    lodging is added by RoutePlanner (see _close_loop).  Fewer than two
    usable nodes gives an empty list.
    """
    graph = build_graph(points, lodging, distance_tool)
    if isinstance(graph, InsufficientData):
        return []
    return _chain_segments(graph, nearest_neighbor_order(graph))


def _close_loop(graph: TravelGraph, segments: list[RouteSegment]) -> None:
    """Append last → lodging unless the last stop is coordinate-identical to it."""
    if not graph.has_lodging or not segments:
        return
    last = segments[-1].to_node
    lodging = graph.node(LODGING_ID)
    if last.id == LODGING_ID or last.location == lodging.location:
        return
    segments.append(_segment(graph, last.id, LODGING_ID))


# ── RoutePlanner ──────────────────────────────────────────────────────────────

class RoutePlanner:
    """
    Computes one route (normally one day) for a set of points and an optional
    lodging.  Stateless between calls; every call builds its own graph.
    """

    def __init__(
        self,
        distance_tool: DistanceTool | None = None,
        route_provider: RouteProviderChain | None = None,
        max_concurrency: int = 4,
        deadline_s: float = 20.0,
    ):
        self.distance_tool  = distance_tool or DistanceTool()
        self.route_provider = route_provider
        self.max_concurrency = max(1, max_concurrency)
        self.deadline_s      = deadline_s

    @classmethod
    def from_config(cls) -> "RoutePlanner":
        """Planner wired from environment: live provider only when a key is set."""
        provider_config = RouteProviderConfig.from_env()
        directions = DirectionsTool(provider_config)
        chain = None
        if directions.available:
            cache = RouteCache() if config.ROUTE_CACHE_ENABLED else None
            chain = RouteProviderChain([directions], cache=cache)
        return cls(
            route_provider=chain,
            max_concurrency=provider_config.max_concurrency,
            deadline_s=provider_config.day_deadline_s,
        )

    # ── Public entry points ───────────────────────────────────────────────────

    def optimize_route(
        self,
        points: list[PointOfInterest],
        lodging: Optional[Lodging] = None,
        preserve_order: bool = False,
    ) -> RouteResult:
        """
        Round trip (lodging present) or open path (no lodging) through every
        point with a valid location.

        Args:
            points:         Candidate stops; invalid locations are excluded.
            lodging:        Anchor of the round trip.  Optional.
            preserve_order: Keep the caller's order instead of nearest neighbour.

        Returns:
            RouteResult — empty with algorithm=none when fewer than two
            usable nodes exist (never raises for that case).
        """
        with _events.timed("RoutePlanner.optimize_route") as perf:
            result = self._optimize(points, lodging, preserve_order)
            perf["algorithm"] = result.algorithm.value
            perf["stops"] = len(result.visit_order)
        return result

    def _optimize(
        self,
        points: list[PointOfInterest],
        lodging: Optional[Lodging],
        preserve_order: bool,
    ) -> RouteResult:
        graph = build_graph(points, lodging, self.distance_tool)

        if isinstance(graph, InsufficientData):
            has_points = any(n.id != LODGING_ID for n in graph.nodes)
            return RouteResult(
                excluded_ids=list(graph.excluded_ids),
                error=_INSUFFICIENT if has_points else _NO_POINTS,
            )

        if preserve_order:
            stop_ids = [n.id for n in graph.nodes if n.id != LODGING_ID]
            algorithm = RouteAlgorithm.SIMPLE_PATH
        else:
            stop_ids = nearest_neighbor_order(graph)
            algorithm = RouteAlgorithm.NEAREST_NEIGHBOR

        segments = _chain_segments(graph, stop_ids)
        _close_loop(graph, segments)

        result = RouteResult(
            route=segments,
            algorithm=algorithm,
            visit_order=stop_ids,
            excluded_ids=list(graph.excluded_ids),
        )
        result.data_source = self._apply_live_metrics(segments)
        result.recompute_totals()
        return result

    def point_to_point(
        self,
        points: list[PointOfInterest],
        lodging: Optional[Lodging],
        start_id: str,
        end_id: str,
    ) -> RouteResult:
        """Dijkstra between two nodes of the graph built from points + lodging."""
        graph = build_graph(points, lodging, self.distance_tool)
        if isinstance(graph, InsufficientData):
            return RouteResult(excluded_ids=list(graph.excluded_ids), error=_INSUFFICIENT)

        answer = shortest_path(graph, start_id, end_id)
        if not answer.reachable:
            return RouteResult(
                excluded_ids=list(graph.excluded_ids),
                error=f"No route from {start_id!r} to {end_id!r}",
            )

        segments = [_segment(graph, a, b) for a, b in zip(answer.path, answer.path[1:])]
        result = RouteResult(
            route=segments,
            algorithm=RouteAlgorithm.DIJKSTRA,
            visit_order=[p for p in answer.path if p != LODGING_ID],
            excluded_ids=list(graph.excluded_ids),
        )
        result.data_source = self._apply_live_metrics(segments)
        result.recompute_totals()
        return result

    # ── Live refinement ───────────────────────────────────────────────────────

    def _apply_live_metrics(self, segments: list[RouteSegment]) -> DataSource:
        """
        Replace estimated metrics with live ones where the provider answers
        before the deadline.  Segments are mutated in place.
        """
        provider = self.route_provider
        if provider is None or not provider.available or not segments:
            return DataSource.ESTIMATE

        live = 0
        pool = ThreadPoolExecutor(max_workers=min(self.max_concurrency, len(segments)))
        try:
            futures = {
                pool.submit(provider.resolve, s.from_node.location, s.to_node.location): s
                for s in segments
            }
            done, pending = wait(futures, timeout=self.deadline_s)
            for fut in done:
                if fut.exception() is not None:
                    logger.warning("live lookup raised %r; keeping estimate", fut.exception())
                    continue
                answer = fut.result()
                if isinstance(answer, LiveRoute):
                    seg = futures[fut]
                    seg.distance_km = answer.distance_km
                    seg.duration_minutes = answer.duration_minutes
                    seg.instructions = list(answer.instructions)
                    seg.polyline = answer.polyline
                    seg.source = DataSource.LIVE
                    live += 1
            if pending:
                logger.warning(
                    "live routing deadline (%.1fs) hit: %d/%d segment(s) fall back to estimate",
                    self.deadline_s, len(pending), len(segments),
                )
                _events.log("ROUTE_FALLBACK", {
                    "reason": "deadline",
                    "pending": len(pending),
                    "segments": len(segments),
                })
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if live == 0:
            return DataSource.ESTIMATE
        return DataSource.LIVE if live == len(segments) else DataSource.MIXED


def route_segment_between(a: NodeRef, b: NodeRef, distance_tool: DistanceTool | None = None) -> RouteSegment:
    """Estimated segment for an ad-hoc pair (route details endpoint)."""
    tool = distance_tool or DistanceTool()
    km = tool.distance_km(a.location, b.location)
    return RouteSegment(from_node=a, to_node=b, distance_km=km,
                        duration_minutes=tool.minutes_for_distance(km))
