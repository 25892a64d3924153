"""Layering phases — cluster decomposition, level assignment, crossing reduction
and the initial grid placement.

Phases:
  1. Cluster finder   (connected components, explicit-stack DFS)
  2. Level assigner   (Kahn longest-path layering + cycle relaxation)
  3. Crossing reducer (barycenter heuristic)
  4. Grid placer      (coarse space-filling placement of clusters)
"""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Iterable, Sequence

import networkx as nx

from hub_layout.graph import HubGraph
from hub_layout.layout.types import Point

logger = logging.getLogger(__name__)

# ─── Cluster Finder ───────────────────────────────────────────────────────────


def find_clusters(nodes: Iterable[str], adjacency: nx.Graph) -> list[list[str]]:
    """Partition nodes into connected components of the undirected adjacency.

    Clusters come out in the order their first node appears in ``nodes``;
    members in discovery order. Uses an explicit stack so deep chains do not
    hit the recursion limit.
    """
    visited: set[str] = set()
    clusters: list[list[str]] = []

    for seed in nodes:
        if seed in visited:
            continue
        cluster: list[str] = []
        stack: list[str] = [seed]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            cluster.append(node)
            if node not in adjacency:
                continue
            # Reversed so the first neighbour is popped first.
            for nb in reversed(list(adjacency.neighbors(node))):
                if nb not in visited:
                    stack.append(nb)
        clusters.append(cluster)

    return clusters


def cluster_edges(graph: HubGraph, cluster: Sequence[str]) -> list[tuple[str, str]]:
    """Directed (source, target) pairs of every edge inside ``cluster``, in graph order."""
    members = set(cluster)
    return [(e.source, e.target) for e in graph.edges if e.source in members and e.target in members]


# ─── Level Assignment ─────────────────────────────────────────────────────────


def level_violations(levels: dict[str, int], edges: Iterable[tuple[str, str]]) -> int:
    """Number of edges whose target is not strictly right of its source."""
    return sum(1 for src, tgt in edges if levels[tgt] <= levels[src])


def relax_levels(levels: dict[str, int], edges: Sequence[tuple[str, str]], passes: int) -> dict[str, int]:
    """Force ``level(to) > level(from)`` edge by edge, ``passes`` times.

    Cycles can never be fully satisfied; this only pulls them into a
    left-to-right gradient.
    """
    relaxed = dict(levels)
    for _pass in range(passes):
        for src, tgt in edges:
            if relaxed[tgt] <= relaxed[src]:
                relaxed[tgt] = relaxed[src] + 1
    return relaxed


def longest_path_levels(cluster: Sequence[str], edges: Sequence[tuple[str, str]]) -> dict[str, int]:
    """Kahn-order longest-path layering. Nodes never reached stay at level 0."""
    in_deg: dict[str, int] = dict.fromkeys(cluster, 0)
    successors: dict[str, list[str]] = {node: [] for node in cluster}
    for src, tgt in edges:
        in_deg[tgt] += 1
        successors[src].append(tgt)

    levels: dict[str, int] = {}
    queue: deque[str] = deque()
    for node in cluster:
        if in_deg[node] == 0:
            levels[node] = 0
            queue.append(node)

    while queue:
        node = queue.popleft()
        level = levels[node]
        for succ in successors[node]:
            levels[succ] = max(levels.get(succ, 0), level + 1)
            in_deg[succ] -= 1
            if in_deg[succ] == 0:
                queue.append(succ)

    for node in cluster:
        levels.setdefault(node, 0)
    return levels


def bucket_levels(cluster: Sequence[str], levels: dict[str, int]) -> list[list[str]]:
    """Group nodes by level, compressing unused level numbers, keeping cluster order."""
    distinct = sorted(set(levels[node] for node in cluster))
    index = {level: i for i, level in enumerate(distinct)}
    buckets: list[list[str]] = [[] for _ in distinct]
    for node in cluster:
        buckets[index[levels[node]]].append(node)
    return buckets


class LevelAssignment:
    """Result of level assignment for one cluster.

    Attributes:
        levels: Maps node key → raw level number after relaxation.
        order: Nodes bucketed by level, left to right.
        violations: Edges still pointing backwards after relaxation.
    """

    def __init__(self, levels: dict[str, int], order: list[list[str]], violations: int) -> None:
        self.levels = levels
        self.order = order
        self.violations = violations

    @classmethod
    def assign(cls, cluster: Sequence[str], edges: Sequence[tuple[str, str]], passes: int = 4) -> LevelAssignment:
        levels = longest_path_levels(cluster, edges)
        levels = relax_levels(levels, edges, passes)
        return cls(
            levels=levels,
            order=bucket_levels(cluster, levels),
            violations=level_violations(levels, edges),
        )


# ─── Crossing Reduction (Barycenter) ──────────────────────────────────────────


def _barycenter(node: str, adjacency: nx.Graph, neighbor_pos: dict[str, float]) -> float:
    """Mean order index of a node's neighbours in the adjacent level, 0 if it has none."""
    if node not in adjacency:
        return 0.0
    positions = [neighbor_pos[nb] for nb in adjacency.neighbors(node) if nb in neighbor_pos]
    if not positions:
        return 0.0
    return sum(positions) / len(positions)


def reduce_crossings(levels: Sequence[Sequence[str]], adjacency: nx.Graph, passes: int = 4) -> list[list[str]]:
    """Reorder nodes within levels with ``passes`` top-down + bottom-up barycenter sweeps.

    Sorting is stable, so ties keep their current order.
    """
    ordering: list[list[str]] = [list(level) for level in levels]
    level_count = len(ordering)

    for _pass in range(passes):
        for idx in range(1, level_count):
            prev = {nid: float(i) for i, nid in enumerate(ordering[idx - 1])}
            ordering[idx].sort(key=lambda n, p=prev: _barycenter(n, adjacency, p))

        for idx in range(level_count - 2, -1, -1):
            nxt = {nid: float(i) for i, nid in enumerate(ordering[idx + 1])}
            ordering[idx].sort(key=lambda n, p=nxt: _barycenter(n, adjacency, p))

    return ordering


# ─── Grid Placement ───────────────────────────────────────────────────────────


def place_grid(
    cluster_levels: Sequence[Sequence[Sequence[str]]],
    width: float,
    height: float,
    padding: float,
) -> dict[str, Point]:
    """Initial position of every node: clusters on a square grid, levels across each cell.

    Within a cell, level ``i`` of ``L`` sits at ``(i + 0.5) / L`` of the cell
    width and node ``j`` of a level of ``n`` at ``(j + 0.5) / n`` of its height,
    so a single-node cluster lands in the middle of its cell.
    """
    positions: dict[str, Point] = {}
    count = len(cluster_levels)
    if count == 0:
        return positions

    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    inner_w = max(width - 2 * padding, 1.0)
    inner_h = max(height - 2 * padding, 1.0)
    cell_w = inner_w / cols
    cell_h = inner_h / rows

    for ci, levels in enumerate(cluster_levels):
        x0 = padding + (ci % cols) * cell_w
        y0 = padding + (ci // cols) * cell_h
        level_count = len(levels)
        for li, level in enumerate(levels):
            x = x0 + cell_w * (li + 0.5) / level_count
            size = len(level)
            for ni, node in enumerate(level):
                positions[node] = Point(x=x, y=y0 + cell_h * (ni + 0.5) / size)

    logger.debug("grid placement: %d clusters on a %dx%d grid", count, cols, rows)
    return positions
