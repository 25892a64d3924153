"""Force-directed refinement — compaction and hub collision resolution.

Both phases take a position map and return a new one; the input map is
never mutated. All iteration is over node insertion order, so identical
input gives bit-identical output.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence

from hub_layout.config import LayoutConfig
from hub_layout.layout.types import Point

logger = logging.getLogger(__name__)


def min_spacing(degree_a: int, degree_b: int, config: LayoutConfig) -> float:
    """Degree-adaptive minimum distance between two hubs."""
    return min(config.min_spacing_base + (degree_a + degree_b) * config.density_factor, config.min_spacing_cap)


def point_segment_distance(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    """Distance from point P to segment AB."""
    dx = bx - ax
    dy = by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return math.hypot(px - ax, py - ay)
    t = ((px - ax) * dx + (py - ay) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def _unit(dx: float, dy: float) -> tuple[float, float, float]:
    """(ux, uy, length); coincident points get the +x direction."""
    length = math.hypot(dx, dy)
    if length == 0.0:
        return 1.0, 0.0, 0.0
    return dx / length, dy / length, length


def _index_edges(keys: list[str], edges: Sequence[tuple[str, str]]) -> list[tuple[int, int]]:
    index = {key: i for i, key in enumerate(keys)}
    pairs: list[tuple[int, int]] = []
    for src, tgt in edges:
        si = index.get(src)
        ti = index.get(tgt)
        if si is None or ti is None or si == ti:
            continue
        pairs.append((si, ti))
    return pairs


# ─── Force Compactor ──────────────────────────────────────────────────────────


def compact(
    positions: Mapping[str, Point],
    edges: Sequence[tuple[str, str]],
    config: LayoutConfig,
    degrees: Mapping[str, int] | None = None,
) -> dict[str, Point]:
    """Relax positions with repulsion, springs and neighbour-centroid pull.

    Per iteration:
      1. every hub pair repels with ``repulsion / max(d², 1)``;
      2. every edge pulls toward ``ideal_length`` with ``spring_constant × (d − ideal)``;
      3. graphs of at least ``large_graph_threshold`` hubs pull each hub a
         fraction ``centroid_pull`` toward the centroid of its neighbours;
      4. ``v = (v + F) × damping``, step clamped to ``max_step``, position clamped to the canvas;
      5. hubs closer than ``min_spacing`` are pushed apart by half the deficit each.
    """
    keys = list(positions)
    n = len(keys)
    xs = [positions[k].x for k in keys]
    ys = [positions[k].y for k in keys]
    if n == 0:
        return {}

    pairs = _index_edges(keys, edges)

    deg = [0] * n
    neighbors: list[dict[int, None]] = [{} for _ in range(n)]
    for si, ti in pairs:
        deg[si] += 1
        deg[ti] += 1
        neighbors[si][ti] = None
        neighbors[ti][si] = None
    if degrees is not None:
        deg = [degrees.get(k, d) for k, d in zip(keys, deg)]

    use_centroid = n >= config.large_graph_threshold
    lo_x, hi_x = config.hub_radius, config.canvas_width - config.hub_radius
    lo_y, hi_y = config.hub_radius, config.canvas_height - config.hub_radius

    vx = [0.0] * n
    vy = [0.0] * n

    for _iteration in range(config.iterations):
        fx = [0.0] * n
        fy = [0.0] * n

        # Repulsion.
        for i in range(n):
            for j in range(i + 1, n):
                ux, uy, dist = _unit(xs[i] - xs[j], ys[i] - ys[j])
                force = config.repulsion / max(dist * dist, 1.0)
                fx[i] += ux * force
                fy[i] += uy * force
                fx[j] -= ux * force
                fy[j] -= uy * force

        # Springs.
        for si, ti in pairs:
            ux, uy, dist = _unit(xs[ti] - xs[si], ys[ti] - ys[si])
            force = config.spring_constant * (dist - config.ideal_length)
            fx[si] += ux * force
            fy[si] += uy * force
            fx[ti] -= ux * force
            fy[ti] -= uy * force

        # Neighbour-centroid pull.
        if use_centroid:
            for i in range(n):
                nbs = neighbors[i]
                if not nbs:
                    continue
                cx = sum(xs[j] for j in nbs) / len(nbs)
                cy = sum(ys[j] for j in nbs) / len(nbs)
                fx[i] += (cx - xs[i]) * config.centroid_pull
                fy[i] += (cy - ys[i]) * config.centroid_pull

        # Integration.
        for i in range(n):
            vx[i] = (vx[i] + fx[i]) * config.damping
            vy[i] = (vy[i] + fy[i]) * config.damping
            speed = math.hypot(vx[i], vy[i])
            if speed > config.max_step:
                scale = config.max_step / speed
                vx[i] *= scale
                vy[i] *= scale
            xs[i] = min(max(xs[i] + vx[i], lo_x), hi_x)
            ys[i] = min(max(ys[i] + vy[i], lo_y), hi_y)

        # Hard minimum spacing.
        for i in range(n):
            for j in range(i + 1, n):
                ux, uy, dist = _unit(xs[j] - xs[i], ys[j] - ys[i])
                need = min_spacing(deg[i], deg[j], config)
                if dist >= need:
                    continue
                half = (need - dist) / 2.0
                xs[i] -= ux * half
                ys[i] -= uy * half
                xs[j] += ux * half
                ys[j] += uy * half

    logger.debug("compacted %d hubs over %d iterations", n, config.iterations)
    return {k: Point(x=xs[i], y=ys[i]) for i, k in enumerate(keys)}


# ─── Collision Resolver ───────────────────────────────────────────────────────


def _crossing_edges(
    a: int,
    b: int,
    xs: list[float],
    ys: list[float],
    pairs: list[tuple[int, int]],
    clearance: float,
) -> int:
    """Count edges not touching hub ``a`` or ``b`` that pass within ``clearance`` of either."""
    count = 0
    for si, ti in pairs:
        if si in (a, b) or ti in (a, b):
            continue
        for hub in (a, b):
            if point_segment_distance(xs[hub], ys[hub], xs[si], ys[si], xs[ti], ys[ti]) < clearance:
                count += 1
                break
    return count


def resolve_collisions(
    positions: Mapping[str, Point],
    edges: Sequence[tuple[str, str]],
    config: LayoutConfig,
) -> dict[str, Point]:
    """Separate close hub pairs that unrelated edges run through.

    A pair closer than ``collision_factor × hub_radius`` with ``k`` foreign
    edges passing within ``edge_clearance`` is sheared apart along the
    perpendicular of its connecting line by ``min(k × collision_step,
    collision_cap)``. Stops after the first pass that moves nothing.
    """
    keys = list(positions)
    n = len(keys)
    xs = [positions[k].x for k in keys]
    ys = [positions[k].y for k in keys]
    pairs = _index_edges(keys, edges)
    threshold = config.collision_factor * config.hub_radius

    passes_run = 0
    for _pass in range(config.collision_passes):
        passes_run += 1
        moved = False
        for i in range(n):
            for j in range(i + 1, n):
                ux, uy, dist = _unit(xs[j] - xs[i], ys[j] - ys[i])
                if dist >= threshold:
                    continue
                hits = _crossing_edges(i, j, xs, ys, pairs, config.edge_clearance)
                if hits == 0:
                    continue
                half = min(hits * config.collision_step, config.collision_cap) / 2.0
                px, py = -uy, ux
                xs[i] += px * half
                ys[i] += py * half
                xs[j] -= px * half
                ys[j] -= py * half
                moved = True
        if not moved:
            break

    logger.debug("collision resolver finished after %d pass(es)", passes_run)
    return {k: Point(x=xs[i], y=ys[i]) for i, k in enumerate(keys)}
