"""Port placement — angular distribution of edge anchors around each hub.

Every edge gets one anchor per side on a circle around its hub. Anchors
point toward the edge's other endpoint; when two anchors on the same hub
come closer than the minimum separation, the ring is cut at its widest gap,
unwrapped into a monotone sequence and pushed apart until every gap holds.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence

from hub_layout.config import LayoutConfig
from hub_layout.graph import Edge
from hub_layout.layout.types import Point

logger = logging.getLogger(__name__)

TAU = 2.0 * math.pi
OUTGOING = "outgoing"
INCOMING = "incoming"

_EPS = 1e-12
# Headroom below the even share so a ring of n anchors still clears the
# minimum after angles are wrapped back into [0, 2π).
_SHARE_SLACK = 1e-9
_RELAX_ROUNDS = 64


def port_min_separation(group_count: int, config: LayoutConfig) -> float:
    """Minimum angular gap between anchors on a hub with ``group_count`` anchor groups.

    Shrinks with hub degree and never drops below ``port_separation_floor``,
    except past about 52 groups, where the even share ``2π / n`` (less a tiny
    slack) is smaller than the floor and wins so the minimum stays satisfiable.
    """
    if group_count <= 0:
        return 0.0
    share = TAU / group_count
    sep = min(config.port_min_separation, 0.9 * share)
    sep = max(sep, config.port_separation_floor)
    return min(sep, share - _SHARE_SLACK)


def spread_angles(angles: Sequence[float], min_sep: float) -> list[float]:
    """Return angles (same order as given, in [0, 2π)) with every circular gap ≥ ``min_sep``.

    Angles already far enough apart are returned unchanged (normalized).
    """
    n = len(angles)
    normalized = [a % TAU for a in angles]
    if n < 2 or min_sep <= 0.0:
        return normalized

    order = sorted(range(n), key=lambda i: (normalized[i], i))
    ring = [normalized[i] for i in order]

    gaps = [ring[k + 1] - ring[k] for k in range(n - 1)]
    gaps.append(ring[0] + TAU - ring[-1])
    if min(gaps) >= min_sep:
        return normalized

    # Aim slightly above the minimum so rounding in the final wrap cannot undercut it.
    target = min_sep + _EPS

    # Cut at the widest gap and unwrap from there.
    cut = max(range(n), key=lambda k: (gaps[k], -k))
    start = (cut + 1) % n
    seq: list[float] = []
    for m in range(n):
        a = ring[(start + m) % n]
        while seq and a < seq[-1]:
            a += TAU
        seq.append(a)

    # Symmetric relaxation: push each crowded pair apart by half the deficit each.
    for _round in range(_RELAX_ROUNDS):
        changed = False
        for m in range(1, n):
            gap = seq[m] - seq[m - 1]
            if gap < target:
                push = (target - gap) / 2.0
                seq[m - 1] -= push
                seq[m] += push
                changed = True
        if not changed:
            break

    for m in range(1, n):
        if seq[m] - seq[m - 1] < target:
            seq[m] = seq[m - 1] + target

    if seq[0] + TAU - seq[-1] < target:
        # Span does not fit: fall back to an even ring around the same mean.
        step = TAU / n
        base = sum(seq) / n - step * (n - 1) / 2.0
        seq = [base + m * step for m in range(n)]

    result = list(normalized)
    for m in range(n):
        result[order[(start + m) % n]] = seq[m] % TAU
    return result


def _group_key(edge: Edge, hub: str, other: str, side: str, decoupled: bool) -> tuple[str, str]:
    """Anchor group of an edge on one hub.

    Coupled edges share an anchor per physical entrance; one-way edges (and
    every edge in decoupled mode) group by the hub on the far end so parallel
    one-way links don't splinter into separate anchors.
    """
    entrance = edge.endpoint_entrance(side)
    if not edge.directed and not decoupled and entrance is not None:
        return hub, f"entrance:{entrance}"
    return hub, f"hub:{other}"


def place_ports(
    positions: Mapping[str, Point],
    edges: Sequence[Edge],
    radius: float,
    direction: str,
    config: LayoutConfig,
    decoupled: bool = False,
) -> dict[str, Point]:
    """Anchor point for every edge on the given side, keyed by edge id.

    ``direction`` is OUTGOING (anchors on the source hub) or INCOMING
    (anchors on the target hub). Edges whose endpoints have no position are
    skipped.
    """
    if direction not in (OUTGOING, INCOMING):
        raise ValueError(f"direction must be {OUTGOING!r} or {INCOMING!r}, got {direction!r}")
    side = "from" if direction == OUTGOING else "to"

    # hub → group key → [(edge id, other hub)], insertion ordered.
    by_hub: dict[str, dict[tuple[str, str], list[tuple[str, str]]]] = {}
    for edge in edges:
        hub, other = (edge.source, edge.target) if direction == OUTGOING else (edge.target, edge.source)
        if hub not in positions or other not in positions:
            continue
        key = _group_key(edge, hub, other, side, decoupled)
        by_hub.setdefault(hub, {}).setdefault(key, []).append((edge.id, other))

    ports: dict[str, Point] = {}
    for hub, groups in by_hub.items():
        centre = positions[hub]
        members = list(groups.values())

        angles: list[float] = []
        for group in members:
            cx = sum(positions[other].x for _, other in group) / len(group)
            cy = sum(positions[other].y for _, other in group) / len(group)
            dx, dy = cx - centre.x, cy - centre.y
            angles.append(math.atan2(dy, dx) if (dx or dy) else 0.0)

        min_sep = port_min_separation(len(members), config)
        spread = spread_angles(angles, min_sep)

        for group, angle in zip(members, spread):
            anchor = Point(x=centre.x + radius * math.cos(angle), y=centre.y + radius * math.sin(angle))
            for eid, _ in group:
                ports[eid] = anchor

    logger.debug("placed %d %s port(s) on %d hub(s)", len(ports), direction, len(by_hub))
    return ports
