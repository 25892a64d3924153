"""Label placement — greedy placement of edge labels against an occupancy grid."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping, Sequence

from hub_layout.config import LayoutConfig
from hub_layout.graph import Edge
from hub_layout.layout.types import SOURCE_SIDE, TARGET_SIDE, LabelAnchor, Point

logger = logging.getLogger(__name__)


class OccupancyGrid:
    """Coarse set of occupied cells keyed by rounded cell coordinates."""

    def __init__(self, cell: float) -> None:
        self.cell = cell
        self.occupied: set[tuple[int, int]] = set()

    def key(self, x: float, y: float) -> tuple[int, int]:
        return (math.floor(x / self.cell + 0.5), math.floor(y / self.cell + 0.5))

    def footprint(self, x: float, y: float, width: float, height: float) -> list[tuple[int, int]]:
        """Cells covered by a ``width × height`` box centred on (x, y)."""
        x0, y0 = self.key(x - width / 2.0, y - height / 2.0)
        x1, y1 = self.key(x + width / 2.0, y + height / 2.0)
        return [(cx, cy) for cx in range(x0, x1 + 1) for cy in range(y0, y1 + 1)]

    def is_free(self, cells: Sequence[tuple[int, int]]) -> bool:
        return not any(c in self.occupied for c in cells)

    def mark(self, cells: Sequence[tuple[int, int]]) -> None:
        self.occupied.update(cells)

    def mark_point(self, x: float, y: float) -> None:
        self.occupied.add(self.key(x, y))

    def mark_disc(self, x: float, y: float, radius: float) -> None:
        """Mark every cell whose centre lies within ``radius`` of (x, y)."""
        kx0, ky0 = self.key(x - radius, y - radius)
        kx1, ky1 = self.key(x + radius, y + radius)
        r_sq = radius * radius
        for cx in range(kx0, kx1 + 1):
            for cy in range(ky0, ky1 + 1):
                dx = cx * self.cell - x
                dy = cy * self.cell - y
                if dx * dx + dy * dy <= r_sq:
                    self.occupied.add((cx, cy))


def label_size(text: str, config: LayoutConfig) -> tuple[float, float]:
    """Approximate (width, height) of a single-line label."""
    return len(text) * config.char_width, config.label_cell


def _candidates(base: Point, perp: tuple[float, float], step: float, max_steps: int) -> Iterator[Point]:
    """Offsets +1, −1, +2, −2, … ±max_steps cells along ``perp``."""
    for k in range(1, max_steps + 1):
        for sign in (1, -1):
            offset = sign * k * step
            yield Point(x=base.x + perp[0] * offset, y=base.y + perp[1] * offset)


def _clears_hubs(p: Point, hubs: Sequence[Point], min_dist: float) -> bool:
    return all(math.hypot(p.x - h.x, p.y - h.y) > min_dist for h in hubs)


def _label_jobs(
    edges: Sequence[Edge],
    out_ports: Mapping[str, Point],
    in_ports: Mapping[str, Point],
) -> Iterator[tuple[str, str, str, str, Point]]:
    """(edge id, side, text, hub key, port) for every label that has text and a port."""
    for edge in edges:
        if edge.label and edge.id in out_ports:
            yield edge.id, SOURCE_SIDE, edge.label, edge.source, out_ports[edge.id]
        if edge.reverse_label and edge.id in in_ports:
            yield edge.id, TARGET_SIDE, edge.reverse_label, edge.target, in_ports[edge.id]


def place_labels(
    edges: Sequence[Edge],
    positions: Mapping[str, Point],
    out_ports: Mapping[str, Point],
    in_ports: Mapping[str, Point],
    config: LayoutConfig,
) -> list[LabelAnchor]:
    """Place one anchor per edge label, avoiding hubs, ports and earlier labels.

    The base point sits ``label_gap`` outside the port, pushed out by half
    the label size so the text grows away from its hub. Candidates step
    along the perpendicular of the port direction; the first one clear of
    every hub and free in the grid wins. When none is free the +1 offset is
    used anyway.
    """
    grid = OccupancyGrid(config.label_cell)
    hubs = list(positions.values())
    for hub in hubs:
        grid.mark_disc(hub.x, hub.y, config.hub_radius)
    for port in list(out_ports.values()) + list(in_ports.values()):
        grid.mark_point(port.x, port.y)

    min_hub_dist = config.hub_radius + config.label_margin
    anchors: list[LabelAnchor] = []
    fallbacks = 0

    for eid, side, text, hub_key, port in _label_jobs(edges, out_ports, in_ports):
        hub = positions.get(hub_key)
        if hub is None:
            continue
        dx, dy = port.x - hub.x, port.y - hub.y
        length = math.hypot(dx, dy)
        ux, uy = (dx / length, dy / length) if length else (1.0, 0.0)

        width, height = label_size(text, config)
        base = Point(
            x=port.x + ux * (config.label_gap + width / 2.0),
            y=port.y + uy * (config.label_gap + height / 2.0),
        )
        perp = (-uy, ux)

        chosen: Point | None = None
        first: Point | None = None
        for cand in _candidates(base, perp, config.label_cell, config.label_max_steps):
            if first is None:
                first = cand
            if not _clears_hubs(cand, hubs, min_hub_dist):
                continue
            if grid.is_free(grid.footprint(cand.x, cand.y, width, height)):
                chosen = cand
                break

        if chosen is None:
            fallbacks += 1
            chosen = first if first is not None else base

        grid.mark(grid.footprint(chosen.x, chosen.y, width, height))
        anchors.append(LabelAnchor(edge_id=eid, side=side, x=chosen.x, y=chosen.y, text=text))

    logger.debug("placed %d label(s), %d without a free cell", len(anchors), fallbacks)
    return anchors
