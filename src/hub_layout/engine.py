"""Full layout pipeline and the stateful engine wrapped around it.

Pipeline:
  connections → build_graph → find_clusters → (per cluster) LevelAssignment
  → reduce_crossings → place_grid → compact → resolve_collisions
  → place_ports (outgoing, incoming) → place_labels
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from hub_layout.config import LayoutConfig
from hub_layout.graph import Connection, build_graph
from hub_layout.layout.forces import compact, resolve_collisions
from hub_layout.layout.labels import place_labels
from hub_layout.layout.layering import LevelAssignment, cluster_edges, find_clusters, place_grid, reduce_crossings
from hub_layout.layout.ports import INCOMING, OUTGOING, place_ports
from hub_layout.layout.types import LayoutResult, Point, ViewBox

logger = logging.getLogger(__name__)

LOCATE_SIZE = 600.0


def layout_connections(
    records: Iterable[Connection | Mapping[str, Any]],
    decoupled: bool = False,
    canvas_width: float | None = None,
    canvas_height: float | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Run the whole pipeline once and return positions, ports and label anchors.

    Returns an empty result when no record yields a usable edge.
    """
    cfg = config or LayoutConfig()
    if canvas_width is not None:
        cfg = replace(cfg, canvas_width=float(canvas_width))
    if canvas_height is not None:
        cfg = replace(cfg, canvas_height=float(canvas_height))

    graph = build_graph(records, decoupled=decoupled, config=cfg)
    if not graph.edges:
        logger.debug("no usable edges, returning empty layout")
        return LayoutResult(graph=graph)

    adjacency = graph.undirected()
    clusters = find_clusters(graph.nodes, adjacency)

    cluster_levels: list[list[list[str]]] = []
    for cluster in clusters:
        la = LevelAssignment.assign(cluster, cluster_edges(graph, cluster), cfg.level_relax_passes)
        cluster_levels.append(reduce_crossings(la.order, adjacency, cfg.crossing_passes))

    positions = place_grid(cluster_levels, cfg.canvas_width, cfg.canvas_height, cfg.padding)

    pairs = [(e.source, e.target) for e in graph.edges]
    degrees = {key: node.degree for key, node in graph.nodes.items()}
    positions = compact(positions, pairs, cfg, degrees)
    positions = resolve_collisions(positions, pairs, cfg)

    out_ports = place_ports(positions, graph.edges, cfg.out_port_radius, OUTGOING, cfg, graph.decoupled)
    in_ports = place_ports(positions, graph.edges, cfg.in_port_radius, INCOMING, cfg, graph.decoupled)
    labels = place_labels(graph.edges, positions, out_ports, in_ports, cfg)

    logger.debug(
        "layout done: %d hubs in %d cluster(s), %d edges, %d labels",
        len(positions),
        len(clusters),
        len(graph.edges),
        len(labels),
    )
    return LayoutResult(
        positions=positions,
        out_ports=out_ports,
        in_ports=in_ports,
        label_anchors=labels,
        graph=graph,
        clusters=clusters,
        levels=cluster_levels,
    )


class HubLayout:
    """Layout engine that remembers the last computed position map.

    Each ``layout`` call reruns the whole pipeline; the only state carried
    between runs is the previous positions (exposed read-only for ``locate``)
    and the canvas size they were laid out on.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self._positions: dict[str, Point] = {}
        self._canvas: tuple[float, float] = (self.config.canvas_width, self.config.canvas_height)

    @property
    def last_positions(self) -> Mapping[str, Point]:
        return MappingProxyType(self._positions)

    def layout(
        self,
        records: Iterable[Connection | Mapping[str, Any]],
        decoupled: bool = False,
        canvas_width: float | None = None,
        canvas_height: float | None = None,
    ) -> LayoutResult:
        result = layout_connections(records, decoupled, canvas_width, canvas_height, self.config)
        self._positions = dict(result.positions)
        self._canvas = (
            float(canvas_width) if canvas_width is not None else self.config.canvas_width,
            float(canvas_height) if canvas_height is not None else self.config.canvas_height,
        )
        return result

    def locate(self, node_key: str, size: float = LOCATE_SIZE) -> ViewBox | None:
        """A ``size × size`` view centred on a hub from the last run, or None if unknown."""
        pos = self._positions.get(node_key)
        if pos is None:
            return None
        return ViewBox(x=pos.x - size / 2.0, y=pos.y - size / 2.0, w=size, h=size)

    def full_view(self) -> ViewBox:
        """The whole canvas of the last run (the configured canvas before any run)."""
        width, height = self._canvas
        return ViewBox(x=0.0, y=0.0, w=width, h=height)
