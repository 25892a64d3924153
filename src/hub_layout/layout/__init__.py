"""Layout phases and shared layout types."""

from __future__ import annotations

from hub_layout.layout.forces import compact, min_spacing, point_segment_distance, resolve_collisions
from hub_layout.layout.labels import OccupancyGrid, label_size, place_labels
from hub_layout.layout.layering import (
    LevelAssignment,
    bucket_levels,
    cluster_edges,
    find_clusters,
    level_violations,
    longest_path_levels,
    place_grid,
    reduce_crossings,
    relax_levels,
)
from hub_layout.layout.ports import INCOMING, OUTGOING, place_ports, port_min_separation, spread_angles
from hub_layout.layout.types import SOURCE_SIDE, TARGET_SIDE, LabelAnchor, LayoutResult, Point, ViewBox

__all__ = [
    "INCOMING",
    "OUTGOING",
    "SOURCE_SIDE",
    "TARGET_SIDE",
    "LabelAnchor",
    "LayoutResult",
    "LevelAssignment",
    "OccupancyGrid",
    "Point",
    "ViewBox",
    "bucket_levels",
    "cluster_edges",
    "compact",
    "find_clusters",
    "label_size",
    "level_violations",
    "longest_path_levels",
    "min_spacing",
    "place_grid",
    "place_labels",
    "place_ports",
    "point_segment_distance",
    "port_min_separation",
    "reduce_crossings",
    "relax_levels",
    "resolve_collisions",
    "spread_angles",
]
