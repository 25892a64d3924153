"""hub-layout — deterministic layout of entrance-connection hub graphs."""

from __future__ import annotations

from hub_layout.config import LayoutConfig
from hub_layout.engine import HubLayout, layout_connections
from hub_layout.graph import Connection, ConnectionSide, Edge, EntrancePair, HubGraph, Node, RecordError, build_graph
from hub_layout.layout.types import LabelAnchor, LayoutResult, Point, ViewBox

__all__ = [
    "Connection",
    "ConnectionSide",
    "Edge",
    "EntrancePair",
    "HubGraph",
    "HubLayout",
    "LabelAnchor",
    "LayoutConfig",
    "LayoutResult",
    "Node",
    "Point",
    "RecordError",
    "ViewBox",
    "build_graph",
    "layout_connections",
]
