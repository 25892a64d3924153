"""Layout types shared across the layout phases and their consumers."""

from __future__ import annotations

from dataclasses import dataclass, field

from hub_layout.graph import HubGraph

SOURCE_SIDE = "source"
TARGET_SIDE = "target"


@dataclass(frozen=True)
class Point:
    """A 2D point in canvas coordinates. Phases build new points rather than moving old ones."""

    x: float
    y: float


@dataclass(frozen=True)
class ViewBox:
    """A rectangular window onto the canvas."""

    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class LabelAnchor:
    """A positioned label belonging to one side of one edge."""

    edge_id: str
    side: str  # SOURCE_SIDE or TARGET_SIDE
    x: float
    y: float
    text: str


@dataclass
class LayoutResult:
    """Self-contained layout output: everything a renderer needs."""

    positions: dict[str, Point] = field(default_factory=dict)
    out_ports: dict[str, Point] = field(default_factory=dict)
    in_ports: dict[str, Point] = field(default_factory=dict)
    label_anchors: list[LabelAnchor] = field(default_factory=list)
    graph: HubGraph | None = None
    clusters: list[list[str]] = field(default_factory=list)
    levels: list[list[list[str]]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.positions
