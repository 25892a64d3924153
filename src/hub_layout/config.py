"""Layout configuration — every tuning constant of the pipeline in one place."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

SPAWN_WARP_GROUP = "Spawns/Warp Songs/Owls"

# camelCase names accepted by ``LayoutConfig.from_dict``.
_CAMEL_ALIASES: dict[str, str] = {
    "canvasWidth": "canvas_width",
    "canvasHeight": "canvas_height",
    "hubRadius": "hub_radius",
    "springConstant": "spring_constant",
    "idealLength": "ideal_length",
    "minSpacingBase": "min_spacing_base",
    "densityFactor": "density_factor",
    "minSpacingCap": "min_spacing_cap",
    "maxStep": "max_step",
    "centroidPull": "centroid_pull",
    "largeGraphThreshold": "large_graph_threshold",
    "levelRelaxPasses": "level_relax_passes",
    "crossingPasses": "crossing_passes",
    "collisionPasses": "collision_passes",
    "collisionFactor": "collision_factor",
    "edgeClearance": "edge_clearance",
    "collisionStep": "collision_step",
    "collisionCap": "collision_cap",
    "outPortRadius": "out_port_radius",
    "inPortRadius": "in_port_radius",
    "portMinSeparation": "port_min_separation",
    "portSeparationFloor": "port_separation_floor",
    "labelCell": "label_cell",
    "labelGap": "label_gap",
    "labelMargin": "label_margin",
    "labelMaxSteps": "label_max_steps",
    "charWidth": "char_width",
    "oneWayGroups": "one_way_groups",
}


@dataclass(frozen=True)
class LayoutConfig:
    """Tuning constants for one layout run.

    Distances are canvas units, angles are radians. The defaults are the
    values the pipeline is tuned for; changing them changes the layout but
    never its determinism.
    """

    # Canvas
    canvas_width: float = 10000.0
    canvas_height: float = 10000.0
    padding: float = 400.0
    hub_radius: float = 50.0

    # Force compactor
    repulsion: float = 120000.0
    spring_constant: float = 0.05
    ideal_length: float = 260.0
    damping: float = 0.85
    max_step: float = 200.0
    centroid_pull: float = 0.02
    large_graph_threshold: int = 30
    min_spacing_base: float = 110.0
    density_factor: float = 6.0
    min_spacing_cap: float = 240.0
    iterations: int = 60

    # Level assigner / crossing reducer
    level_relax_passes: int = 4
    crossing_passes: int = 4

    # Collision resolver
    collision_passes: int = 18
    collision_factor: float = 2.2
    edge_clearance: float = 60.0
    collision_step: float = 12.0
    collision_cap: float = 60.0

    # Port placer
    out_port_radius: float = 50.0
    in_port_radius: float = 38.0
    port_min_separation: float = 0.45
    port_separation_floor: float = 0.12

    # Label placer
    label_cell: float = 20.0
    label_gap: float = 28.0
    label_margin: float = 12.0
    label_max_steps: int = 6
    char_width: float = 7.0

    # Graph builder: groups whose connections are always one-way.
    one_way_groups: frozenset[str] = field(default_factory=lambda: frozenset({SPAWN_WARP_GROUP}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LayoutConfig:
        """Build a config from snake_case or camelCase keys; unknown keys raise ValueError."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"unknown layout option: {key!r}")
            if name == "one_way_groups":
                value = frozenset(value)
            kwargs[name] = value
        return cls(**kwargs)
