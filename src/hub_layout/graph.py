"""Graph builder — turns raw entrance connections into deduplicated hubs and edges.

Each raw record names two entrances; the caller has already resolved every
entrance to the hub ("group") it belongs to. The builder collapses records
onto one edge per hub pair and decides whether that edge is one-way:

  - one-way (decoupled seed, a side flagged one-way, or a spawn/warp group):
    the id is the ordered pair ``from->to``.
  - coupled: the id is the unordered pair ``a<->b``, ``a`` being the hub with
    the lexicographically smaller lower-cased label, so a connection and its
    logical reverse land on the same id.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from hub_layout.config import LayoutConfig

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "overworld"


class RecordError(ValueError):
    """A raw connection record is missing a required field or has a malformed one."""


# ─── Input Schema ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionSide:
    """One end of a raw connection, already resolved to its hub."""

    group: str
    group_label: str = ""
    category: str = DEFAULT_CATEGORY
    entrance: str | None = None
    name: str = ""
    destination: str = ""
    one_way: bool = False
    group_name: str | None = None
    group_id: str | None = None
    spawn: int | None = None

    @property
    def label(self) -> str:
        return self.group_label or self.group


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _parse_side(record: Mapping[str, Any], prefix: str) -> ConnectionSide:
    group = record.get(f"{prefix}Group")
    if group is None or (isinstance(group, str) and not group.strip()):
        raise RecordError(f"{prefix}Group is missing")
    if not isinstance(group, (str, int)) or isinstance(group, bool):
        raise RecordError(f"{prefix}Group must be a string, got {type(group).__name__}")

    spawn = record.get(f"{prefix}Spawn")
    if spawn is not None:
        try:
            spawn = int(spawn)
        except (TypeError, ValueError) as exc:
            raise RecordError(f"{prefix}Spawn is not an integer: {spawn!r}") from exc

    return ConnectionSide(
        group=str(group),
        group_label=str(record.get(f"{prefix}GroupLabel") or ""),
        category=str(record.get(f"{prefix}Category") or DEFAULT_CATEGORY).lower(),
        entrance=_optional_str(record.get(f"{prefix}Entrance")),
        name=str(record.get(f"{prefix}Name") or ""),
        destination=str(record.get(f"{prefix}Destination") or ""),
        one_way=bool(record.get(f"{prefix}IsOneWay")),
        group_name=_optional_str(record.get(f"{prefix}GroupName")),
        group_id=_optional_str(record.get(f"{prefix}GroupId")),
        spawn=spawn,
    )


@dataclass(frozen=True)
class Connection:
    """One raw directed entrance-to-entrance link."""

    from_side: ConnectionSide
    to_side: ConnectionSide

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Connection:
        """Parse a loosely typed camelCase record (``fromGroup``, ``toName``, ...).

        Raises RecordError when either side has no resolvable group.
        """
        if not isinstance(record, Mapping):
            raise RecordError(f"record must be a mapping, got {type(record).__name__}")
        return cls(from_side=_parse_side(record, "from"), to_side=_parse_side(record, "to"))


# ─── Graph Types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Node:
    """A hub: one merged location/group."""

    key: str
    label: str
    category: str = DEFAULT_CATEGORY
    degree: int = 0


@dataclass(frozen=True)
class EntrancePair:
    """The raw entrance pair behind one collapsed connection."""

    from_entrance: str | None
    to_entrance: str | None
    name: str = ""
    destination: str = ""
    spawn: int | None = None


@dataclass
class Edge:
    """A deduplicated connection between two hubs.

    ``label`` is the source-side text and ``reverse_label`` the
    destination-side text (empty for one-way edges). ``pairs`` holds every
    raw entrance pair collapsed onto this id; ``duplicates`` counts the
    ones after the first.
    """

    id: str
    source: str
    target: str
    directed: bool
    label: str = ""
    reverse_label: str = ""
    pairs: list[EntrancePair] = field(default_factory=list)
    duplicates: int = 0
    from_spawn_group: bool = False
    to_spawn_group: bool = False

    def endpoint_entrance(self, side: str) -> str | None:
        """Entrance id on the ``"from"`` or ``"to"`` end of the first collapsed pair."""
        if not self.pairs:
            return None
        first = self.pairs[0]
        return first.from_entrance if side == "from" else first.to_entrance


@dataclass
class HubGraph:
    """Hubs and edges of one layout run, with a networkx view keyed by edge id."""

    nodes: dict[str, Node]
    edges: list[Edge]
    decoupled: bool = False
    digraph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)

    @classmethod
    def from_parts(cls, nodes: dict[str, Node], edges: list[Edge], decoupled: bool = False) -> HubGraph:
        g: nx.MultiDiGraph = nx.MultiDiGraph()
        for key, node in nodes.items():
            g.add_node(key, data=node)
        for edge in edges:
            g.add_edge(edge.source, edge.target, key=edge.id, data=edge)
        return cls(nodes=nodes, edges=edges, decoupled=decoupled, digraph=g)

    def undirected(self) -> nx.Graph:
        """Symmetric closure of the edge set (parallel edges merged)."""
        return nx.Graph(self.digraph)

    def edge_by_id(self) -> dict[str, Edge]:
        return {e.id: e for e in self.edges}


# ─── Builder ──────────────────────────────────────────────────────────────────


def is_one_way(conn: Connection, decoupled: bool, one_way_groups: frozenset[str]) -> bool:
    """Whether a connection must be kept as an ordered (directed) edge."""
    if decoupled:
        return True
    if conn.from_side.one_way or conn.to_side.one_way:
        return True
    return conn.from_side.group_name in one_way_groups or conn.to_side.group_name in one_way_groups


def edge_id(source: str, target: str, source_label: str, target_label: str, one_way: bool) -> str:
    """Identity of the edge between two hubs.

    One-way edges keep their direction. Coupled edges are canonicalized by
    lower-cased display label (hub key breaks ties) so both directions of a
    reversible connection produce the same id.
    """
    if one_way:
        return f"{source}->{target}"
    if (source_label.lower(), source) <= (target_label.lower(), target):
        return f"{source}<->{target}"
    return f"{target}<->{source}"


def _coerce(record: Connection | Mapping[str, Any]) -> Connection:
    if isinstance(record, Connection):
        return record
    return Connection.from_record(record)


def build_graph(
    records: Iterable[Connection | Mapping[str, Any]],
    decoupled: bool = False,
    config: LayoutConfig | None = None,
) -> HubGraph:
    """Group raw connections into hubs and deduplicated edges.

    Malformed records and self-loops are skipped. The first record for an
    edge id supplies its labels and direction; later ones are only counted
    in ``Edge.duplicates`` and listed in ``Edge.pairs``.
    """
    cfg = config or LayoutConfig()

    node_info: dict[str, ConnectionSide] = {}
    edges: list[Edge] = []
    by_id: dict[str, Edge] = {}
    skipped = 0

    for index, record in enumerate(records):
        try:
            conn = _coerce(record)
        except RecordError as exc:
            skipped += 1
            logger.debug("skipping record %d: %s", index, exc)
            continue

        src, tgt = conn.from_side, conn.to_side
        if src.group == tgt.group:
            continue

        # First sighting of a hub fixes its label and category.
        node_info.setdefault(src.group, src)
        node_info.setdefault(tgt.group, tgt)

        one_way = is_one_way(conn, decoupled, cfg.one_way_groups)
        eid = edge_id(
            src.group,
            tgt.group,
            node_info[src.group].label,
            node_info[tgt.group].label,
            one_way,
        )
        pair = EntrancePair(
            from_entrance=src.entrance,
            to_entrance=tgt.entrance,
            name=tgt.name or tgt.destination,
            destination=tgt.destination,
            spawn=src.spawn if src.spawn is not None else tgt.spawn,
        )

        existing = by_id.get(eid)
        if existing is not None:
            existing.pairs.append(pair)
            existing.duplicates += 1
            continue

        edge = Edge(
            id=eid,
            source=src.group,
            target=tgt.group,
            directed=one_way,
            label=tgt.name or tgt.destination,
            reverse_label="" if one_way else (src.name or src.destination),
            pairs=[pair],
            from_spawn_group=src.group_name in cfg.one_way_groups,
            to_spawn_group=tgt.group_name in cfg.one_way_groups,
        )
        by_id[eid] = edge
        edges.append(edge)

    degree: dict[str, int] = dict.fromkeys(node_info, 0)
    for edge in edges:
        degree[edge.source] += 1
        degree[edge.target] += 1

    nodes: dict[str, Node] = {
        key: Node(key=key, label=side.label, category=side.category, degree=degree[key])
        for key, side in node_info.items()
    }

    if skipped:
        logger.debug("skipped %d malformed connection record(s)", skipped)
    logger.debug("built graph: %d hubs, %d edges (decoupled=%s)", len(nodes), len(edges), decoupled)

    return HubGraph.from_parts(nodes, edges, decoupled=decoupled)
