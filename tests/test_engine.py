"""End-to-end tests for the layout pipeline and the HubLayout engine."""

from __future__ import annotations

import dataclasses
import math

import pytest

from hub_layout import HubLayout, LayoutConfig, ViewBox, layout_connections
from hub_layout.layout.labels import OccupancyGrid
from hub_layout.layout.ports import TAU, port_min_separation

# ─── Helpers ──────────────────────────────────────────────────────────────────


def conn(src: str, tgt: str, **extra: object) -> dict[str, object]:
    record: dict[str, object] = {"fromGroup": src, "toGroup": tgt}
    record.update(extra)
    return record


def sample_records() -> list[dict[str, object]]:
    """Two clusters: a small overworld ring with a dungeon branch, plus a detached pair."""
    return [
        conn("field", "market", fromName="Field Gate", toName="Market Gate"),
        conn("market", "castle", fromName="Castle Road", toName="Castle Gate"),
        conn("castle", "field", fromName="Castle Exit", toName="Field South"),
        conn("field", "dungeon", toName="Dungeon Door", toIsOneWay=True),
        conn("dungeon", "boss", toName="Boss Door"),
        conn("grotto", "woods", fromName="Grotto Hole", toName="Woods Stump"),
        conn("market", "field", fromName="Market Gate", toName="Field Gate"),
    ]


# ─── Pipeline Scenarios ───────────────────────────────────────────────────────


class TestLayoutConnections:
    def test_coupled_pair_scenario(self):
        """A→B and B→A collapse to one edge, one cluster, two levels, two distinct positions."""
        result = layout_connections([conn("A", "B"), conn("B", "A")])
        assert result.graph is not None
        assert len(result.graph.edges) == 1
        assert result.clusters == [["A", "B"]]
        assert result.levels == [[["A"], ["B"]]]
        a, b = result.positions["A"], result.positions["B"]
        assert (a.x, a.y) != (b.x, b.y)

    def test_deterministic(self):
        """Two runs on the same input give identical maps."""
        first = layout_connections(sample_records())
        second = layout_connections(sample_records())
        assert first.positions == second.positions
        assert first.out_ports == second.out_ports
        assert first.in_ports == second.in_ports
        assert first.label_anchors == second.label_anchors

    def test_clusters_partition_nodes(self):
        result = layout_connections(sample_records())
        assert result.graph is not None
        flat = [n for c in result.clusters for n in c]
        assert sorted(flat) == sorted(result.graph.nodes)
        assert len(flat) == len(set(flat))
        assert len(result.clusters) == 2

    def test_every_edge_has_ports(self):
        result = layout_connections(sample_records())
        assert result.graph is not None
        ids = {e.id for e in result.graph.edges}
        assert set(result.out_ports) == ids
        assert set(result.in_ports) == ids

    def test_no_self_loops(self):
        result = layout_connections(sample_records() + [conn("field", "field")])
        assert result.graph is not None
        assert all(e.source != e.target for e in result.graph.edges)

    def test_port_separation_on_every_hub(self):
        cfg = LayoutConfig()
        result = layout_connections(sample_records(), config=cfg)
        for hub, centre in result.positions.items():
            angles = {
                (round(p.x, 9), round(p.y, 9)): math.atan2(p.y - centre.y, p.x - centre.x)
                for eid, p in result.out_ports.items()
                if result.graph is not None and result.graph.edge_by_id()[eid].source == hub
            }
            if len(angles) < 2:
                continue
            ring = sorted(a % TAU for a in angles.values())
            gaps = [b - a for a, b in zip(ring, ring[1:])] + [ring[0] + TAU - ring[-1]]
            assert min(gaps) >= port_min_separation(len(angles), cfg) - 1e-6

    def test_small_graph_labels_do_not_overlap(self):
        """Three hubs and four edges on an ample canvas: every label gets its own cell."""
        records = [
            conn("A", "B", fromName="A to B", toName="B from A"),
            conn("B", "C", fromName="B to C", toName="C from B"),
            conn("A", "C", fromName="A to C", toName="C from A"),
            conn("B", "A", toName="Back to A", toIsOneWay=True),
        ]
        cfg = LayoutConfig()
        result = layout_connections(records, config=cfg)
        assert result.graph is not None
        assert len(result.graph.nodes) == 3
        assert len(result.graph.edges) == 4
        grid = OccupancyGrid(cfg.label_cell)
        keys = [grid.key(a.x, a.y) for a in result.label_anchors]
        assert len(keys) == 7
        assert len(keys) == len(set(keys))

    def test_decoupled_keeps_directions(self):
        result = layout_connections([conn("A", "B"), conn("B", "A")], decoupled=True)
        assert result.graph is not None
        assert [e.id for e in result.graph.edges] == ["A->B", "B->A"]

    def test_canvas_override(self):
        result = layout_connections([conn("A", "B")], canvas_width=2000, canvas_height=2000)
        for p in result.positions.values():
            assert 0 <= p.x <= 2000
            assert 0 <= p.y <= 2000

    def test_empty_input(self):
        result = layout_connections([])
        assert result.is_empty
        assert result.label_anchors == []
        assert result.out_ports == {}

    def test_only_malformed_input(self):
        result = layout_connections([{"fromGroup": "A"}, {"toGroup": "B"}])
        assert result.is_empty


# ─── HubLayout ────────────────────────────────────────────────────────────────


class TestHubLayout:
    def test_locate_centres_view_on_hub(self):
        engine = HubLayout()
        result = engine.layout(sample_records())
        pos = result.positions["market"]
        view = engine.locate("market")
        assert view == ViewBox(x=pos.x - 300, y=pos.y - 300, w=600, h=600)

    def test_locate_custom_size(self):
        engine = HubLayout()
        engine.layout(sample_records())
        view = engine.locate("castle", size=1000)
        assert view is not None
        assert view.w == view.h == 1000

    def test_locate_unknown(self):
        engine = HubLayout()
        engine.layout(sample_records())
        assert engine.locate("nowhere") is None

    def test_locate_before_any_run(self):
        assert HubLayout().locate("field") is None

    def test_last_positions_read_only(self):
        engine = HubLayout()
        engine.layout(sample_records())
        with pytest.raises(TypeError):
            engine.last_positions["field"] = None  # type: ignore[index]

    def test_returned_positions_cannot_rewrite_engine_state(self):
        """Points are immutable, so a caller cannot move a hub behind the engine's back."""
        engine = HubLayout()
        result = engine.layout([conn("A", "B")])
        before = engine.last_positions["A"]
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.positions["A"].x = -1.0  # type: ignore[misc]
        assert engine.last_positions["A"] == before
        assert engine.locate("A") == ViewBox(x=before.x - 300, y=before.y - 300, w=600, h=600)

    def test_shared_port_points_are_immutable(self):
        result = layout_connections([conn("A", "B")])
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.out_ports["A<->B"].y = 0.0  # type: ignore[misc]

    def test_new_run_replaces_positions(self):
        engine = HubLayout()
        engine.layout(sample_records())
        engine.layout([conn("X", "Y")])
        assert set(engine.last_positions) == {"X", "Y"}

    def test_full_view_follows_canvas_override(self):
        """The reset view covers the canvas the last run actually used."""
        engine = HubLayout()
        result = engine.layout([conn("A", "B")], canvas_width=2000, canvas_height=1500)
        assert engine.full_view() == ViewBox(0, 0, 2000, 1500)
        for p in result.positions.values():
            assert 0 <= p.x <= 2000
            assert 0 <= p.y <= 1500

    def test_full_view_resets_after_run_without_override(self):
        engine = HubLayout()
        engine.layout([conn("A", "B")], canvas_width=2000, canvas_height=2000)
        engine.layout([conn("A", "B")])
        assert engine.full_view() == ViewBox(0, 0, 10000, 10000)

    def test_full_view(self):
        engine = HubLayout(LayoutConfig(canvas_width=4000, canvas_height=3000))
        assert engine.full_view() == ViewBox(0, 0, 4000, 3000)
