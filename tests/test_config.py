"""Tests for config.py — defaults and dict loading."""

from __future__ import annotations

import dataclasses

import pytest

from hub_layout.config import SPAWN_WARP_GROUP, LayoutConfig


class TestLayoutConfig:
    def test_defaults(self):
        cfg = LayoutConfig()
        assert cfg.canvas_width == cfg.canvas_height == 10000
        assert cfg.hub_radius == 50
        assert cfg.one_way_groups == frozenset({SPAWN_WARP_GROUP})

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            LayoutConfig().iterations = 1  # type: ignore[misc]

    def test_from_dict_snake_case(self):
        cfg = LayoutConfig.from_dict({"iterations": 10, "label_gap": 40})
        assert cfg.iterations == 10
        assert cfg.label_gap == 40

    def test_from_dict_camel_case(self):
        cfg = LayoutConfig.from_dict({"canvasWidth": 3000, "hubRadius": 30, "labelMaxSteps": 3})
        assert cfg.canvas_width == 3000
        assert cfg.hub_radius == 30
        assert cfg.label_max_steps == 3
        # Untouched fields keep their defaults.
        assert cfg.canvas_height == 10000

    def test_one_way_groups_frozen(self):
        cfg = LayoutConfig.from_dict({"oneWayGroups": ["Spawns", "Owls"]})
        assert cfg.one_way_groups == frozenset({"Spawns", "Owls"})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown layout option"):
            LayoutConfig.from_dict({"gravity": 9.8})

    def test_empty_dict(self):
        assert LayoutConfig.from_dict({}) == LayoutConfig()
