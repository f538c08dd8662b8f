"""Tests for the layout data model."""

import dataclasses
import math

import pytest

from diagram_layout.models import (
    BoundingBox,
    CanvasConfig,
    DiagramArchetype,
    LayoutEdge,
    LayoutMetrics,
    LayoutResult,
    NodeSpec,
    Point,
    PositionedNode,
    ResolutionOutcome,
)
from diagram_layout.validation import ValidationError


class TestCanvasConfig:

    def test_defaults(self) -> None:
        c = CanvasConfig()
        assert (c.width, c.height) == (1920, 1080)
        assert (c.base_node_width, c.base_node_height) == (160, 60)
        assert c.min_separation == 40
        assert c.margin == 50
        assert c.center == Point(960, 540)
        assert c.usable_width == 1820
        assert c.usable_height == 980

    @pytest.mark.parametrize("field_name", [
        "width", "height", "base_node_width", "base_node_height", "min_separation",
    ])
    def test_non_positive_dimension_fails_fast(self, field_name: str) -> None:
        with pytest.raises(ValidationError, match=field_name):
            CanvasConfig(**{field_name: 0})

    def test_zero_margin_allowed(self) -> None:
        assert CanvasConfig(margin=0).usable_width == 1920

    def test_base_node_larger_than_usable_area_rejected(self) -> None:
        with pytest.raises(ValidationError, match="does not fit"):
            CanvasConfig(width=300, height=300, margin=100)
        with pytest.raises(ValidationError, match="does not fit"):
            CanvasConfig(height=100, margin=30)

    def test_infinite_dimension_rejected(self) -> None:
        with pytest.raises(ValidationError, match="finite"):
            CanvasConfig(width=math.inf)

    def test_negative_margin_rejected(self) -> None:
        with pytest.raises(ValidationError, match="margin"):
            CanvasConfig(margin=-1)

    def test_frozen(self) -> None:
        c = CanvasConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            c.width = 10  # type: ignore[misc]


class TestDiagramArchetype:

    def test_parse_member(self) -> None:
        assert DiagramArchetype.parse(DiagramArchetype.TREE) is DiagramArchetype.TREE

    def test_parse_string_case_insensitive(self) -> None:
        assert DiagramArchetype.parse(" Flow ") is DiagramArchetype.FLOW
        assert DiagramArchetype.parse("CYCLE") is DiagramArchetype.CYCLE

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown diagram archetype"):
            DiagramArchetype.parse("pie")


def test_positioned_node_geometry() -> None:
    n = PositionedNode("a", 10, 20, 100, 50, "A")
    assert n.right == 110
    assert n.bottom == 70
    assert n.center == Point(60, 45)
    moved = n.moved_to(0, 0)
    assert (moved.x, moved.y, moved.w, moved.h, moved.label) == (0, 0, 100, 50, "A")
    assert n.x == 10


def test_bounding_box_from_nodes() -> None:
    nodes = [
        PositionedNode("a", 0, 0, 10, 10),
        PositionedNode("b", 20, 30, 10, 5),
    ]
    box = BoundingBox.from_nodes(nodes)
    assert (box.min_x, box.min_y, box.max_x, box.max_y) == (0, 0, 30, 35)
    assert box.width == 30
    assert box.height == 35
    assert box.area == 1050


def test_bounding_box_empty_is_zero() -> None:
    box = BoundingBox.from_nodes([])
    assert box == BoundingBox.zero()
    assert box.width == 0 and box.height == 0


def test_layout_edge_routed_flag() -> None:
    assert not LayoutEdge("a", "b").is_routed
    assert LayoutEdge("a", "b", (Point(0, 0), Point(1, 1))).is_routed


def test_failure_result() -> None:
    r = LayoutResult.failure("boom", 12.5, DiagramArchetype.MATRIX)
    assert r.success is False
    assert r.error == "boom"
    assert r.nodes == () and r.edges == ()
    assert r.bounds == BoundingBox.zero()
    assert r.confidence == 0
    assert r.metrics == LayoutMetrics.empty()


def test_result_to_dict() -> None:
    node = PositionedNode("a", 1, 2, 3, 4, "A")
    r = LayoutResult(
        nodes=(node,),
        edges=(LayoutEdge("a", "a", (Point(0, 0), Point(0, 0)), "self"),),
        bounds=BoundingBox.from_nodes([node]),
        processing_time_ms=1.0,
        success=True,
        confidence=0.95,
        archetype=DiagramArchetype.FLOW,
        outcome=ResolutionOutcome.RESOLVED,
    )
    data = r.to_dict()
    assert data["archetype"] == "flow"
    assert data["outcome"] == "resolved"
    assert data["nodes"][0] == {"id": "a", "x": 1, "y": 2, "w": 3, "h": 4, "label": "A"}
    assert data["edges"][0]["points"] == [{"x": 0, "y": 0}, {"x": 0, "y": 0}]
    assert data["bounds"]["width"] == 3
    assert data["metrics"]["overlap_count"] == 0
    assert r.node("a") is node
    assert r.node("missing") is None


def test_node_spec_immutable() -> None:
    n = NodeSpec("a", "A")
    with pytest.raises(dataclasses.FrozenInstanceError):
        n.label = "B"  # type: ignore[misc]
