"""
Data model for the diagram layout engine.

Inputs (NodeSpec, EdgeSpec, CanvasConfig) arrive from the diagram-type
classifier; outputs (PositionedNode, LayoutEdge, LayoutResult) are consumed by
the renderer.  Everything is created fresh per layout call.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from diagram_layout.validation import (
    ValidationError,
    validate_non_negative_number,
    validate_positive_number,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DiagramArchetype(Enum):
    """Diagram family; selects the initial placement strategy."""
    FLOW = "flow"
    TREE = "tree"
    TIMELINE = "timeline"
    MATRIX = "matrix"
    CYCLE = "cycle"

    @classmethod
    def parse(cls, value: DiagramArchetype | str) -> DiagramArchetype:
        """Accept a member or its (case-insensitive) name/value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown diagram archetype {value!r}. Valid archetypes: {choices}.")


class ResolutionOutcome(Enum):
    """Terminal state of the overlap resolution loop."""
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeSpec:
    id: str
    label: str = ""


@dataclass(frozen=True)
class EdgeSpec:
    source: str
    target: str
    label: str = ""


@dataclass(frozen=True)
class CanvasConfig:
    """Canvas the layout must fit into.

    ``margin`` is the clear border kept on every side of the canvas.
    Non-positive dimensions raise ``ValidationError`` here, at construction,
    never in the middle of a layout.
    """
    width: float = 1920
    height: float = 1080
    base_node_width: float = 160
    base_node_height: float = 60
    min_separation: float = 40
    margin: float = 50

    def __post_init__(self) -> None:
        validate_positive_number(self.width, "width")
        validate_positive_number(self.height, "height")
        validate_positive_number(self.base_node_width, "base_node_width")
        validate_positive_number(self.base_node_height, "base_node_height")
        validate_positive_number(self.min_separation, "min_separation")
        validate_non_negative_number(self.margin, "margin")
        if self.base_node_width > self.usable_width or self.base_node_height > self.usable_height:
            raise ValidationError(
                f"Base node size {self.base_node_width}x{self.base_node_height} does not fit "
                f"the usable canvas area {self.usable_width}x{self.usable_height}."
            )

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)

    @property
    def usable_width(self) -> float:
        return max(0.0, self.width - 2 * self.margin)

    @property
    def usable_height(self) -> float:
        return max(0.0, self.height - 2 * self.margin)


# ---------------------------------------------------------------------------
# Geometry primitives
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class PositionedNode:
    """A node box: top-left corner plus size."""
    id: str
    x: float
    y: float
    w: float
    h: float
    label: str = ""

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def cx(self) -> float:
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        return self.y + self.h / 2

    @property
    def center(self) -> Point:
        return Point(self.cx, self.cy)

    def moved_to(self, x: float, y: float) -> PositionedNode:
        return PositionedNode(self.id, x, y, self.w, self.h, self.label)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LayoutEdge:
    """A routed edge.  ``points`` is empty when an endpoint was missing."""
    source: str
    target: str
    points: tuple[Point, ...] = ()
    label: str = ""

    @property
    def is_routed(self) -> bool:
        return len(self.points) >= 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "points": [p.to_dict() for p in self.points],
            "label": self.label,
        }


@dataclass(frozen=True)
class BoundingBox:
    """Minimal axis-aligned rectangle around a node set."""
    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    @classmethod
    def zero(cls) -> BoundingBox:
        return cls()

    @classmethod
    def from_nodes(cls, nodes: list[PositionedNode] | tuple[PositionedNode, ...]) -> BoundingBox:
        if not nodes:
            return cls.zero()
        return cls(
            min_x=min(n.x for n in nodes),
            min_y=min(n.y for n in nodes),
            max_x=max(n.right for n in nodes),
            max_y=max(n.bottom for n in nodes),
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "min_x": self.min_x,
            "min_y": self.min_y,
            "max_x": self.max_x,
            "max_y": self.max_y,
            "width": self.width,
            "height": self.height,
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutMetrics:
    overlap_count: int = 0
    edge_crossings: int = 0
    total_area: float = 0.0
    average_node_spacing: float = 0.0
    layout_balance: float = 1.0

    @classmethod
    def empty(cls) -> LayoutMetrics:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LayoutResult:
    """The sole artifact handed to the renderer.

    ``success=False`` means "skip this diagram and show a placeholder";
    a successful result with low ``confidence`` should be rendered but
    flagged as lower quality.
    """
    nodes: tuple[PositionedNode, ...]
    edges: tuple[LayoutEdge, ...]
    bounds: BoundingBox
    processing_time_ms: float
    success: bool
    confidence: float
    metrics: LayoutMetrics = field(default_factory=LayoutMetrics.empty)
    error: Optional[str] = None
    archetype: Optional[DiagramArchetype] = None
    rounds: int = 0
    outcome: Optional[ResolutionOutcome] = None

    @classmethod
    def failure(
        cls,
        error: str,
        processing_time_ms: float = 0.0,
        archetype: Optional[DiagramArchetype] = None,
    ) -> LayoutResult:
        """Structured failure: no nodes, no edges, zero bounds, zero confidence."""
        return cls(
            nodes=(),
            edges=(),
            bounds=BoundingBox.zero(),
            processing_time_ms=processing_time_ms,
            success=False,
            confidence=0.0,
            metrics=LayoutMetrics.empty(),
            error=error,
            archetype=archetype,
        )

    def node(self, node_id: str) -> Optional[PositionedNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "archetype": self.archetype.value if self.archetype else None,
            "confidence": round(self.confidence, 4),
            "processing_time_ms": round(self.processing_time_ms, 3),
            "rounds": self.rounds,
            "outcome": self.outcome.value if self.outcome else None,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "bounds": self.bounds.to_dict(),
            "metrics": self.metrics.to_dict(),
        }


def is_finite_box(node: PositionedNode) -> bool:
    """True if every coordinate of *node* is a finite number."""
    return all(math.isfinite(v) for v in (node.x, node.y, node.w, node.h))
