"""
Pure geometry helpers shared by the placement strategies, the overlap
resolver, the edge router and the scorer.
"""

from __future__ import annotations

import math

from diagram_layout.models import CanvasConfig, NodeSpec, Point, PositionedNode

# Label sizing defaults (pixels).
CHAR_WIDTH = 8.0
LABEL_PADDING = 20.0


# ---------------------------------------------------------------------------
# Node sizing
# ---------------------------------------------------------------------------

def node_width(
    node: NodeSpec,
    canvas: CanvasConfig,
    char_width: float = CHAR_WIDTH,
    padding: float = LABEL_PADDING,
) -> float:
    """Width grows with the label but never beyond twice the base width.

    The result is also capped at the usable canvas width.
    """
    base = canvas.base_node_width
    width = max(base, min(len(node.label) * char_width + padding, base * 2))
    return float(min(width, canvas.usable_width))


def node_height(node: NodeSpec, canvas: CanvasConfig) -> float:
    return float(canvas.base_node_height)


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------

def center(box: PositionedNode) -> Point:
    return Point(box.x + box.w / 2, box.y + box.h / 2)


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def node_distance(a: PositionedNode, b: PositionedNode) -> float:
    """Center-to-center distance between two boxes."""
    return distance(center(a), center(b))


# ---------------------------------------------------------------------------
# Overlap tests
# ---------------------------------------------------------------------------

def penetration(a: PositionedNode, b: PositionedNode, margin: float = 0) -> tuple[float, float]:
    """How far the centers must still move apart on each axis.

    Boxes are inflated by margin/2 per side.  A positive value means the
    projections intersect on that axis.
    """
    px = (a.w + b.w) / 2 + margin - abs((b.x + b.w / 2) - (a.x + a.w / 2))
    py = (a.h + b.h) / 2 + margin - abs((b.y + b.h / 2) - (a.y + a.h / 2))
    return px, py


def overlaps(a: PositionedNode, b: PositionedNode, margin: float = 0) -> bool:
    """True if the inflated boxes intersect on both axes.  Touching is not overlap."""
    px, py = penetration(a, b, margin)
    return px > 0 and py > 0


# ---------------------------------------------------------------------------
# Canvas bounds
# ---------------------------------------------------------------------------

def clamp_to_canvas(node: PositionedNode, canvas: CanvasConfig) -> PositionedNode:
    """Clamp the box into the canvas minus its margin.

    A box larger than the usable area is pinned to the top-left margin.
    """
    x, y = clamp_position(node.x, node.y, node.w, node.h, canvas)
    if x == node.x and y == node.y:
        return node
    return node.moved_to(x, y)


def clamp_position(
    x: float, y: float, w: float, h: float, canvas: CanvasConfig,
) -> tuple[float, float]:
    m = canvas.margin
    max_x = max(m, canvas.width - m - w)
    max_y = max(m, canvas.height - m - h)
    return min(max(x, m), max_x), min(max(y, m), max_y)


def within_canvas(node: PositionedNode, canvas: CanvasConfig, tolerance: float = 1e-6) -> bool:
    m = canvas.margin
    return (
        node.x >= m - tolerance
        and node.y >= m - tolerance
        and node.right <= canvas.width - m + tolerance
        and node.bottom <= canvas.height - m + tolerance
    )


# ---------------------------------------------------------------------------
# Edge endpoints
# ---------------------------------------------------------------------------

def boundary_point(box: PositionedNode, toward: Point) -> Point:
    """Point where the ray from the box center toward *toward* leaves the box."""
    c = center(box)
    dx = toward.x - c.x
    dy = toward.y - c.y
    if dx == 0 and dy == 0:
        return c
    half_w = box.w / 2
    half_h = box.h / 2
    scales = []
    if dx != 0:
        scales.append(half_w / abs(dx))
    if dy != 0:
        scales.append(half_h / abs(dy))
    t = min(min(scales), 1.0)
    return Point(c.x + dx * t, c.y + dy * t)


def edge_endpoints(source: PositionedNode, target: PositionedNode) -> tuple[Point, Point]:
    """Endpoints of a straight edge clipped to both box boundaries."""
    return boundary_point(source, center(target)), boundary_point(target, center(source))


# ---------------------------------------------------------------------------
# Segment intersection
# ---------------------------------------------------------------------------

def _orientation(p: Point, q: Point, r: Point) -> float:
    return (q.x - p.x) * (r.y - p.y) - (q.y - p.y) * (r.x - p.x)


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """True if segment p1-p2 properly crosses segment p3-p4.

    Collinear overlaps and shared end points do not count as crossings.
    """
    d1 = _orientation(p3, p4, p1)
    d2 = _orientation(p3, p4, p2)
    d3 = _orientation(p1, p2, p3)
    d4 = _orientation(p1, p2, p4)
    return ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4))
