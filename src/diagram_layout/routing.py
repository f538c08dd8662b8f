"""
Edge routing between resolved node boxes.

Straight routing joins the two box centers.  Orthogonal routing inserts an
L/Z-shaped pair of elbows through the midpoint gap, picking whichever
orientation crosses fewer other boxes.
"""

from __future__ import annotations

import logging

from diagram_layout.geometry import center, edge_endpoints
from diagram_layout.models import EdgeSpec, LayoutEdge, Point, PositionedNode

logger = logging.getLogger(__name__)

STRAIGHT = "straight"
ORTHOGONAL = "orthogonal"
EDGE_STYLES = (STRAIGHT, ORTHOGONAL)


def route_edges(
    edges: list[EdgeSpec],
    nodes: list[PositionedNode],
    style: str = STRAIGHT,
    clip_to_boundary: bool = False,
    margin: float = 0,
) -> list[LayoutEdge]:
    """Compute a polyline for every edge.

    An edge whose source or target is not among *nodes* comes back with no
    points (the renderer skips it) and a warning is logged.

    Args:
        edges: Declared edges.
        nodes: Resolved node boxes.
        style: ``"straight"`` or ``"orthogonal"``.
        clip_to_boundary: Anchor end points on the box outlines instead of
            the box centers.
        margin: Clearance around boxes when counting orthogonal crossings.
    """
    if style not in EDGE_STYLES:
        raise ValueError(f"Unknown edge style {style!r}. Valid styles: {', '.join(EDGE_STYLES)}.")

    by_id = {n.id: n for n in nodes}
    routed: list[LayoutEdge] = []
    for edge in edges:
        src = by_id.get(edge.source)
        tgt = by_id.get(edge.target)
        if src is None or tgt is None:
            logger.warning(
                "Edge %s -> %s references a missing node; leaving it unrouted",
                edge.source, edge.target,
            )
            routed.append(LayoutEdge(edge.source, edge.target, (), edge.label))
            continue

        if src.id == tgt.id:
            c = center(src)
            points = [c, c]
        elif clip_to_boundary:
            start, end = edge_endpoints(src, tgt)
            points = [start, end]
        else:
            points = [center(src), center(tgt)]

        if style == ORTHOGONAL and src.id != tgt.id:
            obstacles = [n for n in nodes if n.id not in (src.id, tgt.id)]
            elbows = orthogonal_waypoints(src, tgt, obstacles, margin)
            if elbows:
                points = _orthogonal_anchors(src, tgt, elbows, clip_to_boundary)

        routed.append(LayoutEdge(edge.source, edge.target, tuple(points), edge.label))
    return routed


def _orthogonal_anchors(
    src: PositionedNode,
    tgt: PositionedNode,
    elbows: list[Point],
    clip_to_boundary: bool,
) -> list[Point]:
    """End points for an elbowed route, optionally snapped onto the box sides."""
    start = center(src)
    end = center(tgt)
    if clip_to_boundary:
        first, last = elbows[0], elbows[-1]
        if first.y == start.y:
            start = Point(src.right if first.x > start.x else src.x, start.y)
        else:
            start = Point(start.x, src.bottom if first.y > start.y else src.y)
        if last.y == end.y:
            end = Point(tgt.right if last.x > end.x else tgt.x, end.y)
        else:
            end = Point(end.x, tgt.bottom if last.y > end.y else tgt.y)
    return [start, *elbows, end]


def orthogonal_waypoints(
    src: PositionedNode,
    tgt: PositionedNode,
    obstacles: list[PositionedNode],
    margin: float = 0,
) -> list[Point]:
    """Elbow points for an orthogonal route from *src* to *tgt*.

    Returns an empty list when the boxes are aligned closely enough for a
    straight segment.

    1. Horizontal-first: across to the x midpoint, then down/up, then across
    2. Vertical-first: down/up to the y midpoint, then across, then down/up
    The option crossing fewer obstacle boxes wins; ties go horizontal-first.
    """
    sx, sy = src.cx, src.cy
    tx, ty = tgt.cx, tgt.cy
    dx = tx - sx
    dy = ty - sy

    if abs(dy) < 0.5:
        return []
    if abs(dx) < 0.5:
        return []

    mid_x = sx + dx / 2
    mid_y = sy + dy / 2

    option_a = [Point(mid_x, sy), Point(mid_x, ty)]
    crossings_a = (
        _count_obstacle_crossings(sx, sy, mid_x, sy, obstacles, margin)
        + _count_obstacle_crossings(mid_x, sy, mid_x, ty, obstacles, margin)
        + _count_obstacle_crossings(mid_x, ty, tx, ty, obstacles, margin)
    )

    option_b = [Point(sx, mid_y), Point(tx, mid_y)]
    crossings_b = (
        _count_obstacle_crossings(sx, sy, sx, mid_y, obstacles, margin)
        + _count_obstacle_crossings(sx, mid_y, tx, mid_y, obstacles, margin)
        + _count_obstacle_crossings(tx, mid_y, tx, ty, obstacles, margin)
    )

    return option_a if crossings_a <= crossings_b else option_b


def _count_obstacle_crossings(
    x1: float, y1: float,
    x2: float, y2: float,
    obstacles: list[PositionedNode],
    margin: float,
) -> int:
    """Count how many obstacles an axis-parallel segment passes through."""
    count = 0
    for obs in obstacles:
        left, right = obs.x - margin, obs.right + margin
        top, bottom = obs.y - margin, obs.bottom + margin
        if abs(x1 - x2) < 0.1:  # Vertical segment
            if left <= x1 <= right and max(y1, y2) >= top and min(y1, y2) <= bottom:
                count += 1
        elif abs(y1 - y2) < 0.1:  # Horizontal segment
            if top <= y1 <= bottom and max(x1, x2) >= left and min(x1, x2) <= right:
                count += 1
    return count
