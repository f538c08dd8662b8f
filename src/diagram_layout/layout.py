"""
Archetype placement strategies.

Each strategy computes an initial, archetype-appropriate position for every
node.  None of them guarantees zero overlap; that is the job of the overlap
resolution pass in :mod:`diagram_layout.layout_engine`.

- flow      — topological order along the x axis, branches in extra lanes
- tree      — BFS ranks, children centered under their parent
- timeline  — input order spread along a horizontal time axis
- matrix    — near-square grid
- cycle     — evenly spaced on a circle around the canvas center
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from diagram_layout.geometry import CHAR_WIDTH, LABEL_PADDING, node_height, node_width
from diagram_layout.models import (
    CanvasConfig,
    DiagramArchetype,
    EdgeSpec,
    NodeSpec,
    PositionedNode,
)

logger = logging.getLogger(__name__)

# Extra pixel added where float rounding could leave two boxes exactly
# min_separation apart.
_SLACK = 1.0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutConfig:
    """Configuration for initial placement."""
    char_width: float = CHAR_WIDTH
    label_padding: float = LABEL_PADDING
    rank_spacing: Optional[float] = None   # Tree: default base height + 2 * separation


Strategy = Callable[[list[NodeSpec], list[EdgeSpec], CanvasConfig, LayoutConfig], list[PositionedNode]]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _sizes(
    nodes: list[NodeSpec], canvas: CanvasConfig, cfg: LayoutConfig,
) -> dict[str, tuple[float, float]]:
    return {
        n.id: (node_width(n, canvas, cfg.char_width, cfg.label_padding), node_height(n, canvas))
        for n in nodes
    }


def _box(node: NodeSpec, cx: float, cy: float, size: tuple[float, float]) -> PositionedNode:
    w, h = size
    return PositionedNode(node.id, cx - w / 2, cy - h / 2, w, h, node.label)


def _place_trivial(
    nodes: list[NodeSpec], canvas: CanvasConfig, cfg: LayoutConfig,
) -> list[PositionedNode]:
    """Zero nodes → nothing; one node → centered on the canvas."""
    if not nodes:
        return []
    node = nodes[0]
    size = _sizes([node], canvas, cfg)[node.id]
    c = canvas.center
    return [_box(node, c.x, c.y, size)]


def _adjacency(
    nodes: list[NodeSpec], edges: list[EdgeSpec],
) -> tuple[dict[str, list[str]], dict[str, int]]:
    """Successor lists and in-degrees over known ids.

    Self-loops, repeated edges and edges touching unknown ids are ignored.
    """
    succ: dict[str, list[str]] = {n.id: [] for n in nodes}
    indeg: dict[str, int] = {n.id: 0 for n in nodes}
    for e in edges:
        if e.source not in succ or e.target not in succ or e.source == e.target:
            continue
        if e.target in succ[e.source]:
            continue
        succ[e.source].append(e.target)
        indeg[e.target] += 1
    return succ, indeg


def topological_order(nodes: list[NodeSpec], edges: list[EdgeSpec]) -> list[str]:
    """Kahn's algorithm, ready nodes taken in input order.

    Falls back to the input order when the graph has a cycle.
    """
    succ, indeg = _adjacency(nodes, edges)
    remaining = dict(indeg)
    ready = deque(nid for nid, d in remaining.items() if d == 0)
    order: list[str] = []
    while ready:
        nid = ready.popleft()
        order.append(nid)
        for child in succ[nid]:
            remaining[child] -= 1
            if remaining[child] == 0:
                ready.append(child)
    if len(order) < len(nodes):
        logger.debug("Cycle detected in flow graph; using input order")
        return [n.id for n in nodes]
    return order


def _centered_start(usable_start: float, usable: float, block: float) -> float:
    return usable_start + max(0.0, (usable - block) / 2)


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------

def layout_flow(
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Lay nodes left to right in topological order.

    Every node gets its own column at a fixed pitch.  The second and later
    successors of a branching node drop into a new lane one row below.  A
    sequence wider than the canvas wraps onto a new band underneath.
    """
    cfg = config or LayoutConfig()
    if len(nodes) <= 1:
        return _place_trivial(nodes, canvas, cfg)

    sizes = _sizes(nodes, canvas, cfg)
    by_id = {n.id: n for n in nodes}
    succ, _ = _adjacency(nodes, edges)
    order = topological_order(nodes, edges)

    # Lane assignment: first child inherits the parent's lane.
    lanes: dict[str, int] = {}
    for nid in order:
        lanes.setdefault(nid, 0)
        children = [c for c in succ[nid] if c not in lanes]
        for k, child in enumerate(children):
            lanes[child] = lanes[nid] + k

    sep = canvas.min_separation
    h = canvas.base_node_height
    w_max = max(w for w, _ in sizes.values())
    pitch = w_max + sep
    row_pitch = h + sep

    per_row = max(1, int((canvas.usable_width + sep) // pitch))
    bands = math.ceil(len(order) / per_row)
    lane_count = max(lanes.values()) + 1
    rows_fit = max(1, int((canvas.usable_height + sep) // row_pitch))
    if bands * lane_count > rows_fit:
        lane_count = max(1, rows_fit // bands)

    block_w = min(len(order), per_row) * pitch - sep
    block_h = bands * lane_count * row_pitch - sep
    left = _centered_start(canvas.margin, canvas.usable_width, block_w)
    top = _centered_start(canvas.margin, canvas.usable_height, block_h)

    placed: list[PositionedNode] = []
    for idx, nid in enumerate(order):
        band, col = divmod(idx, per_row)
        row = band * lane_count + lanes[nid] % lane_count
        cx = left + col * pitch + w_max / 2
        cy = top + row * row_pitch + h / 2
        placed.append(_box(by_id[nid], cx, cy, sizes[nid]))
    return placed


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------

def layout_tree(
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Lay out a hierarchy top to bottom.

    - Roots are nodes with no incoming edge (the first node if there is none)
    - BFS depth gives the rank, ``y = top + depth * rank_spacing``
    - Children are distributed evenly and centered under their parent,
      using subtree widths so sibling subtrees never interleave
    - Nodes no root reaches start a tree of their own

    A tree too wide or too deep for the canvas falls back to
    :func:`_layout_tree_folded`.
    """
    cfg = config or LayoutConfig()
    if len(nodes) <= 1:
        return _place_trivial(nodes, canvas, cfg)

    sizes = _sizes(nodes, canvas, cfg)
    succ, indeg = _adjacency(nodes, edges)
    sep = canvas.min_separation
    h = canvas.base_node_height

    roots = [n.id for n in nodes if indeg[n.id] == 0] or [nodes[0].id]
    depth: dict[str, int] = {}
    children: dict[str, list[str]] = {n.id: [] for n in nodes}
    forest: list[str] = []
    visit: list[str] = []

    def _bfs(root: str) -> None:
        depth[root] = 0
        forest.append(root)
        visit.append(root)
        queue = deque([root])
        while queue:
            nid = queue.popleft()
            for child in succ[nid]:
                if child not in depth:
                    depth[child] = depth[nid] + 1
                    children[nid].append(child)
                    visit.append(child)
                    queue.append(child)

    for root in roots:
        if root not in depth:
            _bfs(root)
    for n in nodes:
        if n.id not in depth:
            _bfs(n.id)

    # Subtree widths, children before parents.
    span: dict[str, float] = {}
    for nid in sorted(depth, key=lambda k: depth[k], reverse=True):
        kids = children[nid]
        kids_w = sum(span[k] for k in kids) + sep * (len(kids) - 1) if kids else 0.0
        span[nid] = max(sizes[nid][0], kids_w)

    max_depth = max(depth.values())
    total_w = sum(span[r] for r in forest) + sep * (len(forest) - 1)
    if total_w > canvas.usable_width or max_depth * (h + sep) + h > canvas.usable_height:
        logger.debug("Tree does not fit the canvas; folding ranks")
        return _layout_tree_folded(nodes, visit, depth, sizes, canvas, cfg)

    rank_spacing = cfg.rank_spacing or h + 2 * sep
    if max_depth and max_depth * rank_spacing + h > canvas.usable_height:
        rank_spacing = max(h + sep, (canvas.usable_height - h) / max_depth)

    block_h = max_depth * rank_spacing + h
    left = _centered_start(canvas.margin, canvas.usable_width, total_w)
    top = _centered_start(canvas.margin, canvas.usable_height, block_h)

    centers: dict[str, float] = {}

    def _place(nid: str, start: float) -> None:
        centers[nid] = start + span[nid] / 2
        kids = children[nid]
        if not kids:
            return
        kids_w = sum(span[k] for k in kids) + sep * (len(kids) - 1)
        cursor = centers[nid] - kids_w / 2
        for kid in kids:
            _place(kid, cursor)
            cursor += span[kid] + sep

    cursor = left
    for root in forest:
        _place(root, cursor)
        cursor += span[root] + sep

    return [
        _box(n, centers[n.id], top + depth[n.id] * rank_spacing + h / 2, sizes[n.id])
        for n in nodes
    ]


def _layout_tree_folded(
    nodes: list[NodeSpec],
    visit: list[str],
    depth: dict[str, int],
    sizes: dict[str, tuple[float, float]],
    canvas: CanvasConfig,
    cfg: LayoutConfig,
) -> list[PositionedNode]:
    """Rank grid for a tree too wide or too deep for the canvas.

    Each rank is cut into rows of at most ``per_row`` nodes in BFS order, so
    siblings stay together.  The rows, top rank first, are then cut into
    columns of as many rows as the canvas height holds, and the columns sit
    side by side.  ``per_row`` is the largest count whose columns fit the
    usable width.
    """
    sep = canvas.min_separation
    h = canvas.base_node_height
    gap = sep + _SLACK

    ranks: dict[int, list[str]] = {}
    for nid in visit:
        ranks.setdefault(depth[nid], []).append(nid)
    rank_rows = [ranks[d] for d in sorted(ranks)]
    rows_fit = max(1, int((canvas.usable_height + sep) // (h + sep)))

    def _row_width(row: list[str]) -> float:
        return sum(sizes[nid][0] for nid in row) + gap * (len(row) - 1)

    def _arrange(per_row: int) -> tuple[list[list[list[str]]], list[float], float]:
        rows = [r[i:i + per_row] for r in rank_rows for i in range(0, len(r), per_row)]
        columns = [rows[i:i + rows_fit] for i in range(0, len(rows), rows_fit)]
        widths = [max(_row_width(row) for row in col) for col in columns]
        return columns, widths, sum(widths) + gap * (len(widths) - 1)

    widest = max(len(r) for r in rank_rows)
    candidates = [_arrange(k) for k in range(widest, 0, -1)]
    fitting = [c for c in candidates if c[2] <= canvas.usable_width]
    columns, widths, total_w = fitting[0] if fitting else min(candidates, key=lambda c: c[2])

    tallest = max(len(col) for col in columns)
    pitch = h + sep
    if tallest > 1:
        spacing = cfg.rank_spacing or h + 2 * sep
        pitch = max(h + sep, min(spacing, (canvas.usable_height - h) / (tallest - 1)))
    block_h = (tallest - 1) * pitch + h
    left = _centered_start(canvas.margin, canvas.usable_width, total_w)
    top = _centered_start(canvas.margin, canvas.usable_height, block_h)

    centers: dict[str, tuple[float, float]] = {}
    col_left = left
    for col, col_w in zip(columns, widths):
        for r, row in enumerate(col):
            cursor = col_left + (col_w - _row_width(row)) / 2
            cy = top + r * pitch + h / 2
            for nid in row:
                w = sizes[nid][0]
                centers[nid] = (cursor + w / 2, cy)
                cursor += w + gap
        col_left += col_w + gap

    return [_box(n, *centers[n.id], sizes[n.id]) for n in nodes]


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

def layout_timeline(
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Spread nodes along a horizontal time axis in input order.

    Node ``i`` of ``n`` is centered at
    ``margin + w_max/2 + i * (width - 2*margin - w_max) / max(n-1, 1)``.
    All nodes share one band through the canvas center unless the pitch is
    too tight, in which case consecutive nodes alternate over the fewest
    bands that keep same-band neighbours apart.
    """
    cfg = config or LayoutConfig()
    if len(nodes) <= 1:
        return _place_trivial(nodes, canvas, cfg)

    sizes = _sizes(nodes, canvas, cfg)
    n = len(nodes)
    sep = canvas.min_separation
    h = canvas.base_node_height
    w_max = max(w for w, _ in sizes.values())

    track = max(0.0, canvas.usable_width - w_max)
    step = track / max(n - 1, 1)
    need = w_max + sep + _SLACK
    if step >= need:
        bands = 1
    elif step <= 0:
        bands = n
    else:
        bands = min(n, math.ceil(need / step))

    row_pitch = h + sep
    block_h = bands * row_pitch - sep
    top = _centered_start(canvas.margin, canvas.usable_height, block_h)
    x0 = canvas.margin + w_max / 2

    return [
        _box(node, x0 + i * step, top + (i % bands) * row_pitch + h / 2, sizes[node.id])
        for i, node in enumerate(nodes)
    ]


# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------

def layout_matrix(
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Fill a near-square grid row by row, centered on the canvas."""
    cfg = config or LayoutConfig()
    if len(nodes) <= 1:
        return _place_trivial(nodes, canvas, cfg)

    sizes = _sizes(nodes, canvas, cfg)
    n = len(nodes)
    cols = math.ceil(math.sqrt(n))
    rows = math.ceil(n / cols)

    sep = canvas.min_separation
    w_max = max(w for w, _ in sizes.values())
    h = canvas.base_node_height
    cell_w = w_max + sep
    cell_h = h + sep

    left = _centered_start(canvas.margin, canvas.usable_width, cols * cell_w - sep)
    top = _centered_start(canvas.margin, canvas.usable_height, rows * cell_h - sep)

    placed: list[PositionedNode] = []
    for i, node in enumerate(nodes):
        row, col = divmod(i, cols)
        cx = left + col * cell_w + w_max / 2
        cy = top + row * cell_h + h / 2
        placed.append(_box(node, cx, cy, sizes[node.id]))
    return placed


# ---------------------------------------------------------------------------
# Cycle
# ---------------------------------------------------------------------------

def cycle_radii(n: int, w_max: float, canvas: CanvasConfig) -> tuple[float, float]:
    """Radii (rx, ry) for *n* nodes of width up to *w_max*.

    The circle radius is the smallest that keeps adjacent centers one
    inflated-box diagonal apart.  When that circle does not fit the canvas
    the vertical radius is capped and the horizontal one stretched to keep
    a similar perimeter.
    """
    h = canvas.base_node_height
    sep = canvas.min_separation
    diag = math.hypot(w_max + sep, h + sep) + _SLACK
    r = diag / (2 * math.sin(math.pi / n)) if n > 1 else 0.0

    rx_max = max(0.0, canvas.usable_width / 2 - w_max / 2)
    ry_max = max(0.0, canvas.usable_height / 2 - h / 2)
    if r <= ry_max and r <= rx_max:
        return r, r
    ry = min(r, ry_max)
    rx = min(rx_max, r * r / ry) if ry > 0 else rx_max
    return rx, ry


def layout_cycle(
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Place node ``i`` at angle ``2π·i/n`` around the canvas center."""
    cfg = config or LayoutConfig()
    if len(nodes) <= 1:
        return _place_trivial(nodes, canvas, cfg)

    sizes = _sizes(nodes, canvas, cfg)
    n = len(nodes)
    w_max = max(w for w, _ in sizes.values())
    rx, ry = cycle_radii(n, w_max, canvas)
    c = canvas.center

    placed: list[PositionedNode] = []
    for i, node in enumerate(nodes):
        angle = 2 * math.pi * i / n
        placed.append(_box(node, c.x + rx * math.cos(angle), c.y + ry * math.sin(angle), sizes[node.id]))
    return placed


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

STRATEGIES: dict[DiagramArchetype, Strategy] = {
    DiagramArchetype.FLOW: layout_flow,
    DiagramArchetype.TREE: layout_tree,
    DiagramArchetype.TIMELINE: layout_timeline,
    DiagramArchetype.MATRIX: layout_matrix,
    DiagramArchetype.CYCLE: layout_cycle,
}


def place_nodes(
    archetype: DiagramArchetype | str,
    nodes: list[NodeSpec],
    edges: list[EdgeSpec],
    canvas: CanvasConfig,
    config: Optional[LayoutConfig] = None,
) -> list[PositionedNode]:
    """Run the placement strategy registered for *archetype*."""
    strategy = STRATEGIES[DiagramArchetype.parse(archetype)]
    return strategy(list(nodes), list(edges), canvas, config or LayoutConfig())
