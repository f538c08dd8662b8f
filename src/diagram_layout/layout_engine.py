"""
Zero-overlap layout engine for archetype diagrams.

Pipeline for one diagram:
1. Input sanitising (blank/duplicate ids, dangling edges)
2. Archetype placement (flow, tree, timeline, matrix, cycle)
3. Overlap resolution with pairwise repulsion and canvas clamping
4. Edge routing
5. Metrics, confidence and the final LayoutResult

The engine is synchronous and holds only immutable configuration, so one
instance can serve layouts on many threads at once.  Every fault inside the
pipeline is converted into a ``success=False`` result; callers never see an
exception from :meth:`LayoutEngine.generate_layout`.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional

from diagram_layout.geometry import clamp_position, clamp_to_canvas, overlaps, penetration
from diagram_layout.layout import LayoutConfig, place_nodes
from diagram_layout.models import (
    BoundingBox,
    CanvasConfig,
    DiagramArchetype,
    EdgeSpec,
    LayoutResult,
    NodeSpec,
    PositionedNode,
    ResolutionOutcome,
    is_finite_box,
)
from diagram_layout.routing import EDGE_STYLES, route_edges
from diagram_layout.scoring import ScoringConfig, compute_confidence, compute_metrics
from diagram_layout.validation import (
    ValidationError,
    validate_max_rounds,
    validate_non_negative_number,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutEngineConfig:
    """Configuration for the layout engine."""
    # Overlap resolution
    max_rounds: int = 10           # Resolution rounds before giving up
    epsilon: float = 1.0           # Extra push beyond the overlap depth

    # Edge routing
    edge_style: str = "straight"   # straight | orthogonal
    clip_edges: bool = False       # Anchor edges on box outlines

    placement: LayoutConfig = field(default_factory=LayoutConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self) -> None:
        validate_max_rounds(self.max_rounds)
        validate_non_negative_number(self.epsilon, "epsilon")
        if self.edge_style not in EDGE_STYLES:
            raise ValidationError(
                f"'edge_style' must be one of [{', '.join(EDGE_STYLES)}], got '{self.edge_style}'."
            )


# ---------------------------------------------------------------------------
# Overlap Detection
# ---------------------------------------------------------------------------

def find_overlapping_pairs(nodes: list[PositionedNode], margin: float = 0) -> list[tuple[int, int]]:
    """Find all pairs of overlapping boxes.

    Args:
        nodes: Positioned boxes.
        margin: Minimum required gap between boxes.

    Returns:
        ``(i, j)`` index pairs with ``i < j``, in input order.
    """
    pairs: list[tuple[int, int]] = []
    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            if overlaps(nodes[i], nodes[j], margin):
                pairs.append((i, j))
    return pairs


def count_overlaps(nodes: list[PositionedNode], margin: float = 0) -> int:
    return len(find_overlapping_pairs(nodes, margin))


# ---------------------------------------------------------------------------
# Overlap Resolution
# ---------------------------------------------------------------------------

class ResolutionState(Enum):
    SCANNING = "scanning"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


_TERMINAL = {
    ResolutionState.RESOLVED: ResolutionOutcome.RESOLVED,
    ResolutionState.EXHAUSTED: ResolutionOutcome.EXHAUSTED,
    ResolutionState.CANCELLED: ResolutionOutcome.CANCELLED,
}


@dataclass
class _Box:
    """Mutable working copy of a node during resolution."""
    id: str
    x: float
    y: float
    w: float
    h: float
    label: str = ""

    @property
    def cx(self) -> float:
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        return self.y + self.h / 2


@dataclass(frozen=True)
class ResolutionReport:
    nodes: tuple[PositionedNode, ...]
    rounds: int
    overlap_count: int
    outcome: ResolutionOutcome


def resolve_overlaps(
    nodes: list[PositionedNode],
    canvas: CanvasConfig,
    max_rounds: int = 10,
    epsilon: float = 1.0,
    cancel_event: Optional[threading.Event] = None,
) -> ResolutionReport:
    """Push overlapping boxes apart until none overlap or the round limit is reached.

    Each round scans for overlaps (``min_separation`` margin) and, if any
    remain, runs one resolving pass followed by canvas clamping.  The
    cancel event is only checked between rounds, so a cancelled run never
    leaves a half-clamped layout behind.
    """
    boxes = [_Box(n.id, n.x, n.y, n.w, n.h, n.label) for n in nodes]
    margin = canvas.min_separation
    _clamp_all(boxes, canvas)

    state = ResolutionState.SCANNING
    rounds = 0
    remaining = 0
    while state not in _TERMINAL:
        if state is ResolutionState.SCANNING:
            remaining = count_overlaps(boxes, margin)
            if remaining == 0:
                state = ResolutionState.RESOLVED
            elif rounds >= max_rounds:
                state = ResolutionState.EXHAUSTED
            elif cancel_event is not None and cancel_event.is_set():
                state = ResolutionState.CANCELLED
            else:
                state = ResolutionState.RESOLVING
        else:
            _resolve_pass(boxes, margin, epsilon)
            _clamp_all(boxes, canvas)
            rounds += 1
            state = ResolutionState.SCANNING

    if state is ResolutionState.EXHAUSTED:
        logger.warning(
            "Overlap resolution exhausted after %d rounds with %d overlapping pair(s)",
            rounds, remaining,
        )
    elif state is ResolutionState.CANCELLED:
        logger.info("Overlap resolution cancelled after %d rounds", rounds)
    else:
        logger.debug("Overlaps resolved in %d round(s)", rounds)

    return ResolutionReport(
        nodes=tuple(PositionedNode(b.id, b.x, b.y, b.w, b.h, b.label) for b in boxes),
        rounds=rounds,
        overlap_count=remaining,
        outcome=_TERMINAL[state],
    )


def _resolve_pass(boxes: list[_Box], margin: float, epsilon: float) -> None:
    """One corrective pass over the pairs found overlapping at its start.

    Both boxes of a pair move the same distance in opposite directions along
    the line between their centers, so the pair's centroid stays put.
    """
    for i, j in find_overlapping_pairs(boxes, margin):
        a, b = boxes[i], boxes[j]
        px, py = penetration(a, b, margin)
        if px <= 0 or py <= 0:
            continue  # An earlier push in this pass already separated them

        dx = b.cx - a.cx
        dy = b.cy - a.cy
        length = math.hypot(dx, dy)
        if length < 1e-9:
            ux, uy = 1.0, 0.0
        else:
            ux, uy = dx / length, dy / length

        # Distance along (ux, uy) that clears one axis.
        candidates = []
        if abs(ux) > 1e-9:
            candidates.append(px / abs(ux))
        if abs(uy) > 1e-9:
            candidates.append(py / abs(uy))
        push = min(candidates) / 2 + epsilon

        a.x -= ux * push
        a.y -= uy * push
        b.x += ux * push
        b.y += uy * push


def _clamp_all(boxes: list[_Box], canvas: CanvasConfig) -> None:
    for box in boxes:
        box.x, box.y = clamp_position(box.x, box.y, box.w, box.h, canvas)


# ---------------------------------------------------------------------------
# Input sanitising
# ---------------------------------------------------------------------------

def sanitize_inputs(
    nodes: Iterable[NodeSpec],
    edges: Iterable[EdgeSpec],
) -> tuple[list[NodeSpec], list[EdgeSpec]]:
    """Drop nodes with blank or duplicate ids and edges with unknown endpoints.

    Nothing here is fatal; every dropped item is logged as a warning.
    """
    kept: list[NodeSpec] = []
    seen: set[str] = set()
    for node in nodes:
        if not isinstance(node.id, str) or not node.id.strip():
            logger.warning("Dropping node with empty id (label=%r)", node.label)
            continue
        if node.id in seen:
            logger.warning("Dropping duplicate node id %r", node.id)
            continue
        seen.add(node.id)
        kept.append(node)

    valid_edges: list[EdgeSpec] = []
    for edge in edges:
        if edge.source not in seen or edge.target not in seen:
            logger.warning(
                "Dropping edge %r -> %r: endpoint not in node set", edge.source, edge.target,
            )
            continue
        valid_edges.append(edge)
    return kept, valid_edges


# ---------------------------------------------------------------------------
# Layout Engine Façade
# ---------------------------------------------------------------------------

class LayoutEngine:
    """Entry point: graph + archetype in, :class:`LayoutResult` out.

    Configuration is immutable.  Use :meth:`with_canvas` to derive an engine
    for a different canvas, or pass ``canvas`` per call.
    """

    def __init__(
        self,
        canvas: Optional[CanvasConfig] = None,
        config: Optional[LayoutEngineConfig] = None,
    ) -> None:
        self._canvas = canvas or CanvasConfig()
        self._config = config or LayoutEngineConfig()

    @property
    def canvas(self) -> CanvasConfig:
        return self._canvas

    @property
    def config(self) -> LayoutEngineConfig:
        return self._config

    def with_canvas(self, **changes: float) -> LayoutEngine:
        """Return a new engine whose canvas has *changes* applied."""
        return LayoutEngine(replace(self._canvas, **changes), self._config)

    def generate_layout(
        self,
        nodes: Iterable[NodeSpec],
        edges: Iterable[EdgeSpec],
        archetype: DiagramArchetype | str,
        canvas: Optional[CanvasConfig] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LayoutResult:
        """Lay out one diagram.

        Args:
            nodes: Nodes to place.
            edges: Directed edges between them.
            archetype: Diagram family selecting the placement strategy.
            canvas: Per-call canvas; defaults to the engine's canvas.
            cancel_event: Checked between resolution rounds.

        Returns:
            A successful result (possibly with reduced confidence when
            overlaps could not all be removed) or a structured failure.
        """
        canvas = canvas or self._canvas
        cfg = self._config
        start = time.perf_counter()
        kind: Optional[DiagramArchetype] = None

        try:
            kind = DiagramArchetype.parse(archetype)
            node_list, edge_list = sanitize_inputs(nodes, edges)
            logger.info(
                "Generating %s layout for %d nodes, %d edges",
                kind.value, len(node_list), len(edge_list),
            )

            initial = place_nodes(kind, node_list, edge_list, canvas, cfg.placement)
            report = resolve_overlaps(
                initial, canvas, cfg.max_rounds, cfg.epsilon, cancel_event,
            )
            if report.outcome is ResolutionOutcome.CANCELLED:
                return LayoutResult.failure("Layout cancelled", _elapsed_ms(start), kind)

            positioned = [clamp_to_canvas(n, canvas) for n in report.nodes]
            if not all(is_finite_box(n) for n in positioned):
                raise ArithmeticError("layout produced non-finite node coordinates")
            overlap_count = count_overlaps(positioned, canvas.min_separation)

            routed = []
            if len(positioned) > 1:
                routed = route_edges(
                    edge_list, positioned, cfg.edge_style, cfg.clip_edges,
                    margin=canvas.min_separation / 2,
                )

            metrics = compute_metrics(positioned, routed, overlap_count, canvas, cfg.scoring)
            elapsed = _elapsed_ms(start)
            confidence = compute_confidence(overlap_count, elapsed, cfg.scoring)

            if overlap_count:
                logger.warning(
                    "%s layout finished with %d overlapping pair(s); confidence %.2f",
                    kind.value, overlap_count, confidence,
                )
            if elapsed > cfg.scoring.slow_threshold_ms:
                logger.warning("Layout processing took %.0fms", elapsed)

            return LayoutResult(
                nodes=tuple(positioned),
                edges=tuple(routed),
                bounds=BoundingBox.from_nodes(positioned),
                processing_time_ms=elapsed,
                success=True,
                confidence=confidence,
                metrics=metrics,
                archetype=kind,
                rounds=report.rounds,
                outcome=report.outcome,
            )
        except Exception as exc:
            logger.exception("Layout generation failed")
            message = str(exc) or type(exc).__name__
            return LayoutResult.failure(message, _elapsed_ms(start), kind)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def generate_layout(
    nodes: Iterable[NodeSpec],
    edges: Iterable[EdgeSpec],
    archetype: DiagramArchetype | str,
    canvas: Optional[CanvasConfig] = None,
    config: Optional[LayoutEngineConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> LayoutResult:
    """Convenience wrapper around :meth:`LayoutEngine.generate_layout`."""
    return LayoutEngine(canvas, config).generate_layout(
        nodes, edges, archetype, cancel_event=cancel_event,
    )
