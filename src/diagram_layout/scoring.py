"""
Layout quality metrics and the confidence score.

Confidence is dominated by the zero-overlap requirement; processing time is
a secondary signal.  :func:`assess_layout` turns a result into the pass/fail
checks a renderer uses to decide whether to flag a diagram as lower quality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from diagram_layout.geometry import center, distance, node_distance, segments_intersect, within_canvas
from diagram_layout.models import (
    BoundingBox,
    CanvasConfig,
    LayoutEdge,
    LayoutMetrics,
    LayoutResult,
    Point,
    PositionedNode,
)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringConfig:
    """Constants of the confidence formula and quality thresholds."""
    base_confidence: float = 0.8
    zero_overlap_bonus: float = 0.15
    overlap_penalty: float = 0.10        # Per remaining overlapping pair
    fast_bonus: float = 0.05
    slow_penalty: float = 0.10
    fast_threshold_ms: float = 2000
    slow_threshold_ms: float = 5000
    balance_normalization: Optional[float] = None  # Default: squared canvas half-diagonal
    compliance_threshold: float = 0.75
    warning_confidence: float = 0.8


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def average_node_spacing(nodes: list[PositionedNode]) -> float:
    """Mean center-to-center distance over all node pairs (0 for n < 2)."""
    n = len(nodes)
    if n < 2:
        return 0.0
    total = 0.0
    for i in range(n):
        for j in range(i + 1, n):
            total += node_distance(nodes[i], nodes[j])
    return total / (n * (n - 1) / 2)


def layout_balance(nodes: list[PositionedNode], normalization: float) -> float:
    """``max(0, 1 - variance / normalization)`` of the node centers.

    Variance is the mean squared distance of each center from the centroid.
    """
    if not nodes or normalization <= 0:
        return 1.0
    centers = [center(n) for n in nodes]
    centroid = Point(
        sum(p.x for p in centers) / len(centers),
        sum(p.y for p in centers) / len(centers),
    )
    variance = sum(distance(p, centroid) ** 2 for p in centers) / len(centers)
    return max(0.0, 1.0 - variance / normalization)


def count_edge_crossings(edges: list[LayoutEdge]) -> int:
    """Number of routed edge pairs whose polylines properly cross.

    Pairs that share an endpoint node are skipped; they always meet there.
    """
    routed = [e for e in edges if e.is_routed]
    crossings = 0
    for i in range(len(routed)):
        a = routed[i]
        for j in range(i + 1, len(routed)):
            b = routed[j]
            if {a.source, a.target} & {b.source, b.target}:
                continue
            if _polylines_cross(a.points, b.points):
                crossings += 1
    return crossings


def _polylines_cross(a: tuple[Point, ...], b: tuple[Point, ...]) -> bool:
    for p1, p2 in zip(a, a[1:]):
        for p3, p4 in zip(b, b[1:]):
            if segments_intersect(p1, p2, p3, p4):
                return True
    return False


def default_normalization(canvas: CanvasConfig) -> float:
    return (canvas.width ** 2 + canvas.height ** 2) / 4


def compute_metrics(
    nodes: list[PositionedNode],
    edges: list[LayoutEdge],
    overlap_count: int,
    canvas: CanvasConfig,
    config: Optional[ScoringConfig] = None,
) -> LayoutMetrics:
    cfg = config or ScoringConfig()
    norm = cfg.balance_normalization or default_normalization(canvas)
    return LayoutMetrics(
        overlap_count=overlap_count,
        edge_crossings=count_edge_crossings(edges),
        total_area=BoundingBox.from_nodes(nodes).area,
        average_node_spacing=average_node_spacing(nodes),
        layout_balance=layout_balance(nodes, norm),
    )


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------

def compute_confidence(
    overlap_count: int,
    processing_time_ms: float,
    config: Optional[ScoringConfig] = None,
) -> float:
    """Base 0.8, +0.15 for zero overlaps or -0.10 per overlap, ±time, clamped to [0, 1]."""
    cfg = config or ScoringConfig()
    confidence = cfg.base_confidence
    if overlap_count == 0:
        confidence += cfg.zero_overlap_bonus
    else:
        confidence -= cfg.overlap_penalty * overlap_count

    if processing_time_ms < cfg.fast_threshold_ms:
        confidence += cfg.fast_bonus
    elif processing_time_ms > cfg.slow_threshold_ms:
        confidence -= cfg.slow_penalty

    return max(0.0, min(1.0, confidence))


# ---------------------------------------------------------------------------
# Assessment
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutAssessment:
    """Pass/fail checks for a finished layout."""
    checks: dict[str, bool] = field(default_factory=dict)
    score: float = 0.0
    compliant: bool = False
    needs_quality_warning: bool = True

    @property
    def failed(self) -> list[str]:
        return [name for name, passed in self.checks.items() if not passed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "checks": dict(self.checks),
            "score": round(self.score, 4),
            "compliant": self.compliant,
            "needs_quality_warning": self.needs_quality_warning,
            "failed": self.failed,
        }


def assess_layout(
    result: LayoutResult,
    canvas: CanvasConfig,
    config: Optional[ScoringConfig] = None,
) -> LayoutAssessment:
    """Evaluate *result* against the zero-overlap, speed and bounds requirements."""
    cfg = config or ScoringConfig()
    checks = {
        "has_nodes": len(result.nodes) > 0,
        "zero_overlaps": result.success and result.metrics.overlap_count == 0,
        "fast_processing": result.processing_time_ms < cfg.slow_threshold_ms,
        "within_bounds": all(within_canvas(n, canvas) for n in result.nodes),
    }
    score = sum(checks.values()) / len(checks)
    compliant = score >= cfg.compliance_threshold
    warn = (
        not result.success
        or not compliant
        or not checks["zero_overlaps"]
        or result.confidence < cfg.warning_confidence
    )
    return LayoutAssessment(checks=checks, score=score, compliant=compliant, needs_quality_warning=warn)
