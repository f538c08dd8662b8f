"""
Diagram Layout MCP Server — run the zero-overlap layout engine via Model
Context Protocol.

Exposes 2 tools:
  1. layout   — generate: lay out nodes/edges for an archetype;
                archetypes: list the supported archetypes
  2. inspect  — read-only: overlaps and quality metrics for boxes the caller
                already positioned
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from diagram_layout.geometry import within_canvas
from diagram_layout.layout_engine import (
    LayoutEngine,
    LayoutEngineConfig,
    count_overlaps,
    find_overlapping_pairs,
)
from diagram_layout.models import (
    CanvasConfig,
    DiagramArchetype,
    EdgeSpec,
    NodeSpec,
    PositionedNode,
)
from diagram_layout.routing import route_edges
from diagram_layout.scoring import assess_layout, compute_metrics
from diagram_layout.validation import (
    ValidationError,
    validate_action,
    validate_archetype,
    validate_box_dict,
    validate_edge_dict,
    validate_edge_style,
    validate_list,
    validate_max_rounds,
    validate_node_dict,
    validate_non_negative_number,
    _INSPECT_ACTIONS,
    _LAYOUT_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging: suppress routine FastMCP INFO messages that clients show
# as warnings (they go to stderr).
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("diagram-layout")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "diagram-layout",
    instructions=(
        "MCP server that lays out small diagrams with zero node overlap.\n\n"
        "=== 2 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. layout(action, ...) — generate, archetypes.\n"
        "2. inspect(action, ...) — overlaps, metrics.\n\n"
        "=== RULES ===\n"
        "- Nodes are {id, label}; edges are {source, target, label?}.\n"
        "- archetype is one of flow, tree, timeline, matrix, cycle.\n"
        "- Coordinates in results are top-left corners in canvas pixels.\n"
        "- success=false means skip the diagram; confidence below 0.8 means\n"
        "  render it but flag it as lower quality.\n"
    ),
)


# ===================================================================
# TOOL 1: layout
# ===================================================================

@mcp.tool()
def layout(
    action: str,
    archetype: str = "flow",
    nodes: list[dict[str, str]] | None = None,
    edges: list[dict[str, str]] | None = None,
    # -- canvas --
    width: float = 1920,
    height: float = 1080,
    base_node_width: float = 160,
    base_node_height: float = 60,
    min_separation: float = 40,
    margin: float = 50,
    # -- engine --
    max_rounds: int = 10,
    edge_style: str = "straight",
    clip_edges: bool = False,
) -> str:
    """Layout operations.

    Actions:
      generate    — Lay out a diagram. Params: archetype, nodes (list of
                    {id, label?}), edges (list of {source, target, label?}),
                    width, height, base_node_width, base_node_height,
                    min_separation, margin, max_rounds,
                    edge_style (straight/orthogonal), clip_edges.
      archetypes  — List supported archetypes.

    Returns:
        JSON results or an error message.
    """
    try:
        action = validate_action(action, "layout", _LAYOUT_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "archetypes":
        return json.dumps([a.value for a in DiagramArchetype])

    # ----- generate -----
    try:
        kind = validate_archetype(archetype)
        node_specs = _parse_nodes(nodes or [])
        edge_specs = _parse_edges(edges or [])
        canvas = CanvasConfig(
            width=width,
            height=height,
            base_node_width=base_node_width,
            base_node_height=base_node_height,
            min_separation=min_separation,
            margin=margin,
        )
        config = LayoutEngineConfig(
            max_rounds=validate_max_rounds(max_rounds),
            edge_style=validate_edge_style(edge_style),
            clip_edges=bool(clip_edges),
        )
    except ValidationError as exc:
        return f"Error: {exc.message}"

    engine = LayoutEngine(canvas, config)
    result = engine.generate_layout(node_specs, edge_specs, kind)
    payload = result.to_dict()
    payload["assessment"] = assess_layout(result, canvas, config.scoring).to_dict()
    logger.info(
        "layout(generate) %s: %d nodes, success=%s, confidence=%.2f",
        kind, len(result.nodes), result.success, result.confidence,
    )
    return json.dumps(payload, indent=2)


# ===================================================================
# TOOL 2: inspect
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    boxes: list[dict[str, Any]] | None = None,
    edges: list[dict[str, str]] | None = None,
    margin: float = 40,
    width: float = 1920,
    height: float = 1080,
    canvas_margin: float = 50,
) -> str:
    """Read-only inspection of boxes positioned by the caller.

    Actions:
      overlaps  — Overlapping pairs. Params: boxes (list of {id, x, y, w, h}),
                  margin (required gap between boxes).
      metrics   — Quality metrics with straight edges. Params: boxes, edges,
                  margin, width, height, canvas_margin.

    Returns:
        JSON data or an error message.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
        positioned = _parse_boxes(boxes or [])
        gap = validate_non_negative_number(margin, "margin")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "overlaps":
        pairs = find_overlapping_pairs(positioned, gap)
        return json.dumps({
            "count": len(pairs),
            "pairs": [[positioned[i].id, positioned[j].id] for i, j in pairs],
        }, indent=2)

    # ----- metrics -----
    try:
        edge_specs = _parse_edges(edges or [])
        canvas = CanvasConfig(
            width=width,
            height=height,
            min_separation=max(gap, 0.001),
            margin=canvas_margin,
        )
    except ValidationError as exc:
        return f"Error: {exc.message}"

    routed = route_edges(edge_specs, positioned)
    metrics = compute_metrics(positioned, routed, count_overlaps(positioned, gap), canvas)
    payload = metrics.to_dict()
    payload["outside_canvas"] = [b.id for b in positioned if not within_canvas(b, canvas)]
    return json.dumps(payload, indent=2)


# ===================================================================
# Internal helpers
# ===================================================================

def _parse_nodes(raw: Any) -> list[NodeSpec]:
    validate_list(raw, "nodes")
    for i, n in enumerate(raw):
        validate_node_dict(n, i)
    return [NodeSpec(id=n["id"], label=n.get("label", n["id"])) for n in raw]


def _parse_edges(raw: Any) -> list[EdgeSpec]:
    validate_list(raw, "edges")
    for i, e in enumerate(raw):
        validate_edge_dict(e, i)
    return [EdgeSpec(source=e["source"], target=e["target"], label=e.get("label") or "") for e in raw]


def _parse_boxes(raw: Any) -> list[PositionedNode]:
    validate_list(raw, "boxes")
    for i, b in enumerate(raw):
        validate_box_dict(b, i)
    return [
        PositionedNode(
            id=b["id"], x=float(b["x"]), y=float(b["y"]),
            w=float(b["w"]), h=float(b["h"]), label=str(b.get("label", "")),
        )
        for b in raw
    ]


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
