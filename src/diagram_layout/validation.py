"""
Input validation for layout configuration and MCP tool parameters.

Provides reusable validators that produce clear error messages for values
received from callers (the upstream classifier or an LLM agent).
"""

from __future__ import annotations

import math
from typing import Any


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a numeric value and optional range."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if val != val:
        raise ValidationError(f"'{field_name}' must be a number, got NaN.")
    if not math.isfinite(val):
        raise ValidationError(f"'{field_name}' must be finite, got {val}.")
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}."
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}."
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}."
        )
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Validate that a string value is one of the allowed choices (case-insensitive)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}."
        )
    normalized = value.strip().upper()
    if normalized not in {a.upper() for a in allowed}:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{field_name}' must be one of [{choices}], got '{value}'."
        )
    return normalized.lower()


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


# ---------------------------------------------------------------------------
# Composite / domain validators
# ---------------------------------------------------------------------------

_ARCHETYPES = {"FLOW", "TREE", "TIMELINE", "MATRIX", "CYCLE"}
_EDGE_STYLES = {"STRAIGHT", "ORTHOGONAL"}

_LAYOUT_ACTIONS = {"GENERATE", "ARCHETYPES"}
_INSPECT_ACTIONS = {"OVERLAPS", "METRICS"}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Validate the action parameter for a tool."""
    if not isinstance(value, str) or not value.strip():
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    normalized = value.strip().upper()
    if normalized not in allowed:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"Unknown {tool_name} action '{value}'. Valid actions: {choices}."
        )
    return value.strip().lower()


def validate_archetype(value: Any) -> str:
    """Validate a diagram archetype name (flow, tree, timeline, matrix, cycle)."""
    return validate_enum(value, "archetype", _ARCHETYPES)


def validate_edge_style(value: Any) -> str:
    """Validate an edge routing style (straight, orthogonal)."""
    return validate_enum(value, "edge_style", _EDGE_STYLES)


def validate_node_dict(n: Any, index: int) -> None:
    """Validate a single node dict: ``{"id": str, "label"?: str}``."""
    if not isinstance(n, dict):
        raise ValidationError(f"Node at index {index} must be a dict/object.")
    if "id" not in n:
        raise ValidationError(f"Node at index {index} missing required key 'id'.")
    if not isinstance(n["id"], str):
        raise ValidationError(f"Node at index {index}: 'id' must be a string.")
    if "label" in n and not isinstance(n["label"], str):
        raise ValidationError(f"Node at index {index}: 'label' must be a string.")


def validate_edge_dict(e: Any, index: int) -> None:
    """Validate a single edge dict: ``{"source": str, "target": str, "label"?: str}``."""
    if not isinstance(e, dict):
        raise ValidationError(f"Edge at index {index} must be a dict/object.")
    for key in ("source", "target"):
        if key not in e:
            raise ValidationError(f"Edge at index {index} missing required key '{key}'.")
        if not isinstance(e[key], str):
            raise ValidationError(f"Edge at index {index}: '{key}' must be a string.")
    if "label" in e and e["label"] is not None and not isinstance(e["label"], str):
        raise ValidationError(f"Edge at index {index}: 'label' must be a string.")


def validate_box_dict(b: Any, index: int) -> None:
    """Validate a positioned box dict: ``{"id", "x", "y", "w", "h"}``."""
    if not isinstance(b, dict):
        raise ValidationError(f"Box at index {index} must be a dict/object.")
    if not isinstance(b.get("id"), str):
        raise ValidationError(f"Box at index {index}: 'id' must be a string.")
    for key in ("x", "y", "w", "h"):
        if key not in b:
            raise ValidationError(f"Box at index {index} missing required key '{key}'.")
        validate_number(b[key], f"boxes[{index}].{key}")
    if b["w"] < 0 or b["h"] < 0:
        raise ValidationError(f"Box at index {index}: 'w' and 'h' must be >= 0.")


# ---------------------------------------------------------------------------
# Composite tool-level validators
# ---------------------------------------------------------------------------

def validate_positive_number(value: Any, field_name: str) -> float:
    """Validate that a number is positive (> 0)."""
    return validate_number(value, field_name, min_val=0.001)


def validate_non_negative_number(value: Any, field_name: str) -> float:
    """Validate that a number is >= 0."""
    return validate_number(value, field_name, min_val=0)


def validate_max_rounds(value: Any) -> int:
    """Validate the resolution round limit (1..1000)."""
    return validate_int(value, "max_rounds", min_val=1, max_val=1000)
