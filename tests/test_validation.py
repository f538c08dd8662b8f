"""Tests for input validation."""

import math

import pytest

from diagram_layout.validation import (
    ValidationError,
    validate_action,
    validate_archetype,
    validate_box_dict,
    validate_edge_dict,
    validate_edge_style,
    validate_enum,
    validate_int,
    validate_list,
    validate_max_rounds,
    validate_node_dict,
    validate_non_negative_number,
    validate_number,
    validate_positive_number,
    _LAYOUT_ACTIONS,
)


# ===================================================================
# Unit tests for primitive validators
# ===================================================================


class TestValidateNumber:
    def test_int(self) -> None:
        assert validate_number(5, "f") == 5.0

    def test_float(self) -> None:
        assert validate_number(3.14, "f") == 3.14

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            validate_number(True, "f")

    def test_string_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            validate_number("5", "f")

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValidationError, match="NaN"):
            validate_number(float("nan"), "f")

    def test_infinity_rejected(self) -> None:
        for value in (math.inf, -math.inf):
            with pytest.raises(ValidationError, match="finite"):
                validate_number(value, "f")

    def test_min(self) -> None:
        with pytest.raises(ValidationError, match=">="):
            validate_number(-1, "f", min_val=0)

    def test_max(self) -> None:
        with pytest.raises(ValidationError, match="<="):
            validate_number(11, "f", max_val=10)


class TestValidateInt:
    def test_valid(self) -> None:
        assert validate_int(3, "f") == 3

    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(3.0, "f")

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="integer"):
            validate_int(False, "f")

    def test_range(self) -> None:
        with pytest.raises(ValidationError):
            validate_int(0, "f", min_val=1)
        with pytest.raises(ValidationError):
            validate_int(5, "f", max_val=4)


class TestValidateEnum:
    def test_case_insensitive(self) -> None:
        assert validate_enum(" Tree ", "kind", {"TREE", "FLOW"}) == "tree"

    def test_unknown(self) -> None:
        with pytest.raises(ValidationError, match=r"\[flow, tree\]"):
            validate_enum("pie", "kind", {"TREE", "FLOW"})

    def test_not_a_string(self) -> None:
        with pytest.raises(ValidationError, match="must be a string"):
            validate_enum(3, "kind", {"TREE"})


class TestValidateList:
    def test_valid(self) -> None:
        assert validate_list([1], "items") == [1]

    def test_not_a_list(self) -> None:
        with pytest.raises(ValidationError, match="must be a list"):
            validate_list({"a": 1}, "items")

    def test_min_length(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            validate_list([], "items", min_length=1)


def test_positive_number() -> None:
    assert validate_positive_number(1, "width") == 1.0
    with pytest.raises(ValidationError, match="width"):
        validate_positive_number(0, "width")


def test_non_negative_number() -> None:
    assert validate_non_negative_number(0, "margin") == 0.0
    with pytest.raises(ValidationError, match="margin"):
        validate_non_negative_number(-0.5, "margin")


def test_max_rounds() -> None:
    assert validate_max_rounds(10) == 10
    for bad in (0, 1001, 2.5):
        with pytest.raises(ValidationError, match="max_rounds"):
            validate_max_rounds(bad)


# ===================================================================
# Domain validators
# ===================================================================


class TestValidateAction:
    def test_valid(self) -> None:
        assert validate_action("Generate", "layout", _LAYOUT_ACTIONS) == "generate"

    def test_missing(self) -> None:
        with pytest.raises(ValidationError, match="requires an 'action'"):
            validate_action("", "layout", _LAYOUT_ACTIONS)

    def test_unknown(self) -> None:
        with pytest.raises(ValidationError, match="Unknown layout action 'draw'"):
            validate_action("draw", "layout", _LAYOUT_ACTIONS)


def test_archetype_and_edge_style() -> None:
    assert validate_archetype("TIMELINE") == "timeline"
    assert validate_edge_style("Orthogonal") == "orthogonal"
    with pytest.raises(ValidationError, match="archetype"):
        validate_archetype("gantt")
    with pytest.raises(ValidationError, match="edge_style"):
        validate_edge_style("spline")


class TestValidateNodeDict:
    def test_valid(self) -> None:
        validate_node_dict({"id": "a", "label": "A"}, 0)
        validate_node_dict({"id": "a"}, 0)

    def test_not_a_dict(self) -> None:
        with pytest.raises(ValidationError, match="index 2 must be a dict"):
            validate_node_dict(["a"], 2)

    def test_missing_id(self) -> None:
        with pytest.raises(ValidationError, match="missing required key 'id'"):
            validate_node_dict({"label": "A"}, 0)

    def test_non_string_label(self) -> None:
        with pytest.raises(ValidationError, match="'label' must be a string"):
            validate_node_dict({"id": "a", "label": 5}, 0)


class TestValidateEdgeDict:
    def test_valid(self) -> None:
        validate_edge_dict({"source": "a", "target": "b"}, 0)
        validate_edge_dict({"source": "a", "target": "b", "label": None}, 0)

    def test_missing_target(self) -> None:
        with pytest.raises(ValidationError, match="missing required key 'target'"):
            validate_edge_dict({"source": "a"}, 1)

    def test_non_string_source(self) -> None:
        with pytest.raises(ValidationError, match="'source' must be a string"):
            validate_edge_dict({"source": 1, "target": "b"}, 0)


class TestValidateBoxDict:
    def test_valid(self) -> None:
        validate_box_dict({"id": "a", "x": 0, "y": 0, "w": 10, "h": 10}, 0)

    def test_missing_coordinate(self) -> None:
        with pytest.raises(ValidationError, match="missing required key 'h'"):
            validate_box_dict({"id": "a", "x": 0, "y": 0, "w": 10}, 0)

    def test_non_numeric(self) -> None:
        with pytest.raises(ValidationError, match=r"boxes\[0\]\.x"):
            validate_box_dict({"id": "a", "x": "0", "y": 0, "w": 10, "h": 10}, 0)

    def test_negative_size(self) -> None:
        with pytest.raises(ValidationError, match="must be >= 0"):
            validate_box_dict({"id": "a", "x": 0, "y": 0, "w": -1, "h": 10}, 0)
