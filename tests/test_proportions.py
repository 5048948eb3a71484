import copy
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from smile_proportions.proportions import (
    GOLDEN_RATIO,
    ProportionLineCalculator,
    ProportionLines,
    ProportionLinesMemo,
    ToothBounds,
    compute_proportion_lines,
    sanitize_tooth_bounds,
)


def six_teeth():
    """Canine to canine; central incisors are the two widest."""
    return [
        ToothBounds(x=24, y=50, width=5, height=14),  # right canine
        ToothBounds(x=32, y=48, width=6.18, height=15),  # right lateral
        ToothBounds(x=42, y=46, width=10, height=16),  # right central
        ToothBounds(x=52, y=46, width=10, height=16),  # left central
        ToothBounds(x=62, y=48, width=6.18, height=15),  # left lateral
        ToothBounds(x=70, y=50, width=5, height=14),  # left canine
    ]


# --- empty / degenerate input ---


@pytest.mark.parametrize("bounds", [[], None])
def test_empty_or_missing_bounds(bounds):
    result = compute_proportion_lines(bounds, {"facial_midline": "centrada"})
    assert result.midline is None
    assert result.golden_ratio_brackets == []
    assert result.smile_arc == []


def test_single_tooth():
    result = compute_proportion_lines([ToothBounds(x=50, y=45, width=10, height=16)])
    assert result.midline.x == 50
    assert result.golden_ratio_brackets == []
    assert len(result.smile_arc) == 1
    assert result.smile_arc[0].x == 50


# --- midline ---


def test_midline_between_two_widest():
    result = compute_proportion_lines(six_teeth())
    assert result.midline.x == 47


def test_midline_vertical_extent_padded():
    result = compute_proportion_lines(six_teeth())
    assert result.midline.y_start <= 38
    assert result.midline.y_end >= 54
    assert result.midline.y_start == 36
    assert result.midline.y_end == 59


def test_midline_padding_is_configurable():
    calculator = ProportionLineCalculator(midline_padding=5)
    result = calculator.compute(six_teeth())
    assert result.midline.y_start == 38 - 5
    assert result.midline.y_end == 57 + 5


def test_midline_two_equal_width_teeth():
    bounds = [
        ToothBounds(x=40, y=50, width=8, height=14),
        ToothBounds(x=55, y=50, width=8, height=14),
    ]
    assert compute_proportion_lines(bounds).midline.x == 47.5


def test_midline_falls_back_to_centroid_when_widest_on_same_side():
    bounds = [
        ToothBounds(x=20, y=50, width=5, height=14),
        ToothBounds(x=40, y=50, width=6, height=15),
        ToothBounds(x=55, y=50, width=10, height=16),
        ToothBounds(x=75, y=50, width=12, height=16),
    ]
    # widest pair (75, 55) both right of the centroid 47.5
    assert compute_proportion_lines(bounds).midline.x == 47.5


def test_midline_falls_back_when_widest_both_left():
    bounds = [
        ToothBounds(x=20, y=50, width=12, height=14),
        ToothBounds(x=35, y=50, width=10, height=15),
        ToothBounds(x=60, y=50, width=6, height=16),
        ToothBounds(x=85, y=50, width=5, height=16),
    ]
    assert compute_proportion_lines(bounds).midline.x == 50


def test_midline_no_fallback_when_widest_sits_on_centroid():
    bounds = [
        ToothBounds(x=30, y=50, width=5, height=14),
        ToothBounds(x=45, y=50, width=10, height=16),
        ToothBounds(x=60, y=50, width=8, height=15),
    ]
    # centroid is 45, exactly the widest tooth: not strictly on one side
    assert compute_proportion_lines(bounds).midline.x == 52.5


def test_midline_input_order_does_not_matter():
    shuffled = list(reversed(six_teeth()))
    assert compute_proportion_lines(shuffled).midline.x == 47


# --- golden ratio brackets ---


def test_no_brackets_below_four_teeth():
    bounds = [
        ToothBounds(x=40, y=50, width=10, height=16),
        ToothBounds(x=50, y=50, width=10, height=16),
        ToothBounds(x=60, y=50, width=6, height=14),
    ]
    assert compute_proportion_lines(bounds).golden_ratio_brackets == []


def test_brackets_for_six_symmetric_teeth():
    brackets = compute_proportion_lines(six_teeth()).golden_ratio_brackets
    assert len(brackets) == 4

    b0 = brackets[0]
    assert b0.w1 == 10
    assert b0.w2 == 6.18
    assert round(b0.ratio, 2) == round(10 / 6.18, 2)
    assert b0.ideal == 1.618 == GOLDEN_RATIO


def test_brackets_walk_outward_left_side_first():
    brackets = compute_proportion_lines(six_teeth()).golden_ratio_brackets
    assert [(b.x1, b.x2) for b in brackets] == [
        (42, 32),
        (32, 24),
        (52, 62),
        (62, 70),
    ]
    assert brackets[1].ratio == pytest.approx(6.18 / 5)
    assert brackets[3].ratio == pytest.approx(6.18 / 5)


def test_bracket_y_is_higher_top_edge():
    b0 = compute_proportion_lines(six_teeth()).golden_ratio_brackets[0]
    # tops: central 46 - 8 = 38, lateral 48 - 7.5 = 40.5
    assert b0.y == 38


def test_zero_width_tooth_gives_zero_ratio():
    bounds = [
        ToothBounds(x=30, y=50, width=6, height=14),
        ToothBounds(x=40, y=50, width=10, height=16),
        ToothBounds(x=60, y=50, width=10, height=16),
        ToothBounds(x=70, y=50, width=0, height=14),
    ]
    brackets = compute_proportion_lines(bounds).golden_ratio_brackets
    assert len(brackets) == 2
    assert brackets[0].ratio == pytest.approx(10 / 6)
    assert brackets[1].ratio == 0


def test_bracket_threshold_is_configurable():
    calculator = ProportionLineCalculator(min_teeth_for_brackets=2)
    bounds = [
        ToothBounds(x=40, y=50, width=10, height=16),
        ToothBounds(x=50, y=50, width=10, height=16),
        ToothBounds(x=60, y=50, width=6, height=14),
    ]
    brackets = calculator.compute(bounds).golden_ratio_brackets
    # midline 45: left has one tooth, right walks 50 -> 60
    assert [(b.x1, b.x2) for b in brackets] == [(50, 60)]


# --- smile arc ---


def test_smile_arc_sorted_left_to_right():
    arc = compute_proportion_lines(list(reversed(six_teeth()))).smile_arc
    assert len(arc) == 6
    xs = [p.x for p in arc]
    assert all(a < b for a, b in zip(xs, xs[1:]))


def test_smile_arc_uses_incisal_edge():
    arc = compute_proportion_lines(six_teeth()).smile_arc
    assert [p.y for p in arc] == [57, 55.5, 54, 54, 55.5, 57]


def test_ties_keep_input_order():
    first = ToothBounds(x=50, y=40, width=8, height=10)
    second = ToothBounds(x=50, y=44, width=8, height=10)
    arc = compute_proportion_lines([first, second]).smile_arc
    assert [p.y for p in arc] == [45, 49]
    arc = compute_proportion_lines([second, first]).smile_arc
    assert [p.y for p in arc] == [49, 45]


# --- purity ---


def test_repeated_calls_are_equal_and_input_untouched():
    bounds = six_teeth()[::-1]
    snapshot = copy.deepcopy(bounds)

    first = compute_proportion_lines(bounds)
    second = compute_proportion_lines(copy.deepcopy(bounds))

    assert first == second
    assert bounds == snapshot


def test_accepts_any_object_with_box_attributes():
    class Box:
        def __init__(self, x, y, width, height):
            self.x, self.y, self.width, self.height = x, y, width, height

    bounds = [Box(t.x, t.y, t.width, t.height) for t in six_teeth()]
    assert compute_proportion_lines(bounds) == compute_proportion_lines(six_teeth())


def test_accepts_dict_boxes():
    bounds = [
        {"x": t.x, "y": t.y, "width": t.width, "height": t.height}
        for t in six_teeth()
    ]
    snapshot = copy.deepcopy(bounds)

    lines = compute_proportion_lines(bounds)

    assert lines == compute_proportion_lines(six_teeth())
    assert lines.midline.x == 47
    assert len(lines.golden_ratio_brackets) == 4
    assert bounds == snapshot


def test_mixed_dict_and_object_boxes():
    teeth = six_teeth()
    bounds = [
        {"x": t.x, "y": t.y, "width": t.width, "height": t.height}
        if i % 2
        else t
        for i, t in enumerate(teeth)
    ]
    assert compute_proportion_lines(bounds) == compute_proportion_lines(teeth)


# --- memo ---


def test_memo_returns_same_object_for_same_references():
    memo = ProportionLinesMemo()
    bounds = six_teeth()
    analysis = {"smile_line": "média"}

    first = memo(bounds, analysis)
    assert memo(bounds, analysis) is first
    assert first == compute_proportion_lines(bounds, analysis)


def test_memo_recomputes_on_new_references():
    memo = ProportionLinesMemo()
    bounds = six_teeth()
    analysis = {}

    first = memo(bounds, analysis)
    by_new_bounds = memo(six_teeth(), analysis)
    assert by_new_bounds is not first
    assert by_new_bounds == first

    same_bounds = memo(bounds, analysis)
    assert memo(bounds, {}) is not same_bounds


def test_memo_caches_empty_result():
    memo = ProportionLinesMemo()
    result = memo(None)
    assert isinstance(result, ProportionLines)
    assert memo(None) is result


# --- sanitize ---


def test_sanitize_drops_invalid_boxes():
    detected = [
        None,
        {"x": 40, "y": 50, "width": 10, "height": 16},
        ToothBounds(x=50, y=50, width=0, height=16),
        ToothBounds(x=55, y=50, width=8, height=-1),
        {"x": float("nan"), "y": 50, "width": 8, "height": 14},
        {"x": 60, "y": float("inf"), "width": 8, "height": 14},
        {"x": 65, "y": 50, "width": "wide", "height": 14},
        {"x": 70, "y": 50},
        ToothBounds(x=75, y=50, width=6, height=14),
    ]
    clean = sanitize_tooth_bounds(detected)
    assert clean == [
        ToothBounds(x=40, y=50, width=10, height=16),
        ToothBounds(x=75, y=50, width=6, height=14),
    ]


def test_sanitize_none():
    assert sanitize_tooth_bounds(None) == []
