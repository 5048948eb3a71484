import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

# Padding (in %) added above/below the tooth bounds for the midline.
MIDLINE_PADDING = 2.0

GOLDEN_RATIO = 1.618

# Pairwise brackets are meaningless with fewer anchor teeth than this.
MIN_TEETH_FOR_BRACKETS = 4


@dataclass(frozen=True)
class ToothBounds:
    """Tooth bounding box. Center x/y and size, in % of image width/height."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class MidlineResult:
    x: float
    y_start: float
    y_end: float


@dataclass
class GoldenRatioBracket:
    x1: float  # inner tooth (closer to midline)
    w1: float
    x2: float  # outer tooth
    w2: float
    ratio: float
    y: float
    ideal: float = GOLDEN_RATIO


@dataclass
class SmileArcPoint:
    x: float
    y: float  # incisal (bottom) edge


@dataclass
class ProportionLines:
    midline: Optional[MidlineResult] = None
    golden_ratio_brackets: List[GoldenRatioBracket] = field(default_factory=list)
    smile_arc: List[SmileArcPoint] = field(default_factory=list)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _as_box(item: Any) -> Any:
    if isinstance(item, dict):
        return ToothBounds(*(_field(item, k) for k in ("x", "y", "width", "height")))
    return item


def sanitize_tooth_bounds(detected: Optional[Iterable[Any]]) -> List[ToothBounds]:
    """
    Convert detected tooth boxes (objects or dicts) into ToothBounds,
    dropping missing entries and boxes that are non-finite or zero-area.
    """
    clean = []
    for item in detected or []:
        if item is None:
            continue
        try:
            values = [float(_field(item, k)) for k in ("x", "y", "width", "height")]
        except (TypeError, ValueError):
            continue
        if not all(math.isfinite(v) for v in values):
            continue
        x, y, width, height = values
        if width <= 0 or height <= 0:
            continue
        clean.append(ToothBounds(x=x, y=y, width=width, height=height))
    return clean


class ProportionLineCalculator:
    """
    Computes smile-design overlay primitives (midline, golden ratio brackets,
    smile arc) from tooth bounding boxes.

    Boxes are objects exposing x, y, width and height in percentage
    coordinates (0-100), or dicts with those keys. Inputs are never mutated
    and no input raises: the degenerate cases resolve to empty results.
    """

    def __init__(
        self,
        midline_padding: float = MIDLINE_PADDING,
        min_teeth_for_brackets: int = MIN_TEETH_FOR_BRACKETS,
    ):
        self.midline_padding = midline_padding
        self.min_teeth_for_brackets = min_teeth_for_brackets

    def compute(
        self, bounds: Optional[Sequence[Any]], analysis: Any = None
    ) -> ProportionLines:
        """
        Args:
            bounds: tooth boxes, in any order. None is treated as empty.
                    Dict boxes are read by key, anything else by attribute.
            analysis: smile analysis context. Accepted for callers that pass
                      it along, not used by the geometry.
        """
        if not bounds:
            return ProportionLines()

        # sorted() copies and is stable; everything below reuses this order
        by_x = sorted((_as_box(t) for t in bounds), key=lambda t: t.x)

        midline = self.midline(by_x)

        brackets = []
        if len(by_x) >= self.min_teeth_for_brackets:
            brackets = self.golden_ratio_brackets(by_x, midline)

        return ProportionLines(
            midline=midline,
            golden_ratio_brackets=brackets,
            smile_arc=self.smile_arc(by_x),
        )

    def midline(self, by_x: Sequence[Any]) -> MidlineResult:
        """
        Midline between the two widest teeth (presumed central incisors).

        When both of them sit strictly on the same side of the centroid of
        all teeth, the pair is not straddling the center and the centroid is
        used instead.
        """
        by_width = sorted(by_x, key=lambda t: t.width, reverse=True)

        if len(by_width) == 1:
            mid_x = by_width[0].x
        else:
            first, second = by_width[0], by_width[1]
            centroid = sum(t.x for t in by_x) / len(by_x)
            both_left = first.x < centroid and second.x < centroid
            both_right = first.x > centroid and second.x > centroid
            if both_left or both_right:
                mid_x = centroid
            else:
                mid_x = (first.x + second.x) / 2

        min_top = min(t.y - t.height / 2 for t in by_x)
        max_bottom = max(t.y + t.height / 2 for t in by_x)

        return MidlineResult(
            x=mid_x,
            y_start=min_top - self.midline_padding,
            y_end=max_bottom + self.midline_padding,
        )

    def golden_ratio_brackets(
        self, by_x: Sequence[Any], midline: MidlineResult
    ) -> List[GoldenRatioBracket]:
        # left of the midline is the patient's right side
        left = [t for t in by_x if t.x < midline.x]
        right = [t for t in by_x if t.x >= midline.x]

        # walk each side from the midline outward
        left = sorted(left, key=lambda t: t.x, reverse=True)
        right = sorted(right, key=lambda t: t.x)

        return self._side_brackets(left) + self._side_brackets(right)

    def _side_brackets(self, outward: Sequence[Any]) -> List[GoldenRatioBracket]:
        brackets = []
        for inner, outer in zip(outward, outward[1:]):
            w1 = inner.width
            w2 = outer.width
            ratio = w1 / w2 if w2 > 0 else 0

            # label sits above the taller of the two teeth
            y = min(inner.y - inner.height / 2, outer.y - outer.height / 2)

            brackets.append(
                GoldenRatioBracket(
                    x1=inner.x, w1=w1, x2=outer.x, w2=w2, ratio=ratio, y=y
                )
            )
        return brackets

    def smile_arc(self, by_x: Sequence[Any]) -> List[SmileArcPoint]:
        return [SmileArcPoint(x=t.x, y=t.y + t.height / 2) for t in by_x]


_default_calculator = ProportionLineCalculator()


def compute_proportion_lines(
    bounds: Optional[Sequence[Any]], analysis: Any = None
) -> ProportionLines:
    return _default_calculator.compute(bounds, analysis)


class ProportionLinesMemo:
    """
    Caches the last computation keyed on the identity of its arguments.

    Calling again with the very same bounds and analysis objects returns the
    same ProportionLines instance; any new reference triggers a recompute.
    """

    def __init__(self, calculator: Optional[ProportionLineCalculator] = None):
        self.calculator = calculator or _default_calculator
        # (bounds, analysis, result), swapped as one tuple so concurrent
        # callers never pair one call's arguments with another's result
        self._last = None

    def __call__(
        self, bounds: Optional[Sequence[Any]], analysis: Any = None
    ) -> ProportionLines:
        last = self._last
        if last is not None and bounds is last[0] and analysis is last[1]:
            return last[2]

        result = self.calculator.compute(bounds, analysis)
        self._last = (bounds, analysis, result)
        return result
