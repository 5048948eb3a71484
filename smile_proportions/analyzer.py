from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional

from .overlay import GOLDEN_RATIO_TOLERANCE, is_near_ideal
from .proportions import (
    GoldenRatioBracket,
    ProportionLineCalculator,
    ProportionLines,
    ProportionLinesMemo,
    ToothBounds,
    sanitize_tooth_bounds,
)


_UNSET = object()


class SmileAnalyzer:
    """
    Facade for smile proportion analysis.
    Detected tooth boxes -> cleaned bounds -> overlay lines + summary.
    """

    def __init__(
        self,
        midline_padding: float = 2.0,
        min_teeth_for_brackets: int = 4,
        tolerance: float = GOLDEN_RATIO_TOLERANCE,
    ):
        self.calculator = ProportionLineCalculator(
            midline_padding=midline_padding,
            min_teeth_for_brackets=min_teeth_for_brackets,
        )
        self.tolerance = tolerance
        self.memo = ProportionLinesMemo(self.calculator)
        self._cleaned = (_UNSET, [])

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SmileAnalyzer":
        return cls(
            midline_padding=config["midline_padding"],
            min_teeth_for_brackets=config["min_teeth_for_brackets"],
            tolerance=config["golden_ratio_tolerance"],
        )

    def analyze(
        self, detected: Optional[Iterable[Any]], analysis: Any = None
    ) -> Dict[str, Any]:
        """
        Passing the same detected and analysis objects again returns the
        cached lines instance. Boxes mutated in place are not noticed.
        """
        # cleaned bounds are cached per caller list so the memo sees one reference
        cached_detected, bounds = self._cleaned
        if detected is not cached_detected:
            bounds = sanitize_tooth_bounds(detected)
            self._cleaned = (detected, bounds)
        lines = self.memo(bounds, analysis)
        return {
            "bounds": bounds,
            "lines": lines,
            "summary": self.summarize(lines, len(bounds)),
        }

    def bracket_verdict(self, bracket: GoldenRatioBracket) -> str:
        if is_near_ideal(bracket, self.tolerance):
            return "Ideal"
        return "Above" if bracket.ratio > bracket.ideal else "Below"

    def summarize(self, lines: ProportionLines, tooth_count: int) -> Dict[str, Any]:
        brackets = lines.golden_ratio_brackets
        near_ideal = sum(1 for b in brackets if is_near_ideal(b, self.tolerance))

        mean_ratio = 0.0
        compliance = 0.0
        if brackets:
            mean_ratio = sum(b.ratio for b in brackets) / len(brackets)
            compliance = 100.0 * near_ideal / len(brackets)

        # image center is 50%
        midline_offset = None
        if lines.midline is not None:
            midline_offset = lines.midline.x - 50.0

        return {
            "tooth_count": tooth_count,
            "bracket_count": len(brackets),
            "near_ideal_count": near_ideal,
            "mean_ratio": mean_ratio,
            "compliance": compliance,
            "midline_offset": midline_offset,
        }

    def serialize(self, lines: ProportionLines) -> Dict[str, Any]:
        """JSON-friendly form of the lines, with a verdict per bracket."""
        data = asdict(lines)
        for item, bracket in zip(data["golden_ratio_brackets"], lines.golden_ratio_brackets):
            item["verdict"] = self.bracket_verdict(bracket)
        return data


def demo_bounds() -> List[ToothBounds]:
    """Anterior segment, canine to canine, with widths near the golden ratio."""
    return [
        ToothBounds(x=24, y=50, width=5, height=14),  # right canine
        ToothBounds(x=32, y=48, width=6.18, height=15),  # right lateral
        ToothBounds(x=42, y=46, width=10, height=16),  # right central
        ToothBounds(x=52, y=46, width=10, height=16),  # left central
        ToothBounds(x=62, y=48, width=6.18, height=15),  # left lateral
        ToothBounds(x=70, y=50, width=5, height=14),  # left canine
    ]
