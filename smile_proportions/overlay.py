"""
Rendering of proportion lines on top of a clinical photo.

Two renderers share the same layout rules: ``render_svg`` produces an SVG
document for browser overlays, ``draw_overlay`` burns the lines into a BGR
image with OpenCV. All input coordinates are percentages of the image size.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .proportions import GoldenRatioBracket, ProportionLines

MIDLINE = "midline"
GOLDEN_RATIO = "golden_ratio"
SMILE_ARC = "smile_arc"
ALL_LAYERS = frozenset({MIDLINE, GOLDEN_RATIO, SMILE_ARC})

COLORS = {
    "midline": "#ef4444",  # red
    "golden_ratio": "#f59e0b",  # amber
    "golden_ratio_good": "#22c55e",  # green, ratio close to ideal
    "smile_arc": "#22c55e",  # green
}

# Allowed distance between an actual ratio and the golden ratio
GOLDEN_RATIO_TOLERANCE = 0.2

CAP_HEIGHT = 4  # px, bracket end caps
BRACKET_OFFSET = 4  # px, bracket bar sits this far above the teeth
DASH = (6, 4)  # px, midline dash/gap


def is_near_ideal(
    bracket: GoldenRatioBracket, tolerance: float = GOLDEN_RATIO_TOLERANCE
) -> bool:
    return abs(bracket.ratio - bracket.ideal) <= tolerance


def to_pixels(pct: float, size: float) -> float:
    return pct / 100 * size


def parse_layers(names: Optional[Iterable[str]]) -> frozenset:
    """Validate layer names. None selects every layer."""
    if names is None:
        return ALL_LAYERS
    layers = frozenset(n.strip() for n in names if n.strip())
    unknown = layers - ALL_LAYERS
    if unknown:
        raise ValueError(f"Unknown overlay layers: {', '.join(sorted(unknown))}")
    return layers


def _fmt(v: float) -> str:
    return f"{round(float(v), 2):g}"


def build_smooth_path(points: Sequence[Tuple[float, float]]) -> str:
    """
    Build an SVG path through pixel-space points using quadratic Bezier curves.

    Two points give a straight line. With three or more, the midpoints of
    adjacent segments are the on-curve points and the given interior
    points act as control points.
    """
    if not points:
        return ""
    x0, y0 = points[0]
    if len(points) == 1:
        return f"M{_fmt(x0)},{_fmt(y0)}"
    if len(points) == 2:
        x1, y1 = points[1]
        return f"M{_fmt(x0)},{_fmt(y0)} L{_fmt(x1)},{_fmt(y1)}"

    d = [f"M{_fmt(x0)},{_fmt(y0)}"]
    mx, my = _midpoint(points[0], points[1])
    d.append(f"L{_fmt(mx)},{_fmt(my)}")

    for i in range(1, len(points) - 1):
        cx, cy = points[i]
        mx, my = _midpoint(points[i], points[i + 1])
        d.append(f"Q{_fmt(cx)},{_fmt(cy)} {_fmt(mx)},{_fmt(my)}")

    lx, ly = points[-1]
    d.append(f"L{_fmt(lx)},{_fmt(ly)}")
    return " ".join(d)


def _midpoint(a, b) -> Tuple[float, float]:
    return (a[0] + b[0]) / 2, (a[1] + b[1]) / 2


def sample_smooth_curve(
    points: Sequence[Tuple[float, float]], samples: int = 12
) -> np.ndarray:
    """Polyline approximation of ``build_smooth_path``, shape (N, 2)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return pts

    out = [pts[0], (pts[0] + pts[1]) / 2]
    t = np.linspace(0.0, 1.0, samples + 1)[1:, None]
    for i in range(1, len(pts) - 1):
        start = out[-1]
        ctrl = pts[i]
        end = (pts[i] + pts[i + 1]) / 2
        curve = (1 - t) ** 2 * start + 2 * (1 - t) * t * ctrl + t**2 * end
        out.extend(curve)
    out.append(pts[-1])
    return np.vstack(out)


def _bracket_label(bracket: GoldenRatioBracket, good: bool, check: str) -> str:
    label = f"{bracket.ratio:.2f}"
    return label + (check if good else f" ({bracket.ideal})")


def render_svg(
    lines: ProportionLines,
    width: float,
    height: float,
    layers: Iterable[str] = ALL_LAYERS,
    tolerance: float = GOLDEN_RATIO_TOLERANCE,
) -> str:
    if not width or not height:
        return ""

    layers = frozenset(layers)

    def px(pct):
        return to_pixels(pct, width)

    def py(pct):
        return to_pixels(pct, height)

    parts: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" aria-label="Smile proportion overlay" '
        f'width="{_fmt(width)}" height="{_fmt(height)}" '
        f'viewBox="0 0 {_fmt(width)} {_fmt(height)}">'
    ]

    if MIDLINE in layers and lines.midline is not None:
        m = lines.midline
        color = COLORS["midline"]
        parts.append(
            "<g>"
            f'<line x1="{_fmt(px(m.x))}" y1="{_fmt(py(m.y_start))}" '
            f'x2="{_fmt(px(m.x))}" y2="{_fmt(py(m.y_end))}" stroke="{color}" '
            f'stroke-width="1.5" stroke-dasharray="{DASH[0]} {DASH[1]}" stroke-opacity="0.85"/>'
            f'<text x="{_fmt(px(m.x) + 6)}" y="{_fmt(py(m.y_start) + 12)}" fill="{color}" '
            'font-size="10" font-weight="600">Midline</text>'
            "</g>"
        )

    if GOLDEN_RATIO in layers and lines.golden_ratio_brackets:
        for bracket in lines.golden_ratio_brackets:
            good = is_near_ideal(bracket, tolerance)
            color = COLORS["golden_ratio_good" if good else "golden_ratio"]
            bar_y = py(bracket.y) - BRACKET_OFFSET
            cx1, cx2 = px(bracket.x1), px(bracket.x2)

            group = ["<g>"]
            for cx, half in ((cx1, px(bracket.w1) / 2), (cx2, px(bracket.w2) / 2)):
                for x1, y1, x2, y2 in (
                    (cx - half, bar_y, cx + half, bar_y),
                    (cx - half, bar_y - CAP_HEIGHT, cx - half, bar_y + CAP_HEIGHT),
                    (cx + half, bar_y - CAP_HEIGHT, cx + half, bar_y + CAP_HEIGHT),
                ):
                    group.append(
                        f'<line x1="{_fmt(x1)}" y1="{_fmt(y1)}" x2="{_fmt(x2)}" '
                        f'y2="{_fmt(y2)}" stroke="{color}" stroke-width="1.5" '
                        'stroke-opacity="0.85"/>'
                    )
            group.append(
                f'<text x="{_fmt((cx1 + cx2) / 2)}" y="{_fmt(bar_y + CAP_HEIGHT + 14)}" '
                f'text-anchor="middle" fill="{color}" font-size="10" font-weight="600">'
                f"{_bracket_label(bracket, good, ' &#10003;')}</text>"
            )
            group.append("</g>")
            parts.append("".join(group))

    if SMILE_ARC in layers and len(lines.smile_arc) >= 2:
        color = COLORS["smile_arc"]
        points = [(px(p.x), py(p.y)) for p in lines.smile_arc]
        first = points[0]
        parts.append(
            "<g>"
            f'<path d="{build_smooth_path(points)}" fill="none" stroke="{color}" '
            'stroke-width="2" stroke-opacity="0.85" stroke-linecap="round" '
            'stroke-linejoin="round"/>'
            f'<text x="{_fmt(first[0])}" y="{_fmt(first[1] + 16)}" fill="{color}" '
            'font-size="10" font-weight="600">Smile Arc</text>'
            "</g>"
        )

    parts.append("</svg>")
    return "".join(parts)


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    color = color.lstrip("#")
    r, g, b = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    return b, g, r


def _dashed_vline(img, x: int, y1: int, y2: int, color, thickness: int = 1):
    dash, gap = DASH
    y = y1
    while y < y2:
        cv2.line(img, (x, y), (x, min(y + dash, y2)), color, thickness, cv2.LINE_AA)
        y += dash + gap


def draw_overlay(
    image: np.ndarray,
    lines: ProportionLines,
    layers: Iterable[str] = ALL_LAYERS,
    tolerance: float = GOLDEN_RATIO_TOLERANCE,
) -> np.ndarray:
    """
    Draw proportion lines onto a copy of an OpenCV BGR image.

    Returns the annotated copy; the input array is left untouched.
    """
    canvas = image.copy()
    h, w = canvas.shape[:2]
    if not w or not h:
        return canvas

    layers = frozenset(layers)
    font = cv2.FONT_HERSHEY_SIMPLEX

    def px(pct):
        return int(round(to_pixels(pct, w)))

    def py(pct):
        return int(round(to_pixels(pct, h)))

    if MIDLINE in layers and lines.midline is not None:
        m = lines.midline
        color = hex_to_bgr(COLORS["midline"])
        _dashed_vline(canvas, px(m.x), py(m.y_start), py(m.y_end), color, 2)
        cv2.putText(
            canvas, "Midline", (px(m.x) + 6, py(m.y_start) + 12),
            font, 0.4, color, 1, cv2.LINE_AA,
        )

    if GOLDEN_RATIO in layers:
        for bracket in lines.golden_ratio_brackets:
            good = is_near_ideal(bracket, tolerance)
            color = hex_to_bgr(COLORS["golden_ratio_good" if good else "golden_ratio"])
            bar_y = py(bracket.y) - BRACKET_OFFSET
            for cx_pct, w_pct in ((bracket.x1, bracket.w1), (bracket.x2, bracket.w2)):
                left = px(cx_pct - w_pct / 2)
                right = px(cx_pct + w_pct / 2)
                cv2.line(canvas, (left, bar_y), (right, bar_y), color, 1, cv2.LINE_AA)
                for x in (left, right):
                    cv2.line(
                        canvas, (x, bar_y - CAP_HEIGHT), (x, bar_y + CAP_HEIGHT),
                        color, 1, cv2.LINE_AA,
                    )
            label = _bracket_label(bracket, good, " ok")
            (tw, _), _ = cv2.getTextSize(label, font, 0.35, 1)
            cx = (px(bracket.x1) + px(bracket.x2)) // 2
            cv2.putText(
                canvas, label, (cx - tw // 2, bar_y + CAP_HEIGHT + 14),
                font, 0.35, color, 1, cv2.LINE_AA,
            )

    if SMILE_ARC in layers and len(lines.smile_arc) >= 2:
        color = hex_to_bgr(COLORS["smile_arc"])
        points = [(to_pixels(p.x, w), to_pixels(p.y, h)) for p in lines.smile_arc]
        curve = np.round(sample_smooth_curve(points)).astype(np.int32)
        cv2.polylines(canvas, [curve.reshape(-1, 1, 2)], False, color, 2, cv2.LINE_AA)
        x0, y0 = curve[0]
        cv2.putText(
            canvas, "Smile Arc", (int(x0), int(y0) + 16),
            font, 0.4, color, 1, cv2.LINE_AA,
        )

    return canvas
