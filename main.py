import argparse
import json
import os
import sys

# smile_proportions パッケージが見つかるようにパスを追加
sys.path.append(os.path.join(os.path.dirname(__file__), "."))

from smile_proportions.analyzer import SmileAnalyzer, demo_bounds
from smile_proportions.config import load_config
from smile_proportions.overlay import draw_overlay, render_svg


def load_bounds(path):
    """Case file: a list of boxes, or an object with a "bounds" list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    analysis = None
    if isinstance(data, dict):
        analysis = data.get("analysis")
        data = data.get("bounds", [])
    if not isinstance(data, list):
        raise ValueError("expected a list of tooth bounds")
    return data, analysis


def main():
    parser = argparse.ArgumentParser(description="Smile Proportion Analysis")
    parser.add_argument(
        "bounds_path", nargs="?", help="Path to a JSON file with tooth bounds"
    )
    parser.add_argument("--image", help="Clinical photo to draw the overlay on")
    parser.add_argument(
        "--output", default="overlay.png", help="Overlay image output path"
    )
    parser.add_argument("--svg", help="Write the overlay as SVG to this path")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "--demo", action="store_true", help="Use the built-in demo case"
    )

    args = parser.parse_args()

    analyzer = SmileAnalyzer.from_config(load_config(args.config))

    analysis = None
    if args.demo or not args.bounds_path:
        if not args.demo:
            print("Usage: python main.py <bounds.json> [--image photo.jpg] [--svg out.svg]")
        print("Using built-in demo case (canine to canine).")
        detected = demo_bounds()
    else:
        try:
            detected, analysis = load_bounds(args.bounds_path)
        except (IOError, ValueError) as e:
            print(f"Error loading bounds from {args.bounds_path}: {e}")
            sys.exit(1)

    result = analyzer.analyze(detected, analysis)
    lines = result["lines"]
    summary = result["summary"]

    # 結果の表示
    print("\n" + "=" * 40)
    print("      SMILE PROPORTION RESULT      ")
    print("=" * 40)

    if lines.midline is None:
        print("No valid tooth bounds. Nothing to analyze.")
        sys.exit(1)

    m = lines.midline
    print(f"Midline     : x={m.x:.2f}  (y {m.y_start:.2f} -> {m.y_end:.2f})")
    print(f"Offset      : {summary['midline_offset']:+.2f} from image center")
    print("-" * 40)

    print("[Golden Ratio Brackets]")
    if not lines.golden_ratio_brackets:
        print("  (needs at least 4 teeth)")
    for b in lines.golden_ratio_brackets:
        print(
            f"  {b.x1:6.2f} -> {b.x2:6.2f} : {b.w1:.2f}/{b.w2:.2f} = {b.ratio:.3f}"
            f"  [{analyzer.bracket_verdict(b)}]"
        )

    print("\n[Smile Arc]")
    for p in lines.smile_arc:
        print(f"  x={p.x:6.2f}  incisal y={p.y:6.2f}")

    print("-" * 40)
    print(
        f"Teeth: {summary['tooth_count']}  Brackets: {summary['bracket_count']}"
        f"  Mean ratio: {summary['mean_ratio']:.3f}"
        f"  Compliance: {summary['compliance']:.0f}%"
    )

    if args.svg:
        svg = render_svg(lines, 1000, 1000, tolerance=analyzer.tolerance)
        with open(args.svg, "w", encoding="utf-8") as f:
            f.write(svg)
        print(f"SVG overlay written to {args.svg}")

    if args.image:
        import cv2

        img = cv2.imread(args.image)
        if img is None:
            print("Error loading image.")
            sys.exit(1)
        annotated = draw_overlay(img, lines, tolerance=analyzer.tolerance)
        cv2.imwrite(args.output, annotated)
        print(f"Overlay image written to {args.output}")


if __name__ == "__main__":
    main()
