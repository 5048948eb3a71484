import argparse
import csv
import glob
import json
import os

import numpy as np
from tqdm import tqdm

from smile_proportions.analyzer import SmileAnalyzer
from smile_proportions.config import load_config

# --- 設定 ---
DATASET_ROOT = "./cases"  # ケースJSONフォルダのルート
OUTPUT_CSV = "proportion_report.csv"


def analyze_case(analyzer, path):
    """1ケース分のJSONから比率サマリーを計算する"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        print(f"Skipping {path}: {e}")
        return None

    if isinstance(data, dict):
        data = data.get("bounds", [])
    if not isinstance(data, list):
        print(f"Skipping {path}: no bounds list")
        return None

    result = analyzer.analyze(data)
    if result["lines"].midline is None:
        return None

    summary = result["summary"]
    ratios = [b.ratio for b in result["lines"].golden_ratio_brackets]
    return {
        "case": os.path.splitext(os.path.basename(path))[0],
        "tooth_count": summary["tooth_count"],
        "bracket_count": summary["bracket_count"],
        "mean_ratio": summary["mean_ratio"],
        "min_ratio": min(ratios) if ratios else 0.0,
        "max_ratio": max(ratios) if ratios else 0.0,
        "compliance": summary["compliance"],
        "midline_offset": summary["midline_offset"],
    }


def run(dataset_root, output_csv, analyzer):
    paths = sorted(glob.glob(os.path.join(dataset_root, "*.json")))
    print(f"[{dataset_root}] 内のケースを解析中... ({len(paths)} files)")

    rows = []
    for path in tqdm(paths):
        row = analyze_case(analyzer, path)
        if row:
            rows.append(row)

    if not rows:
        print("Warning: No valid cases found.")
        return []

    # 統計計算 (ブラケットのあるケースのみ)
    with_brackets = [r for r in rows if r["bracket_count"]]
    ratios = [r["mean_ratio"] for r in with_brackets]
    compliances = [r["compliance"] for r in with_brackets]
    offsets = [abs(r["midline_offset"]) for r in rows]

    print("\n" + "=" * 50)
    print("PROPORTION REPORT")
    print("=" * 50)
    print(f"ケース数: {len(rows)} (brackets: {len(with_brackets)})")
    if with_brackets:
        print(f"平均比率      : {np.mean(ratios):.4f} (±{np.std(ratios):.4f})")
        print(f"黄金比適合率  : {np.mean(compliances):.1f}% (±{np.std(compliances):.1f})")
    print(f"正中線ずれ    : {np.mean(offsets):.2f} (±{np.std(offsets):.2f})")

    with open(output_csv, mode="w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys())
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

    print(f"\n結果を {output_csv} に保存しました。")
    return rows


def main():
    parser = argparse.ArgumentParser(description="Batch smile proportion report")
    parser.add_argument("dataset_root", nargs="?", default=DATASET_ROOT)
    parser.add_argument("--output", default=OUTPUT_CSV)
    parser.add_argument("--config", help="Path to a JSON config file")
    args = parser.parse_args()

    analyzer = SmileAnalyzer.from_config(load_config(args.config))
    run(args.dataset_root, args.output, analyzer)


if __name__ == "__main__":
    main()
