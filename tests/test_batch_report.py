import csv
import json
import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from batch_report import run
from smile_proportions.analyzer import SmileAnalyzer

SIX_TEETH = [
    {"x": 24, "y": 50, "width": 5, "height": 14},
    {"x": 32, "y": 48, "width": 6.18, "height": 15},
    {"x": 42, "y": 46, "width": 10, "height": 16},
    {"x": 52, "y": 46, "width": 10, "height": 16},
    {"x": 62, "y": 48, "width": 6.18, "height": 15},
    {"x": 70, "y": 50, "width": 5, "height": 14},
]


def test_batch_report_writes_csv(tmp_path):
    cases = tmp_path / "cases"
    cases.mkdir()
    (cases / "a_six.json").write_text(json.dumps(SIX_TEETH))
    (cases / "b_pair.json").write_text(json.dumps({"bounds": SIX_TEETH[2:4]}))
    (cases / "c_empty.json").write_text("[]")
    (cases / "d_broken.json").write_text("{oops")
    output = tmp_path / "report.csv"

    rows = run(str(cases), str(output), SmileAnalyzer())

    assert [r["case"] for r in rows] == ["a_six", "b_pair"]
    assert rows[0]["bracket_count"] == 4
    assert rows[0]["compliance"] == 50.0
    assert rows[1]["bracket_count"] == 0
    assert rows[1]["midline_offset"] == -3.0

    with open(output, newline="") as f:
        written = list(csv.DictReader(f))
    assert [r["case"] for r in written] == ["a_six", "b_pair"]


def test_batch_report_no_cases(tmp_path):
    output = tmp_path / "report.csv"
    assert run(str(tmp_path), str(output), SmileAnalyzer()) == []
    assert not output.exists()
