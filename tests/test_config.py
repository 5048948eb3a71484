import json
import logging
import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from smile_proportions.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG,
    load_config,
    setup_logging,
)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(str(tmp_path / "missing.json"))
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"midline_padding": 3.5, "log_level": "DEBUG"}))

    config = load_config(str(path))
    assert config["midline_padding"] == 3.5
    assert config["log_level"] == "DEBUG"
    assert config["golden_ratio_tolerance"] == DEFAULT_CONFIG["golden_ratio_tolerance"]


def test_unknown_keys_ignored(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"smile_colour": "blue", "min_teeth_for_brackets": 6}))

    with caplog.at_level(logging.WARNING):
        config = load_config(str(path))

    assert "smile_colour" not in config
    assert config["min_teeth_for_brackets"] == 6
    assert "smile_colour" in caplog.text


def test_invalid_json_falls_back(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    with caplog.at_level(logging.WARNING):
        config = load_config(str(path))

    assert config == DEFAULT_CONFIG
    assert "Using defaults" in caplog.text


def test_non_object_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps([1, 2, 3]))
    assert load_config(str(path)) == DEFAULT_CONFIG


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env_config.json"
    path.write_text(json.dumps({"golden_ratio_tolerance": 0.3}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_config()["golden_ratio_tolerance"] == 0.3


def test_setup_logging_sets_level():
    root = logging.getLogger()
    previous = root.level
    try:
        setup_logging("debug")
        assert root.level == logging.DEBUG
        setup_logging("not-a-level")
        assert root.level == logging.INFO
        assert root.handlers
    finally:
        root.setLevel(previous)
