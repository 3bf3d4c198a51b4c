"""Tests for litemon.config."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from litemon import config as config_mod
from litemon.config import (
    DEFAULT_CONFIG,
    _deep_merge,
    config_problems,
    dump_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def _no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a real ~/.config/litemon/config.toml out of the tests
    monkeypatch.setattr(config_mod, "_DEFAULT_PATH", tmp_path / "absent.toml")


class TestLoadConfigDefaults:
    def test_defaults_returned_when_no_file(self) -> None:
        cfg = load_config(None)
        assert cfg["interval"] == 1.0
        assert cfg["history_length"] == 50
        assert all(cfg["monitors"].values())
        assert "cpu_percent" in cfg["thresholds"]

    def test_all_default_keys_present(self) -> None:
        cfg = load_config(None)
        assert set(cfg.keys()) == set(DEFAULT_CONFIG.keys())

    def test_default_location_used(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.toml"
        path.write_text("interval = 3.0\n")
        monkeypatch.setattr(config_mod, "_DEFAULT_PATH", path)
        assert load_config(None)["interval"] == 3.0

    def test_invalid_default_location_warns(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "config.toml"
        path.write_text("interval = [\n")
        monkeypatch.setattr(config_mod, "_DEFAULT_PATH", path)
        cfg = load_config(None)
        assert cfg["interval"] == 1.0
        assert "ignoring invalid TOML" in capsys.readouterr().err


class TestTomlOverlay:
    def test_overrides_threshold(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text(
            "[thresholds.cpu_percent]\nwarning = 70.0\ncritical = 90.0\n"
        )
        cfg = load_config(toml_file)
        assert cfg["thresholds"]["cpu_percent"]["warning"] == 70.0
        assert cfg["thresholds"]["cpu_percent"]["critical"] == 90.0
        # Other thresholds remain at defaults
        assert cfg["thresholds"]["memory_percent"]["warning"] == 70.0

    def test_disables_one_monitor(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("[monitors]\ndisk = false\n")
        cfg = load_config(toml_file)
        assert cfg["monitors"]["disk"] is False
        assert cfg["monitors"]["cpu"] is True

    def test_overrides_scalar(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("interval = 2.5\nhistory_length = 120\n")
        cfg = load_config(toml_file)
        assert cfg["interval"] == 2.5
        assert cfg["history_length"] == 120


class TestExplicitPath:
    def test_missing_explicit_path_errors(self, tmp_path: Path) -> None:
        missing = tmp_path / "nonexistent.toml"
        with pytest.raises(SystemExit):
            load_config(missing)

    def test_invalid_toml_errors(self, tmp_path: Path) -> None:
        bad_file = tmp_path / "bad.toml"
        bad_file.write_text("this is [not valid toml\n")
        with pytest.raises(SystemExit):
            load_config(bad_file)


class TestDumpDefaultConfig:
    def test_is_valid_toml(self) -> None:
        parsed = tomllib.loads(dump_default_config())
        assert "interval" in parsed
        assert "monitors" in parsed
        assert "thresholds" in parsed

    def test_roundtrips_defaults(self) -> None:
        parsed = tomllib.loads(dump_default_config())
        assert _deep_merge(DEFAULT_CONFIG, parsed) == DEFAULT_CONFIG
        assert parsed["log_file"] == ""
        assert parsed["monitors"]["gpu"] is True


class TestDeepMerge:
    def test_scalar_overwrite(self) -> None:
        result = _deep_merge({"a": 1, "b": 2}, {"a": 10})
        assert result == {"a": 10, "b": 2}

    def test_nested_dict_merge(self) -> None:
        base = {"x": {"a": 1, "b": 2}}
        overlay = {"x": {"b": 3, "c": 4}}
        result = _deep_merge(base, overlay)
        assert result["x"] == {"a": 1, "b": 3, "c": 4}

    def test_base_not_mutated(self) -> None:
        base = {"x": {"a": 1}}
        _deep_merge(base, {"x": {"a": 2}})
        assert base == {"x": {"a": 1}}


class TestValidation:
    @pytest.mark.parametrize(
        "line",
        [
            "interval = 0",
            "interval = -1.5",
            "input_timeout = 0",
            "gpu_interval = 0.0",
            "history_length = 0",
            "history_length = 2.5",
            "scroll_debounce = -0.1",
            'interval = "fast"',
            "interval = true",
        ],
    )
    def test_unusable_values_exit(
        self, tmp_path: Path, line: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text(line + "\n")
        with pytest.raises(SystemExit) as exc:
            load_config(toml_file)
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert err.startswith("litemon: invalid ")
        assert line.split(" =")[0] in err

    def test_default_location_is_validated(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "config.toml"
        path.write_text("interval = 0\n")
        monkeypatch.setattr(config_mod, "_DEFAULT_PATH", path)
        with pytest.raises(SystemExit):
            load_config(None)

    def test_defaults_are_valid(self) -> None:
        assert config_problems(DEFAULT_CONFIG) == []

    def test_reports_every_problem(self) -> None:
        cfg = {**DEFAULT_CONFIG, "interval": 0, "history_length": 0}
        problems = config_problems(cfg)
        assert len(problems) == 2
        assert problems[0].startswith("interval")
        assert problems[1].startswith("history_length")

    def test_zero_debounce_allowed(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("scroll_debounce = 0\n")
        assert load_config(toml_file)["scroll_debounce"] == 0
