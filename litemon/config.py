"""Configuration loading for litemon.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/litemon/config.toml → defaults only.
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import Any, NoReturn

DEFAULT_CONFIG: dict[str, Any] = {
    "interval": 1.0,
    "input_timeout": 0.1,
    "scroll_debounce": 0.05,
    "history_length": 50,
    "gpu_interval": 2.0,
    "log_file": "",
    "log_level": "INFO",
    "monitors": {
        "cpu": True,
        "memory": True,
        "disk": True,
        "network": True,
        "gpu": True,
    },
    "thresholds": {
        "cpu_percent": {"warning": 50.0, "critical": 80.0},
        "memory_percent": {"warning": 70.0, "critical": 90.0},
        "disk_percent": {"warning": 70.0, "critical": 90.0},
        "gpu_percent": {"warning": 80.0, "critical": 95.0},
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "litemon" / "config.toml"

_POSITIVE = ("interval", "input_timeout", "gpu_interval")

_SCALARS = (
    "interval",
    "input_timeout",
    "scroll_debounce",
    "history_length",
    "gpu_interval",
    "log_file",
    "log_level",
)


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Merge one level: overlay sub-keys into base sub-keys
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> dict[str, Any]:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _fail(message: str) -> NoReturn:
    print(f"litemon: {message}", file=sys.stderr)
    raise SystemExit(1)


def config_problems(config: dict[str, Any]) -> list[str]:
    """Describe every timing/history value the dashboard cannot run with."""
    problems: list[str] = []
    for key in _POSITIVE:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            problems.append(f"{key} must be a positive number, got {value!r}")
    debounce = config.get("scroll_debounce")
    if isinstance(debounce, bool) or not isinstance(debounce, (int, float)) or debounce < 0:
        problems.append(f"scroll_debounce must be zero or more, got {debounce!r}")
    length = config.get("history_length")
    if isinstance(length, bool) or not isinstance(length, int) or length < 1:
        problems.append(f"history_length must be an integer of at least 1, got {length!r}")
    return problems


def validate_config(config: dict[str, Any], source: Path | str = "configuration") -> None:
    """Exit with status 1 if *config* holds values the dashboard cannot run with."""
    problems = config_problems(config)
    if problems:
        _fail(f"invalid {source}: " + "; ".join(problems))


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/litemon/config.toml.

    Returns:
        Merged, validated configuration dict.

    Raises:
        SystemExit: If an explicit path doesn't exist or can't be parsed, or
            if any file holds an unusable interval or history length.
    """
    if path is not None:
        if not path.is_file():
            _fail(f"config file not found: {path}")
        try:
            user_config = _read_toml(path)
        except tomllib.TOMLDecodeError as e:
            _fail(f"invalid TOML in {path}: {e}")
        merged = _deep_merge(DEFAULT_CONFIG, user_config)
        validate_config(merged, path)
        return merged

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = _read_toml(_DEFAULT_PATH)
        except tomllib.TOMLDecodeError:
            print(
                f"litemon: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )
        else:
            merged = _deep_merge(DEFAULT_CONFIG, user_config)
            validate_config(merged, _DEFAULT_PATH)
            return merged

    return dict(DEFAULT_CONFIG)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# litemon configuration",
        "# Place this file at ~/.config/litemon/config.toml",
        "",
    ]
    for key in _SCALARS:
        lines.append(f"{key} = {_toml_value(DEFAULT_CONFIG[key])}")
    lines.append("")

    lines.append("[monitors]")
    for name, enabled in DEFAULT_CONFIG["monitors"].items():
        lines.append(f"{name} = {_toml_value(enabled)}")
    lines.append("")

    # Thresholds
    for metric, levels in DEFAULT_CONFIG["thresholds"].items():
        lines.append(f"[thresholds.{metric}]")
        lines.append(f"warning = {levels['warning']}")
        lines.append(f"critical = {levels['critical']}")
        lines.append("")

    return "\n".join(lines) + "\n"
