"""Interactive terminal dashboard: litemon's live resource monitor.

Displays live CPU (per-core, scrollable), memory, swap, GPU, disk and
per-interface network panels using curses.

Usage:
    litemon
    litemon --interval 2 --no-disk --config path/to/config.toml
"""

from __future__ import annotations

import argparse
import curses
import logging
import sys
from pathlib import Path
from typing import Any

from litemon.config import dump_default_config, load_config, validate_config
from litemon.engine import MetricsEngine, Monitors
from litemon.history import HistoryBuffer
from litemon.loop import RenderLoop
from litemon.provider import PsutilProvider
from litemon.state import DashboardState
from litemon.terminal import CursesBackend

logger = logging.getLogger(__name__)

_CATEGORIES = ("cpu", "memory", "disk", "network", "gpu")


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a number: {raw!r}") from e
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {raw}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litemon",
        description="Lightweight live system resource monitor.",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=_positive_float,
        default=None,
        help="Seconds between refreshes (default: 1)",
    )
    for name in _CATEGORIES:
        parser.add_argument(
            f"--{name}",
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Show {name} metrics (default: on)",
        )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        metavar="PATH",
        help="Write diagnostic logs to this file",
    )
    parser.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the default configuration as TOML and exit",
    )
    return parser


def apply_cli_overrides(
    config: dict[str, Any], args: argparse.Namespace
) -> dict[str, Any]:
    """Return *config* with any flags given on the command line applied."""
    merged = dict(config)
    merged["monitors"] = dict(config.get("monitors", {}))
    if args.interval is not None:
        merged["interval"] = args.interval
    for name in _CATEGORIES:
        flag = getattr(args, name)
        if flag is not None:
            merged["monitors"][name] = flag
    if args.log_file is not None:
        merged["log_file"] = args.log_file
    return merged


def setup_logging(config: dict[str, Any]) -> None:
    """Send logs to the configured file; curses owns the terminal otherwise."""
    log_file = config.get("log_file") or ""
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=str(config.get("log_level", "INFO")).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger("litemon").addHandler(logging.NullHandler())
        logging.getLogger("litemon").propagate = False


def build_loop(stdscr: curses.window, config: dict[str, Any]) -> RenderLoop:
    monitors_cfg = config.get("monitors", {})
    monitors = Monitors(
        **{name: bool(monitors_cfg.get(name, True)) for name in _CATEGORIES}
    )
    engine = MetricsEngine(
        PsutilProvider(),
        monitors=monitors,
        gpu_interval=float(config["gpu_interval"]),
    )
    return RenderLoop(
        engine,
        CursesBackend(stdscr),
        state=DashboardState(scroll_debounce=float(config["scroll_debounce"])),
        history=HistoryBuffer(int(config["history_length"])),
        tick_interval=float(config["interval"]),
        input_timeout=float(config["input_timeout"]),
        thresholds=config.get("thresholds"),
    )


def _dashboard_main(stdscr: curses.window, config: dict[str, Any]) -> None:
    build_loop(stdscr, config).run()


# ── CLI entry point ────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    if args.dump_config:
        print(dump_default_config(), end="")
        return

    config = apply_cli_overrides(load_config(args.config), args)
    validate_config(config)
    setup_logging(config)

    try:
        curses.wrapper(_dashboard_main, config)
    except KeyboardInterrupt:
        pass
    except (curses.error, OSError) as e:
        # curses.wrapper has already restored the terminal at this point
        logger.exception("Terminal error")
        print(f"litemon: terminal error: {e}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
