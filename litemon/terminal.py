"""curses backend: paints a layout ``Frame`` and turns keypresses into ``Key``s."""

from __future__ import annotations

import curses
import time
from typing import Any

from litemon.layout import (
    CoreList,
    CoreRow,
    Frame,
    Gauge,
    Panel,
    Rect,
    Severity,
    Sparkline,
    TextBox,
)
from litemon.loop import Key
from litemon.units import format_frequency

# ── Constants ──────────────────────────────────────────────────────────────

SPARK = " ▁▂▃▄▅▆▇█"
BAR_FILL = "█"
BAR_EMPTY = "░"

# Curses colour-pair IDs
C_NORMAL = 1
C_WARNING = 2
C_CRITICAL = 3
C_TITLE = 4
C_DIM = 5
C_BLUE = 6

_SEVERITY_COLORS = {
    Severity.NORMAL: C_NORMAL,
    Severity.WARNING: C_WARNING,
    Severity.CRITICAL: C_CRITICAL,
}

_KEYS = {
    ord("q"): Key.QUIT,
    ord("Q"): Key.QUIT,
    curses.KEY_UP: Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    curses.KEY_RESIZE: Key.RESIZE,
}


def _init_colors() -> None:
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_NORMAL, curses.COLOR_GREEN, -1)
    curses.init_pair(C_WARNING, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_CRITICAL, curses.COLOR_RED, -1)
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    curses.init_pair(C_BLUE, curses.COLOR_BLUE, -1)


def severity_color(sev: Severity) -> int:
    return _SEVERITY_COLORS[sev]


def translate_key(code: int) -> Key | None:
    """Map a curses key code to a dashboard Key (None for anything else)."""
    return _KEYS.get(code)


# ── Curses drawing primitives ──────────────────────────────────────────────


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def _draw_box(win: curses.window, rect: Rect, title: str = "") -> curses.window | None:
    """Draw a bordered box and return the sub-window."""
    max_y, max_x = win.getmaxyx()
    h = min(rect.height, max_y - rect.y)
    w = min(rect.width, max_x - rect.x)
    if h < 3 or w < 4:
        return None
    try:
        sub = win.subwin(h, w, rect.y, rect.x)
        sub.box()
        if title:
            if len(title) + 4 > w:
                title = title[: max(0, w - 7)] + "..."
            sub.addstr(0, 2, f" {title} ", curses.color_pair(C_TITLE) | curses.A_BOLD)
        return sub
    except curses.error:
        return None


def _draw_bar(
    win: curses.window,
    y: int,
    x: int,
    width: int,
    pct: float,
    color: int,
    suffix: str,
) -> None:
    """Render ``████░░░░ suffix`` on one line."""
    max_y, max_x = win.getmaxyx()
    if y >= max_y - 1 or x >= max_x - 1:
        return
    suffix = f" {suffix}"
    bar_w = min(width - len(suffix), max_x - x - len(suffix) - 1)
    if bar_w < 3:
        _safe(win, y, x, suffix.strip()[: max(0, max_x - x - 1)], curses.color_pair(color))
        return

    filled = int(bar_w * max(0.0, min(pct, 100.0)) / 100.0)
    _safe(win, y, x, BAR_FILL * filled, curses.color_pair(color) | curses.A_BOLD)
    _safe(win, BAR_EMPTY * (bar_w - filled), curses.color_pair(C_DIM))
    _safe(win, suffix, curses.color_pair(color) | curses.A_BOLD)


def _spark_chars(values: tuple[float, ...], width: int, max_val: float) -> str:
    """The most recent *width* values as sparkline glyphs."""
    if width < 1 or not values:
        return ""
    chars: list[str] = []
    for v in values[-width:]:
        idx = int(min(max(v, 0.0) / max_val, 1.0) * (len(SPARK) - 1))
        chars.append(SPARK[idx])
    return "".join(chars)


def _core_line(row: CoreRow, width: int) -> str:
    filled = int(max(0.0, min(row.usage, 100.0)) / 5)
    bar = BAR_FILL * filled + BAR_EMPTY * (20 - filled)
    line = f"#{row.index:<3d} {row.usage:5.1f}% [{bar}]"
    if row.frequency > 0:
        line += f" {format_frequency(row.frequency)}"
    return line[:width]


# ── Panel painters ─────────────────────────────────────────────────────────


def draw_panel(win: curses.window, panel: Panel) -> None:
    box = _draw_box(win, panel.rect, panel.title)
    if not box:
        return
    inner_w = panel.rect.width - 3

    if isinstance(panel, Gauge):
        color = severity_color(panel.severity)
        _draw_bar(box, 1, 1, inner_w, panel.percent, color, panel.label)
    elif isinstance(panel, TextBox):
        for i, line in enumerate(panel.lines[: panel.rect.height - 2]):
            _safe(box, 1 + i, 2, line[: inner_w - 1], curses.color_pair(C_DIM))
    elif isinstance(panel, Sparkline):
        chars = _spark_chars(panel.values, inner_w - 2, panel.ceiling)
        _safe(box, 1, 2, chars, curses.color_pair(C_BLUE))
    elif isinstance(panel, CoreList):
        for i, row in enumerate(panel.rows[: panel.rect.height - 2]):
            _safe(
                box,
                1 + i,
                2,
                _core_line(row, inner_w - 1),
                curses.color_pair(severity_color(row.severity)),
            )


def _draw_header(win: curses.window, w: int) -> None:
    ts = time.strftime("%H:%M:%S")
    attr = curses.color_pair(C_TITLE) | curses.A_REVERSE
    _safe(win, 0, 0, " " * (w - 1), attr)
    _safe(win, 0, 1, "litemon", attr | curses.A_BOLD)
    hint = "q: quit  Up/Down: scroll"
    _safe(win, 0, max(0, w - len(hint) - 2), hint, attr)
    _safe(win, 0, (w - len(ts)) // 2, ts, attr)


# ── Backend ────────────────────────────────────────────────────────────────


class CursesBackend:
    """Backend over a curses screen set up by ``curses.wrapper``."""

    def __init__(self, stdscr: curses.window) -> None:
        self._scr = stdscr
        _init_colors()
        curses.curs_set(0)
        stdscr.keypad(True)

    def size(self) -> tuple[int, int]:
        rows, cols = self._scr.getmaxyx()
        return rows, cols

    def poll_key(self, timeout: float) -> Key | None:
        self._scr.timeout(int(timeout * 1000))
        code = self._scr.getch()
        if code == curses.KEY_RESIZE:
            curses.update_lines_cols()
        return translate_key(code)

    def draw(self, frame: Frame) -> None:
        self._scr.erase()
        if frame.message:
            _safe(self._scr, 0, 0, frame.message[: max(0, frame.cols - 1)])
        else:
            _draw_header(self._scr, frame.cols)
            for panel in frame.panels:
                draw_panel(self._scr, panel)
        self._scr.refresh()
