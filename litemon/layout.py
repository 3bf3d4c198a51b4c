"""Layout tree: the panel description handed to the terminal backend.

``build_frame`` decides which panels exist and where they go; the backend
only knows how to paint each panel type.  Categories reported as
``CategoryUnavailable`` produce no panel for that frame, except the
permanent "no GPU" state, which is shown as text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from litemon.history import HistoryBuffer
from litemon.models import (
    NO_GPU,
    CpuStats,
    DiskStats,
    GpuStats,
    MemoryStats,
    NetworkStats,
    ResourceSnapshot,
)
from litemon.state import DashboardState
from litemon.units import format_bytes, format_frequency, format_rate

MIN_ROWS = 12
MIN_COLS = 40
BOX_H = 3  # one content row plus borders

CPU_HISTORY_KEY = "cpu"


def network_history_key(interface: str) -> str:
    return f"net:{interface}"


DEFAULT_THRESHOLDS: dict[str, dict[str, float]] = {
    "cpu_percent": {"warning": 50.0, "critical": 80.0},
    "memory_percent": {"warning": 70.0, "critical": 90.0},
    "disk_percent": {"warning": 70.0, "critical": 90.0},
    "gpu_percent": {"warning": 80.0, "critical": 95.0},
}


class Severity(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


def severity(value: float, metric: str, thresholds: dict[str, Any]) -> Severity:
    levels = {**DEFAULT_THRESHOLDS.get(metric, {}), **thresholds.get(metric, {})}
    if value >= float(levels.get("critical", 101.0)):
        return Severity.CRITICAL
    if value >= float(levels.get("warning", 101.0)):
        return Severity.WARNING
    return Severity.NORMAL


# ── Panel types ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Rect:
    y: int
    x: int
    height: int
    width: int


@dataclass(frozen=True)
class TextBox:
    rect: Rect
    title: str
    lines: tuple[str, ...]


@dataclass(frozen=True)
class Gauge:
    rect: Rect
    title: str
    percent: float
    label: str
    severity: Severity = Severity.NORMAL


@dataclass(frozen=True)
class CoreRow:
    index: int
    usage: float
    frequency: float  # MHz
    severity: Severity


@dataclass(frozen=True)
class CoreList:
    rect: Rect
    title: str
    rows: tuple[CoreRow, ...]


@dataclass(frozen=True)
class Sparkline:
    rect: Rect
    title: str
    values: tuple[float, ...]
    ceiling: float


Panel = TextBox | Gauge | CoreList | Sparkline


@dataclass(frozen=True)
class Frame:
    rows: int
    cols: int
    panels: tuple[Panel, ...]
    message: str = ""  # replaces all panels when set


# ── Builders ───────────────────────────────────────────────────────────────


def _usage_label(used: int, total: int, pct: float) -> str:
    return f"{format_bytes(used)} / {format_bytes(total)} ({pct:.1f}%)"


def _cpu_panels(
    cpu: CpuStats,
    state: DashboardState,
    x: int,
    w: int,
    rows: int,
    thresholds: dict[str, Any],
) -> list[Panel]:
    freq = max(cpu.frequency, default=0.0)
    info = cpu.brand or "CPU"
    if freq > 0:
        info = f"{info} @ {format_frequency(freq)}"
    panels: list[Panel] = [
        TextBox(Rect(1, x, BOX_H, w), "CPU Info", (info,)),
        Gauge(
            Rect(1 + BOX_H, x, BOX_H, w),
            "CPU Usage",
            cpu.mean_usage,
            f"{cpu.mean_usage:.1f}% ({cpu.core_count} cores)",
            severity(cpu.mean_usage, "cpu_percent", thresholds),
        ),
    ]
    window = state.visible_range(cpu.core_count)
    core_rows = tuple(
        CoreRow(
            index=i,
            usage=cpu.core_usage[i],
            frequency=cpu.frequency[i] if i < len(cpu.frequency) else 0.0,
            severity=severity(cpu.core_usage[i], "cpu_percent", thresholds),
        )
        for i in window
    )
    if window:
        title = f"Cores {window.start + 1}-{window.stop}/{cpu.core_count}"
    else:
        title = f"Cores 0/{cpu.core_count}"
    list_y = 1 + 2 * BOX_H
    panels.append(CoreList(Rect(list_y, x, rows - list_y, w), title, core_rows))
    return panels


def _memory_panels(
    mem: MemoryStats, y: int, x: int, w: int, thresholds: dict[str, Any]
) -> list[Panel]:
    return [
        Gauge(
            Rect(y, x, BOX_H, w),
            "Memory",
            mem.percent,
            _usage_label(mem.used, mem.total, mem.percent),
            severity(mem.percent, "memory_percent", thresholds),
        ),
        Gauge(
            Rect(y + BOX_H, x, BOX_H, w),
            "Swap",
            mem.swap_percent,
            _usage_label(mem.swap_used, mem.swap_total, mem.swap_percent),
            severity(mem.swap_percent, "memory_percent", thresholds),
        ),
    ]


def _gpu_panel(
    gpu: GpuStats, y: int, x: int, w: int, thresholds: dict[str, Any]
) -> Gauge:
    label = (
        f"{gpu.utilization:.0f}%  VRAM {format_bytes(gpu.memory_used)}"
        f" / {format_bytes(gpu.memory_total)}  {gpu.temperature:.0f} C"
    )
    return Gauge(
        Rect(y, x, BOX_H, w),
        f"GPU - {gpu.name}" if gpu.name else "GPU",
        gpu.utilization,
        label,
        severity(gpu.utilization, "gpu_percent", thresholds),
    )


def _disk_panel(
    disk: DiskStats, y: int, x: int, w: int, thresholds: dict[str, Any]
) -> Gauge:
    kind = f"{disk.kind} [removable]" if disk.removable else disk.kind
    return Gauge(
        Rect(y, x, BOX_H, w),
        f"{disk.name} ({kind})",
        disk.percent,
        _usage_label(disk.used, disk.total, disk.percent),
        severity(disk.percent, "disk_percent", thresholds),
    )


def _network_panel(
    net: NetworkStats, history: HistoryBuffer, y: int, x: int, w: int
) -> Sparkline:
    values = history.series(network_history_key(net.interface))
    title = (
        f"{net.interface}: down {format_rate(net.rx_rate)}"
        f" up {format_rate(net.tx_rate)}"
    )
    return Sparkline(Rect(y, x, BOX_H, w), title, values, max(values, default=0.0) or 1.0)


def build_frame(
    snapshot: ResourceSnapshot,
    state: DashboardState,
    history: HistoryBuffer,
    rows: int,
    cols: int,
    thresholds: dict[str, Any] | None = None,
) -> Frame:
    """Lay out every available category for a *rows* x *cols* terminal.

    CPU goes in the left column; memory, GPU, disks and network interfaces
    stack in the right column until it runs out of rows.
    """
    if rows < MIN_ROWS or cols < MIN_COLS:
        return Frame(
            rows, cols, (), f"Terminal too small (need {MIN_COLS}x{MIN_ROWS}+)"
        )
    thresholds = thresholds or DEFAULT_THRESHOLDS
    left_w = cols // 2
    right_x, right_w = left_w, cols - left_w
    panels: list[Panel] = []

    if isinstance(snapshot.cpu, CpuStats):
        panels.extend(_cpu_panels(snapshot.cpu, state, 0, left_w, rows, thresholds))

    y = 1
    if isinstance(snapshot.memory, MemoryStats):
        panels.extend(_memory_panels(snapshot.memory, y, right_x, right_w, thresholds))
        y += 2 * BOX_H

    cpu_trend = history.series(CPU_HISTORY_KEY)
    if isinstance(snapshot.cpu, CpuStats) and cpu_trend and y + BOX_H <= rows:
        panels.append(
            Sparkline(Rect(y, right_x, BOX_H, right_w), "CPU History", cpu_trend, 100.0)
        )
        y += BOX_H

    gpu_fits = y + BOX_H <= rows
    if gpu_fits and isinstance(snapshot.gpu, GpuStats):
        panels.append(_gpu_panel(snapshot.gpu, y, right_x, right_w, thresholds))
        y += BOX_H
    elif gpu_fits and snapshot.gpu == NO_GPU:
        panels.append(TextBox(Rect(y, right_x, BOX_H, right_w), "GPU", ("No GPU",)))
        y += BOX_H

    if isinstance(snapshot.disks, tuple):
        for disk in snapshot.disks:
            if y + BOX_H > rows:
                break
            panels.append(_disk_panel(disk, y, right_x, right_w, thresholds))
            y += BOX_H

    if isinstance(snapshot.networks, tuple):
        for net in snapshot.networks:
            if y + BOX_H > rows:
                break
            panels.append(_network_panel(net, history, y, right_x, right_w))
            y += BOX_H

    return Frame(rows, cols, tuple(panels))
