"""The dashboard's cooperative control loop.

One thread, two clocks: the refresh tick (``tick_interval``) and a short
bounded wait for keyboard input (``input_timeout``).  The input wait is the
only place the loop blocks; collection, layout and drawing all run to
completion inside a single iteration.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from litemon.engine import MetricsEngine
from litemon.history import HistoryBuffer
from litemon.layout import CPU_HISTORY_KEY, Frame, build_frame, network_history_key
from litemon.models import CpuStats
from litemon.state import DashboardState, ScrollDirection, page_size_for

logger = logging.getLogger(__name__)


class Key(Enum):
    QUIT = "quit"
    UP = "up"
    DOWN = "down"
    RESIZE = "resize"


class LoopPhase(Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Backend(Protocol):
    def size(self) -> tuple[int, int]:
        """Terminal size as ``(rows, cols)``."""
        ...

    def poll_key(self, timeout: float) -> Key | None:
        """Wait up to *timeout* seconds for a key; None if nothing relevant."""
        ...

    def draw(self, frame: Frame) -> None: ...


class RenderLoop:
    """Ties the engine, history, state and terminal backend together."""

    def __init__(
        self,
        engine: MetricsEngine,
        backend: Backend,
        state: DashboardState | None = None,
        history: HistoryBuffer | None = None,
        tick_interval: float = 1.0,
        input_timeout: float = 0.1,
        thresholds: dict[str, Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.backend = backend
        self.state = state or DashboardState(clock=clock)
        self.history = history or HistoryBuffer()
        self.tick_interval = tick_interval
        self.input_timeout = input_timeout
        self.thresholds = thresholds
        self.phase = LoopPhase.RUNNING
        self._clock = clock

    def run(self) -> None:
        """Loop until a quit key moves the loop to SHUTTING_DOWN."""
        logger.info(
            "Dashboard started (interval=%.2fs, input timeout=%.3fs)",
            self.tick_interval,
            self.input_timeout,
        )
        while self.phase is LoopPhase.RUNNING:
            self.step()
        logger.info("Dashboard stopped")

    def step(self) -> None:
        """One iteration: tick if due, read input, then redraw if dirty.

        A tick is followed by a zero-timeout poll, so input is read on every
        iteration even when ticks run longer than the tick interval.
        """
        now = self._clock()
        if self._tick_due(now):
            self.tick(now)
            timeout = 0.0
        else:
            timeout = self._poll_timeout(now)

        key = self.backend.poll_key(timeout)
        self.state.last_input_poll = self._clock()
        if key is not None:
            self.handle_key(key)

        if (
            self.phase is LoopPhase.RUNNING
            and self.state.redraw_needed
            and not self._tick_due(self._clock())
        ):
            self.draw()

    def tick(self, now: float) -> None:
        self.engine.refresh()
        self._record_history()
        self.state.last_tick = now
        self.draw()

    def draw(self) -> None:
        rows, cols = self.backend.size()
        self.state.set_page_size(page_size_for(rows), self._core_count())
        frame = build_frame(
            self.engine.snapshot(),
            self.state,
            self.history,
            rows,
            cols,
            self.thresholds,
        )
        self.backend.draw(frame)
        self.state.clear_dirty()

    def handle_key(self, key: Key) -> None:
        if key is Key.QUIT:
            logger.debug("Quit requested")
            self.phase = LoopPhase.SHUTTING_DOWN
        elif key is Key.UP or key is Key.DOWN:
            direction = ScrollDirection.UP if key is Key.UP else ScrollDirection.DOWN
            self.state.scroll(direction, self._core_count(), self.state.page_size)
        elif key is Key.RESIZE:
            self.state.mark_dirty()

    # ── Scheduling helpers ────────────────────────────────────────────────

    def _tick_due(self, now: float) -> bool:
        last = self.state.last_tick
        return last is None or now - last >= self.tick_interval

    def _poll_timeout(self, now: float) -> float:
        """Wait no longer than the input timeout, nor past the next tick."""
        last = self.state.last_tick
        remaining = self.tick_interval if last is None else last + self.tick_interval - now
        return max(0.0, min(self.input_timeout, remaining))

    def _core_count(self) -> int:
        cpu = self.engine.cpu_stats()
        return cpu.core_count if isinstance(cpu, CpuStats) else 0

    def _record_history(self) -> None:
        snapshot = self.engine.snapshot()
        if isinstance(snapshot.cpu, CpuStats):
            self.history.push(CPU_HISTORY_KEY, snapshot.cpu.mean_usage)
        if isinstance(snapshot.networks, tuple):
            for net in snapshot.networks:
                self.history.push(
                    network_history_key(net.interface), net.rx_rate + net.tx_rate
                )
