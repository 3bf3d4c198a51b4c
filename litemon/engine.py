"""Metrics engine: turns raw provider counters into typed, derived statistics.

The engine owns the only mutable metric state in the process: the previous
network counters (for byte rates) and the most recent snapshot.  Each
category is collected independently so a failure in one never hides the
others.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from litemon.errors import CollectionError, GpuNotFound
from litemon.models import (
    NO_GPU,
    Category,
    CategoryUnavailable,
    CpuResult,
    CpuStats,
    DiskResult,
    DiskStats,
    GpuResult,
    GpuStats,
    MemoryResult,
    MemoryStats,
    NetworkResult,
    NetworkStats,
    ResourceSnapshot,
)
from litemon.provider import MetricsProvider, RawInterface

logger = logging.getLogger(__name__)


# ── Derived quantities ─────────────────────────────────────────────────────


def transfer_rate(previous: int, current: int, interval: float) -> float:
    """Bytes/second between two cumulative counter readings.

    A counter that went backwards (reset or wrap) yields 0, as does a
    non-positive interval.
    """
    if interval <= 0 or current < previous:
        return 0.0
    return (current - previous) / interval


def mean_usage(values: list[float] | tuple[float, ...]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


# ── Engine ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Monitors:
    """Which categories the engine collects."""

    cpu: bool = True
    memory: bool = True
    disk: bool = True
    network: bool = True
    gpu: bool = True


class MetricsEngine:
    """Pulls from a MetricsProvider on ``refresh()`` and serves derived stats."""

    def __init__(
        self,
        provider: MetricsProvider,
        monitors: Monitors | None = None,
        gpu_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._monitors = monitors or Monitors()
        self._gpu_interval = gpu_interval
        self._clock = clock

        self._prev_counters: dict[str, RawInterface] = {}
        self._prev_net_time: float | None = None
        self._gpu_polled_at: float | None = None
        self._snapshot = ResourceSnapshot()

        self._has_gpu = False
        self._gpu: GpuResult = CategoryUnavailable(Category.GPU, "disabled")
        if self._monitors.gpu:
            try:
                provider.probe_gpu()
                self._has_gpu = True
                self._gpu = CategoryUnavailable(Category.GPU, "not sampled yet")
            except GpuNotFound as e:
                logger.info("No GPU found, GPU panel disabled: %s", e)
                self._gpu = NO_GPU

    @property
    def has_gpu(self) -> bool:
        """Whether a GPU was found at construction.  Never changes afterwards."""
        return self._has_gpu

    @property
    def monitors(self) -> Monitors:
        return self._monitors

    def refresh(self) -> None:
        """Pull a fresh set of counters and derive a new snapshot."""
        now = self._clock()
        self._provider.refresh()
        self._snapshot = ResourceSnapshot(
            timestamp=now,
            cpu=self._collect_cpu(),
            memory=self._collect_memory(),
            disks=self._collect_disks(),
            networks=self._collect_networks(now),
            gpu=self._collect_gpu(now),
        )

    def snapshot(self) -> ResourceSnapshot:
        return self._snapshot

    def cpu_stats(self) -> CpuResult:
        return self._snapshot.cpu

    def memory_stats(self) -> MemoryResult:
        return self._snapshot.memory

    def disk_stats(self) -> DiskResult:
        return self._snapshot.disks

    def network_stats(self) -> NetworkResult:
        return self._snapshot.networks

    def gpu_stats(self) -> GpuResult:
        return self._snapshot.gpu

    # ── Per-category collection ───────────────────────────────────────────

    @staticmethod
    def _failed(category: Category, err: CollectionError) -> CategoryUnavailable:
        logger.warning("Collecting %s failed: %s", category.value, err.reason)
        return CategoryUnavailable(category, err.reason)

    def _collect_cpu(self) -> CpuResult:
        if not self._monitors.cpu:
            return CategoryUnavailable(Category.CPU, "disabled")
        try:
            raw = self._provider.cpu()
        except CollectionError as e:
            return self._failed(Category.CPU, e)
        return CpuStats(
            core_usage=tuple(raw.usage),
            frequency=tuple(raw.frequency),
            mean_usage=mean_usage(raw.usage),
            brand=raw.brand,
        )

    def _collect_memory(self) -> MemoryResult:
        if not self._monitors.memory:
            return CategoryUnavailable(Category.MEMORY, "disabled")
        try:
            raw = self._provider.memory()
        except CollectionError as e:
            return self._failed(Category.MEMORY, e)
        return MemoryStats(
            total=max(0, raw.total),
            used=max(0, raw.used),
            free=max(0, raw.free),
            available=max(0, raw.available),
            swap_total=max(0, raw.swap_total),
            swap_used=max(0, raw.swap_used),
            swap_free=max(0, raw.swap_free),
        )

    def _collect_disks(self) -> DiskResult:
        if not self._monitors.disk:
            return CategoryUnavailable(Category.DISK, "disabled")
        try:
            raw_disks = self._provider.disks()
        except CollectionError as e:
            return self._failed(Category.DISK, e)
        return tuple(
            DiskStats(
                name=d.name,
                mount_point=d.mount_point,
                kind=d.kind,
                removable=d.removable,
                total=d.total,
                available=d.available,
                used=max(0, d.total - d.available),
            )
            for d in raw_disks
        )

    def _collect_networks(self, now: float) -> NetworkResult:
        if not self._monitors.network:
            return CategoryUnavailable(Category.NETWORK, "disabled")
        try:
            counters = self._provider.networks()
        except CollectionError as e:
            # Keep the previous baseline so the next good tick still has one
            return self._failed(Category.NETWORK, e)

        interval = 0.0 if self._prev_net_time is None else now - self._prev_net_time
        stats: list[NetworkStats] = []
        for name, cur in counters.items():
            prev = self._prev_counters.get(name)
            if prev is None:
                rx_rate = tx_rate = 0.0
            else:
                rx_rate = transfer_rate(prev.rx_total, cur.rx_total, interval)
                tx_rate = transfer_rate(prev.tx_total, cur.tx_total, interval)
            stats.append(
                NetworkStats(
                    interface=name,
                    rx_total=cur.rx_total,
                    tx_total=cur.tx_total,
                    rx_rate=rx_rate,
                    tx_rate=tx_rate,
                )
            )
        self._prev_counters = dict(counters)
        self._prev_net_time = now
        return tuple(stats)

    def _collect_gpu(self, now: float) -> GpuResult:
        if not self._has_gpu:
            return self._gpu
        due = (
            self._gpu_polled_at is None
            or now - self._gpu_polled_at >= self._gpu_interval
        )
        if not due:
            return self._gpu
        self._gpu_polled_at = now
        try:
            raw = self._provider.gpu()
        except CollectionError as e:
            self._gpu = self._failed(Category.GPU, e)
            return self._gpu
        self._gpu = GpuStats(
            name=raw.name,
            utilization=raw.utilization,
            memory_used=raw.memory_used,
            memory_total=raw.memory_total,
            temperature=raw.temperature,
        )
        return self._gpu
