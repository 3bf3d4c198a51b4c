"""Typed statistics produced by the metrics engine.

Every record is frozen: a new ResourceSnapshot replaces the previous one on
each tick rather than being updated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Category(Enum):
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"
    GPU = "gpu"


@dataclass(frozen=True, slots=True)
class CategoryUnavailable:
    """Stands in for a category's stats when they could not be produced."""

    category: Category
    reason: str


def usage_percent(used: float, total: float) -> float:
    """Percentage of *total* in use; 0.0 when *total* is zero."""
    if total == 0:
        return 0.0
    return used / total * 100.0


@dataclass(frozen=True, slots=True)
class CpuStats:
    core_usage: tuple[float, ...]  # percent, 0-100 per core
    frequency: tuple[float, ...]  # MHz per core
    mean_usage: float
    brand: str = ""

    @property
    def core_count(self) -> int:
        return len(self.core_usage)


@dataclass(frozen=True, slots=True)
class MemoryStats:
    total: int
    used: int
    free: int
    available: int
    swap_total: int
    swap_used: int
    swap_free: int

    @property
    def percent(self) -> float:
        return usage_percent(self.used, self.total)

    @property
    def swap_percent(self) -> float:
        return usage_percent(self.swap_used, self.swap_total)


@dataclass(frozen=True, slots=True)
class DiskStats:
    name: str
    mount_point: str
    kind: str  # "SSD", "HDD" or "Unknown"
    removable: bool
    total: int
    available: int
    used: int  # total - available, derived by the engine

    @property
    def percent(self) -> float:
        return usage_percent(self.used, self.total)


@dataclass(frozen=True, slots=True)
class NetworkStats:
    interface: str
    rx_total: int
    tx_total: int
    rx_rate: float  # bytes/s
    tx_rate: float  # bytes/s


@dataclass(frozen=True, slots=True)
class GpuStats:
    name: str
    utilization: float
    memory_used: int
    memory_total: int
    temperature: float

    @property
    def memory_percent(self) -> float:
        return usage_percent(self.memory_used, self.memory_total)


CpuResult = CpuStats | CategoryUnavailable
MemoryResult = MemoryStats | CategoryUnavailable
DiskResult = tuple[DiskStats, ...] | CategoryUnavailable
NetworkResult = tuple[NetworkStats, ...] | CategoryUnavailable
GpuResult = GpuStats | CategoryUnavailable

# Permanent state of a host without a usable GPU, fixed at engine start.
NO_GPU = CategoryUnavailable(Category.GPU, "no GPU")


def _not_sampled(category: Category) -> CategoryUnavailable:
    return CategoryUnavailable(category, "not sampled yet")


@dataclass(frozen=True, slots=True)
class ResourceSnapshot:
    """All categories captured by one refresh tick."""

    timestamp: float = 0.0
    cpu: CpuResult = field(default_factory=lambda: _not_sampled(Category.CPU))
    memory: MemoryResult = field(default_factory=lambda: _not_sampled(Category.MEMORY))
    disks: DiskResult = field(default_factory=lambda: _not_sampled(Category.DISK))
    networks: NetworkResult = field(
        default_factory=lambda: _not_sampled(Category.NETWORK)
    )
    gpu: GpuResult = field(default_factory=lambda: _not_sampled(Category.GPU))
