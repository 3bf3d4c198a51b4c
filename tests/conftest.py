"""Shared fakes: a scriptable metrics provider and a manual clock."""

from __future__ import annotations

import pytest

from litemon.errors import CollectionError, GpuNotFound
from litemon.provider import RawCpu, RawDisk, RawGpu, RawInterface, RawMemory


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """MetricsProvider whose raw readings are plain attributes.

    Set a category's entry in ``failing`` to make its accessor raise
    CollectionError.
    """

    def __init__(self, gpu: RawGpu | None = None) -> None:
        self.cpu_reading = RawCpu(usage=[10.0, 30.0], frequency=[2400.0, 2400.0], brand="Fake CPU")
        self.memory_reading = RawMemory(
            total=16 * 1024**3,
            used=8 * 1024**3,
            free=4 * 1024**3,
            available=6 * 1024**3,
            swap_total=2 * 1024**3,
            swap_used=0,
            swap_free=2 * 1024**3,
        )
        self.disk_reading = [
            RawDisk("/dev/sda1", "/", "SSD", False, total=100, available=40),
        ]
        self.network_reading: dict[str, RawInterface] = {}
        self.gpu_reading = gpu
        self.failing: set[str] = set()
        self.refreshes = 0
        self.gpu_queries = 0

    def _check(self, category: str) -> None:
        if category in self.failing:
            raise CollectionError(category, "simulated failure")

    def refresh(self) -> None:
        self.refreshes += 1

    def cpu(self) -> RawCpu:
        self._check("cpu")
        return self.cpu_reading

    def memory(self) -> RawMemory:
        self._check("memory")
        return self.memory_reading

    def disks(self) -> list[RawDisk]:
        self._check("disk")
        return self.disk_reading

    def networks(self) -> dict[str, RawInterface]:
        self._check("network")
        return dict(self.network_reading)

    def probe_gpu(self) -> None:
        if self.gpu_reading is None:
            raise GpuNotFound("no device")

    def gpu(self) -> RawGpu:
        self.gpu_queries += 1
        self._check("gpu")
        if self.gpu_reading is None:
            raise CollectionError("gpu", "no device")
        return self.gpu_reading


SAMPLE_GPU = RawGpu(
    name="Fake RTX",
    utilization=42.0,
    memory_used=1024**3,
    memory_total=8 * 1024**3,
    temperature=61.0,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
