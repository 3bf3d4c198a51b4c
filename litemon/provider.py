"""Raw host metric sources.

The engine only talks to the ``MetricsProvider`` protocol: ``refresh()`` plus
one accessor per category returning raw counters.  ``PsutilProvider`` is the
real implementation; tests hand the engine a fake.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import subprocess
from typing import NamedTuple, Protocol

import psutil

from litemon.errors import CollectionError, GpuNotFound

logger = logging.getLogger(__name__)

# ── Raw records ────────────────────────────────────────────────────────────


class RawCpu(NamedTuple):
    usage: list[float]
    frequency: list[float]  # MHz
    brand: str


class RawMemory(NamedTuple):
    total: int
    used: int
    free: int
    available: int
    swap_total: int
    swap_used: int
    swap_free: int


class RawDisk(NamedTuple):
    name: str
    mount_point: str
    kind: str
    removable: bool
    total: int
    available: int


class RawInterface(NamedTuple):
    rx_total: int
    tx_total: int


class RawGpu(NamedTuple):
    name: str
    utilization: float
    memory_used: int  # bytes
    memory_total: int  # bytes
    temperature: float


class MetricsProvider(Protocol):
    def refresh(self) -> None: ...

    def cpu(self) -> RawCpu: ...

    def memory(self) -> RawMemory: ...

    def disks(self) -> list[RawDisk]: ...

    def networks(self) -> dict[str, RawInterface]: ...

    def probe_gpu(self) -> None:
        """Raise ``GpuNotFound`` when no GPU can be queried."""
        ...

    def gpu(self) -> RawGpu: ...


# ── Host helpers ───────────────────────────────────────────────────────────

_PARTITION_RE = re.compile(r"^(nvme\d+n\d+|mmcblk\d+)p\d+$")
_SKIP_INTERFACES = frozenset({"lo"})


def _block_device(device: str) -> str:
    """Map a partition path like ``/dev/sda1`` to its block device ``sda``."""
    name = os.path.basename(device)
    m = _PARTITION_RE.match(name)
    if m:
        return m.group(1)
    return name.rstrip("0123456789") or name


def _read_sysfs(path: str) -> str | None:
    try:
        with open(path) as f:
            return f.read().strip()
    except OSError:
        return None


def _disk_kind(device: str) -> str:
    rotational = _read_sysfs(f"/sys/block/{_block_device(device)}/queue/rotational")
    if rotational == "0":
        return "SSD"
    if rotational == "1":
        return "HDD"
    return "Unknown"


def _is_removable(device: str) -> bool:
    return _read_sysfs(f"/sys/block/{_block_device(device)}/removable") == "1"


def _cpu_brand() -> str:
    """Model name from /proc/cpuinfo, falling back to ``platform.processor()``."""
    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return platform.processor() or "Unknown CPU"


def _smi_number(raw: str) -> float:
    # nvidia-smi prints "[N/A]" or "[Not Supported]" for missing sensors
    if raw.startswith("["):
        return 0.0
    return float(raw)


def _query_nvidia_smi() -> RawGpu:
    """Read the first GPU via nvidia-smi.  Raises *GpuNotFound* if unavailable."""
    try:
        result = subprocess.run(
            [
                "nvidia-smi",
                "--query-gpu=name,utilization.gpu,memory.used,memory.total,"
                "temperature.gpu",
                "--format=csv,noheader,nounits",
            ],
            capture_output=True,
            text=True,
            timeout=3,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise GpuNotFound(str(e)) from e
    if result.returncode != 0:
        raise GpuNotFound(result.stderr.strip() or "nvidia-smi failed")
    lines = result.stdout.strip().splitlines()
    if not lines:
        raise GpuNotFound("nvidia-smi reported no devices")
    parts = [p.strip() for p in lines[0].split(",")]
    if len(parts) < 5:
        raise GpuNotFound(f"unexpected nvidia-smi output: {lines[0]!r}")
    try:
        return RawGpu(
            name=parts[0],
            utilization=_smi_number(parts[1]),
            memory_used=int(_smi_number(parts[2]) * 1024 * 1024),
            memory_total=int(_smi_number(parts[3]) * 1024 * 1024),
            temperature=_smi_number(parts[4]),
        )
    except ValueError as e:
        raise GpuNotFound(f"unparseable nvidia-smi output: {lines[0]!r}") from e


# ── psutil provider ────────────────────────────────────────────────────────

_HOST_ERRORS = (OSError, RuntimeError, psutil.Error)


class PsutilProvider:
    """MetricsProvider backed by psutil, /sys and nvidia-smi.

    Each accessor reads the host at most once per ``refresh()`` and raises
    ``CollectionError`` when its category cannot be read.
    """

    def __init__(self) -> None:
        self._brand = _cpu_brand()
        self._cpu: RawCpu | None = None
        # Prime psutil's per-core delta; the first reading is meaningless.
        try:
            psutil.cpu_percent(interval=None, percpu=True)
        except _HOST_ERRORS as e:
            logger.warning("Could not prime CPU counters: %s", e)

    def refresh(self) -> None:
        self._cpu = None

    def cpu(self) -> RawCpu:
        if self._cpu is not None:
            return self._cpu
        try:
            usage = psutil.cpu_percent(interval=None, percpu=True)
            try:
                freqs = psutil.cpu_freq(percpu=True) or []
            except (AttributeError, NotImplementedError, *_HOST_ERRORS):
                freqs = []
        except _HOST_ERRORS as e:
            raise CollectionError("cpu", str(e)) from e
        frequency = [float(f.current) for f in freqs[: len(usage)]]
        if len(frequency) < len(usage):
            # Some platforms only report one package-wide frequency
            fill = frequency[0] if frequency else 0.0
            frequency.extend([fill] * (len(usage) - len(frequency)))
        self._cpu = RawCpu(usage=list(usage), frequency=frequency, brand=self._brand)
        return self._cpu

    def memory(self) -> RawMemory:
        try:
            ram = psutil.virtual_memory()
            swap = psutil.swap_memory()
        except _HOST_ERRORS as e:
            raise CollectionError("memory", str(e)) from e
        return RawMemory(
            total=ram.total,
            used=ram.used,
            free=ram.free,
            available=ram.available,
            swap_total=swap.total,
            swap_used=swap.used,
            swap_free=swap.free,
        )

    def disks(self) -> list[RawDisk]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except _HOST_ERRORS as e:
            raise CollectionError("disk", str(e)) from e
        disks: list[RawDisk] = []
        for part in partitions:
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except _HOST_ERRORS:
                # Unreadable mount points (permissions, stale mounts) are skipped
                logger.debug("Skipping unreadable mount %s", part.mountpoint)
                continue
            disks.append(
                RawDisk(
                    name=part.device,
                    mount_point=part.mountpoint,
                    kind=_disk_kind(part.device),
                    removable=_is_removable(part.device),
                    total=usage.total,
                    available=usage.free,
                )
            )
        return disks

    def networks(self) -> dict[str, RawInterface]:
        try:
            counters = psutil.net_io_counters(pernic=True)
        except _HOST_ERRORS as e:
            raise CollectionError("network", str(e)) from e
        return {
            name: RawInterface(rx_total=nio.bytes_recv, tx_total=nio.bytes_sent)
            for name, nio in counters.items()
            if name not in _SKIP_INTERFACES
        }

    def probe_gpu(self) -> None:
        _query_nvidia_smi()

    def gpu(self) -> RawGpu:
        try:
            return _query_nvidia_smi()
        except GpuNotFound as e:
            raise CollectionError("gpu", str(e)) from e
