"""Human-readable formatting for byte counts, rates and clock speeds."""

from __future__ import annotations

_UNITS = ("KB", "MB", "GB")


def format_bytes(n: int | float) -> str:
    """Format a byte count with 1024-based units (B, KB, MB, GB).

    Whole bytes are printed without decimals; larger units always carry two.
    """
    v = float(n)
    # Units are chosen on the rounded value
    if round(abs(v)) < 1024:
        return f"{v:.0f} B"
    for unit in _UNITS:
        v /= 1024
        if round(abs(v), 2) < 1024:
            break
    return f"{v:.2f} {unit}"


def format_rate(bps: float) -> str:
    """Human-readable transfer rate."""
    return f"{format_bytes(bps)}/s"


def format_frequency(mhz: float) -> str:
    if mhz >= 1000:
        return f"{mhz / 1000:.2f} GHz"
    return f"{mhz:.0f} MHz"
