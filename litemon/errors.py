"""Exception types raised by litemon's metric sources."""

from __future__ import annotations


class LitemonError(Exception):
    """Base class for litemon errors."""


class CollectionError(LitemonError):
    """One metric category could not be read from the host this tick."""

    def __init__(self, category: str, reason: str) -> None:
        super().__init__(f"{category}: {reason}")
        self.category = category
        self.reason = reason


class GpuNotFound(LitemonError):
    """No compatible GPU (or no driver tooling) on this host."""
