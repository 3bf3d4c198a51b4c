"""Interactive dashboard state: core-list pagination, timestamps, redraw flag."""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

# Terminal rows the core list cannot use: header (1), CPU info box (3),
# usage gauge (3) and the list's own border (2).
CORE_LIST_CHROME = 9

SCROLL_DEBOUNCE = 0.05  # seconds between accepted scroll inputs


class ScrollDirection(Enum):
    UP = -1
    DOWN = 1


def page_size_for(rows: int) -> int:
    """Cores per page for a terminal *rows* tall.  Always even and >= 2."""
    available = rows - CORE_LIST_CHROME
    return max(1, available // 2) * 2


def max_offset(total_items: int, page_size: int) -> int:
    return max(0, total_items - page_size)


class DashboardState:
    """Scroll position and scheduling timestamps for the render loop."""

    def __init__(
        self,
        page_size: int = 2,
        scroll_debounce: float = SCROLL_DEBOUNCE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scroll_offset = 0
        self.page_size = max(1, page_size)
        self.scroll_debounce = scroll_debounce
        self.last_tick: float | None = None
        self.last_input_poll: float | None = None
        self.last_scroll: float | None = None
        self.redraw_needed = False
        self._clock = clock

    def scroll(
        self,
        direction: ScrollDirection,
        total_items: int,
        page_size: int,
        now: float | None = None,
    ) -> bool:
        """Move one page in *direction*, clamped to the valid offsets.

        Inputs arriving within ``scroll_debounce`` of the previous one are
        dropped.  Returns True when the offset actually changed.
        """
        if now is None:
            now = self._clock()
        if (
            self.last_scroll is not None
            and now - self.last_scroll < self.scroll_debounce
        ):
            return False
        self.last_scroll = now

        page_size = max(1, page_size)
        target = self.scroll_offset + direction.value * page_size
        offset = min(max(0, target), max_offset(total_items, page_size))
        if offset == self.scroll_offset:
            return False
        self.scroll_offset = offset
        self.mark_dirty()
        return True

    def set_page_size(self, page_size: int, total_items: int) -> None:
        """Adopt a new page size and pull the offset back into range."""
        self.page_size = max(1, page_size)
        self.clamp(total_items)

    def clamp(self, total_items: int) -> None:
        self.scroll_offset = min(
            max(0, self.scroll_offset), max_offset(total_items, self.page_size)
        )

    def visible_range(self, total_items: int) -> range:
        start = min(self.scroll_offset, total_items)
        return range(start, min(start + self.page_size, total_items))

    def mark_dirty(self) -> None:
        self.redraw_needed = True

    def clear_dirty(self) -> None:
        self.redraw_needed = False
