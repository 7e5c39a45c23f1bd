"""
Window tracking and ordering.

Merges each enumeration of on-screen windows into a table keyed by OS window
number and produces a most-recently-active-first list for display.
"""

import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from .window_source import RawWindow, WindowSource

# Layer of ordinary application windows
NORMAL_LAYER = 0

# Offset given to a newly activated window so it outranks every value the
# counter has handed out so far
ACTIVATION_BOOST = 1000

# New windows that were never frontmost are backdated by this much
INACTIVE_BACKDATE = timedelta(seconds=10)

UNNAMED_WINDOW = "Unnamed Window"


@dataclass
class WindowRecord:
    """A tracked on-screen window."""

    window_number: int
    window_name: str
    app_name: str
    last_active_time: datetime
    ordering_value: int = 0
    last_seen_cycle: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def display_name(self) -> str:
        return self.window_name or UNNAMED_WINDOW

    @property
    def capture_name(self) -> str:
        """Name used for the screenshot file."""
        return self.window_name or self.app_name

    def __str__(self) -> str:
        return f"{self.app_name}: {self.display_name} (#{self.window_number})"


class WindowTracker:
    """
    Tracks on-screen windows across refresh cycles.

    Every refresh pulls the frontmost application and the window list from a
    WindowSource. Windows are deduplicated by window number; the window that
    is frontmost gets an ordering value ahead of everything handed out so far,
    so it sorts first until another window is activated.
    """

    def __init__(
        self,
        source: WindowSource,
        stale_after: Optional[int] = 30,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the tracker.

        Args:
            source: Provider of the frontmost app name and the window list.
            stale_after: Drop windows not enumerated for this many cycles.
                None keeps them for the lifetime of the tracker.
            clock: Returns the current time (injectable for tests).
        """
        self.source = source
        self.stale_after = stale_after
        self.clock = clock

        self._order_counter = 0
        self._cycle = 0
        self._table: dict[int, WindowRecord] = {}
        self._windows: list[WindowRecord] = []
        self._frontmost_number: Optional[int] = None
        self._last_activated: Optional[int] = None

    @property
    def windows(self) -> list[WindowRecord]:
        """Display list produced by the last refresh."""
        return list(self._windows)

    @property
    def cycle(self) -> int:
        return self._cycle

    @property
    def order_counter(self) -> int:
        return self._order_counter

    @property
    def tracked_count(self) -> int:
        """Number of windows in the tracking table (including unseen ones)."""
        return len(self._table)

    @property
    def frontmost_window_number(self) -> Optional[int]:
        """Window detected as frontmost in the last refresh, if any."""
        return self._frontmost_number

    def get(self, window_number: int) -> Optional[WindowRecord]:
        return self._table.get(window_number)

    def refresh(self) -> list[WindowRecord]:
        """
        Run one refresh cycle.

        Returns:
            Windows seen in this cycle, highest ordering value first.
        """
        self._cycle += 1
        now = self.clock()

        app_name = self._query_frontmost_app()
        raw_windows = self._query_windows()
        front_number = find_frontmost_window(raw_windows, app_name)
        self._frontmost_number = front_number

        built: list[WindowRecord] = []
        seen: set[int] = set()
        front_record: Optional[WindowRecord] = None

        for raw in raw_windows:
            if not is_trackable(raw) or raw.window_number in seen:
                continue
            seen.add(raw.window_number)

            is_active = raw.window_number == front_number
            record = self._table.get(raw.window_number)

            if record is not None:
                # Titles change over a window's life (tab switches etc.)
                record.window_name = raw.title
                record.app_name = raw.owner_name
                if is_active:
                    record.last_active_time = now
                    if self._last_activated != raw.window_number:
                        record.ordering_value = self._next_ordering(boost=True)
            else:
                record = WindowRecord(
                    window_number=raw.window_number,
                    window_name=raw.title,
                    app_name=raw.owner_name,
                    last_active_time=now if is_active else now - INACTIVE_BACKDATE,
                    ordering_value=self._next_ordering(boost=is_active),
                )
                self._table[raw.window_number] = record

            if is_active:
                self._last_activated = raw.window_number
                front_record = record

            record.last_seen_cycle = self._cycle
            built.append(record)

        # A long-focused window can be caught up by plain counter values
        if front_record is not None and any(
            r.ordering_value >= front_record.ordering_value
            for r in built
            if r is not front_record
        ):
            front_record.ordering_value = self._next_ordering(boost=True)

        self._evict_stale()

        # sorted() is stable, so ties keep enumeration order
        self._windows = sorted(built, key=lambda r: r.ordering_value, reverse=True)
        return self.windows

    def find(
        self, query: str, records: Optional[list[WindowRecord]] = None
    ) -> Optional[WindowRecord]:
        """
        Find a window in a display list.

        Args:
            query: 1-based row number, "#" followed by an OS window number,
                or a case-insensitive substring of the title or app name.
            records: List to search, e.g. the one last shown to the user
                (default: the current display list).

        Returns:
            The matching record, or None.
        """
        return find_window(self._windows if records is None else records, query)

    def _next_ordering(self, boost: bool) -> int:
        value = self._order_counter + (ACTIVATION_BOOST if boost else 0)
        self._order_counter += 1
        return value

    def _query_frontmost_app(self) -> Optional[str]:
        try:
            return self.source.frontmost_app_name()
        except Exception as e:
            print(f"Warning: Could not determine frontmost app: {e}", file=sys.stderr)
            return None

    def _query_windows(self) -> list[RawWindow]:
        try:
            return list(self.source.list_windows())
        except Exception as e:
            print(f"Warning: Window enumeration failed: {e}", file=sys.stderr)
            return []

    def _evict_stale(self) -> None:
        if self.stale_after is None:
            return
        cutoff = self._cycle - self.stale_after
        stale = [n for n, r in self._table.items() if r.last_seen_cycle < cutoff]
        for window_number in stale:
            del self._table[window_number]
            if self._last_activated == window_number:
                self._last_activated = None


def is_trackable(raw: RawWindow) -> bool:
    """Only ordinary, owned application windows are tracked."""
    return raw.layer == NORMAL_LAYER and bool(raw.owner_name)


def find_frontmost_window(
    raw_windows: list[RawWindow], app_name: Optional[str]
) -> Optional[int]:
    """
    Find the frontmost window's number.

    The enumeration is in front-to-back order, so the first normal-layer
    window owned by the frontmost application is the one with focus.
    """
    if not app_name:
        return None
    for raw in raw_windows:
        if raw.owner_name == app_name and raw.layer == NORMAL_LAYER:
            return raw.window_number
    return None


def find_window(records: list[WindowRecord], query: str) -> Optional[WindowRecord]:
    """Look up a window by row number, "#<window number>" or title/app text."""
    query = query.strip()
    if not query:
        return None

    if query.isdigit():
        row = int(query)
        if 1 <= row <= len(records):
            return records[row - 1]
        return None

    if query.startswith("#") and query[1:].isdigit():
        value = int(query[1:])
        for record in records:
            if record.window_number == value:
                return record
        return None

    needle = query.lower()
    for record in records:
        if needle in record.window_name.lower():
            return record
    for record in records:
        if needle in record.app_name.lower():
            return record
    return None
