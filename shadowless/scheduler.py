"""
Periodic window list refresh.
"""

import sys
import threading
from typing import Callable, Optional

from .window_tracker import WindowRecord, WindowTracker


class RefreshTimer:
    """
    Refreshes a WindowTracker on a fixed interval.

    Timer-driven and manual refreshes go through the same lock, so the
    tracker never sees two refreshes at once.
    """

    def __init__(
        self,
        tracker: WindowTracker,
        interval: float = 2.0,
        on_update: Optional[Callable[[list[WindowRecord]], None]] = None,
    ):
        """
        Initialize the timer.

        Args:
            tracker: Tracker to refresh.
            interval: Seconds between refreshes.
            on_update: Called with the display list after every refresh.
        """
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")

        self.tracker = tracker
        self.interval = interval
        self.on_update = on_update

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def refresh_now(self) -> list[WindowRecord]:
        """Refresh immediately (manual trigger) and return the display list."""
        with self._lock:
            windows = self.tracker.refresh()

        if self.on_update:
            try:
                self.on_update(windows)
            except Exception as e:
                print(f"Warning: Window list update failed: {e}", file=sys.stderr)
        return windows

    def start(self) -> None:
        """Start refreshing in the background (first refresh after one interval)."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop refreshing."""
        self._stop_event.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join(timeout=self.interval + 1.0)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.refresh_now()
