"""
Shadow-free window screenshots via the macOS screencapture command.

Each capture runs screencapture in its own process; a waiter thread resolves
a Future when the process exits, so callers are never blocked.
"""

import subprocess
import sys
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .window_tracker import WindowRecord

SCREENCAPTURE = "/usr/sbin/screencapture"

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# Characters that can't appear in a macOS file name (":" shows as "/" in Finder)
_UNSAFE_CHARS = ("/", ":")


@dataclass
class CaptureResult:
    """Outcome of a single capture."""

    window: WindowRecord
    success: bool
    path: Optional[Path] = None
    returncode: Optional[int] = None
    reason: Optional[str] = None

    def __str__(self) -> str:
        if self.success:
            return f"Captured {self.window.display_name} -> {self.path}"
        return f"Capture of {self.window.display_name} failed: {self.reason}"


def sanitize_filename(name: str) -> str:
    """Replace path separators with dashes."""
    for char in _UNSAFE_CHARS:
        name = name.replace(char, "-")
    return name


def build_output_path(
    record: WindowRecord,
    directory: Union[str, Path],
    timestamp: datetime,
    taken: Callable[[Path], bool] = lambda p: p.exists(),
) -> Path:
    """
    Build the screenshot path for a window.

    Args:
        record: Window being captured.
        directory: Directory to save into.
        timestamp: Capture time (second precision in the name).
        taken: Returns True if a candidate path can't be used.

    Returns:
        ``<directory>/<title>_<YYYY-MM-DD_HH-MM-SS>.png``, with ``-2``,
        ``-3``... appended to the stem when that name is already taken.
    """
    stem = f"{sanitize_filename(record.capture_name)}_{timestamp.strftime(TIMESTAMP_FORMAT)}"
    directory = Path(directory)

    path = directory / f"{stem}.png"
    suffix = 2
    while taken(path):
        path = directory / f"{stem}-{suffix}.png"
        suffix += 1
    return path


def desktop_directory() -> Path:
    """The current user's Desktop directory."""
    try:
        import Foundation
    except ImportError:
        return Path.home() / "Desktop"

    paths = Foundation.NSSearchPathForDirectoriesInDomains(
        Foundation.NSDesktopDirectory, Foundation.NSUserDomainMask, True
    )
    if paths:
        return Path(str(paths[0]))
    return Path.home() / "Desktop"


def build_command(window_number: int, path: Path, executable: str = SCREENCAPTURE) -> list[str]:
    """screencapture arguments: no sound, no shadow, capture by window id."""
    return [executable, "-x", "-o", "-l", str(window_number), str(path)]


class CaptureInvoker:
    """
    Captures windows to PNG files without blocking the caller.

    Captures may overlap; each one owns its output path. There is no timeout
    and no cancellation: a result is delivered when the process exits.
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        executable: str = SCREENCAPTURE,
        clock: Callable[[], datetime] = datetime.now,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
    ):
        """
        Initialize the invoker.

        Args:
            output_dir: Where screenshots are saved (default: the Desktop).
            executable: Path of the screencapture binary.
            clock: Returns the current time (injectable for tests).
            dispatch: Runs completion callbacks, e.g. by queueing them for the
                UI thread. Callbacks run on the waiter thread when omitted.
        """
        self.output_dir = Path(output_dir) if output_dir else desktop_directory()
        self.executable = executable
        self.clock = clock
        self.dispatch = dispatch

        self.last_captured_path: Optional[Path] = None
        self._lock = threading.Lock()
        self._pending: set[Path] = set()
        self._callbacks: list[Callable[[CaptureResult], None]] = []

    def add_callback(self, callback: Callable[[CaptureResult], None]) -> None:
        """Register a callback invoked with every capture result."""
        self._callbacks.append(callback)

    @property
    def in_flight(self) -> int:
        """Number of captures still running."""
        with self._lock:
            return len(self._pending)

    @property
    def is_capturing(self) -> bool:
        return self.in_flight > 0

    def capture(self, record: WindowRecord) -> "Future[CaptureResult]":
        """
        Start capturing a window.

        The window is not validated up front; if it has closed, screencapture
        fails and that failure is reported.

        Args:
            record: Window to capture.

        Returns:
            Future resolved with exactly one CaptureResult.
        """
        future: "Future[CaptureResult]" = Future()
        future.set_running_or_notify_cancel()

        with self._lock:
            path = build_output_path(
                record,
                self.output_dir,
                self.clock(),
                taken=lambda p: p in self._pending or p.exists(),
            )
            self._pending.add(path)

        command = build_command(record.window_number, path, self.executable)
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            print(f"Error: Failed to capture screenshot: {e}", file=sys.stderr)
            result = CaptureResult(
                window=record, success=False, reason=f"launch error: {e}"
            )
            self._finish(future, path, result)
            return future

        waiter = threading.Thread(
            target=self._wait,
            args=(process, record, path, future),
            daemon=True,
        )
        waiter.start()
        return future

    def _wait(
        self,
        process: subprocess.Popen,
        record: WindowRecord,
        path: Path,
        future: "Future[CaptureResult]",
    ) -> None:
        _, stderr = process.communicate()
        returncode = process.returncode

        if returncode == 0:
            result = CaptureResult(
                window=record, success=True, path=path, returncode=returncode
            )
        else:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            reason = f"exit status {returncode}"
            if detail:
                reason = f"{reason}: {detail}"
            print(f"Error: screencapture failed for {record}: {reason}", file=sys.stderr)
            result = CaptureResult(
                window=record, success=False, returncode=returncode, reason=reason
            )
        self._finish(future, path, result)

    def _finish(
        self, future: "Future[CaptureResult]", path: Path, result: CaptureResult
    ) -> None:
        with self._lock:
            self._pending.discard(path)
            if result.success:
                self.last_captured_path = result.path

        # Callbacks are dispatched before the future resolves
        for callback in self._callbacks:
            if self.dispatch is not None:
                self._dispatch(callback, result)
            else:
                _run_callback(callback, result)
        future.set_result(result)

    def _dispatch(
        self, callback: Callable[[CaptureResult], None], result: CaptureResult
    ) -> None:
        try:
            self.dispatch(lambda: _run_callback(callback, result))
        except Exception as e:
            print(f"Warning: Could not dispatch capture callback: {e}", file=sys.stderr)


def _run_callback(callback: Callable[[CaptureResult], None], result: CaptureResult) -> None:
    try:
        callback(result)
    except Exception as e:
        print(f"Warning: Capture callback failed: {e}", file=sys.stderr)
