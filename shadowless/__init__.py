"""
Shadowless - shadow-free window screenshots for macOS

Tracks the open on-screen windows in most-recently-active order and captures
a chosen window to a PNG on the Desktop, without the drop shadow.
"""

__version__ = "0.1.0"

from shadowless.window_source import (
    RawWindow,
    WindowSource,
    QuartzWindowSource,
    StaticWindowSource,
    check_accessibility_permission,
    check_screen_recording_permission,
)
from shadowless.window_tracker import (
    WindowRecord,
    WindowTracker,
)
from shadowless.capture import (
    CaptureInvoker,
    CaptureResult,
    build_output_path,
    sanitize_filename,
)
from shadowless.scheduler import RefreshTimer

__all__ = [
    # Window enumeration
    "RawWindow",
    "WindowSource",
    "QuartzWindowSource",
    "StaticWindowSource",
    "check_accessibility_permission",
    "check_screen_recording_permission",
    # Tracking
    "WindowRecord",
    "WindowTracker",
    "RefreshTimer",
    # Capture
    "CaptureInvoker",
    "CaptureResult",
    "build_output_path",
    "sanitize_filename",
]
