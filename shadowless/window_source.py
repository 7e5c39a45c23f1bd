"""
On-screen window enumeration for macOS.

Wraps the Quartz window list and the AppKit workspace behind a small
interface so the tracker can be driven by a fake source in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class RawWindow:
    """One entry of the on-screen window list."""

    window_number: int
    owner_name: str
    title: str = ""
    layer: int = 0

    def __str__(self) -> str:
        return f"{self.owner_name}: {self.title} (#{self.window_number}, layer {self.layer})"


class WindowSource(ABC):
    """Provides the frontmost application and the on-screen window list."""

    @abstractmethod
    def frontmost_app_name(self) -> Optional[str]:
        """Display name of the frontmost application, or None if unknown."""
        pass

    @abstractmethod
    def list_windows(self) -> list[RawWindow]:
        """On-screen windows in front-to-back order."""
        pass


class QuartzWindowSource(WindowSource):
    """
    Window source backed by CGWindowListCopyWindowInfo.

    Only on-screen windows are listed and desktop elements are excluded.
    Without PyObjC (or without permission) the list is simply empty.
    """

    def frontmost_app_name(self) -> Optional[str]:
        try:
            import AppKit
        except ImportError:
            return None

        app = AppKit.NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        return app.localizedName()

    def list_windows(self) -> list[RawWindow]:
        try:
            import Quartz
        except ImportError:
            return []

        options = (
            Quartz.kCGWindowListOptionOnScreenOnly
            | Quartz.kCGWindowListExcludeDesktopElements
        )
        window_list = Quartz.CGWindowListCopyWindowInfo(options, Quartz.kCGNullWindowID)
        if not window_list:
            return []

        return [window_from_info(info, Quartz) for info in window_list]


def window_from_info(info, quartz) -> RawWindow:
    """Convert one CGWindowList dictionary into a RawWindow."""
    return RawWindow(
        window_number=int(info.get(quartz.kCGWindowNumber, 0)),
        owner_name=info.get(quartz.kCGWindowOwnerName) or "",
        title=info.get(quartz.kCGWindowName) or "",
        layer=int(info.get(quartz.kCGWindowLayer, 0)),
    )


class StaticWindowSource(WindowSource):
    """In-memory window source; the frontmost app and windows are set directly."""

    def __init__(
        self,
        windows: Iterable[RawWindow] = (),
        frontmost_app: Optional[str] = None,
    ):
        self.windows = list(windows)
        self.frontmost_app = frontmost_app

    def set_windows(
        self, windows: Iterable[RawWindow], frontmost_app: Optional[str] = None
    ) -> None:
        self.windows = list(windows)
        self.frontmost_app = frontmost_app

    def frontmost_app_name(self) -> Optional[str]:
        return self.frontmost_app

    def list_windows(self) -> list[RawWindow]:
        return list(self.windows)


def check_accessibility_permission(prompt: bool = True) -> bool:
    """
    Check whether this process is trusted for accessibility.

    Args:
        prompt: Ask the system to show its permission prompt when untrusted.

    Returns:
        True if trusted, False otherwise (including off macOS).
    """
    try:
        import ApplicationServices as AS
    except ImportError:
        return False

    options = {AS.kAXTrustedCheckOptionPrompt: bool(prompt)}
    return bool(AS.AXIsProcessTrustedWithOptions(options))


def check_screen_recording_permission() -> bool:
    """
    Check if screen recording permission is granted on macOS.

    Returns:
        True if permission is granted, False otherwise.
    """
    try:
        import Quartz
    except ImportError:
        return False

    # Capturing a single pixel fails without permission
    image_ref = Quartz.CGWindowListCreateImage(
        Quartz.CGRectMake(0, 0, 1, 1),
        Quartz.kCGWindowListOptionOnScreenOnly,
        Quartz.kCGNullWindowID,
        Quartz.kCGWindowImageDefault,
    )
    if image_ref is None:
        return False
    return Quartz.CGImageGetWidth(image_ref) > 0


def get_permission_instructions() -> str:
    """Get instructions for enabling the permissions window capture needs."""
    return """
Accessibility / Screen Recording Permission Required

Window titles and screenshots need permission from macOS:

1. Open System Settings (or System Preferences on older macOS)
2. Go to Privacy & Security > Accessibility and enable your terminal
3. Go to Privacy & Security > Screen Recording and enable your terminal
4. You may need to restart the application after granting permission

If using a virtual environment, make sure to grant permission to the
terminal application running Python, not Python itself.
"""
