"""
Capture result notifications.

Channels report a CaptureResult in the terminal, with a system sound, or as a
floating HUD overlay. NotificationManager fans a result out to all of them.
"""

import shutil
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from rich.markup import escape

from .capture import CaptureResult

SUCCESS_TITLE = "Window Captured"
FAILURE_TITLE = "Capture Failed"


def result_message(result: CaptureResult) -> tuple[str, str]:
    """Title and message text for a capture result."""
    if result.success:
        return SUCCESS_TITLE, f'Screenshot of "{result.window.display_name}" saved to Desktop.'
    return FAILURE_TITLE, f'Could not capture "{result.window.display_name}" ({result.reason}).'


class CaptureNotifier(ABC):
    """Base class for notification channels."""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def send(self, result: CaptureResult) -> bool:
        """Deliver a result. Returns True if it was shown."""
        pass


class TerminalNotifier(CaptureNotifier):
    """Prints results to stderr, formatted with rich when available."""

    def __init__(self, use_rich: bool = True):
        self.use_rich = use_rich
        self._console = None
        if use_rich:
            from rich.console import Console
            self._console = Console(stderr=True)

    def is_available(self) -> bool:
        return True

    def send(self, result: CaptureResult) -> bool:
        title, message = result_message(result)

        if self._console is not None:
            style = "bold green" if result.success else "bold red"
            self._console.print(f"[{style}]{title}[/{style}] {escape(message)}", highlight=False)
            if result.path:
                self._console.print(f"  [dim]{escape(str(result.path))}[/dim]", highlight=False)
        else:
            print(f"{title}: {message}", file=sys.stderr)
            if result.path:
                print(f"  {result.path}", file=sys.stderr)
        return True


class SoundNotifier(CaptureNotifier):
    """Plays a system sound for each result."""

    def __init__(self, success_sound: str = "Glass", failure_sound: str = "Basso"):
        self.success_sound = success_sound
        self.failure_sound = failure_sound

    def is_available(self) -> bool:
        return shutil.which("afplay") is not None

    def send(self, result: CaptureResult) -> bool:
        from .hotkeys import play_sound

        play_sound(self.success_sound if result.success else self.failure_sound)
        return True


class OverlayNotifier(CaptureNotifier):
    """Visual overlay notification using a floating HUD window."""

    def __init__(self, duration: float = 2.0):
        """
        Initialize overlay notifier.

        Args:
            duration: How long to show the overlay in seconds.
        """
        self.duration = duration

    def is_available(self) -> bool:
        """Check if PyObjC is available for overlay windows."""
        try:
            import AppKit  # noqa: F401
            return True
        except ImportError:
            return False

    def send(self, result: CaptureResult) -> bool:
        title, message = result_message(result)
        return self.send_message(title, message)

    def send_message(self, title: str, message: str) -> bool:
        """Show a floating HUD overlay on screen without blocking."""
        thread = threading.Thread(
            target=self._show_overlay,
            args=(title, message),
            daemon=True,
        )
        thread.start()
        return True

    def build_script(self, title_text: str, message_text: str) -> str:
        """Python source of the overlay process."""
        title_escaped = _escape(title_text)
        message_escaped = _escape(message_text)

        return f'''
import AppKit
import Foundation
import time

app = AppKit.NSApplication.sharedApplication()
app.setActivationPolicy_(AppKit.NSApplicationActivationPolicyAccessory)

sf = AppKit.NSScreen.mainScreen().frame()

width, height = 360, 80
padding = 20
x = sf.size.width - width - padding
y = sf.size.height - height - padding - 25

window = AppKit.NSWindow.alloc().initWithContentRect_styleMask_backing_defer_(
    Foundation.NSMakeRect(x, y, width, height),
    AppKit.NSWindowStyleMaskBorderless,
    AppKit.NSBackingStoreBuffered,
    False,
)

window.setLevel_(AppKit.NSFloatingWindowLevel)
window.setOpaque_(False)
window.setBackgroundColor_(AppKit.NSColor.colorWithCalibratedRed_green_blue_alpha_(0, 0, 0, 0.85))
window.setIgnoresMouseEvents_(True)
window.setCollectionBehavior_(
    AppKit.NSWindowCollectionBehaviorCanJoinAllSpaces |
    AppKit.NSWindowCollectionBehaviorFullScreenAuxiliary
)

content = window.contentView()
content.setWantsLayer_(True)
content.layer().setCornerRadius_(12)
content.layer().setMasksToBounds_(True)

def label(text, frame, font, color):
    field = AppKit.NSTextField.alloc().initWithFrame_(frame)
    field.setStringValue_(text)
    field.setBezeled_(False)
    field.setDrawsBackground_(False)
    field.setEditable_(False)
    field.setSelectable_(False)
    field.setTextColor_(color)
    field.setFont_(font)
    field.setAlignment_(AppKit.NSTextAlignmentCenter)
    field.cell().setLineBreakMode_(AppKit.NSLineBreakByTruncatingMiddle)
    content.addSubview_(field)

label('{title_escaped}', Foundation.NSMakeRect(15, 45, width - 30, 25),
      AppKit.NSFont.boldSystemFontOfSize_(16), AppKit.NSColor.whiteColor())
label('{message_escaped}', Foundation.NSMakeRect(15, 15, width - 30, 25),
      AppKit.NSFont.systemFontOfSize_(13), AppKit.NSColor.lightGrayColor())

window.orderFrontRegardless()

start = time.time()
while time.time() - start < {self.duration}:
    event = app.nextEventMatchingMask_untilDate_inMode_dequeue_(
        AppKit.NSEventMaskAny,
        Foundation.NSDate.dateWithTimeIntervalSinceNow_(0.1),
        AppKit.NSDefaultRunLoopMode,
        True,
    )
    if event:
        app.sendEvent_(event)

window.close()
'''

    def _show_overlay(self, title_text: str, message_text: str) -> None:
        """Show the overlay window (runs as subprocess for proper event loop)."""
        try:
            subprocess.Popen(
                [sys.executable, "-c", self.build_script(title_text, message_text)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            print(f"Warning: Could not show overlay: {e}", file=sys.stderr)


def _escape(text: str) -> str:
    """Escape text for a single-quoted Python string literal."""
    return text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", " ")


class NotificationManager:
    """Sends capture results to every registered channel."""

    def __init__(self):
        self.channels: list[CaptureNotifier] = []

    def add_channel(self, channel: CaptureNotifier) -> None:
        self.channels.append(channel)

    def notify(self, result: CaptureResult) -> int:
        """
        Send a result to all channels.

        Returns:
            Number of channels that delivered it.
        """
        delivered = 0
        for channel in self.channels:
            try:
                if channel.send(result):
                    delivered += 1
            except Exception as e:
                print(f"Warning: {type(channel).__name__} failed: {e}", file=sys.stderr)
        return delivered


def reveal_in_finder(path: Union[str, Path]) -> bool:
    """Select a file in a new Finder window ("Show in Finder")."""
    try:
        subprocess.run(
            ["open", "-R", str(path)],
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return True
    except OSError:
        return False


def create_notification_manager(
    terminal: bool = True,
    sound: bool = True,
    overlay: bool = False,
    use_rich: Optional[bool] = None,
) -> NotificationManager:
    """Create a notification manager with the requested channels."""
    if use_rich is None:
        use_rich = sys.stderr.isatty()

    manager = NotificationManager()
    channels: list[CaptureNotifier] = []
    if terminal:
        channels.append(TerminalNotifier(use_rich=use_rich))
    if sound:
        channels.append(SoundNotifier())
    if overlay:
        channels.append(OverlayNotifier())

    for channel in channels:
        if channel.is_available():
            manager.add_channel(channel)
    return manager
