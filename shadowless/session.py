"""
Interactive capture session.

Keeps the window list fresh in the background, lets the user pick a window
from the terminal (or press a global hotkey for the frontmost one) and
reports every capture as it completes.
"""

import queue
import sys
from concurrent.futures import wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from .capture import CaptureInvoker, CaptureResult
from .formatter import EMPTY_MESSAGE, build_window_table
from .notifications import create_notification_manager, reveal_in_finder
from .progress import create_spinner
from .scheduler import RefreshTimer
from .window_source import (
    QuartzWindowSource,
    WindowSource,
    check_accessibility_permission,
    get_permission_instructions,
)
from .window_tracker import WindowRecord, WindowTracker


@dataclass
class SessionConfig:
    """Options for an interactive session."""

    interval: float = 2.0
    output_dir: Optional[Path] = None  # None = Desktop
    hotkey: Optional[str] = None
    overlay: bool = False
    sound: bool = True
    reveal: bool = False
    stale_after: Optional[int] = 30
    prompt_permission: bool = True


class CaptureSession:
    """
    Wires the tracker, refresh timer, capture invoker and notifications.

    Capture results are queued by the invoker and handled on the thread that
    calls process_results(), i.e. the one running the prompt loop.
    """

    def __init__(
        self,
        config: SessionConfig,
        source: Optional[WindowSource] = None,
        invoker: Optional[CaptureInvoker] = None,
        console: Optional[Console] = None,
    ):
        self.config = config
        self.console = console or Console(stderr=True)
        self.tracker = WindowTracker(
            source or QuartzWindowSource(), stale_after=config.stale_after
        )
        self.timer = RefreshTimer(self.tracker, interval=config.interval)
        self.notifications = create_notification_manager(
            terminal=True, sound=config.sound, overlay=config.overlay
        )

        self._results: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self.invoker = invoker or CaptureInvoker(output_dir=config.output_dir)
        self.invoker.dispatch = self._results.put
        self.invoker.add_callback(self._on_result)

        self.captures: list[Path] = []
        self.failures = 0
        self._hotkey_listener = None
        # Rows as last shown to the user; selections are numbered against it
        self._displayed: Optional[list[WindowRecord]] = None

    def start(self) -> None:
        self.timer.refresh_now()
        self.timer.start()
        if self.config.hotkey:
            from .hotkeys import create_hotkey_listener
            self._hotkey_listener = create_hotkey_listener(
                self.config.hotkey, self.capture_frontmost
            )

    def stop(self) -> None:
        if self._hotkey_listener:
            self._hotkey_listener.stop()
            self._hotkey_listener = None
        self.timer.stop()

    @property
    def displayed(self) -> list[WindowRecord]:
        """The list last rendered, or the current one before any render."""
        if self._displayed is None:
            return self.tracker.windows
        return list(self._displayed)

    def render(self) -> None:
        windows = self.tracker.windows
        self._displayed = windows
        if windows:
            self.console.print(build_window_table(windows))
        else:
            self.console.print(f"[yellow]{EMPTY_MESSAGE}[/yellow]")
            self.console.print("[dim]Press r to refresh.[/dim]")

    def capture(self, query: str):
        """Capture the window matching a row number, #window number or title."""
        record = self.tracker.find(query, self.displayed)
        if record is None:
            self.console.print(f"[red]No window matches '{escape(query)}'.[/red]")
            return None
        return self.invoker.capture(record)

    def capture_frontmost(self):
        """Capture whichever tracked window is currently frontmost."""
        self.timer.refresh_now()
        number = self.tracker.frontmost_window_number
        record = self.tracker.get(number) if number is not None else None
        if record is None:
            self.console.print("[yellow]Warning: No frontmost window detected.[/yellow]")
            return None
        return self.invoker.capture(record)

    def process_results(self) -> int:
        """Run queued result callbacks on this thread. Returns how many ran."""
        count = 0
        while True:
            try:
                callback = self._results.get_nowait()
            except queue.Empty:
                return count
            callback()
            count += 1

    def _on_result(self, result: CaptureResult) -> None:
        self.notifications.notify(result)
        if result.success:
            self.captures.append(result.path)
            if self.config.reveal:
                reveal_in_finder(result.path)
        else:
            self.failures += 1

    def handle_command(self, command: str) -> bool:
        """
        Handle one line of user input.

        Returns:
            False when the session should end.
        """
        command = command.strip()
        if command.lower() in ("q", "quit", "exit"):
            return False
        if command.lower() in ("", "r", "refresh"):
            self.timer.refresh_now()
            return True

        future = self.capture(command)
        if future is not None:
            with create_spinner() as progress:
                progress.add_task("Capturing window...", total=None)
                wait([future])
        return True

    def summary(self) -> None:
        self.console.print("\nSession ended.")
        if self.captures:
            self.console.print(f"Screenshots saved ({len(self.captures)}):")
            for path in self.captures:
                self.console.print(f"  - {escape(str(path))}", highlight=False)
        else:
            self.console.print("No screenshots taken.")


def run_session(
    config: SessionConfig,
    source: Optional[WindowSource] = None,
    input_func: Callable[[str], str] = input,
    console: Optional[Console] = None,
) -> CaptureSession:
    """Run an interactive capture session until the user quits."""
    console = console or Console(stderr=True)

    if source is None and not check_accessibility_permission(prompt=config.prompt_permission):
        console.print("[yellow]Warning: Accessibility permission not granted.[/yellow]")
        console.print(get_permission_instructions(), highlight=False)

    session = CaptureSession(config, source=source, console=console)
    session.start()

    if config.hotkey:
        console.print(f"Hotkey: {config.hotkey} (capture frontmost window)")

    try:
        running = True
        while running:
            session.process_results()
            session.render()
            count = len(session.displayed)
            prompt = f"Select window [1-{count}], r=refresh, q=quit: " if count else "r=refresh, q=quit: "
            try:
                line = input_func(prompt)
            except EOFError:
                break
            running = session.handle_command(line)
            session.process_results()
    except KeyboardInterrupt:
        print(file=sys.stderr)
    finally:
        session.stop()
        # Pick up captures that finished while shutting down
        session.process_results()
        session.summary()

    return session
