"""
Global hotkey handling for macOS.

Provides a simple interface for registering global keyboard shortcuts.
"""

import subprocess
import sys
from typing import Callable, Optional


class HotkeyListener:
    """
    Listens for global keyboard shortcuts.

    Uses pynput for cross-platform hotkey detection.
    """

    def __init__(self, hotkey: str, callback: Callable[[], None]):
        """
        Initialize the hotkey listener.

        Args:
            hotkey: Hotkey string like "cmd+shift+6" or "ctrl+alt+s".
            callback: Function to call when hotkey is pressed.
        """
        self.hotkey_str = hotkey
        self.callback = callback
        self._listener = None
        self._modifiers = set()
        self._key = None
        self._current_modifiers = set()

        self._parse_hotkey(hotkey)

    def _parse_hotkey(self, hotkey: str) -> None:
        """Parse a hotkey string into modifiers and key."""
        from pynput import keyboard

        for part in hotkey.lower().split("+"):
            part = part.strip()
            if part in ("cmd", "command", "super"):
                self._modifiers.add(keyboard.Key.cmd)
            elif part in ("ctrl", "control"):
                self._modifiers.add(keyboard.Key.ctrl)
            elif part == "shift":
                self._modifiers.add(keyboard.Key.shift)
            elif part in ("alt", "option"):
                self._modifiers.add(keyboard.Key.alt)
            elif len(part) == 1:
                if self._key is not None:
                    raise ValueError(f"More than one key in hotkey: '{hotkey}'")
                self._key = keyboard.KeyCode.from_char(part)
            else:
                raise ValueError(f"Unknown hotkey part: '{part}'")

        if self._key is None:
            raise ValueError(f"No key specified in hotkey: '{hotkey}'")

    def handle_press(self, key) -> None:
        from pynput import keyboard

        if isinstance(key, keyboard.Key):
            self._current_modifiers.add(key)
        elif key == self._key and self._modifiers <= self._current_modifiers:
            self.callback()

    def handle_release(self, key) -> None:
        from pynput import keyboard

        if isinstance(key, keyboard.Key):
            self._current_modifiers.discard(key)

    def start(self) -> None:
        """Start listening for the hotkey."""
        from pynput import keyboard

        self._listener = keyboard.Listener(
            on_press=self.handle_press, on_release=self.handle_release
        )
        self._listener.start()

    def stop(self) -> None:
        """Stop listening."""
        if self._listener:
            self._listener.stop()
            self._listener = None


def play_sound(sound_name: str) -> None:
    """
    Play a system sound (macOS only).

    Args:
        sound_name: Name of sound file in /System/Library/Sounds/
                   e.g., "Glass", "Basso", "Ping", "Pop"
    """
    sound_path = f"/System/Library/Sounds/{sound_name}.aiff"
    try:
        subprocess.Popen(
            ["afplay", sound_path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError:
        pass


def create_hotkey_listener(
    hotkey: str,
    callback: Callable[[], None],
) -> Optional[HotkeyListener]:
    """
    Create and start a hotkey listener.

    Args:
        hotkey: Hotkey string like "cmd+shift+6".
        callback: Function to call when pressed.

    Returns:
        HotkeyListener instance, or None if setup failed.
    """
    try:
        listener = HotkeyListener(hotkey, callback)
        listener.start()
        return listener
    except ImportError:
        print("Warning: pynput not installed, hotkey disabled", file=sys.stderr)
        print("  Install with: pip install pynput", file=sys.stderr)
        return None
    except ValueError as e:
        print(f"Warning: Invalid hotkey '{hotkey}': {e}", file=sys.stderr)
        return None
    except Exception as e:
        print(f"Warning: Could not set up hotkey: {e}", file=sys.stderr)
        return None
