"""
Command line interface for Shadowless.

Usage:
    shadowless list [--json]
    shadowless capture <window> [--output-dir=<dir>]
    shadowless run [--interval=<s>] [--hotkey=<key>] [--overlay]
    shadowless permissions
    shadowless --help
    shadowless --version
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from shadowless import __version__


def list_windows(as_json: bool = False) -> int:
    """Print the current window list, most recently active first."""
    from rich.console import Console

    from shadowless.formatter import EMPTY_MESSAGE, build_window_table, window_to_dict
    from shadowless.window_source import QuartzWindowSource
    from shadowless.window_tracker import WindowTracker

    windows = WindowTracker(QuartzWindowSource()).refresh()

    if as_json:
        print(json.dumps([window_to_dict(w) for w in windows], indent=2))
        return 0

    if not windows:
        print(EMPTY_MESSAGE, file=sys.stderr)
        return 0

    Console().print(build_window_table(windows))
    return 0


def capture_window(query: str, output_dir: Optional[str] = None) -> int:
    """Capture one window and wait for the result."""
    from concurrent.futures import wait

    from shadowless.capture import CaptureInvoker
    from shadowless.notifications import TerminalNotifier
    from shadowless.progress import create_spinner
    from shadowless.window_source import QuartzWindowSource
    from shadowless.window_tracker import WindowTracker

    if output_dir is not None and not Path(output_dir).is_dir():
        raise FileNotFoundError(f"Output directory not found: {output_dir}")

    tracker = WindowTracker(QuartzWindowSource())
    tracker.refresh()
    record = tracker.find(query)
    if record is None:
        raise ValueError(f"No window matches '{query}'")

    invoker = CaptureInvoker(output_dir=output_dir)
    future = invoker.capture(record)
    with create_spinner() as progress:
        progress.add_task(f"Capturing {record.display_name}...", total=None)
        wait([future])

    result = future.result()
    TerminalNotifier(use_rich=sys.stderr.isatty()).send(result)
    if result.success:
        print(result.path)
        return 0
    return 1


def show_permissions(prompt: bool = True) -> int:
    """Report the permission state needed for listing and capturing."""
    from shadowless.window_source import (
        check_accessibility_permission,
        check_screen_recording_permission,
        get_permission_instructions,
    )

    accessibility = check_accessibility_permission(prompt=prompt)
    recording = check_screen_recording_permission()
    print(f"Accessibility:    {'granted' if accessibility else 'not granted'}")
    print(f"Screen recording: {'granted' if recording else 'not granted'}")
    if not (accessibility and recording):
        print(get_permission_instructions(), file=sys.stderr)
        return 1
    return 0


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="shadowless",
        description="Shadowless - Shadow-free screenshots of macOS windows",
    )
    parser.add_argument(
        "--version", "-v", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list command
    list_parser = subparsers.add_parser(
        "list", help="List open windows, most recently active first"
    )
    list_parser.add_argument(
        "--json", "-j", action="store_true", help="Output as JSON"
    )

    # capture command
    capture_parser = subparsers.add_parser(
        "capture", help="Capture a window to a PNG without its shadow"
    )
    capture_parser.add_argument(
        "window", help="Row number from list, #<window number>, or part of the window title/app name"
    )
    capture_parser.add_argument(
        "--output-dir", "-o", default=None,
        help="Directory for the screenshot (default: Desktop)"
    )

    # run command - interactive session
    run_parser = subparsers.add_parser(
        "run", help="Interactive window picker with live refresh"
    )
    run_parser.add_argument(
        "--interval", "-i", type=float, default=2.0,
        help="Seconds between window list refreshes (default: 2.0)"
    )
    run_parser.add_argument(
        "--output-dir", "-o", default=None,
        help="Directory for screenshots (default: Desktop)"
    )
    run_parser.add_argument(
        "--hotkey", "-H", type=str, default=None,
        help="Global hotkey that captures the frontmost window, e.g. cmd+shift+6"
    )
    run_parser.add_argument(
        "--overlay", action="store_true",
        help="Show a floating overlay when a capture completes"
    )
    run_parser.add_argument(
        "--no-sound", action="store_true",
        help="Don't play a sound when a capture completes"
    )
    run_parser.add_argument(
        "--reveal", action="store_true",
        help="Show each screenshot in Finder after capture"
    )
    run_parser.add_argument(
        "--stale-after", type=int, default=30,
        help="Forget windows not seen for this many refreshes (default: 30, -1 = never)"
    )

    # permissions command
    permissions_parser = subparsers.add_parser(
        "permissions", help="Check accessibility and screen recording permission"
    )
    permissions_parser.add_argument(
        "--no-prompt", action="store_true",
        help="Don't ask macOS to show the permission prompt"
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "list":
            sys.exit(list_windows(args.json))

        elif args.command == "capture":
            sys.exit(capture_window(args.window, args.output_dir))

        elif args.command == "run":
            from shadowless.session import SessionConfig, run_session

            if args.output_dir is not None and not Path(args.output_dir).is_dir():
                raise FileNotFoundError(f"Output directory not found: {args.output_dir}")
            config = SessionConfig(
                interval=args.interval,
                output_dir=Path(args.output_dir) if args.output_dir else None,
                hotkey=args.hotkey,
                overlay=args.overlay,
                sound=not args.no_sound,
                reveal=args.reveal,
                stale_after=None if args.stale_after < 0 else args.stale_after,
            )
            run_session(config)

        elif args.command == "permissions":
            sys.exit(show_permissions(prompt=not args.no_prompt))

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
