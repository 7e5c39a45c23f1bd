#!/usr/bin/env python3
"""List all on-screen windows, including the ones the tracker filters out."""

from shadowless.window_source import QuartzWindowSource
from shadowless.window_tracker import find_frontmost_window, is_trackable

def main():
    source = QuartzWindowSource()
    app_name = source.frontmost_app_name()
    windows = source.list_windows()
    front = find_frontmost_window(windows, app_name)

    print(f"Frontmost app: {app_name or '-'}")
    print(f"Found {len(windows)} windows:\n")
    for w in windows:
        marks = []
        if w.window_number == front:
            marks.append("frontmost")
        if not is_trackable(w):
            marks.append("filtered")
        suffix = f"  [{', '.join(marks)}]" if marks else ""
        print(f"  {w.owner_name or '(no owner)'}: {w.title}{suffix}")
        print(f"    ID: {w.window_number}, Layer: {w.layer}")
        print()

if __name__ == "__main__":
    main()
