"""
Output formatting for window lists.
"""

from datetime import datetime
from typing import List, Optional

from rich.table import Table
from rich.text import Text

from .window_tracker import WindowRecord

EMPTY_MESSAGE = "No windows found or accessibility permissions needed"


def format_relative_time(when: datetime, now: Optional[datetime] = None) -> str:
    """Format a timestamp relative to now, e.g. "12s ago"."""
    now = now or datetime.now()
    seconds = int((now - when).total_seconds())

    if seconds < 1:
        return "just now"
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def build_window_table(
    records: List[WindowRecord],
    now: Optional[datetime] = None,
    title: str = "Running Windows",
) -> Table:
    """Build a rich table of windows, numbered from 1 in display order."""
    now = now or datetime.now()

    table = Table(title=title, title_justify="left", expand=False)
    table.add_column("#", justify="right", style="bold cyan")
    table.add_column("Window", overflow="fold")
    table.add_column("App", style="magenta")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Active", justify="right", style="dim")

    for i, record in enumerate(records, 1):
        # Titles are plain text, never rich markup
        name = Text(record.display_name, style="" if record.window_name else "italic")
        table.add_row(
            str(i),
            name,
            Text(record.app_name),
            str(record.window_number),
            format_relative_time(record.last_active_time, now),
        )
    return table


def format_window_list(records: List[WindowRecord], now: Optional[datetime] = None) -> str:
    """Format windows as plain text, one per line."""
    if not records:
        return EMPTY_MESSAGE

    now = now or datetime.now()
    width = len(str(len(records)))
    lines = []
    for i, record in enumerate(records, 1):
        lines.append(
            f"{i:>{width}}. {record.display_name} - {record.app_name} "
            f"(#{record.window_number}, {format_relative_time(record.last_active_time, now)})"
        )
    return "\n".join(lines)


def window_to_dict(record: WindowRecord) -> dict:
    """Convert a WindowRecord to a JSON-friendly dictionary."""
    return {
        "id": record.id,
        "window_number": record.window_number,
        "window_name": record.window_name,
        "app_name": record.app_name,
        "last_active_time": record.last_active_time.isoformat(),
        "ordering_value": record.ordering_value,
    }
