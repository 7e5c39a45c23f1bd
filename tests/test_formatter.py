"""Tests for window list formatting."""

from datetime import datetime, timedelta

from rich.console import Console

from shadowless.formatter import (
    EMPTY_MESSAGE,
    build_window_table,
    format_relative_time,
    format_window_list,
    window_to_dict,
)
from shadowless.window_tracker import WindowRecord

NOW = datetime(2024, 1, 1, 12, 0, 0)


def make_records():
    return [
        WindowRecord(20, "Inbox", "Mail", NOW - timedelta(seconds=5), ordering_value=1001),
        WindowRecord(10, "", "Finder", NOW - timedelta(minutes=3), ordering_value=0),
    ]


class TestRelativeTime:
    """Tests for format_relative_time."""

    def test_ranges(self):
        assert format_relative_time(NOW, NOW) == "just now"
        assert format_relative_time(NOW - timedelta(seconds=12), NOW) == "12s ago"
        assert format_relative_time(NOW - timedelta(minutes=3, seconds=5), NOW) == "3m ago"
        assert format_relative_time(NOW - timedelta(hours=2), NOW) == "2h ago"
        assert format_relative_time(NOW - timedelta(days=3), NOW) == "3d ago"

    def test_future_is_just_now(self):
        assert format_relative_time(NOW + timedelta(seconds=5), NOW) == "just now"


class TestWindowList:
    """Tests for plain-text and table output."""

    def test_format_window_list(self):
        text = format_window_list(make_records(), NOW)
        lines = text.split("\n")
        assert lines[0] == "1. Inbox - Mail (#20, 5s ago)"
        assert lines[1] == "2. Unnamed Window - Finder (#10, 3m ago)"

    def test_format_empty(self):
        assert format_window_list([], NOW) == EMPTY_MESSAGE

    def test_build_window_table(self):
        table = build_window_table(make_records(), NOW)
        assert table.row_count == 2

        console = Console(width=120, record=True)
        console.print(table)
        output = console.export_text()
        assert "Running Windows" in output
        assert "Inbox" in output
        assert "Unnamed Window" in output
        assert "5s ago" in output

    def test_window_to_dict(self):
        record = make_records()[0]
        d = window_to_dict(record)
        assert d["window_number"] == 20
        assert d["window_name"] == "Inbox"
        assert d["app_name"] == "Mail"
        assert d["ordering_value"] == 1001
        assert d["last_active_time"] == "2024-01-01T11:59:55"
        assert d["id"] == record.id
