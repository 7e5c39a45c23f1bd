"""Tests for window tracking and ordering."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from shadowless.window_source import RawWindow, StaticWindowSource, WindowSource
from shadowless.window_tracker import (
    ACTIVATION_BOOST,
    INACTIVE_BACKDATE,
    WindowRecord,
    WindowTracker,
    find_frontmost_window,
    find_window,
    is_trackable,
)

NOW = datetime(2024, 1, 2, 3, 4, 5)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return StaticWindowSource(
        [
            RawWindow(10, "Safari", "Apple", 0),
            RawWindow(20, "Terminal", "zsh", 0),
            RawWindow(30, "Finder", "Downloads", 0),
        ],
        frontmost_app=None,
    )


@pytest.fixture
def tracker(source, clock):
    return WindowTracker(source, clock=clock)


def numbers(records):
    return [r.window_number for r in records]


class TestWindowRecord:
    """Tests for WindowRecord dataclass."""

    def test_display_name_unnamed(self):
        record = WindowRecord(1, "", "Finder", NOW)
        assert record.display_name == "Unnamed Window"

    def test_capture_name_falls_back_to_app(self):
        record = WindowRecord(1, "", "Finder", NOW)
        assert record.capture_name == "Finder"
        record.window_name = "Downloads"
        assert record.capture_name == "Downloads"

    def test_ids_are_distinct(self):
        a = WindowRecord(1, "A", "App", NOW)
        b = WindowRecord(1, "A", "App", NOW)
        assert a.id != b.id

    def test_str(self):
        record = WindowRecord(42, "Inbox", "Mail", NOW)
        assert str(record) == "Mail: Inbox (#42)"


class TestHelpers:
    """Tests for filtering and frontmost detection helpers."""

    def test_is_trackable(self):
        assert is_trackable(RawWindow(1, "App", "Title", 0))
        assert not is_trackable(RawWindow(1, "App", "Title", 25))
        assert not is_trackable(RawWindow(1, "", "Title", 0))

    def test_find_frontmost_first_normal_layer_window(self):
        windows = [
            RawWindow(1, "Safari", "Menu", 24),
            RawWindow(2, "Terminal", "zsh", 0),
            RawWindow(3, "Safari", "Apple", 0),
            RawWindow(4, "Safari", "Other tab", 0),
        ]
        assert find_frontmost_window(windows, "Safari") == 3

    def test_find_frontmost_no_app(self):
        windows = [RawWindow(1, "Safari", "Apple", 0)]
        assert find_frontmost_window(windows, None) is None
        assert find_frontmost_window(windows, "") is None

    def test_find_frontmost_no_match(self):
        windows = [RawWindow(1, "Safari", "Apple", 0)]
        assert find_frontmost_window(windows, "Mail") is None


class TestRefresh:
    """Tests for WindowTracker.refresh."""

    def test_new_windows_sort_by_insertion_recency(self, tracker):
        windows = tracker.refresh()
        # Later-enumerated windows got higher counter values
        assert numbers(windows) == [30, 20, 10]
        assert [w.ordering_value for w in windows] == [2, 1, 0]
        assert tracker.order_counter == 3

    def test_new_inactive_windows_are_backdated(self, tracker):
        windows = tracker.refresh()
        for w in windows:
            assert w.last_active_time == NOW - INACTIVE_BACKDATE

    def test_frontmost_priority(self, source, tracker):
        source.frontmost_app = "Safari"
        windows = tracker.refresh()

        front = tracker.get(10)
        assert windows[0] is front
        assert front.ordering_value == ACTIVATION_BOOST
        assert all(front.ordering_value > w.ordering_value for w in windows[1:])
        assert front.last_active_time == NOW
        assert tracker.frontmost_window_number == 10

    def test_activation_overtakes_previous(self, source, tracker, clock):
        source.frontmost_app = "Safari"
        tracker.refresh()

        clock.advance(2)
        source.frontmost_app = "Terminal"
        windows = tracker.refresh()

        assert numbers(windows)[:2] == [20, 10]
        assert tracker.get(20).last_active_time == clock.now
        assert tracker.get(10).last_active_time == NOW

    def test_idempotent_re_observation(self, source, tracker, clock):
        source.frontmost_app = "Terminal"
        first = {w.window_number: w.ordering_value for w in tracker.refresh()}

        clock.advance(2)
        second = {w.window_number: w.ordering_value for w in tracker.refresh()}

        assert first == second
        # Only the timestamp moves for the still-frontmost window
        assert tracker.get(20).last_active_time == clock.now

    def test_reactivation_after_switch_boosts_again(self, source, tracker):
        source.frontmost_app = "Safari"
        tracker.refresh()
        source.frontmost_app = "Terminal"
        tracker.refresh()
        source.frontmost_app = "Safari"
        windows = tracker.refresh()

        assert windows[0].window_number == 10
        assert windows[0].ordering_value > tracker.get(20).ordering_value

    def test_long_focused_window_stays_first(self, source, tracker):
        source.frontmost_app = "Safari"
        tracker.refresh()

        source.windows = [RawWindow(10, "Safari", "Apple", 0)] + [
            RawWindow(100 + i, "Notes", f"Note {i}", 0) for i in range(ACTIVATION_BOOST + 5)
        ]
        windows = tracker.refresh()

        assert windows[0].window_number == 10
        assert windows[0].ordering_value > windows[1].ordering_value

    def test_ordering_values_never_decrease(self, source, tracker):
        seen = {}
        for app in ["Safari", "Terminal", None, "Finder", "Safari", None]:
            source.frontmost_app = app
            for w in tracker.refresh():
                assert w.ordering_value >= seen.get(w.window_number, -1)
                seen[w.window_number] = w.ordering_value

    def test_stable_dedup_with_changing_title(self, source, tracker):
        for title in ["Tab 1", "Tab 2", "Tab 3"]:
            source.windows = [RawWindow(10, "Safari", title, 0)]
            tracker.refresh()

        assert tracker.tracked_count == 1
        assert tracker.get(10).window_name == "Tab 3"
        assert len(tracker.windows) == 1

    def test_record_identity_kept_across_cycles(self, tracker):
        first = tracker.refresh()[0]
        second = tracker.refresh()[0]
        assert first.id == second.id

    def test_owner_name_updated(self, source, tracker):
        tracker.refresh()
        source.windows = [RawWindow(10, "Safari Technology Preview", "Apple", 0)]
        windows = tracker.refresh()
        assert windows[0].app_name == "Safari Technology Preview"

    def test_layer_filtering(self, source, tracker):
        source.set_windows(
            [
                RawWindow(1, "Window Server", "Menubar", 25),
                RawWindow(2, "Dock", "Dock", 20),
                RawWindow(3, "", "Untitled", 0),
                RawWindow(4, "Notes", "Shopping", 0),
            ],
            frontmost_app="Dock",
        )
        windows = tracker.refresh()

        assert numbers(windows) == [4]
        assert tracker.get(1) is None
        assert tracker.get(2) is None
        assert tracker.get(3) is None
        assert tracker.frontmost_window_number is None

    def test_duplicate_numbers_in_one_cycle(self, source, tracker):
        source.windows = [
            RawWindow(10, "Safari", "Apple", 0),
            RawWindow(10, "Safari", "Apple again", 0),
        ]
        windows = tracker.refresh()
        assert numbers(windows) == [10]
        assert windows[0].window_name == "Apple"

    def test_empty_enumeration(self, source, tracker):
        source.windows = []
        assert tracker.refresh() == []
        assert tracker.windows == []

    def test_enumeration_failure_is_empty(self, clock):
        source = MagicMock(spec=WindowSource)
        source.frontmost_app_name.return_value = "Safari"
        source.list_windows.side_effect = RuntimeError("denied")

        tracker = WindowTracker(source, clock=clock)
        assert tracker.refresh() == []

    def test_frontmost_failure_means_no_boost(self, clock):
        source = MagicMock(spec=WindowSource)
        source.frontmost_app_name.side_effect = RuntimeError("no workspace")
        source.list_windows.return_value = [RawWindow(10, "Safari", "Apple", 0)]

        tracker = WindowTracker(source, clock=clock)
        windows = tracker.refresh()

        assert windows[0].ordering_value == 0
        assert tracker.frontmost_window_number is None

    def test_closed_windows_leave_display_list(self, source, tracker):
        tracker.refresh()
        source.windows = [RawWindow(20, "Terminal", "zsh", 0)]
        windows = tracker.refresh()

        assert numbers(windows) == [20]
        # Still tracked until it goes stale
        assert tracker.get(10) is not None

    def test_returning_window_keeps_ordering(self, source, tracker):
        source.frontmost_app = "Safari"
        tracker.refresh()
        original = tracker.get(10).ordering_value

        source.set_windows([RawWindow(20, "Terminal", "zsh", 0)])
        tracker.refresh()
        source.set_windows(
            [RawWindow(10, "Safari", "Apple", 0), RawWindow(20, "Terminal", "zsh", 0)]
        )
        windows = tracker.refresh()

        assert tracker.get(10).ordering_value == original
        assert windows[0].window_number == 10

    def test_windows_property_is_a_copy(self, tracker):
        tracker.refresh()
        tracker.windows.clear()
        assert len(tracker.windows) == 3

    def test_cycle_count(self, tracker):
        assert tracker.cycle == 0
        tracker.refresh()
        tracker.refresh()
        assert tracker.cycle == 2


class TestEviction:
    """Tests for purging windows that are no longer on screen."""

    def test_stale_windows_are_evicted(self, source, clock):
        tracker = WindowTracker(source, stale_after=2, clock=clock)
        tracker.refresh()

        source.windows = [RawWindow(20, "Terminal", "zsh", 0)]
        tracker.refresh()
        tracker.refresh()
        assert tracker.get(10) is not None

        tracker.refresh()
        assert tracker.get(10) is None
        assert tracker.get(30) is None
        assert tracker.tracked_count == 1

    def test_zero_evicts_immediately(self, source, clock):
        tracker = WindowTracker(source, stale_after=0, clock=clock)
        tracker.refresh()
        source.windows = [RawWindow(20, "Terminal", "zsh", 0)]
        tracker.refresh()
        assert tracker.tracked_count == 1

    def test_none_keeps_everything(self, source, clock):
        tracker = WindowTracker(source, stale_after=None, clock=clock)
        tracker.refresh()
        source.windows = []
        for _ in range(100):
            tracker.refresh()
        assert tracker.tracked_count == 3

    def test_reused_number_after_eviction_is_new_record(self, source, clock):
        tracker = WindowTracker(source, stale_after=0, clock=clock)
        old = tracker.refresh()
        old_id = next(r.id for r in old if r.window_number == 10)

        source.windows = []
        tracker.refresh()
        source.windows = [RawWindow(10, "Preview", "photo.png", 0)]
        new = tracker.refresh()

        assert new[0].id != old_id
        assert new[0].app_name == "Preview"


class TestFind:
    """Tests for WindowTracker.find."""

    def test_find_by_index(self, tracker):
        tracker.refresh()
        assert tracker.find("1").window_number == 30
        assert tracker.find("3").window_number == 10

    def test_find_by_window_number(self, tracker):
        tracker.refresh()
        assert tracker.find("#20").window_number == 20
        assert tracker.find("#99") is None

    def test_row_number_wins_over_window_number(self, clock):
        source = StaticWindowSource(
            [
                RawWindow(1, "Safari", "Apple", 0),
                RawWindow(2, "Terminal", "zsh", 0),
                RawWindow(3, "Finder", "Downloads", 0),
            ]
        )
        tracker = WindowTracker(source, clock=clock)
        assert numbers(tracker.refresh()) == [3, 2, 1]

        assert tracker.find("1").window_number == 3
        assert tracker.find("3").window_number == 1
        assert tracker.find("#1").window_number == 1

    def test_find_in_given_list(self, tracker, source):
        shown = tracker.refresh()
        source.set_windows(source.list_windows() + [RawWindow(40, "Mail", "Inbox", 0)])
        tracker.refresh()

        assert tracker.find("1").window_number == 40
        assert tracker.find("1", shown).window_number == 30
        assert find_window(shown, "inbox") is None

    def test_find_by_title(self, tracker):
        tracker.refresh()
        assert tracker.find("downl").window_number == 30

    def test_find_by_app(self, tracker):
        tracker.refresh()
        assert tracker.find("terminal").window_number == 20

    def test_find_missing(self, tracker):
        tracker.refresh()
        assert tracker.find("99") is None
        assert tracker.find("nonexistent") is None
        assert tracker.find("  ") is None
