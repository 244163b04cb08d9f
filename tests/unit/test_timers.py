# tests/unit/test_timers.py

from datetime import date, datetime, timedelta, timezone

import pytest

from wecollab.utils.timers import (
    aggregate_leaderboard,
    elapsed_seconds,
    idle_values,
    leaderboard_start,
    paused_values,
    seconds_between,
    started_values,
    summarize_sessions,
    utc_today,
)

NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


class TestElapsed:
    def test_missing_row_reads_as_zero(self):
        assert elapsed_seconds(None, NOW) == 0

    def test_running_adds_wall_clock_delta(self):
        state = {"status": "running", "current_seconds": 100, "started_at": NOW - timedelta(seconds=65.9)}
        assert elapsed_seconds(state, NOW) == 165

    def test_paused_uses_stored_seconds_only(self):
        state = {"status": "paused", "current_seconds": 42, "started_at": None}
        assert elapsed_seconds(state, NOW) == 42

    def test_idle_is_zero_even_with_leftover_seconds(self):
        assert elapsed_seconds({"status": "idle", "current_seconds": 9}, NOW) == 0

    def test_naive_started_at_is_treated_as_utc(self):
        naive = (NOW - timedelta(seconds=30)).replace(tzinfo=None)
        assert seconds_between(naive, NOW) == 30

    def test_clock_skew_never_goes_negative(self):
        assert seconds_between(NOW + timedelta(seconds=5), NOW) == 0


class TestTransitions:
    def test_start_keeps_accumulated_seconds(self):
        values = started_values({"status": "paused", "current_seconds": 50}, NOW)
        assert values["status"] == "running"
        assert values["current_seconds"] == 50
        assert values["started_at"] == NOW

    def test_start_from_nothing(self):
        assert started_values(None, NOW)["current_seconds"] == 0

    def test_pause_folds_delta_into_storage(self):
        state = {"status": "running", "current_seconds": 10, "started_at": NOW - timedelta(seconds=20)}
        values = paused_values(state, NOW)
        assert values == {"status": "paused", "current_seconds": 30, "started_at": None, "last_updated": NOW}

    def test_idle_resets(self):
        assert idle_values(NOW)["current_seconds"] == 0
        assert idle_values(NOW)["started_at"] is None


class TestLeaderboard:
    @pytest.mark.parametrize("period,days", [("day", 0), ("week", 7), ("month", 30)])
    def test_window_start(self, period, days):
        today = date(2026, 3, 2)
        assert leaderboard_start(period, today) == today - timedelta(days=days)

    def test_unknown_period_rejected(self):
        with pytest.raises(ValueError):
            leaderboard_start("year", date(2026, 3, 2))

    def test_sums_per_user_and_ranks_descending(self):
        rows = [
            {"user_id": "a", "display_name": "Ann", "total_seconds": 100},
            {"user_id": "b", "display_name": "Ben", "total_seconds": 300},
            {"user_id": "a", "display_name": "Ann", "total_seconds": 250},
        ]
        board = aggregate_leaderboard(rows)
        assert [(e["user_id"], e["total_seconds"], e["rank"]) for e in board] == [("a", 350, 1), ("b", 300, 2)]

    def test_ties_break_on_display_name(self):
        rows = [
            {"user_id": "z", "display_name": "zoe", "total_seconds": 60},
            {"user_id": "m", "display_name": "Max", "total_seconds": 60},
        ]
        assert [e["display_name"] for e in aggregate_leaderboard(rows)] == ["Max", "zoe"]

    def test_empty(self):
        assert aggregate_leaderboard([]) == []


class TestSessionSummary:
    def test_no_sessions(self):
        assert summarize_sessions([]) == {
            "total_seconds": 0,
            "session_count": 0,
            "avg_seconds": 0,
            "most_used_widget": "None",
        }

    def test_totals_floor_average_and_most_used(self):
        rows = [
            {"total_seconds": 100, "widget_title": "Leetcode"},
            {"total_seconds": 50, "widget_title": "Behavioral"},
            {"total_seconds": 51, "widget_title": "Leetcode"},
        ]
        stats = summarize_sessions(rows)
        assert stats["total_seconds"] == 201
        assert stats["session_count"] == 3
        assert stats["avg_seconds"] == 67
        assert stats["most_used_widget"] == "Leetcode"

    def test_vanished_widget_counts_as_unknown(self):
        rows = [{"total_seconds": 10, "widget_title": None}]
        assert summarize_sessions(rows)["most_used_widget"] == "Unknown"


def test_utc_today_uses_utc_calendar_date():
    late_evening_west = datetime(2026, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_today(late_evening_west) == date(2026, 3, 2)
