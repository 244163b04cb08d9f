# wecollab/utils/timers.py
# Timer arithmetic: derived elapsed time, state transitions, leaderboard windows.
# Pure functions with no side effects; callers pass `now` explicitly.

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from wecollab.constants import (
    LEADERBOARD_PERIODS,
    TIMER_IDLE,
    TIMER_PAUSED,
    TIMER_RUNNING,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today(now: Optional[datetime] = None) -> date:
    """Calendar date used for daily session rows (UTC)."""
    return (now or utc_now()).astimezone(timezone.utc).date()


def seconds_between(started_at: Optional[datetime], now: datetime) -> int:
    """Whole seconds from started_at to now; never negative."""
    if started_at is None:
        return 0
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return max(0, int((now - started_at).total_seconds()))


def elapsed_seconds(state: Optional[Mapping[str, Any]], now: datetime) -> int:
    """
    Displayed elapsed time of a timer.

    running: stored seconds + wall-clock delta since start
    paused:  stored seconds
    idle / missing row: 0
    """
    if not state:
        return 0
    status = state.get("status") or TIMER_IDLE
    stored = state.get("current_seconds") or 0
    if status == TIMER_RUNNING:
        return stored + seconds_between(state.get("started_at"), now)
    if status == TIMER_PAUSED:
        return stored
    return 0


def started_values(state: Optional[Mapping[str, Any]], now: datetime) -> Dict[str, Any]:
    """Column values for idle/paused -> running. Accumulated seconds are kept."""
    return {
        "status": TIMER_RUNNING,
        "current_seconds": (state or {}).get("current_seconds") or 0,
        "started_at": now,
        "last_updated": now,
    }


def paused_values(state: Mapping[str, Any], now: datetime) -> Dict[str, Any]:
    """Column values for running -> paused, folding the running delta into storage."""
    return {
        "status": TIMER_PAUSED,
        "current_seconds": elapsed_seconds(state, now),
        "started_at": None,
        "last_updated": now,
    }


def idle_values(now: datetime) -> Dict[str, Any]:
    return {
        "status": TIMER_IDLE,
        "current_seconds": 0,
        "started_at": None,
        "last_updated": now,
    }


def leaderboard_start(period: str, today: date) -> date:
    """First date included in a leaderboard window."""
    if period not in LEADERBOARD_PERIODS:
        raise ValueError(f"Unsupported period: {period}")
    return today - timedelta(days=LEADERBOARD_PERIODS[period])


def aggregate_leaderboard(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sum total_seconds per user and rank descending.

    Each row: user_id, total_seconds, display_name, avatar_url.
    Ties are broken by display name so the order is stable.
    """
    totals: Dict[Any, Dict[str, Any]] = {}
    for row in rows:
        uid = row["user_id"]
        entry = totals.get(uid)
        if entry is None:
            entry = totals[uid] = {
                "user_id": uid,
                "display_name": row.get("display_name"),
                "avatar_url": row.get("avatar_url"),
                "total_seconds": 0,
            }
        entry["total_seconds"] += row.get("total_seconds") or 0

    ranked = sorted(
        totals.values(),
        key=lambda e: (-e["total_seconds"], (e["display_name"] or "").lower()),
    )
    for rank, entry in enumerate(ranked, start=1):
        entry["rank"] = rank
    return ranked


def summarize_sessions(rows: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Profile statistics over daily session rows.

    session_count counts daily rows, avg_seconds uses floor division and the
    most used widget is chosen by number of rows (first seen wins a tie).
    """
    total = 0
    count = 0
    widget_counts: Dict[str, int] = {}
    for row in rows:
        total += row.get("total_seconds") or 0
        count += 1
        title = row.get("widget_title") or "Unknown"
        widget_counts[title] = widget_counts.get(title, 0) + 1

    most_used = "None"
    best = 0
    for title, n in widget_counts.items():
        if n > best:
            most_used, best = title, n

    return {
        "total_seconds": total,
        "session_count": count,
        "avg_seconds": total // count if count else 0,
        "most_used_widget": most_used,
    }
