from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from models.activity import DailyActivity, TimeKind
from utils.clock import format_ts

DAY_COUNTERS = (
    "words_learned",
    "words_reviewed",
    "journal_entries",
    "journal_words",
    "chat_messages",
    "letters_written",
    "letters_opened",
    "xp_earned",
)

TIME_COLUMNS = {
    TimeKind.LEARNING: "learning_seconds",
    TimeKind.JOURNALING: "journaling_seconds",
    TimeKind.CHAT: "chat_seconds",
    TimeKind.OTHER: None,
}


def get_day(conn, day: date) -> Optional[DailyActivity]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM daily_activity WHERE date = ?", (day.isoformat(),))
    row = cursor.fetchone()
    if not row:
        return None
    return DailyActivity.model_validate(dict(row))


def ensure_day(conn, day: date, now: datetime) -> None:
    """Create the day's row on its first activity."""
    conn.execute(
        "INSERT OR IGNORE INTO daily_activity (date, first_session_at) VALUES (?, ?)",
        (day.isoformat(), format_ts(now)),
    )


def increment_day(conn, day: date, now: datetime, **counters: int) -> None:
    """Add to the same-day counters; unknown counter names are rejected."""
    unknown = set(counters) - set(DAY_COUNTERS)
    if unknown:
        raise ValueError(f"Unknown daily counters: {sorted(unknown)}")
    ensure_day(conn, day, now)
    assignments = [f"{name} = {name} + ?" for name in counters]
    params: List[object] = [int(value) for value in counters.values()]
    assignments.append("last_session_at = ?")
    params.append(format_ts(now))
    params.append(day.isoformat())
    conn.execute(
        f"UPDATE daily_activity SET {', '.join(assignments)} WHERE date = ?",
        params,
    )


def add_active_time(conn, day: date, now: datetime, seconds: int, kind: TimeKind = TimeKind.OTHER) -> None:
    seconds = max(int(seconds), 0)
    ensure_day(conn, day, now)
    column = TIME_COLUMNS[kind]
    if column:
        conn.execute(
            f"""
            UPDATE daily_activity
            SET {column} = {column} + ?, active_seconds = active_seconds + ?, last_session_at = ?
            WHERE date = ?
            """,
            (seconds, seconds, format_ts(now), day.isoformat()),
        )
    else:
        conn.execute(
            "UPDATE daily_activity SET active_seconds = active_seconds + ?, last_session_at = ? WHERE date = ?",
            (seconds, format_ts(now), day.isoformat()),
        )


def recent_days(conn, limit: int = 30) -> List[DailyActivity]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM daily_activity ORDER BY date DESC LIMIT ?", (max(limit, 0),))
    return [DailyActivity.model_validate(dict(row)) for row in cursor.fetchall()]


def activity_calendar(conn, start: date, end: date) -> List[Dict]:
    """Per-day XP and activity totals for a heatmap between start and end inclusive."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT date,
               xp_earned,
               words_learned + words_reviewed + journal_entries + chat_messages
                   + letters_written + letters_opened AS activity_count
        FROM daily_activity
        WHERE date >= ? AND date <= ?
        ORDER BY date ASC
        """,
        (start.isoformat(), end.isoformat()),
    )
    return [dict(row) for row in cursor.fetchall()]


def total_active_days(conn) -> int:
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(DISTINCT date) FROM daily_activity")
    return int(cursor.fetchone()[0] or 0)


def prune_daily_activity(conn, today: date, keep_days: int) -> int:
    """Retention job: drop day rows older than keep_days."""
    cutoff = today - timedelta(days=max(keep_days, 0))
    cursor = conn.execute("DELETE FROM daily_activity WHERE date < ?", (cutoff.isoformat(),))
    return cursor.rowcount
