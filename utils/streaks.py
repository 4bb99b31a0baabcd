from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from db.database import transaction
from models.progress import XpSource
from utils.clock import Clock, format_ts, start_of_day
from utils.events import EventBus, STREAK_INCREASED
from utils.ledger import ProgressLedger, STATS_ID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakUpdate:
    current_streak: int
    longest_streak: int
    increased: bool
    reset: bool
    xp_awarded: int = 0


class StreakTracker:
    """Tracks consecutive active calendar days on the user_stats row."""

    def __init__(self, clock: Clock, ledger: ProgressLedger, bus: EventBus, base_streak_xp: int = 10):
        self.clock = clock
        self.ledger = ledger
        self.bus = bus
        self.base_streak_xp = base_streak_xp

    def record_daily_activity(self, conn, now: Optional[datetime] = None) -> StreakUpdate:
        now = now or self.clock.now()
        today = start_of_day(now)
        with transaction(conn):
            stats = self.ledger.get_stats(conn)
            last = stats.last_active_date
            previous = stats.current_streak
            if last == today:
                return StreakUpdate(
                    current_streak=stats.current_streak,
                    longest_streak=stats.longest_streak,
                    increased=False,
                    reset=False,
                )
            if last == today - timedelta(days=1):
                new_streak = previous + 1
                reset = False
            else:
                new_streak = 1
                reset = True
            longest = max(stats.longest_streak, new_streak)
            conn.execute(
                """
                UPDATE user_stats SET
                    current_streak = ?,
                    longest_streak = ?,
                    last_active_date = ?,
                    streak_start_date = CASE WHEN ? THEN ? ELSE streak_start_date END,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    new_streak,
                    longest,
                    today.isoformat(),
                    1 if reset else 0,
                    today.isoformat(),
                    format_ts(now),
                    STATS_ID,
                ),
            )
            if reset and previous > 0:
                logger.info("Streak of %d day(s) broken; starting over", previous)
            xp_awarded = 0
            increased = new_streak > previous
            if increased:
                bonus = self.base_streak_xp * new_streak
                result = self.ledger.award_xp(
                    conn, bonus, XpSource.STREAK_BONUS, f"Day {new_streak} streak bonus"
                )
                xp_awarded = result.xp_awarded
                self.bus.publish(STREAK_INCREASED, conn, streak=new_streak)
        return StreakUpdate(
            current_streak=new_streak,
            longest_streak=longest,
            increased=increased,
            reset=reset,
            xp_awarded=xp_awarded,
        )
