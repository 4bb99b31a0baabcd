from __future__ import annotations

import logging
from typing import List, Optional

from db.database import transaction
from models.badge import Badge, BadgeAwardOutcome, BadgeCategory
from models.progress import XpSource
from utils.clock import Clock, format_ts
from utils.events import ACTIVE_AT_HOUR, COUNTER_CHANGED, STREAK_INCREASED, DomainEvent, EventBus
from utils.ledger import ProgressLedger

logger = logging.getLogger(__name__)

STREAK_COUNTER = "current_streak"


def time_of_day_badge(hour: int) -> Optional[str]:
    """Badge earned by being active at this hour, if any."""
    if 0 <= hour < 4:
        return "night_owl"
    if 4 <= hour < 6:
        return "early_bird"
    return None


class BadgeEngine:
    """One-time achievement unlocks over the seeded badge catalog."""

    def __init__(self, clock: Clock, ledger: ProgressLedger):
        self.clock = clock
        self.ledger = ledger

    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(STREAK_INCREASED, self._on_streak_increased)
        bus.subscribe(COUNTER_CHANGED, self._on_counter_changed)
        bus.subscribe(ACTIVE_AT_HOUR, self._on_active_at_hour)

    def _on_streak_increased(self, event: DomainEvent) -> None:
        self.check_counter(event.conn, STREAK_COUNTER, event.payload["streak"])

    def _on_counter_changed(self, event: DomainEvent) -> None:
        self.check_counter(event.conn, event.payload["counter"], event.payload["value"])

    def _on_active_at_hour(self, event: DomainEvent) -> None:
        self.check_time_of_day(event.conn, event.payload["hour"])

    def get_badge(self, conn, badge_id: str) -> Optional[Badge]:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM badges WHERE badge_id = ?", (badge_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return Badge.model_validate(dict(row))

    def list_badges(
        self,
        conn,
        category: Optional[BadgeCategory] = None,
        earned: Optional[bool] = None,
    ) -> List[Badge]:
        filters = []
        params: list[object] = []
        if category is not None:
            filters.append("category = ?")
            params.append(BadgeCategory(category).value)
        if earned is not None:
            filters.append("is_earned = ?")
            params.append(1 if earned else 0)
        where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT * FROM badges {where_clause} ORDER BY is_earned DESC, position ASC",
            params,
        )
        return [Badge.model_validate(dict(row)) for row in cursor.fetchall()]

    def earned_count(self, conn) -> int:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM badges WHERE is_earned = 1")
        return int(cursor.fetchone()[0] or 0)

    def update_progress(self, conn, badge_id: str, progress: int) -> Optional[Badge]:
        """Raise a badge's progress toward its requirement, earning it on arrival.

        Progress is clamped to [0, requirement] and never moves backwards;
        earned badges are left untouched. Unknown ids return None.
        """
        with transaction(conn):
            badge = self.get_badge(conn, badge_id)
            if badge is None:
                logger.debug("Progress update for unknown badge %s ignored", badge_id)
                return None
            if badge.is_earned:
                return badge
            clamped = max(0, min(int(progress), badge.requirement))
            if clamped > badge.progress:
                conn.execute(
                    "UPDATE badges SET progress = ? WHERE badge_id = ? AND is_earned = 0",
                    (clamped, badge_id),
                )
            if clamped >= badge.requirement:
                self.award(conn, badge_id)
            return self.get_badge(conn, badge_id)

    def award(self, conn, badge_id: str) -> BadgeAwardOutcome:
        """Earn a badge once: XP, cosmetic unlocks and the earned-badge set."""
        with transaction(conn):
            badge = self.get_badge(conn, badge_id)
            if badge is None:
                return BadgeAwardOutcome.NOT_FOUND
            if badge.is_earned:
                return BadgeAwardOutcome.ALREADY_EARNED
            cursor = conn.execute(
                """
                UPDATE badges SET is_earned = 1, earned_at = ?, progress = requirement
                WHERE badge_id = ? AND is_earned = 0
                """,
                (format_ts(self.clock.now()), badge_id),
            )
            if cursor.rowcount == 0:
                return BadgeAwardOutcome.ALREADY_EARNED
            if badge.xp_reward > 0:
                self.ledger.award_xp(
                    conn, badge.xp_reward, XpSource.BADGE_EARNED, f"Earned badge: {badge.name}"
                )
            if badge.unlocks_avatar:
                self.ledger.merge_ids(conn, "unlocked_avatars", [badge.unlocks_avatar])
            if badge.unlocks_banner:
                self.ledger.merge_ids(conn, "unlocked_banners", [badge.unlocks_banner])
            self.ledger.merge_ids(conn, "badges_earned", [badge_id])
        logger.info("Badge earned: %s (+%d XP)", badge_id, badge.xp_reward)
        return BadgeAwardOutcome.AWARDED

    def check_counter(self, conn, counter: str, value: int) -> List[str]:
        """Feed a counter's current value to every badge tracking it.

        Returns the ids of badges earned by this check.
        """
        cursor = conn.cursor()
        cursor.execute(
            "SELECT badge_id FROM badges WHERE tracks = ? AND is_earned = 0 ORDER BY requirement ASC",
            (counter,),
        )
        earned = []
        for row in cursor.fetchall():
            badge = self.update_progress(conn, row["badge_id"], value)
            if badge is not None and badge.is_earned:
                earned.append(badge.badge_id)
        return earned

    def check_time_of_day(self, conn, hour: int) -> Optional[BadgeAwardOutcome]:
        badge_id = time_of_day_badge(hour)
        if badge_id is None:
            return None
        return self.award(conn, badge_id)
