from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from db.database import transaction
from models.progress import LevelTitle, UserStats, XpSource, XpTransaction
from utils.clock import Clock, format_ts, start_of_day
from utils.daily_activity import increment_day
from utils.levels import level_for_xp, title_for_xp

logger = logging.getLogger(__name__)

STATS_ID = 1

LIFETIME_COUNTERS = (
    "total_words_learned",
    "total_words_mastered",
    "total_words_reviewed",
    "total_journal_entries",
    "total_journal_words",
    "total_long_journals",
    "total_chat_conversations",
    "total_chat_messages",
    "total_deep_conversations",
    "total_letters_written",
    "total_letters_opened",
    "total_commitments_kept",
    "total_quotes_read",
    "total_active_seconds",
)

ID_SET_COLUMNS = ("badges_earned", "unlocked_avatars", "unlocked_banners")


@dataclass(frozen=True)
class XpAwardResult:
    xp_awarded: int
    leveled_up: bool
    new_level: int
    level_title: LevelTitle


class ProgressLedger:
    """Sole writer of the XP/level counters on the singleton user_stats row.

    Every award appends an xp_transactions row and updates user_stats in the
    same transaction, so the audit trail and the totals cannot drift apart.
    """

    def __init__(self, clock: Clock):
        self.clock = clock

    def ensure_stats(self, conn) -> None:
        now = format_ts(self.clock.now())
        conn.execute(
            "INSERT OR IGNORE INTO user_stats (id, joined_at, updated_at) VALUES (?, ?, ?)",
            (STATS_ID, now, now),
        )

    def get_stats(self, conn) -> UserStats:
        """Return the user's stats, creating the row with defaults on first use."""
        with transaction(conn):
            self.ensure_stats(conn)
            return self._read_stats(conn)

    def _read_stats(self, conn) -> UserStats:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM user_stats WHERE id = ?", (STATS_ID,))
        return UserStats.model_validate(dict(cursor.fetchone()))

    def award_xp(
        self,
        conn,
        amount: int,
        source: XpSource,
        description: str = "",
        related_id: Optional[int] = None,
    ) -> XpAwardResult:
        amount = max(int(amount), 0)
        source = XpSource(source)
        now = self.clock.now()
        with transaction(conn):
            self.ensure_stats(conn)
            stats = self._read_stats(conn)
            conn.execute(
                """
                INSERT INTO xp_transactions (amount, source, description, related_id, ts)
                VALUES (?, ?, ?, ?, ?)
                """,
                (amount, source.value, description, related_id, format_ts(now)),
            )
            new_total = stats.total_xp + amount
            new_title = title_for_xp(new_total)
            new_level = level_for_xp(new_total)
            leveled_up = new_title != stats.level_title
            conn.execute(
                """
                UPDATE user_stats SET
                    current_xp = current_xp + ?,
                    total_xp = total_xp + ?,
                    level = ?,
                    level_title = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (amount, amount, new_level, new_title.value, format_ts(now), STATS_ID),
            )
            increment_day(conn, start_of_day(now), now, xp_earned=amount)
        logger.debug("Awarded %d XP (%s): %s", amount, source.value, description)
        if leveled_up:
            logger.info("Level up: %s -> %s (level %d)", stats.level_title.value, new_title.value, new_level)
        return XpAwardResult(
            xp_awarded=amount,
            leveled_up=leveled_up,
            new_level=new_level,
            level_title=new_title,
        )

    def increment_counters(self, conn, **counters: int) -> UserStats:
        """Add to lifetime activity totals and return the updated stats."""
        unknown = set(counters) - set(LIFETIME_COUNTERS)
        if unknown:
            raise ValueError(f"Unknown lifetime counters: {sorted(unknown)}")
        with transaction(conn):
            self.ensure_stats(conn)
            if counters:
                assignments = ", ".join(f"{name} = {name} + ?" for name in counters)
                params = [max(int(value), 0) for value in counters.values()]
                params.extend([format_ts(self.clock.now()), STATS_ID])
                conn.execute(
                    f"UPDATE user_stats SET {assignments}, updated_at = ? WHERE id = ?",
                    params,
                )
            return self._read_stats(conn)

    def merge_ids(self, conn, column: str, ids: Iterable[str]) -> List[str]:
        """Union ids into one of the comma-separated id sets on user_stats."""
        if column not in ID_SET_COLUMNS:
            raise ValueError(f"Unknown id set: {column}")
        with transaction(conn):
            self.ensure_stats(conn)
            current = getattr(self._read_stats(conn), column)
            merged = list(current)
            for item_id in ids:
                if item_id and item_id not in merged:
                    merged.append(item_id)
            if merged != current:
                conn.execute(
                    f"UPDATE user_stats SET {column} = ?, updated_at = ? WHERE id = ?",
                    (",".join(merged), format_ts(self.clock.now()), STATS_ID),
                )
            return merged

    def recent_transactions(self, conn, limit: int = 50) -> List[XpTransaction]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM xp_transactions ORDER BY ts DESC, id DESC LIMIT ?",
            (max(limit, 0),),
        )
        return [XpTransaction.model_validate(dict(row)) for row in cursor.fetchall()]

    def transactions_since(self, conn, since: datetime) -> List[XpTransaction]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM xp_transactions WHERE ts >= ? ORDER BY ts DESC, id DESC",
            (format_ts(since),),
        )
        return [XpTransaction.model_validate(dict(row)) for row in cursor.fetchall()]

    def total_xp_since(self, conn, since: datetime) -> int:
        cursor = conn.cursor()
        cursor.execute("SELECT SUM(amount) FROM xp_transactions WHERE ts >= ?", (format_ts(since),))
        return int(cursor.fetchone()[0] or 0)

    def has_award_since(self, conn, source: XpSource, since: datetime) -> bool:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT 1 FROM xp_transactions WHERE source = ? AND ts >= ? LIMIT 1",
            (XpSource(source).value, format_ts(since)),
        )
        return cursor.fetchone() is not None

    def xp_by_source(self, conn) -> Dict[str, int]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT source, SUM(amount) AS total FROM xp_transactions GROUP BY source ORDER BY total DESC"
        )
        return {row["source"]: int(row["total"] or 0) for row in cursor.fetchall()}
