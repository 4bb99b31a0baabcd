from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from db.database import transaction
from models.item import LearningItem, LearningItemCreate, LearningStatus
from utils.clock import Clock, format_ts
from utils.sm2 import CORRECT_QUALITY, clamp_quality, update_sm2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    before: LearningItem
    after: LearningItem
    quality: int
    is_correct: bool

    @property
    def first_review(self) -> bool:
        return self.before.review_count == 0

    @property
    def newly_mastered(self) -> bool:
        return (
            self.after.status == LearningStatus.MASTERED
            and self.before.status != LearningStatus.MASTERED
        )


class ReviewScheduler:
    """SM-2 scheduling over the learning_items table."""

    def __init__(self, clock: Clock):
        self.clock = clock

    def add_item(self, conn, item: LearningItemCreate) -> LearningItem:
        """Insert a new item, due immediately. Raises sqlite3.IntegrityError on duplicates."""
        now = format_ts(self.clock.now())
        with transaction(conn):
            cursor = conn.execute(
                """
                INSERT INTO learning_items (word, meaning, kind, category, author, next_review_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (item.word, item.meaning, item.kind.value, item.category, item.author, now, now),
            )
            return self.get_item(conn, cursor.lastrowid)

    def get_item(self, conn, item_id: int) -> Optional[LearningItem]:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM learning_items WHERE id = ?", (item_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return LearningItem.model_validate(dict(row))

    def delete_item(self, conn, item_id: int) -> bool:
        with transaction(conn):
            cursor = conn.execute("DELETE FROM learning_items WHERE id = ?", (item_id,))
        return cursor.rowcount > 0

    def list_items(self, conn, status: Optional[LearningStatus] = None) -> List[LearningItem]:
        cursor = conn.cursor()
        if status is None:
            cursor.execute("SELECT * FROM learning_items ORDER BY id ASC")
        else:
            cursor.execute(
                "SELECT * FROM learning_items WHERE status = ? ORDER BY id ASC",
                (LearningStatus(status).value,),
            )
        return [LearningItem.model_validate(dict(row)) for row in cursor.fetchall()]

    def record_review(self, conn, item_id: int, quality: int) -> Optional[ReviewOutcome]:
        """Apply one graded recall to an item. Unknown ids are a no-op returning None."""
        quality = clamp_quality(quality)
        now = self.clock.now()
        with transaction(conn):
            before = self.get_item(conn, item_id)
            if before is None:
                logger.debug("Review for unknown item %s ignored", item_id)
                return None
            is_correct = quality >= CORRECT_QUALITY
            interval, ease, status, next_review_at = update_sm2(
                before.interval_days,
                before.ease_factor,
                before.review_count,
                before.correct_count,
                quality,
                now,
            )
            conn.execute(
                """
                UPDATE learning_items SET
                    review_count = review_count + 1,
                    correct_count = correct_count + ?,
                    ease_factor = ?,
                    interval_days = ?,
                    next_review_at = ?,
                    last_reviewed_at = ?,
                    status = ?
                WHERE id = ?
                """,
                (
                    1 if is_correct else 0,
                    ease,
                    interval,
                    format_ts(next_review_at),
                    format_ts(now),
                    status.value,
                    item_id,
                ),
            )
            after = self.get_item(conn, item_id)
        logger.debug(
            "Item %d reviewed q=%d: interval %d -> %d, status %s",
            item_id, quality, before.interval_days, interval, status.value,
        )
        return ReviewOutcome(before=before, after=after, quality=quality, is_correct=is_correct)

    def get_due(self, conn, limit: int = 20, now: Optional[datetime] = None) -> List[LearningItem]:
        now = now or self.clock.now()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT * FROM learning_items
            WHERE next_review_at <= ? AND status != ?
            ORDER BY next_review_at ASC, id ASC
            LIMIT ?
            """,
            (format_ts(now), LearningStatus.MASTERED.value, max(int(limit), 0)),
        )
        return [LearningItem.model_validate(dict(row)) for row in cursor.fetchall()]

    def due_count(self, conn, now: Optional[datetime] = None) -> int:
        now = now or self.clock.now()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) FROM learning_items WHERE next_review_at <= ? AND status != ?",
            (format_ts(now), LearningStatus.MASTERED.value),
        )
        return int(cursor.fetchone()[0] or 0)

    def get_new(self, conn, limit: int = 10) -> List[LearningItem]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM learning_items WHERE status = ? ORDER BY created_at ASC, id ASC LIMIT ?",
            (LearningStatus.NEW.value, max(int(limit), 0)),
        )
        return [LearningItem.model_validate(dict(row)) for row in cursor.fetchall()]

    def count_by_status(self, conn) -> Dict[str, int]:
        counts = {status.value: 0 for status in LearningStatus}
        cursor = conn.cursor()
        cursor.execute("SELECT status, COUNT(*) AS count FROM learning_items GROUP BY status")
        for row in cursor.fetchall():
            counts[row["status"]] = int(row["count"])
        return counts
