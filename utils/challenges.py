from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from db.database import transaction
from models.challenge import ActivityType, ChallengeType, DailyChallenge
from models.progress import XpSource
from utils.clock import Clock, format_ts
from utils.ledger import ProgressLedger

logger = logging.getLogger(__name__)

MAX_CHALLENGES_PER_DAY = 3
STREAK_REWARD_BASE = 15
STREAK_REWARD_CAP = 30

ACTIVITY_CHALLENGES = {
    ActivityType.WORD_LEARNED: {ChallengeType.LEARN_WORDS},
    ActivityType.WORD_REVIEWED: {ChallengeType.REVIEW_WORDS},
    ActivityType.JOURNAL_WRITTEN: {ChallengeType.WRITE_JOURNAL},
    ActivityType.LONG_JOURNAL: {ChallengeType.LONG_JOURNAL},
    ActivityType.CHAT_MESSAGE: {ChallengeType.CHAT, ChallengeType.DEEP_CONVERSATION},
    ActivityType.FUTURE_LETTER: {ChallengeType.FUTURE_LETTER},
    ActivityType.QUOTE_READ: {ChallengeType.QUOTE_REFLECTION},
    ActivityType.ANY_ACTIVITY: {
        ChallengeType.STREAK_MAINTAIN,
        ChallengeType.MIXED_ACTIVITY,
        ChallengeType.EARLY_BIRD,
        ChallengeType.NIGHT_OWL,
    },
}


@dataclass(frozen=True)
class ChallengeContext:
    words_learned: int = 0
    journal_entries: int = 0
    conversations: int = 0
    letters: int = 0
    current_streak: int = 0
    hour_of_day: int = 12


# (type, requirement, xp_reward)
PlannedChallenge = Tuple[ChallengeType, int, int]


def plan_challenges(context: ChallengeContext) -> List[PlannedChallenge]:
    """Pick the day's challenges from the user's engagement so far."""
    plan: List[PlannedChallenge] = []

    if context.words_learned < 10:
        plan.append((ChallengeType.LEARN_WORDS, 3, 25))
    elif context.journal_entries < 5:
        plan.append((ChallengeType.WRITE_JOURNAL, 1, 30))
    elif context.conversations < 3:
        plan.append((ChallengeType.CHAT, 1, 25))
    else:
        plan.append((ChallengeType.LEARN_WORDS, 5, 35))

    if context.current_streak > 0:
        reward = STREAK_REWARD_BASE + min(context.current_streak * 2, STREAK_REWARD_CAP)
        plan.append((ChallengeType.STREAK_MAINTAIN, 1, reward))

    if context.hour_of_day < 9:
        plan.append((ChallengeType.EARLY_BIRD, 1, 20))
    elif context.hour_of_day >= 21:
        plan.append((ChallengeType.NIGHT_OWL, 1, 20))

    if context.words_learned >= 20 and context.journal_entries < 10:
        plan.append((ChallengeType.LONG_JOURNAL, 1, 40))
    elif context.conversations >= 5:
        plan.append((ChallengeType.DEEP_CONVERSATION, 10, 35))
    elif context.letters < 1:
        plan.append((ChallengeType.FUTURE_LETTER, 1, 30))
    else:
        plan.append((ChallengeType.QUOTE_REFLECTION, 5, 20))

    return plan[:MAX_CHALLENGES_PER_DAY]


class ChallengeEngine:
    def __init__(
        self,
        clock: Clock,
        ledger: ProgressLedger,
        catalog: Dict[str, Any],
        rng: Optional[random.Random] = None,
    ):
        self.clock = clock
        self.ledger = ledger
        self.types = catalog.get("challenges", {})
        self.rng = rng or random.Random()

    def _title(self, challenge_type: ChallengeType, requirement: int) -> str:
        entry = self.types.get(challenge_type.value, {})
        template = entry.get("title", challenge_type.value.replace("_", " ").title())
        if requirement != 1 and entry.get("title_plural"):
            template = entry["title_plural"]
        return template.format(requirement=requirement)

    def _quote(self, challenge_type: ChallengeType) -> Tuple[Optional[str], Optional[str]]:
        quotes = self.types.get(challenge_type.value, {}).get("quotes", [])
        if not quotes:
            return None, None
        quote, author = self.rng.choice(quotes)
        return quote, author

    def context_from_stats(self, conn, hour: Optional[int] = None) -> ChallengeContext:
        stats = self.ledger.get_stats(conn)
        return ChallengeContext(
            words_learned=stats.total_words_learned,
            journal_entries=stats.total_journal_entries,
            conversations=stats.total_chat_conversations,
            letters=stats.total_letters_written,
            current_streak=stats.current_streak,
            hour_of_day=self.clock.now().hour if hour is None else hour,
        )

    def get_challenge(self, conn, challenge_id: int) -> Optional[DailyChallenge]:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM daily_challenges WHERE id = ?", (challenge_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return DailyChallenge.model_validate(dict(row))

    def get_challenges_for(self, conn, day: date) -> List[DailyChallenge]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM daily_challenges WHERE date = ? ORDER BY id ASC",
            (day.isoformat(),),
        )
        return [DailyChallenge.model_validate(dict(row)) for row in cursor.fetchall()]

    def get_todays_challenges(self, conn) -> List[DailyChallenge]:
        return self.get_challenges_for(conn, self.clock.today())

    def ensure_todays_challenges(self, conn, context: Optional[ChallengeContext] = None) -> List[DailyChallenge]:
        """Return today's challenges, generating them on the day's first call."""
        today = self.clock.today()
        with transaction(conn):
            existing = self.get_challenges_for(conn, today)
            if existing:
                return existing
            if context is None:
                context = self.context_from_stats(conn)
            now = format_ts(self.clock.now())
            for challenge_type, requirement, xp_reward in plan_challenges(context):
                quote, author = self._quote(challenge_type)
                conn.execute(
                    """
                    INSERT INTO daily_challenges (
                        date, type, title, description, requirement, xp_reward,
                        quote, quote_author, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        today.isoformat(),
                        challenge_type.value,
                        self._title(challenge_type, requirement),
                        self.types.get(challenge_type.value, {}).get("description", ""),
                        requirement,
                        xp_reward,
                        quote,
                        author,
                        now,
                    ),
                )
            challenges = self.get_challenges_for(conn, today)
        logger.info("Generated %d challenge(s) for %s", len(challenges), today.isoformat())
        return challenges

    def update_progress_for_activity(self, conn, activity_type: ActivityType, count: int = 1) -> List[DailyChallenge]:
        """Advance every open challenge of today that this activity counts toward."""
        matching = ACTIVITY_CHALLENGES[ActivityType(activity_type)]
        updated = []
        for challenge in self.get_todays_challenges(conn):
            if challenge.is_completed or challenge.type not in matching:
                continue
            result = self.increment_progress(conn, challenge.id, count)
            if result is not None:
                updated.append(result)
        return updated

    def increment_progress(self, conn, challenge_id: int, amount: int = 1) -> Optional[DailyChallenge]:
        if amount <= 0:
            return self.get_challenge(conn, challenge_id)
        with transaction(conn):
            challenge = self.get_challenge(conn, challenge_id)
            if challenge is None:
                return None
            if challenge.is_completed:
                return challenge
            new_progress = min(challenge.progress + int(amount), challenge.requirement)
            if new_progress >= challenge.requirement:
                self._complete(conn, challenge)
            else:
                conn.execute(
                    "UPDATE daily_challenges SET progress = ? WHERE id = ? AND is_completed = 0",
                    (new_progress, challenge_id),
                )
            return self.get_challenge(conn, challenge_id)

    def complete_challenge(self, conn, challenge_id: int) -> Optional[DailyChallenge]:
        """Mark a challenge done regardless of progress."""
        with transaction(conn):
            challenge = self.get_challenge(conn, challenge_id)
            if challenge is None:
                return None
            if not challenge.is_completed:
                self._complete(conn, challenge)
            return self.get_challenge(conn, challenge_id)

    def _complete(self, conn, challenge: DailyChallenge) -> None:
        cursor = conn.execute(
            """
            UPDATE daily_challenges SET is_completed = 1, progress = requirement, completed_at = ?
            WHERE id = ? AND is_completed = 0
            """,
            (format_ts(self.clock.now()), challenge.id),
        )
        if cursor.rowcount == 0:
            return
        self.ledger.award_xp(
            conn,
            challenge.xp_reward,
            XpSource.CHALLENGE_COMPLETED,
            f"Completed: {challenge.title}",
            related_id=challenge.id,
        )
        logger.info("Challenge %d completed (+%d XP)", challenge.id, challenge.xp_reward)

    def total_completed(self, conn) -> int:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM daily_challenges WHERE is_completed = 1")
        return int(cursor.fetchone()[0] or 0)

    def completions_by_type(self, conn) -> Dict[str, int]:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT type, COUNT(*) AS count FROM daily_challenges
            WHERE is_completed = 1 GROUP BY type ORDER BY count DESC
            """
        )
        return {row["type"]: int(row["count"]) for row in cursor.fetchall()}

    def cleanup_old_challenges(self, conn, older_than_days: int = 7) -> int:
        """Delete incomplete challenges older than the cutoff; completed ones are kept."""
        cutoff = self.clock.today() - timedelta(days=max(older_than_days, 0))
        with transaction(conn):
            cursor = conn.execute(
                "DELETE FROM daily_challenges WHERE date < ? AND is_completed = 0",
                (cutoff.isoformat(),),
            )
        return cursor.rowcount
