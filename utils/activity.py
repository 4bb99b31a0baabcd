from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Dict, List, Optional, Sequence, Tuple

from db.database import transaction
from models.activity import TimeKind
from models.challenge import ActivityType, DailyChallenge
from models.progress import UserStats, XpSource
from utils.challenges import ChallengeEngine
from utils.clock import Clock, start_of_day
from utils.daily_activity import add_active_time, increment_day
from utils.events import ACTIVE_AT_HOUR, COUNTER_CHANGED, EventBus
from utils.ledger import ProgressLedger, XpAwardResult
from utils.streaks import StreakTracker, StreakUpdate

logger = logging.getLogger(__name__)

LONG_JOURNAL_WORDS = 500
LONG_JOURNAL_CHALLENGE_WORDS = 200
DEEP_CONVERSATION_MESSAGES = 20

# Badge counter name -> user_stats column it reads from
BADGE_COUNTERS = {
    "words_learned": "total_words_learned",
    "words_mastered": "total_words_mastered",
    "journal_entries": "total_journal_entries",
    "journal_words": "total_journal_words",
    "long_journals": "total_long_journals",
    "conversations": "total_chat_conversations",
    "deep_conversations": "total_deep_conversations",
    "letters_written": "total_letters_written",
    "commitments_kept": "total_commitments_kept",
    "quotes_read": "total_quotes_read",
}


@dataclass
class ActivityResult:
    """What one activity changed.

    `xp` holds only the activity's own awards. `xp_awarded` and `leveled_up`
    compare the stats before and after, so streak bonuses, badge rewards and
    challenge completions triggered by the activity are included.
    """

    xp: List[XpAwardResult] = field(default_factory=list)
    streak: Optional[StreakUpdate] = None
    challenges: List[DailyChallenge] = field(default_factory=list)
    badges_earned: List[str] = field(default_factory=list)
    stats: Optional[UserStats] = None
    before: Optional[UserStats] = None

    @property
    def xp_awarded(self) -> int:
        return self.stats.total_xp - self.before.total_xp

    @property
    def leveled_up(self) -> bool:
        return self.stats.level_title != self.before.level_title


def _newly_earned(result: ActivityResult) -> List[str]:
    earned_before = set(result.before.badges_earned)
    return [badge_id for badge_id in result.stats.badges_earned if badge_id not in earned_before]


class ActivityRecorder:
    """Turns one user activity into counters, XP, streak, challenge and badge progress.

    Everything one call touches is applied in a single transaction.
    """

    def __init__(
        self,
        clock: Clock,
        ledger: ProgressLedger,
        streaks: StreakTracker,
        challenges: ChallengeEngine,
        bus: EventBus,
    ):
        self.clock = clock
        self.ledger = ledger
        self.streaks = streaks
        self.challenges = challenges
        self.bus = bus

    def _record(
        self,
        conn,
        lifetime: Dict[str, int],
        day: Optional[Dict[str, int]] = None,
        awards: Sequence[Tuple[XpSource, str]] = (),
        activities: Sequence[Tuple[ActivityType, int]] = (),
        badge_counters: Sequence[str] = (),
    ) -> ActivityResult:
        now = self.clock.now()
        result = ActivityResult()
        with transaction(conn):
            result.before = self.ledger.get_stats(conn)
            self.ledger.increment_counters(conn, **lifetime)
            if day:
                increment_day(conn, start_of_day(now), now, **day)
            for source, description in awards:
                result.xp.append(self.ledger.award_xp(conn, source.base_xp, source, description))
            result.streak = self.streaks.record_daily_activity(conn, now)
            for activity_type, count in list(activities) + [(ActivityType.ANY_ACTIVITY, 1)]:
                result.challenges.extend(
                    self.challenges.update_progress_for_activity(conn, activity_type, count)
                )
            stats = self.ledger.get_stats(conn)
            for counter in badge_counters:
                self.bus.publish(
                    COUNTER_CHANGED, conn, counter=counter, value=getattr(stats, BADGE_COUNTERS[counter])
                )
            result.stats = self.ledger.get_stats(conn)
        result.badges_earned = _newly_earned(result)
        return result

    def item_reviewed(self, conn, first_review: bool = False, mastered: bool = False) -> ActivityResult:
        """A graded review, plus the learned/mastered milestones it may carry, as one activity."""
        lifetime = {"total_words_reviewed": 1}
        day = {"words_reviewed": 1}
        awards = [(XpSource.WORD_REVIEWED, "Reviewed a word")]
        activities = [(ActivityType.WORD_REVIEWED, 1)]
        badge_counters = []
        if first_review:
            lifetime["total_words_learned"] = 1
            day["words_learned"] = 1
            awards.append((XpSource.WORD_LEARNED, "Learned a new word"))
            activities.append((ActivityType.WORD_LEARNED, 1))
            badge_counters.append("words_learned")
        if mastered:
            lifetime["total_words_mastered"] = 1
            awards.append((XpSource.WORD_MASTERED, "Mastered a word"))
            badge_counters.append("words_mastered")
        return self._record(
            conn,
            lifetime=lifetime,
            day=day,
            awards=awards,
            activities=activities,
            badge_counters=badge_counters,
        )

    def word_learned(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_words_learned": 1},
            day={"words_learned": 1},
            awards=[(XpSource.WORD_LEARNED, "Learned a new word")],
            activities=[(ActivityType.WORD_LEARNED, 1)],
            badge_counters=["words_learned"],
        )

    def word_reviewed(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_words_reviewed": 1},
            day={"words_reviewed": 1},
            awards=[(XpSource.WORD_REVIEWED, "Reviewed a word")],
            activities=[(ActivityType.WORD_REVIEWED, 1)],
        )

    def word_mastered(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_words_mastered": 1},
            awards=[(XpSource.WORD_MASTERED, "Mastered a word")],
            badge_counters=["words_mastered"],
        )

    def journal_written(self, conn, word_count: int = 0) -> ActivityResult:
        """A journal entry was saved. Long entries count toward the long-journal goals."""
        word_count = max(int(word_count), 0)
        lifetime = {"total_journal_entries": 1, "total_journal_words": word_count}
        awards = [(XpSource.JOURNAL_WRITTEN, "Wrote a journal entry")]
        activities = [(ActivityType.JOURNAL_WRITTEN, 1)]
        if word_count >= LONG_JOURNAL_CHALLENGE_WORDS:
            activities.append((ActivityType.LONG_JOURNAL, 1))
        if word_count >= LONG_JOURNAL_WORDS:
            lifetime["total_long_journals"] = 1
            awards.append((XpSource.JOURNAL_LONG, f"Wrote a long journal entry ({word_count} words)"))
        return self._record(
            conn,
            lifetime=lifetime,
            day={"journal_entries": 1, "journal_words": word_count},
            awards=awards,
            activities=activities,
            badge_counters=["journal_entries", "journal_words", "long_journals"],
        )

    def conversation_started(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_chat_conversations": 1},
            awards=[(XpSource.CHAT_CONVERSATION, "Started a conversation")],
            badge_counters=["conversations"],
        )

    def chat_message(self, conn, conversation_message_count: int = 1) -> ActivityResult:
        """One message sent; the conversation turns deep when it reaches the threshold."""
        lifetime = {"total_chat_messages": 1}
        awards = []
        badge_counters = []
        if conversation_message_count == DEEP_CONVERSATION_MESSAGES:
            lifetime["total_deep_conversations"] = 1
            awards.append((XpSource.CHAT_DEEP_CONVERSATION, "Had a deep conversation"))
            badge_counters.append("deep_conversations")
        return self._record(
            conn,
            lifetime=lifetime,
            day={"chat_messages": 1},
            awards=awards,
            activities=[(ActivityType.CHAT_MESSAGE, 1)],
            badge_counters=badge_counters,
        )

    def letter_written(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_letters_written": 1},
            day={"letters_written": 1},
            awards=[(XpSource.FUTURE_LETTER_WRITTEN, "Wrote a letter to the future")],
            activities=[(ActivityType.FUTURE_LETTER, 1)],
            badge_counters=["letters_written"],
        )

    def letter_opened(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_letters_opened": 1},
            day={"letters_opened": 1},
            awards=[(XpSource.FUTURE_LETTER_REFLECTED, "Reflected on a letter from the past")],
        )

    def commitment_kept(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_commitments_kept": 1},
            awards=[(XpSource.COMMITMENT_KEPT, "Kept a commitment")],
            badge_counters=["commitments_kept"],
        )

    def quote_read(self, conn) -> ActivityResult:
        return self._record(
            conn,
            lifetime={"total_quotes_read": 1},
            activities=[(ActivityType.QUOTE_READ, 1)],
            badge_counters=["quotes_read"],
        )

    def app_opened(self, conn, hour: Optional[int] = None) -> ActivityResult:
        """Daily check-in: login XP once per day, streak, today's challenges, time-of-day badges."""
        now = self.clock.now()
        hour = now.hour if hour is None else int(hour)
        result = ActivityResult()
        with transaction(conn):
            result.before = self.ledger.get_stats(conn)
            midnight = datetime.combine(start_of_day(now), time.min)
            if not self.ledger.has_award_since(conn, XpSource.DAILY_LOGIN, midnight):
                result.xp.append(
                    self.ledger.award_xp(conn, XpSource.DAILY_LOGIN.base_xp, XpSource.DAILY_LOGIN, "Daily check-in")
                )
            result.streak = self.streaks.record_daily_activity(conn, now)
            self.challenges.ensure_todays_challenges(conn, self.challenges.context_from_stats(conn, hour=hour))
            result.challenges = self.challenges.update_progress_for_activity(conn, ActivityType.ANY_ACTIVITY)
            self.bus.publish(ACTIVE_AT_HOUR, conn, hour=hour)
            result.stats = self.ledger.get_stats(conn)
        result.badges_earned = _newly_earned(result)
        logger.debug("App opened at hour %d, streak %d", hour, result.streak.current_streak)
        return result

    def active_time(self, conn, seconds: int, kind: TimeKind = TimeKind.OTHER) -> UserStats:
        now = self.clock.now()
        seconds = max(int(seconds), 0)
        with transaction(conn):
            add_active_time(conn, start_of_day(now), now, seconds, TimeKind(kind))
            return self.ledger.increment_counters(conn, total_active_seconds=seconds)
