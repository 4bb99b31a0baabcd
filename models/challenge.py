from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from enum import Enum


class ChallengeType(str, Enum):
    LEARN_WORDS = "learn_words"
    REVIEW_WORDS = "review_words"
    WRITE_JOURNAL = "write_journal"
    LONG_JOURNAL = "long_journal"
    CHAT = "chat"
    DEEP_CONVERSATION = "deep_conversation"
    FUTURE_LETTER = "future_letter"
    QUOTE_REFLECTION = "quote_reflection"
    STREAK_MAINTAIN = "streak_maintain"
    MIXED_ACTIVITY = "mixed_activity"
    EARLY_BIRD = "early_bird"
    NIGHT_OWL = "night_owl"


class ActivityType(str, Enum):
    WORD_LEARNED = "word_learned"
    WORD_REVIEWED = "word_reviewed"
    JOURNAL_WRITTEN = "journal_written"
    LONG_JOURNAL = "long_journal"
    CHAT_MESSAGE = "chat_message"
    FUTURE_LETTER = "future_letter"
    QUOTE_READ = "quote_read"
    ANY_ACTIVITY = "any_activity"


class DailyChallenge(BaseModel):
    id: int
    date: date
    type: ChallengeType
    title: str
    description: str = ""
    requirement: int
    progress: int = 0
    xp_reward: int
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    quote: Optional[str] = None
    quote_author: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ChallengeProgressUpdate(BaseModel):
    amount: int = 1
