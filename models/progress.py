from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from enum import Enum


class LevelTitle(str, Enum):
    NOVICE = "novice"
    APPRENTICE = "apprentice"
    JOURNEYMAN = "journeyman"
    EXPERT = "expert"
    MASTER = "master"
    SAGE = "sage"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class XpSource(str, Enum):
    WORD_LEARNED = "word_learned"
    WORD_MASTERED = "word_mastered"
    WORD_REVIEWED = "word_reviewed"
    JOURNAL_WRITTEN = "journal_written"
    JOURNAL_LONG = "journal_long"
    CHAT_CONVERSATION = "chat_conversation"
    CHAT_DEEP_CONVERSATION = "chat_deep_conversation"
    FUTURE_LETTER_WRITTEN = "future_letter_written"
    FUTURE_LETTER_REFLECTED = "future_letter_reflected"
    COMMITMENT_KEPT = "commitment_kept"
    DAILY_LOGIN = "daily_login"
    STREAK_BONUS = "streak_bonus"
    BADGE_EARNED = "badge_earned"
    CHALLENGE_COMPLETED = "challenge_completed"

    @property
    def base_xp(self) -> int:
        return XP_SOURCE_BASE[self]


XP_SOURCE_BASE = {
    XpSource.WORD_LEARNED: 10,
    XpSource.WORD_MASTERED: 50,
    XpSource.WORD_REVIEWED: 5,
    XpSource.JOURNAL_WRITTEN: 20,
    XpSource.JOURNAL_LONG: 30,
    XpSource.CHAT_CONVERSATION: 15,
    XpSource.CHAT_DEEP_CONVERSATION: 40,
    XpSource.FUTURE_LETTER_WRITTEN: 25,
    XpSource.FUTURE_LETTER_REFLECTED: 35,
    XpSource.COMMITMENT_KEPT: 100,
    XpSource.DAILY_LOGIN: 5,
    XpSource.STREAK_BONUS: 10,
    XpSource.BADGE_EARNED: 0,
    XpSource.CHALLENGE_COMPLETED: 0,
}


def _split_ids(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in value.split(",") if part]
    return list(value)


class UserStats(BaseModel):
    id: int = 1
    display_name: str = "Seeker"
    level: int = 1
    current_xp: int = 0
    total_xp: int = 0
    level_title: LevelTitle = LevelTitle.NOVICE
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[date] = None
    streak_start_date: Optional[date] = None
    total_words_learned: int = 0
    total_words_mastered: int = 0
    total_words_reviewed: int = 0
    total_journal_entries: int = 0
    total_journal_words: int = 0
    total_long_journals: int = 0
    total_chat_conversations: int = 0
    total_chat_messages: int = 0
    total_deep_conversations: int = 0
    total_letters_written: int = 0
    total_letters_opened: int = 0
    total_commitments_kept: int = 0
    total_quotes_read: int = 0
    total_active_seconds: int = 0
    badges_earned: List[str] = []
    unlocked_avatars: List[str] = ["default"]
    unlocked_banners: List[str] = ["default"]
    joined_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("badges_earned", "unlocked_avatars", "unlocked_banners", mode="before")
    @classmethod
    def split_ids(cls, value):
        return _split_ids(value)

    class Config:
        from_attributes = True


class XpTransaction(BaseModel):
    id: int
    amount: int
    source: XpSource
    description: str = ""
    related_id: Optional[int] = None
    ts: datetime

    class Config:
        from_attributes = True


class XpAwardCreate(BaseModel):
    amount: int = Field(..., ge=0)
    source: XpSource
    description: str = ""
    related_id: Optional[int] = None
