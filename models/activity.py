from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from enum import Enum


class DailyActivity(BaseModel):
    id: int
    date: date
    words_learned: int = 0
    words_reviewed: int = 0
    journal_entries: int = 0
    journal_words: int = 0
    chat_messages: int = 0
    letters_written: int = 0
    letters_opened: int = 0
    learning_seconds: int = 0
    journaling_seconds: int = 0
    chat_seconds: int = 0
    active_seconds: int = 0
    xp_earned: int = 0
    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TimeKind(str, Enum):
    LEARNING = "learning"
    JOURNALING = "journaling"
    CHAT = "chat"
    OTHER = "other"


class JournalActivity(BaseModel):
    word_count: int = Field(0, ge=0)


class ChatMessageActivity(BaseModel):
    conversation_message_count: int = Field(1, ge=1)


class ActiveTimeActivity(BaseModel):
    seconds: int = Field(..., ge=0)
    kind: TimeKind = TimeKind.OTHER
