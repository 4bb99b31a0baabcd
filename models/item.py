from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class ItemKind(str, Enum):
    WORD = "word"
    PROVERB = "proverb"
    IDIOM = "idiom"
    PHRASE = "phrase"
    QUOTE = "quote"


class LearningStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"


class LearningItemBase(BaseModel):
    word: str = Field(..., min_length=1)
    meaning: str = ""
    kind: ItemKind = ItemKind.WORD
    category: str = "general"
    author: Optional[str] = None


class LearningItemCreate(LearningItemBase):
    pass


class LearningItem(LearningItemBase):
    id: int
    review_count: int = 0
    correct_count: int = 0
    ease_factor: float = 2.5
    interval_days: int = 1
    next_review_at: datetime
    last_reviewed_at: Optional[datetime] = None
    status: LearningStatus = LearningStatus.NEW
    created_at: datetime

    class Config:
        from_attributes = True


class ReviewCreate(BaseModel):
    quality: int


class RecallCreate(BaseModel):
    typed: str = ""
