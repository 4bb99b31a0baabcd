from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class BadgeCategory(str, Enum):
    LEARNING = "learning"
    JOURNALING = "journaling"
    CHAT = "chat"
    STREAKS = "streaks"
    SOCIAL = "social"
    SPECIAL = "special"


class BadgeTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


class BadgeAwardOutcome(str, Enum):
    AWARDED = "awarded"
    ALREADY_EARNED = "already_earned"
    NOT_FOUND = "not_found"


class Badge(BaseModel):
    badge_id: str
    name: str
    description: str = ""
    icon_name: str = ""
    category: BadgeCategory
    tier: BadgeTier = BadgeTier.BRONZE
    tracks: Optional[str] = None
    requirement: int = 1
    progress: int = 0
    is_earned: bool = False
    earned_at: Optional[datetime] = None
    xp_reward: int = 0
    unlocks_avatar: Optional[str] = None
    unlocks_banner: Optional[str] = None

    class Config:
        from_attributes = True


class BadgeProgressUpdate(BaseModel):
    progress: int
