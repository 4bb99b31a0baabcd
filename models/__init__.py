from .item import ItemKind, LearningStatus, LearningItem, LearningItemCreate, ReviewCreate, RecallCreate
from .progress import LevelTitle, XpSource, UserStats, XpTransaction, XpAwardCreate
from .badge import Badge, BadgeCategory, BadgeTier, BadgeAwardOutcome, BadgeProgressUpdate
from .challenge import ChallengeType, ActivityType, DailyChallenge, ChallengeProgressUpdate
from .activity import DailyActivity, TimeKind, JournalActivity, ChatMessageActivity, ActiveTimeActivity

__all__ = [
    'ItemKind', 'LearningStatus', 'LearningItem', 'LearningItemCreate', 'ReviewCreate', 'RecallCreate',
    'LevelTitle', 'XpSource', 'UserStats', 'XpTransaction', 'XpAwardCreate',
    'Badge', 'BadgeCategory', 'BadgeTier', 'BadgeAwardOutcome', 'BadgeProgressUpdate',
    'ChallengeType', 'ActivityType', 'DailyChallenge', 'ChallengeProgressUpdate',
    'DailyActivity', 'TimeKind', 'JournalActivity', 'ChatMessageActivity', 'ActiveTimeActivity',
]
