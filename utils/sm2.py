import math
from datetime import datetime, timedelta
from typing import Tuple

from models.item import LearningStatus

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
CORRECT_QUALITY = 3
MASTERY_MIN_REVIEWS = 5
MASTERY_MIN_CORRECT = 4


def clamp_quality(quality: int) -> int:
    """Clamp a recall rating into the SM-2 range 0-5."""
    return max(0, min(5, int(quality)))


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """SM-2 ease update: EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)), floored at 1.3."""
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def next_interval(interval_days: int, review_count: int, ease_factor: float, is_correct: bool) -> int:
    """Days until the next review; review_count is the count before this review."""
    if not is_correct:
        return 1
    if review_count == 0:
        return 1
    if review_count == 1:
        return 6
    return max(1, math.floor(interval_days * ease_factor + 0.5))


def next_status(review_count: int, correct_count: int, is_correct: bool) -> LearningStatus:
    """Learning status after a review, judged on the counters before it."""
    if not is_correct:
        return LearningStatus.LEARNING
    if review_count >= MASTERY_MIN_REVIEWS and correct_count >= MASTERY_MIN_CORRECT:
        return LearningStatus.MASTERED
    if review_count >= 2:
        return LearningStatus.REVIEWING
    return LearningStatus.LEARNING


def update_sm2(
    interval_days: int,
    ease_factor: float,
    review_count: int,
    correct_count: int,
    quality: int,
    now: datetime,
) -> Tuple[int, float, LearningStatus, datetime]:
    """Update SM-2 parameters and compute when the item is next due."""
    quality = clamp_quality(quality)
    is_correct = quality >= CORRECT_QUALITY
    new_ef = next_ease_factor(ease_factor, quality)
    new_interval = next_interval(interval_days, review_count, new_ef, is_correct)
    new_status = next_status(review_count, correct_count, is_correct)
    next_review_at = now + timedelta(days=new_interval)
    return new_interval, new_ef, new_status, next_review_at
