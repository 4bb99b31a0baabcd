from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request

from config import load_config
from db.database import load_catalog, transaction
from utils.activity import ActivityRecorder, ActivityResult
from utils.badges import BadgeEngine
from utils.challenges import ChallengeEngine
from utils.clock import Clock
from utils.daily_activity import prune_daily_activity
from utils.events import EventBus
from utils.ledger import ProgressLedger
from utils.scheduler import ReviewOutcome, ReviewScheduler
from utils.streaks import StreakTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewResult:
    outcome: ReviewOutcome
    activity: ActivityResult


class ProgressEngine:
    """Wires the scheduler, ledger, streaks, badges and challenges around one clock and event bus."""

    def __init__(
        self,
        config: Dict[str, Any],
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        catalog: Optional[Dict[str, Any]] = None,
    ):
        self.config = config
        self.clock = clock or Clock()
        self.bus = EventBus()
        self.scheduler = ReviewScheduler(self.clock)
        self.ledger = ProgressLedger(self.clock)
        self.streaks = StreakTracker(
            self.clock,
            self.ledger,
            self.bus,
            base_streak_xp=config.get("progression", {}).get("base_streak_xp", 10),
        )
        self.badges = BadgeEngine(self.clock, self.ledger)
        self.badges.subscribe(self.bus)
        self.challenges = ChallengeEngine(
            self.clock,
            self.ledger,
            catalog if catalog is not None else load_catalog(),
            rng=rng,
        )
        self.activity = ActivityRecorder(self.clock, self.ledger, self.streaks, self.challenges, self.bus)

    def review(self, conn, item_id: int, quality: int) -> Optional[ReviewResult]:
        """Grade one item and record the activities the review implies."""
        with transaction(conn):
            outcome = self.scheduler.record_review(conn, item_id, quality)
            if outcome is None:
                return None
            activity = self.activity.item_reviewed(conn, outcome.first_review, outcome.newly_mastered)
        if outcome.newly_mastered:
            logger.info("Item %d mastered", item_id)
        return ReviewResult(outcome=outcome, activity=activity)

    def run_maintenance(self, conn) -> Dict[str, int]:
        """Retention jobs: stale incomplete challenges and old daily activity rows."""
        cleanup_days = self.config.get("challenges", {}).get("cleanup_after_days", 7)
        retention_days = self.config.get("activity", {}).get("retention_days", 365)
        challenges_removed = self.challenges.cleanup_old_challenges(conn, cleanup_days)
        with transaction(conn):
            days_removed = prune_daily_activity(conn, self.clock.today(), retention_days)
        logger.info(
            "Maintenance removed %d challenge(s) and %d activity day(s)", challenges_removed, days_removed
        )
        return {"challenges_removed": challenges_removed, "days_removed": days_removed}


def build_engine(
    config: Dict[str, Any],
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> ProgressEngine:
    return ProgressEngine(config, clock=clock, rng=rng)


def get_engine(request: Request) -> ProgressEngine:
    """FastAPI dependency: the app-wide engine, built on first use."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        engine = build_engine(load_config())
        request.app.state.engine = engine
    return engine
