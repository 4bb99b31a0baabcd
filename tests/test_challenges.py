import threading
from datetime import timedelta

from db import database
from models.challenge import ActivityType, ChallengeType
from models.progress import XpSource
from utils.challenges import MAX_CHALLENGES_PER_DAY, ChallengeContext, plan_challenges

NEWCOMER = ChallengeContext(hour_of_day=12)
REGULAR = ChallengeContext(
    words_learned=10,
    journal_entries=5,
    conversations=3,
    letters=1,
    current_streak=4,
    hour_of_day=7,
)


def _challenge_xp(engine, conn):
    return engine.ledger.xp_by_source(conn).get(XpSource.CHALLENGE_COMPLETED.value, 0)


def test_newcomer_plan():
    plan = plan_challenges(NEWCOMER)
    assert plan == [
        (ChallengeType.LEARN_WORDS, 3, 25),
        (ChallengeType.FUTURE_LETTER, 1, 30),
    ]


def test_plan_is_truncated_to_three():
    plan = plan_challenges(REGULAR)
    assert len(plan) == MAX_CHALLENGES_PER_DAY
    assert plan == [
        (ChallengeType.LEARN_WORDS, 5, 35),
        (ChallengeType.STREAK_MAINTAIN, 1, 23),
        (ChallengeType.EARLY_BIRD, 1, 20),
    ]


def test_primary_picks_most_neglected_category():
    assert plan_challenges(ChallengeContext(words_learned=12))[0] == (ChallengeType.WRITE_JOURNAL, 1, 30)
    assert plan_challenges(ChallengeContext(words_learned=12, journal_entries=6))[0] == (ChallengeType.CHAT, 1, 25)


def test_streak_reward_is_capped():
    plan = plan_challenges(ChallengeContext(current_streak=40))
    assert (ChallengeType.STREAK_MAINTAIN, 1, 45) in plan


def test_bonus_priority():
    assert plan_challenges(ChallengeContext(words_learned=25, journal_entries=2))[-1] == (
        ChallengeType.LONG_JOURNAL, 1, 40,
    )
    assert plan_challenges(ChallengeContext(words_learned=12, journal_entries=12, conversations=6))[-1] == (
        ChallengeType.DEEP_CONVERSATION, 10, 35,
    )
    assert plan_challenges(ChallengeContext(words_learned=12, journal_entries=12, conversations=4, letters=2))[-1] == (
        ChallengeType.QUOTE_REFLECTION, 5, 20,
    )
    night = plan_challenges(ChallengeContext(words_learned=12, journal_entries=12, conversations=4, letters=2, hour_of_day=22))
    assert (ChallengeType.NIGHT_OWL, 1, 20) in night


def test_ensure_is_idempotent_per_day(engine, conn, clock):
    first = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)
    second = engine.challenges.ensure_todays_challenges(conn, REGULAR)
    assert [c.id for c in first] == [c.id for c in second]
    assert [c.type for c in first] == [ChallengeType.LEARN_WORDS, ChallengeType.FUTURE_LETTER]
    assert all(c.date == clock.today() for c in first)
    assert first[0].title == "Learn 3 New Words"
    assert first[0].requirement == 3
    assert first[0].xp_reward == 25

    clock.advance(days=1)
    tomorrow = engine.challenges.ensure_todays_challenges(conn, REGULAR)
    assert len(tomorrow) == 3
    assert {c.id for c in tomorrow}.isdisjoint(c.id for c in first)


def test_context_defaults_to_stored_stats(engine, conn):
    challenges = engine.challenges.ensure_todays_challenges(conn)
    assert challenges[0].type == ChallengeType.LEARN_WORDS


def test_increment_clamps_and_completes_once(engine, conn, clock):
    learn = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)[0]

    partial = engine.challenges.increment_progress(conn, learn.id, 2)
    assert partial.progress == 2
    assert not partial.is_completed

    done = engine.challenges.increment_progress(conn, learn.id, 5)
    assert done.progress == done.requirement == 3
    assert done.is_completed
    assert done.completed_at == clock.now()
    assert _challenge_xp(engine, conn) == 25

    again = engine.challenges.increment_progress(conn, learn.id, 1)
    assert again.progress == 3
    assert _challenge_xp(engine, conn) == 25


def test_non_positive_increments_are_ignored(engine, conn):
    learn = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)[0]
    assert engine.challenges.increment_progress(conn, learn.id, 0).progress == 0
    assert engine.challenges.increment_progress(conn, learn.id, -4).progress == 0


def test_missing_challenge_is_a_noop(engine, conn):
    assert engine.challenges.increment_progress(conn, 4242) is None
    assert engine.challenges.complete_challenge(conn, 4242) is None


def test_complete_challenge_awards_once(engine, conn):
    letter = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)[1]
    completed = engine.challenges.complete_challenge(conn, letter.id)
    assert completed.is_completed
    assert completed.progress == completed.requirement
    engine.challenges.complete_challenge(conn, letter.id)
    assert _challenge_xp(engine, conn) == 30
    assert engine.challenges.total_completed(conn) == 1
    assert engine.challenges.completions_by_type(conn) == {"future_letter": 1}


def test_activity_advances_matching_challenges_only(engine, conn):
    engine.challenges.ensure_todays_challenges(conn, NEWCOMER)

    updated = engine.challenges.update_progress_for_activity(conn, ActivityType.WORD_LEARNED)
    assert [(c.type, c.progress) for c in updated] == [(ChallengeType.LEARN_WORDS, 1)]

    assert engine.challenges.update_progress_for_activity(conn, ActivityType.CHAT_MESSAGE, 3) == []

    updated = engine.challenges.update_progress_for_activity(conn, ActivityType.FUTURE_LETTER)
    assert updated[0].is_completed


def test_any_activity_drives_streak_and_time_challenges(engine, conn):
    engine.challenges.ensure_todays_challenges(conn, REGULAR)
    updated = engine.challenges.update_progress_for_activity(conn, ActivityType.ANY_ACTIVITY)
    assert {c.type for c in updated} == {ChallengeType.STREAK_MAINTAIN, ChallengeType.EARLY_BIRD}
    assert all(c.is_completed for c in updated)
    assert _challenge_xp(engine, conn) == 23 + 20


def test_cleanup_keeps_completed_challenges(engine, conn, clock):
    learn, letter = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)
    engine.challenges.complete_challenge(conn, letter.id)

    clock.advance(days=3)
    assert engine.challenges.cleanup_old_challenges(conn, older_than_days=7) == 0

    clock.advance(days=5)
    assert engine.challenges.cleanup_old_challenges(conn, older_than_days=7) == 1
    assert engine.challenges.get_challenge(conn, learn.id) is None
    assert engine.challenges.get_challenge(conn, letter.id).is_completed
    assert engine.challenges.get_todays_challenges(conn) == []


def test_concurrent_progress_pays_a_challenge_once(engine, conn):
    learn = engine.challenges.ensure_todays_challenges(conn, NEWCOMER)[0]
    errors = []

    def worker():
        try:
            with database.get_conn() as worker_conn:
                for _ in range(3):
                    engine.challenges.increment_progress(worker_conn, learn.id)
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    done = engine.challenges.get_challenge(conn, learn.id)
    assert done.is_completed
    assert done.progress == 3
    assert _challenge_xp(engine, conn) == 25
    cursor = conn.cursor()
    cursor.execute(
        "SELECT COUNT(*) FROM xp_transactions WHERE source = ?", (XpSource.CHALLENGE_COMPLETED.value,)
    )
    assert cursor.fetchone()[0] == 1
