from datetime import datetime, timedelta

import pytest

from models.item import ItemKind, LearningItemCreate, LearningStatus


START = datetime(2026, 3, 10, 10, 0, 0)


@pytest.fixture
def scheduler(engine, conn):
    # Start from an empty catalog.
    conn.execute("DELETE FROM learning_items")
    return engine.scheduler


def _add(scheduler, conn, word, kind=ItemKind.WORD):
    return scheduler.add_item(conn, LearningItemCreate(word=word, meaning=f"meaning of {word}", kind=kind))


def test_new_item_defaults(scheduler, conn):
    item = _add(scheduler, conn, "sonder")
    assert item.status == LearningStatus.NEW
    assert item.ease_factor == pytest.approx(2.5)
    assert item.interval_days == 1
    assert item.review_count == 0
    assert item.next_review_at == START
    assert item.last_reviewed_at is None


def test_successive_correct_reviews_follow_sm2(scheduler, conn, clock):
    item = _add(scheduler, conn, "eudaimonia")

    first = scheduler.record_review(conn, item.id, 4)
    assert first.first_review
    assert first.is_correct
    assert first.after.interval_days == 1
    assert first.after.status == LearningStatus.LEARNING
    assert first.after.next_review_at == START + timedelta(days=1)

    second = scheduler.record_review(conn, item.id, 4)
    assert not second.first_review
    assert second.after.interval_days == 6

    third = scheduler.record_review(conn, item.id, 4)
    assert third.after.interval_days == 15
    assert third.after.status == LearningStatus.REVIEWING
    assert third.after.review_count == 3
    assert third.after.correct_count == 3
    assert third.after.ease_factor == pytest.approx(2.5)


def test_failed_review_relearns(scheduler, conn):
    item = _add(scheduler, conn, "ataraxia")
    scheduler.record_review(conn, item.id, 5)
    scheduler.record_review(conn, item.id, 5)
    failed = scheduler.record_review(conn, item.id, 1)
    assert not failed.is_correct
    assert failed.after.interval_days == 1
    assert failed.after.status == LearningStatus.LEARNING
    assert failed.after.correct_count == 2
    assert failed.after.review_count == 3
    assert failed.after.ease_factor >= 1.3


def test_quality_out_of_range_is_clamped(scheduler, conn):
    item = _add(scheduler, conn, "kairos")
    outcome = scheduler.record_review(conn, item.id, 11)
    assert outcome.quality == 5
    assert outcome.after.ease_factor == pytest.approx(2.6)


def test_unknown_item_is_a_noop(scheduler, conn):
    assert scheduler.record_review(conn, 9999, 4) is None
    assert scheduler.get_item(conn, 9999) is None
    assert scheduler.delete_item(conn, 9999) is False


def test_item_becomes_mastered_after_enough_correct_reviews(scheduler, conn):
    item = _add(scheduler, conn, "logos")
    outcomes = [scheduler.record_review(conn, item.id, 5) for _ in range(6)]
    assert outcomes[4].after.status == LearningStatus.REVIEWING
    assert outcomes[5].after.status == LearningStatus.MASTERED
    assert outcomes[5].newly_mastered
    assert not outcomes[4].newly_mastered


def test_get_due_orders_and_limits(scheduler, conn, clock):
    a = _add(scheduler, conn, "alpha")
    b = _add(scheduler, conn, "beta")
    c = _add(scheduler, conn, "gamma", kind=ItemKind.PROVERB)
    scheduler.record_review(conn, b.id, 4)

    assert [item.id for item in scheduler.get_due(conn, 10)] == [a.id, c.id]
    assert scheduler.due_count(conn) == 2

    later = START + timedelta(days=2)
    assert [item.id for item in scheduler.get_due(conn, 10, now=later)] == [a.id, c.id, b.id]
    assert [item.id for item in scheduler.get_due(conn, 1, now=later)] == [a.id]
    assert scheduler.get_due(conn, -5, now=later) == []


def test_mastered_items_are_never_due(scheduler, conn):
    item = _add(scheduler, conn, "telos")
    conn.execute("UPDATE learning_items SET status = 'mastered' WHERE id = ?", (item.id,))
    assert scheduler.get_due(conn, 10, now=START + timedelta(days=365)) == []


def test_catalog_queries(scheduler, conn):
    a = _add(scheduler, conn, "praxis")
    _add(scheduler, conn, "phronesis")
    scheduler.record_review(conn, a.id, 4)

    assert [item.word for item in scheduler.get_new(conn, 10)] == ["phronesis"]
    counts = scheduler.count_by_status(conn)
    assert counts == {"new": 1, "learning": 1, "reviewing": 0, "mastered": 0}
    assert scheduler.delete_item(conn, a.id) is True
    assert scheduler.get_item(conn, a.id) is None


def test_seeded_items_are_due_from_the_init_time(engine, conn):
    seeded = engine.scheduler.list_items(conn)
    assert len(seeded) == 5
    assert all(item.next_review_at == START for item in seeded)
    assert engine.scheduler.due_count(conn) == 5
    assert engine.scheduler.due_count(conn, now=START - timedelta(seconds=1)) == 0
