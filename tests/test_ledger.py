import threading
from datetime import timedelta

import sqlite3
import pytest

from db import database
from models.progress import LevelTitle, XpSource
from utils.daily_activity import get_day
from utils.levels import level_for_xp


def test_stats_row_is_created_lazily(engine, conn):
    stats = engine.ledger.get_stats(conn)
    assert stats.id == 1
    assert stats.total_xp == 0
    assert stats.level == 1
    assert stats.level_title == LevelTitle.NOVICE
    assert stats.unlocked_avatars == ["default"]
    assert stats.badges_earned == []


def test_award_records_transaction_and_totals(engine, conn, clock):
    result = engine.ledger.award_xp(conn, 120, XpSource.JOURNAL_WRITTEN, "Wrote a journal entry", related_id=7)
    assert result.xp_awarded == 120
    assert not result.leveled_up

    stats = engine.ledger.get_stats(conn)
    assert stats.total_xp == 120
    assert stats.current_xp == 120

    [txn] = engine.ledger.recent_transactions(conn)
    assert txn.amount == 120
    assert txn.source == XpSource.JOURNAL_WRITTEN
    assert txn.related_id == 7
    assert txn.ts == clock.now()

    assert get_day(conn, clock.today()).xp_earned == 120


def test_crossing_a_band_levels_up(engine, conn):
    engine.ledger.award_xp(conn, 450, XpSource.WORD_LEARNED)
    result = engine.ledger.award_xp(conn, 60, XpSource.WORD_LEARNED)
    assert result.leveled_up
    assert result.level_title == LevelTitle.APPRENTICE
    assert result.new_level == 2

    again = engine.ledger.award_xp(conn, 10, XpSource.WORD_LEARNED)
    assert not again.leveled_up

    stats = engine.ledger.get_stats(conn)
    assert stats.level == level_for_xp(stats.total_xp)
    assert stats.level_title == LevelTitle.APPRENTICE


def test_negative_amounts_are_clamped_to_zero(engine, conn):
    engine.ledger.award_xp(conn, 50, XpSource.DAILY_LOGIN)
    result = engine.ledger.award_xp(conn, -30, XpSource.DAILY_LOGIN)
    assert result.xp_awarded == 0
    assert engine.ledger.get_stats(conn).total_xp == 50
    assert [txn.amount for txn in engine.ledger.recent_transactions(conn)] == [0, 50]


def test_total_xp_never_decreases(engine, conn):
    previous = 0
    for amount in [5, 0, 40, -10, 500, 3]:
        engine.ledger.award_xp(conn, amount, XpSource.WORD_REVIEWED)
        total = engine.ledger.get_stats(conn).total_xp
        assert total >= previous
        previous = total
    assert previous == 548


def test_transactions_are_append_only(engine, conn):
    engine.ledger.award_xp(conn, 10, XpSource.WORD_LEARNED)
    with pytest.raises(sqlite3.DatabaseError):
        conn.execute("UPDATE xp_transactions SET amount = 1000")
    with pytest.raises(sqlite3.DatabaseError):
        conn.execute("DELETE FROM xp_transactions")


def test_time_window_queries(engine, conn, clock):
    engine.ledger.award_xp(conn, 10, XpSource.WORD_LEARNED)
    clock.advance(days=3)
    engine.ledger.award_xp(conn, 25, XpSource.JOURNAL_WRITTEN)
    engine.ledger.award_xp(conn, 5, XpSource.WORD_LEARNED)

    since = clock.now() - timedelta(days=1)
    assert engine.ledger.total_xp_since(conn, since) == 30
    assert len(engine.ledger.transactions_since(conn, since)) == 2
    assert engine.ledger.xp_by_source(conn) == {"journal_written": 25, "word_learned": 15}
    assert engine.ledger.has_award_since(conn, XpSource.JOURNAL_WRITTEN, since)
    assert not engine.ledger.has_award_since(conn, XpSource.DAILY_LOGIN, since)


def test_increment_counters_rejects_unknown_names(engine, conn):
    stats = engine.ledger.increment_counters(conn, total_words_learned=2, total_quotes_read=1)
    assert stats.total_words_learned == 2
    assert stats.total_quotes_read == 1
    with pytest.raises(ValueError):
        engine.ledger.increment_counters(conn, total_xp=100)


def test_merge_ids_keeps_a_set(engine, conn):
    assert engine.ledger.merge_ids(conn, "unlocked_avatars", ["scholar", "default"]) == ["default", "scholar"]
    assert engine.ledger.merge_ids(conn, "unlocked_avatars", ["scholar"]) == ["default", "scholar"]
    with pytest.raises(ValueError):
        engine.ledger.merge_ids(conn, "display_name", ["x"])


def test_concurrent_awards_do_not_lose_updates(engine, conn):
    engine.ledger.get_stats(conn)
    threads_count = 4
    awards_per_thread = 25
    errors = []

    def worker():
        try:
            with database.get_conn() as worker_conn:
                for _ in range(awards_per_thread):
                    engine.ledger.award_xp(worker_conn, 10, XpSource.WORD_REVIEWED)
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    expected = threads_count * awards_per_thread * 10
    stats = engine.ledger.get_stats(conn)
    assert stats.total_xp == expected
    assert stats.current_xp == expected
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*), SUM(amount) FROM xp_transactions")
    assert tuple(cursor.fetchone()) == (threads_count * awards_per_thread, expected)
