import logging
import sqlite3
import tomllib
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".prody"
DB_PATH = CONFIG_DIR / "prody.db"
CATALOG_PATH = Path(__file__).parent / "catalog.toml"
BUSY_TIMEOUT_SECONDS = 30.0


def init_db(now: Optional[datetime] = None):
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        with transaction(conn):
            ensure_schema_version(conn)
            seed_catalog(conn, load_catalog(), now)


def load_catalog(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the static badge/challenge/reference-content catalog."""
    with open(path or CATALOG_PATH, "rb") as f:
        return tomllib.load(f)


def seed_catalog(conn: sqlite3.Connection, catalog: Dict[str, Any], now: Optional[datetime] = None) -> None:
    """Insert catalog badges and reference items that are not already present.

    Reference items become due at `now` (the wall clock when omitted).
    """
    cursor = conn.cursor()
    badges = catalog.get("badges", [])
    cursor.executemany(
        """
        INSERT OR IGNORE INTO badges (
            badge_id, name, description, icon_name, category, tier,
            tracks, requirement, xp_reward, unlocks_avatar, unlocks_banner, position
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                badge["badge_id"],
                badge["name"],
                badge.get("description", ""),
                badge.get("icon_name", ""),
                badge["category"],
                badge.get("tier", "bronze"),
                badge.get("tracks"),
                int(badge.get("requirement", 1)),
                int(badge.get("xp_reward", 0)),
                badge.get("unlocks_avatar"),
                badge.get("unlocks_banner"),
                position,
            )
            for position, badge in enumerate(badges)
        ],
    )
    now = (now or datetime.now()).isoformat(timespec="seconds")
    cursor.executemany(
        """
        INSERT OR IGNORE INTO learning_items (word, meaning, kind, category, author, next_review_at, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                item["word"],
                item.get("meaning", ""),
                item.get("kind", "word"),
                item.get("category", "general"),
                item.get("author"),
                now,
                now,
            )
            for item in catalog.get("items", [])
        ],
    )
    logger.debug("Catalog seeded with %d badges", len(badges))


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")


def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)


@contextmanager
def transaction(conn: sqlite3.Connection):
    """Run the block under SQLite's write lock.

    BEGIN IMMEDIATE takes the reserved lock up front, so concurrent
    read-modify-write sequences on user_stats, badges and challenges are
    serialized across connections. A block entered while a transaction is
    already open joins it; only the outermost block commits.
    """
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()


@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(
        DB_PATH,
        timeout=BUSY_TIMEOUT_SECONDS,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
