# SQL schema for Prody database

SCHEMA_VERSION = 3

SCHEMA_SQL = """
-- Learning items under spaced repetition (words, quotes, proverbs, ...)
CREATE TABLE IF NOT EXISTS learning_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    word TEXT UNIQUE NOT NULL,
    meaning TEXT NOT NULL DEFAULT '',
    kind TEXT NOT NULL DEFAULT 'word' CHECK(kind IN ('word', 'proverb', 'idiom', 'phrase', 'quote')),
    category TEXT NOT NULL DEFAULT 'general',
    author TEXT,
    review_count INTEGER NOT NULL DEFAULT 0 CHECK(review_count >= 0),
    correct_count INTEGER NOT NULL DEFAULT 0 CHECK(correct_count >= 0),
    ease_factor REAL NOT NULL DEFAULT 2.5 CHECK(ease_factor >= 1.3),
    interval_days INTEGER NOT NULL DEFAULT 1 CHECK(interval_days >= 1),
    next_review_at TEXT NOT NULL,
    last_reviewed_at TEXT,
    status TEXT NOT NULL DEFAULT 'new' CHECK(status IN ('new', 'learning', 'reviewing', 'mastered')),
    created_at TEXT NOT NULL
);

-- Singleton user stats (id is always 1)
CREATE TABLE IF NOT EXISTS user_stats (
    id INTEGER PRIMARY KEY CHECK(id = 1),
    display_name TEXT NOT NULL DEFAULT 'Seeker',
    level INTEGER NOT NULL DEFAULT 1,
    current_xp INTEGER NOT NULL DEFAULT 0,
    total_xp INTEGER NOT NULL DEFAULT 0,
    level_title TEXT NOT NULL DEFAULT 'novice',
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_active_date TEXT,
    streak_start_date TEXT,
    total_words_learned INTEGER NOT NULL DEFAULT 0,
    total_words_mastered INTEGER NOT NULL DEFAULT 0,
    total_words_reviewed INTEGER NOT NULL DEFAULT 0,
    total_journal_entries INTEGER NOT NULL DEFAULT 0,
    total_journal_words INTEGER NOT NULL DEFAULT 0,
    total_long_journals INTEGER NOT NULL DEFAULT 0,
    total_chat_conversations INTEGER NOT NULL DEFAULT 0,
    total_chat_messages INTEGER NOT NULL DEFAULT 0,
    total_deep_conversations INTEGER NOT NULL DEFAULT 0,
    total_letters_written INTEGER NOT NULL DEFAULT 0,
    total_letters_opened INTEGER NOT NULL DEFAULT 0,
    total_commitments_kept INTEGER NOT NULL DEFAULT 0,
    total_quotes_read INTEGER NOT NULL DEFAULT 0,
    total_active_seconds INTEGER NOT NULL DEFAULT 0,
    badges_earned TEXT NOT NULL DEFAULT '',
    unlocked_avatars TEXT NOT NULL DEFAULT 'default',
    unlocked_banners TEXT NOT NULL DEFAULT 'default',
    joined_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Append-only XP audit trail
CREATE TABLE IF NOT EXISTS xp_transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    amount INTEGER NOT NULL CHECK(amount >= 0),
    source TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    related_id INTEGER,
    ts TEXT NOT NULL
);

CREATE TRIGGER IF NOT EXISTS xp_transactions_no_update BEFORE UPDATE ON xp_transactions BEGIN
    SELECT RAISE(ABORT, 'xp_transactions is append-only');
END;

CREATE TRIGGER IF NOT EXISTS xp_transactions_no_delete BEFORE DELETE ON xp_transactions BEGIN
    SELECT RAISE(ABORT, 'xp_transactions is append-only');
END;

-- Badge catalog plus earned state
CREATE TABLE IF NOT EXISTS badges (
    badge_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    icon_name TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL CHECK(category IN ('learning', 'journaling', 'chat', 'streaks', 'social', 'special')),
    tier TEXT NOT NULL DEFAULT 'bronze' CHECK(tier IN ('bronze', 'silver', 'gold', 'platinum', 'diamond')),
    tracks TEXT,
    requirement INTEGER NOT NULL DEFAULT 1 CHECK(requirement >= 1),
    progress INTEGER NOT NULL DEFAULT 0,
    is_earned INTEGER NOT NULL DEFAULT 0,
    earned_at TEXT,
    xp_reward INTEGER NOT NULL DEFAULT 0,
    unlocks_avatar TEXT,
    unlocks_banner TEXT,
    position INTEGER NOT NULL DEFAULT 0
);

-- Daily challenges (at most 3 per day)
CREATE TABLE IF NOT EXISTS daily_challenges (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    requirement INTEGER NOT NULL CHECK(requirement >= 1),
    progress INTEGER NOT NULL DEFAULT 0,
    xp_reward INTEGER NOT NULL DEFAULT 0,
    is_completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    quote TEXT,
    quote_author TEXT,
    created_at TEXT NOT NULL
);

-- One row per calendar day
CREATE TABLE IF NOT EXISTS daily_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT UNIQUE NOT NULL,
    words_learned INTEGER NOT NULL DEFAULT 0,
    words_reviewed INTEGER NOT NULL DEFAULT 0,
    journal_entries INTEGER NOT NULL DEFAULT 0,
    journal_words INTEGER NOT NULL DEFAULT 0,
    chat_messages INTEGER NOT NULL DEFAULT 0,
    letters_written INTEGER NOT NULL DEFAULT 0,
    letters_opened INTEGER NOT NULL DEFAULT 0,
    learning_seconds INTEGER NOT NULL DEFAULT 0,
    journaling_seconds INTEGER NOT NULL DEFAULT 0,
    chat_seconds INTEGER NOT NULL DEFAULT 0,
    active_seconds INTEGER NOT NULL DEFAULT 0,
    xp_earned INTEGER NOT NULL DEFAULT 0,
    first_session_at TEXT,
    last_session_at TEXT
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_items_next_review ON learning_items (next_review_at);
CREATE INDEX IF NOT EXISTS idx_items_status ON learning_items (status);
CREATE INDEX IF NOT EXISTS idx_items_kind ON learning_items (kind);
CREATE INDEX IF NOT EXISTS idx_xp_transactions_ts ON xp_transactions (ts);
CREATE INDEX IF NOT EXISTS idx_xp_transactions_source ON xp_transactions (source);
CREATE INDEX IF NOT EXISTS idx_badges_category ON badges (category);
CREATE INDEX IF NOT EXISTS idx_badges_tracks ON badges (tracks);
CREATE INDEX IF NOT EXISTS idx_challenges_date ON daily_challenges (date);
CREATE INDEX IF NOT EXISTS idx_challenges_type ON daily_challenges (type);
CREATE INDEX IF NOT EXISTS idx_challenges_completed ON daily_challenges (is_completed);
"""
