import random
from datetime import datetime

import pytest

import config
from db import database
from utils.clock import FixedClock
from utils.engine import build_engine

START = datetime(2026, 3, 10, 10, 0, 0)

TEST_CONFIG = "\n".join(
    [
        "[progression]",
        "base_streak_xp = 10",
        "",
        "[review]",
        "due_limit = 20",
        "",
        "[grading]",
        "perfect_threshold = 0.98",
        "good_threshold = 0.85",
        "close_threshold = 0.6",
        "",
        "[logging]",
        "level = \"debug\"",
    ]
)

ENV_OVERRIDES = (
    "PRODY_BASE_STREAK_XP",
    "PRODY_DUE_LIMIT",
    "PRODY_PERFECT_THRESHOLD",
    "PRODY_GOOD_THRESHOLD",
    "PRODY_CLOSE_THRESHOLD",
    "PRODY_LOG_LEVEL",
)


@pytest.fixture
def prody_home(tmp_path, monkeypatch):
    config_dir = tmp_path / ".prody"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    config_path.write_text(TEST_CONFIG, encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "prody.db")
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)

    database.init_db(now=START)
    return config_dir


@pytest.fixture
def conn(prody_home):
    with database.get_conn() as conn:
        yield conn


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def engine(prody_home, clock):
    return build_engine(config.load_config(), clock=clock, rng=random.Random(7))
