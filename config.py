import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".prody"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_BASE_STREAK_XP = 10
DEFAULT_DUE_LIMIT = 20


def load_config() -> Dict[str, Any]:
    """Load config from ~/.prody/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., PRODY_LOG_LEVEL env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    progression_cfg = config.get("progression", {})
    config["progression"] = {
        "base_streak_xp": int(os.getenv(
            "PRODY_BASE_STREAK_XP",
            progression_cfg.get("base_streak_xp", DEFAULT_BASE_STREAK_XP)
        )),
    }
    review_cfg = config.get("review", {})
    config["review"] = {
        "due_limit": int(os.getenv("PRODY_DUE_LIMIT", review_cfg.get("due_limit", DEFAULT_DUE_LIMIT))),
    }
    grading_cfg = config.get("grading", {})
    config["grading"] = {
        "perfect_threshold": float(os.getenv(
            "PRODY_PERFECT_THRESHOLD", grading_cfg.get("perfect_threshold", 0.98)
        )),
        "good_threshold": float(os.getenv(
            "PRODY_GOOD_THRESHOLD", grading_cfg.get("good_threshold", 0.85)
        )),
        "close_threshold": float(os.getenv(
            "PRODY_CLOSE_THRESHOLD", grading_cfg.get("close_threshold", 0.6)
        )),
    }
    challenges_cfg = config.get("challenges", {})
    config["challenges"] = {
        "cleanup_after_days": int(challenges_cfg.get("cleanup_after_days", 7)),
    }
    activity_cfg = config.get("activity", {})
    config["activity"] = {
        "retention_days": int(activity_cfg.get("retention_days", 365)),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("PRODY_LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('progression', 'base_streak_xp')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
