import config
from utils.grading import grade_recall, token_diff


def _use_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / ".prody"
    config_path = config_dir / "config.toml"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    for name in ("PRODY_BASE_STREAK_XP", "PRODY_LOG_LEVEL", "PRODY_DUE_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    return config_path


def test_load_config_copies_example_on_first_run(tmp_path, monkeypatch):
    config_path = _use_config_dir(tmp_path, monkeypatch)

    loaded = config.load_config()

    assert config_path.exists()
    assert loaded["progression"]["base_streak_xp"] == 10
    assert loaded["review"]["due_limit"] == 20
    assert loaded["challenges"]["cleanup_after_days"] == 7
    assert loaded["activity"]["retention_days"] == 365
    assert loaded["logging"]["level"] == "INFO"


def test_env_overrides_config_file(tmp_path, monkeypatch):
    config_path = _use_config_dir(tmp_path, monkeypatch)
    config_path.parent.mkdir(parents=True)
    config_path.write_text("[progression]\nbase_streak_xp = 25\n", encoding="utf-8")
    assert config.get_config_value("progression", "base_streak_xp") == 25

    monkeypatch.setenv("PRODY_BASE_STREAK_XP", "4")
    monkeypatch.setenv("PRODY_LOG_LEVEL", "debug")
    loaded = config.load_config()
    assert loaded["progression"]["base_streak_xp"] == 4
    assert loaded["logging"]["level"] == "DEBUG"
    assert config.get_config_value("grading", "missing", "fallback") == "fallback"


GRADING = {"grading": {"perfect_threshold": 0.98, "good_threshold": 0.85, "close_threshold": 0.6}}


def test_grade_recall_maps_similarity_to_quality():
    assert grade_recall("Know thyself", "know thyself ", GRADING) == 5
    assert grade_recall("The unexamined life", "The unexamined lif", GRADING) == 4
    assert grade_recall("ephemeral", "ephemerl", GRADING) == 4
    assert grade_recall("serendipity", "serendip", GRADING) == 2
    assert grade_recall("serendipity", "xyz", GRADING) == 0
    assert grade_recall("serendipity", "   ", GRADING) == 0


def test_token_diff_marks_missing_words():
    diff = token_diff("know thyself today", "know today")
    assert [t["status"] for t in diff["expected"]] == ["match", "missing", "match"]
    assert [t["status"] for t in diff["actual"]] == ["match", "match"]
