"""
Tests for YAML/env settings.
"""
from pathlib import Path
from zoneinfo import ZoneInfo

from famboard.kanban.config import Settings
from famboard.kanban.schema import GroupBy, TimeScope


def test_defaults_without_file(tmp_path):
    settings = Settings.load(str(tmp_path / "missing.yaml"))
    assert settings.week_starts_on == 6
    assert settings.task_lookback_days == 30
    assert settings.event_lookback_days == 1
    assert settings.group_by is GroupBy.TIME
    assert settings.time_scope is TimeScope.WEEK
    assert settings.db_path == str(Path("~/.local/share/famboard/famboard.db").expanduser())


def test_load_yaml(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "db_path: /tmp/board.db\n"
        "port: 8080\n"
        "week_starts_on: 0\n"
        "default_group_by: priority\n"
        "default_time_scope: month\n"
        "unknown_key: ignored\n"
    )
    settings = Settings.load(str(cfg))
    assert settings.db_path == "/tmp/board.db"
    assert settings.port == 8080
    assert settings.week_starts_on == 0
    assert settings.group_by is GroupBy.PRIORITY
    assert settings.time_scope is TimeScope.MONTH


def test_config_path_from_env(tmp_path, monkeypatch):
    cfg = tmp_path / "env.yaml"
    cfg.write_text("host: 0.0.0.0\n")
    monkeypatch.setenv("FAMBOARD_CONFIG", str(cfg))
    assert Settings.load().host == "0.0.0.0"


def test_env_overrides(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("db_path: /tmp/from-file.db\napi_secret: file-secret\n")
    monkeypatch.setenv("FAMBOARD_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("FAMBOARD_API_SECRET", "env-secret")
    monkeypatch.setenv("FAMBOARD_LOG_LEVEL", "debug")

    settings = Settings.load(str(cfg))
    assert settings.db_path == str(tmp_path / "env.db")
    assert settings.api_secret == "env-secret"
    assert settings.log_level == "DEBUG"


def test_bad_yaml_falls_back_to_defaults(tmp_path, caplog):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("port: [unclosed\n")
    settings = Settings.load(str(cfg))
    assert settings.port == 3000
    assert "using defaults" in caplog.text


def test_non_mapping_yaml_falls_back(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("- just\n- a list\n")
    assert Settings.load(str(cfg)).port == 3000


def test_invalid_week_start_is_reset(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("week_starts_on: 9\n")
    assert Settings.load(str(cfg)).week_starts_on == 6


def test_non_numeric_week_start_is_reset(tmp_path, caplog):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("week_starts_on: sunday\n")
    settings = Settings.load(str(cfg))
    assert settings.week_starts_on == 6
    assert "week_starts_on" in caplog.text


def test_quoted_numbers_become_ints(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text('week_starts_on: "3"\nport: "8081"\ntask_lookback_days: "7"\n')
    settings = Settings.load(str(cfg))
    assert settings.week_starts_on == 3
    assert settings.port == 8081
    assert settings.task_lookback_days == 7


def test_bad_lookback_is_reset(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("event_lookback_days: -2\nport: lots\n")
    settings = Settings.load(str(cfg))
    assert settings.event_lookback_days == 1
    assert settings.port == 3000


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Timezone
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_named_timezone(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("timezone: America/Los_Angeles\n")
    settings = Settings.load(str(cfg))
    assert settings.tz == ZoneInfo("America/Los_Angeles")
    assert settings.now().tzinfo == ZoneInfo("America/Los_Angeles")


def test_timezone_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FAMBOARD_TIMEZONE", "Europe/Berlin")
    assert Settings.load(str(tmp_path / "missing.yaml")).tz == ZoneInfo("Europe/Berlin")


def test_unknown_timezone_falls_back_to_system_offset(tmp_path, caplog):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("timezone: Mars/Olympus_Mons\n")
    settings = Settings.load(str(cfg))
    assert settings.timezone == ""
    assert settings.now().utcoffset() is not None
    assert "Unknown timezone" in caplog.text
