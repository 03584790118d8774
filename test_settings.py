"""Tests for JSON settings loading and timezone lookup."""

import json
from zoneinfo import ZoneInfo

import pytest

import settings as settings_mod
from settings import DEFAULT_TIMEZONE, get_zone, load_settings, save_settings


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_SETTINGS_PATH", str(path))
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    return path


def test_missing_file_gives_defaults(settings_path):
    loaded = load_settings()
    assert loaded["timezone"] == "Asia/Taipei"
    assert loaded["table"] == "promotions"
    assert loaded["request_timeout"] == 10.0
    assert loaded["log_file"] is None


def test_corrupt_file_gives_defaults(settings_path):
    settings_path.write_text("{not json", encoding="utf-8")
    assert load_settings()["supabase_url"] == ""


def test_non_object_file_gives_defaults(settings_path):
    settings_path.write_text("[1, 2]", encoding="utf-8")
    assert load_settings()["timezone"] == DEFAULT_TIMEZONE


def test_wrong_types_are_ignored(settings_path):
    settings_path.write_text(json.dumps({
        "timezone": 8,
        "request_timeout": "fast",
        "window_width": "wide",
        "supabase_url": "https://demo.supabase.co",
    }), encoding="utf-8")
    loaded = load_settings()
    assert loaded["timezone"] == "Asia/Taipei"
    assert loaded["request_timeout"] == 10.0
    assert loaded["window_width"] is None
    assert loaded["supabase_url"] == "https://demo.supabase.co"


def test_non_positive_timeout_is_ignored(settings_path):
    settings_path.write_text(json.dumps({"request_timeout": 0}), encoding="utf-8")
    assert load_settings()["request_timeout"] == 10.0


def test_environment_overrides_file(settings_path, monkeypatch):
    settings_path.write_text(json.dumps({"supabase_url": "https://file.supabase.co"}),
                             encoding="utf-8")
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")
    loaded = load_settings()
    assert loaded["supabase_url"] == "https://env.supabase.co"
    assert loaded["supabase_key"] == "env-key"


def test_save_then_load(settings_path):
    current = load_settings()
    current["timezone"] = "Asia/Tokyo"
    current["window_width"] = 420
    save_settings(current)
    loaded = load_settings()
    assert loaded["timezone"] == "Asia/Tokyo"
    assert loaded["window_width"] == 420


def test_get_zone():
    assert get_zone({"timezone": "Europe/Zurich"}) == ZoneInfo("Europe/Zurich")
    assert get_zone({"timezone": "Mars/Olympus_Mons"}) == ZoneInfo(DEFAULT_TIMEZONE)
    assert get_zone({}) == ZoneInfo(DEFAULT_TIMEZONE)
