"""Tests for environment-driven settings (ALLOWED_ORIGINS, analysis options)."""

import importlib
from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kintai_compliance import config
from kintai_compliance.config import DEFAULT_ALLOWED_ORIGINS, Settings


def build_settings(monkeypatch, value):
    if value is None:
        monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    else:
        monkeypatch.setenv("ALLOWED_ORIGINS", value)

    return Settings(_env_file=None)


def test_allowed_origins_supports_csv(monkeypatch):
    settings = build_settings(monkeypatch, "http://localhost:8180,http://localhost:5173")

    assert settings.allowed_origins == ["http://localhost:8180", "http://localhost:5173"]


def test_allowed_origins_supports_json_array(monkeypatch):
    settings = build_settings(monkeypatch, '["http://localhost:8180","http://localhost:5173"]')

    assert settings.allowed_origins == ["http://localhost:8180", "http://localhost:5173"]


def test_allowed_origins_empty_string_falls_back_to_default(monkeypatch):
    settings = build_settings(monkeypatch, "   ")

    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS


def test_allowed_origins_not_set_falls_back_to_default(monkeypatch):
    settings = build_settings(monkeypatch, None)

    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS


def test_include_today_defaults_to_false(monkeypatch):
    monkeypatch.delenv("INCLUDE_TODAY", raising=False)

    assert Settings(_env_file=None).include_today is False


def test_include_today_from_env(monkeypatch):
    monkeypatch.setenv("INCLUDE_TODAY", "true")

    assert Settings(_env_file=None).include_today is True


def test_max_upload_bytes(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_SIZE", "5")

    settings = Settings(_env_file=None)

    assert settings.max_upload_bytes == 5 * 1024 * 1024


def test_allowed_origins_csv_with_spaces(monkeypatch):
    settings = build_settings(monkeypatch, " http://localhost:8180 , ,http://localhost:5173 ")

    assert settings.allowed_origins == ["http://localhost:8180", "http://localhost:5173"]


def test_module_settings_load_with_csv_origins(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:8180,http://localhost:5173")

    try:
        reloaded = importlib.reload(config)
        assert reloaded.settings.allowed_origins == ["http://localhost:8180", "http://localhost:5173"]
    finally:
        monkeypatch.delenv("ALLOWED_ORIGINS")
        importlib.reload(config)
