"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sensorhub_affect.affect.models import ClassifierThresholds
from sensorhub_affect.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("SENSORHUB_AFFECT_WINDOW_SIZE", raising=False)
    settings = Settings(_env_file=None)
    assert settings.log_level == "INFO"
    assert settings.affect_window_size == 30
    assert settings.affect_aggregation_window == 10
    assert settings.affect_emotion_history_size == 1000
    assert settings.affect_display_history_size == 50
    assert settings.affect_thresholds == ClassifierThresholds()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SENSORHUB_AFFECT_WINDOW_SIZE", "15")
    monkeypatch.setenv("SENSORHUB_LOG_LEVEL", "DEBUG")
    settings = Settings(_env_file=None)
    assert settings.affect_window_size == 15
    assert settings.log_level == "DEBUG"


def test_nested_threshold_override(monkeypatch):
    monkeypatch.setenv("SENSORHUB_AFFECT_THRESHOLDS__CALM_STD", "0.25")
    settings = Settings(_env_file=None)
    assert settings.affect_thresholds.calm_std == 0.25
    assert settings.affect_thresholds.active_std == ClassifierThresholds().active_std


def test_window_size_must_allow_a_deviation(monkeypatch):
    monkeypatch.setenv("SENSORHUB_AFFECT_WINDOW_SIZE", "1")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
