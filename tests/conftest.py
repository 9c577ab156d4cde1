"""Shared pytest fixtures."""

from __future__ import annotations

import math

import pytest
from structlog.testing import capture_logs

from sensorhub_affect.affect.classifier import EmotionClassifier
from sensorhub_affect.affect.features import FeatureExtractor
from sensorhub_affect.affect.history import HistoryTracker
from sensorhub_affect.affect.models import ClassifierThresholds
from sensorhub_affect.affect.pipeline import AffectPipeline
from sensorhub_affect.config import get_settings
from sensorhub_affect.models import AccelerationSample

WINDOW = 30


def accel(z: float, t: float = 0.0, x: float = 0.0, y: float = 0.0) -> AccelerationSample:
    """Acceleration sample whose magnitude is ``|z|`` when x = y = 0."""
    return AccelerationSample(timestamp=t, x=x, y=y, z=z)


def constant_signal(n: int, value: float = 9.8, start: int = 0) -> list[AccelerationSample]:
    return [accel(value, t=(start + i) * 0.02) for i in range(n)]


def alternating_signal(n: int, low: float, high: float, start: int = 0) -> list[AccelerationSample]:
    return [accel(low if i % 2 == 0 else high, t=(start + i) * 0.02) for i in range(n)]


def sine_signal(n: int, amplitude: float = 0.8, period: int = 24) -> list[AccelerationSample]:
    return [
        accel(9.8 + amplitude * math.sin(2 * math.pi * i / period), t=i * 0.02)
        for i in range(n)
    ]


@pytest.fixture(autouse=True)
def captured_logs():
    """Silence structlog output and expose emitted events to tests."""
    with capture_logs() as logs:
        yield logs


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def thresholds() -> ClassifierThresholds:
    return ClassifierThresholds()


@pytest.fixture
def extractor(thresholds: ClassifierThresholds) -> FeatureExtractor:
    return FeatureExtractor(window_size=WINDOW, thresholds=thresholds)


@pytest.fixture
def classifier(thresholds: ClassifierThresholds) -> EmotionClassifier:
    return EmotionClassifier(window_size=WINDOW, thresholds=thresholds)


@pytest.fixture
def tracker() -> HistoryTracker:
    return HistoryTracker()


@pytest.fixture
def pipeline() -> AffectPipeline:
    return AffectPipeline(window_size=WINDOW)
