"""Supplementary emotion channels — gyroscope rotation and touch interaction.

Both analyzers keep their own bounded window and emit the same
:class:`DetectedEmotion` values as the acceleration classifier, so the
pipeline can blend them into one affective state.  Confidence uses the
same margin scheme as :mod:`sensorhub_affect.affect.classifier`.
"""

from __future__ import annotations

import math
import statistics
from typing import Iterable

from sensorhub_affect.affect.buffer import RingBuffer
from sensorhub_affect.affect.classifier import margin_above, margin_below, rule_confidence
from sensorhub_affect.affect.features import compute_magnitude, sanitize
from sensorhub_affect.affect.models import DetectedEmotion, EmotionType
from sensorhub_affect.models import RotationSample, TouchEvent

CHANNEL_HISTORY_SIZE = 100

# ── Rotation thresholds ──────────────────────────────────────

_ROTATION_WARMUP = 20
_ROTATION_INTENSITY_SPAN = 10  # newest rates averaged for intensity
_ROTATION_MAX_VARIABILITY = 2.0  # rad/s; std dev at which stability hits 0
_STABILITY_FOCUSED = 0.8
_STABILITY_DISTRACTED = 0.4
_INTENSITY_STABLE = 0.1  # rad/s

# ── Touch thresholds ─────────────────────────────────────────

_TOUCH_WARMUP = 10
_PRESSURE_HIGH = 0.7
_PRESSURE_LOW = 0.3
_FREQUENCY_STRESSED = 30.0  # events per minute
_FREQUENCY_ANXIOUS = 40.0
_DURATION_LONG = 500.0  # ms
_DURATION_SHORT = 200.0


class RotationAnalyzer:
    """Infer focus / distraction from the stability of rotation rate."""

    def __init__(self, capacity: int = CHANNEL_HISTORY_SIZE) -> None:
        self._rates: RingBuffer[float] = RingBuffer(capacity)

    def analyze(self, sample: RotationSample) -> DetectedEmotion:
        self._rates.append(compute_magnitude(sample.x, sample.y, sample.z))
        timestamp = sanitize(sample.timestamp)
        if len(self._rates) < _ROTATION_WARMUP:
            return DetectedEmotion(timestamp=timestamp)

        rates = self._rates.to_list()
        variability = statistics.pstdev(rates)
        stability = 1.0 - max(0.0, min(1.0, variability / _ROTATION_MAX_VARIABILITY))
        intensity = statistics.fmean(rates[-_ROTATION_INTENSITY_SPAN:])
        factors = {"rotation_stability": stability, "rotation_intensity": intensity}

        if stability > _STABILITY_FOCUSED and intensity < _INTENSITY_STABLE:
            emotion = EmotionType.FOCUSED
            margins = [
                margin_above(stability, _STABILITY_FOCUSED),
                margin_below(intensity, _INTENSITY_STABLE),
            ]
        elif stability < _STABILITY_DISTRACTED:
            emotion = EmotionType.DISTRACTED
            margins = [margin_below(stability, _STABILITY_DISTRACTED)]
        else:
            emotion = EmotionType.RESTING
            margins = []

        return DetectedEmotion(
            emotion=emotion,
            confidence=rule_confidence(margins),
            factors=factors,
            timestamp=timestamp,
        )

    def reset(self) -> None:
        self._rates.clear()


class TouchAnalyzer:
    """Infer stress / calm / anxiety from touch pressure, duration and rate."""

    def __init__(self, capacity: int = CHANNEL_HISTORY_SIZE) -> None:
        self._events: RingBuffer[TouchEvent] = RingBuffer(capacity)

    def analyze(self, events: TouchEvent | Iterable[TouchEvent]) -> DetectedEmotion:
        """Add *events* (one event or a batch) to the window and classify it.

        Raises :class:`TypeError` before touching the window if any item is
        not a :class:`TouchEvent`.
        """
        batch = [events] if isinstance(events, TouchEvent) else list(events)
        for event in batch:
            if not isinstance(event, TouchEvent):
                raise TypeError(f"expected TouchEvent, got {type(event).__name__}")
        for event in batch:
            self._events.append(event)

        latest = self._events.newest()
        timestamp = sanitize(latest.timestamp) if latest is not None else None
        if len(self._events) < _TOUCH_WARMUP:
            return DetectedEmotion(timestamp=timestamp)

        window = self._events.to_list()
        pressure = statistics.fmean(max(0.0, min(1.0, sanitize(e.pressure))) for e in window)
        duration = statistics.fmean(max(0.0, sanitize(e.duration)) for e in window)
        frequency = _events_per_minute([sanitize(e.timestamp) for e in window])
        factors = {
            "touch_pressure": pressure,
            "touch_frequency": frequency,
            "touch_duration": duration,
        }

        if pressure > _PRESSURE_HIGH and frequency > _FREQUENCY_STRESSED:
            emotion = EmotionType.STRESSED
            margins = [
                margin_above(pressure, _PRESSURE_HIGH),
                margin_above(frequency, _FREQUENCY_STRESSED),
            ]
        elif pressure < _PRESSURE_LOW and duration > _DURATION_LONG:
            emotion = EmotionType.CALM
            margins = [
                margin_below(pressure, _PRESSURE_LOW),
                margin_above(duration, _DURATION_LONG),
            ]
        elif frequency > _FREQUENCY_ANXIOUS and duration < _DURATION_SHORT:
            emotion = EmotionType.ANXIOUS
            margins = [
                margin_above(frequency, _FREQUENCY_ANXIOUS),
                margin_below(duration, _DURATION_SHORT),
            ]
        else:
            emotion = EmotionType.RESTING
            margins = []

        return DetectedEmotion(
            emotion=emotion,
            confidence=rule_confidence(margins),
            factors=factors,
            timestamp=timestamp,
        )

    def reset(self) -> None:
        self._events.clear()


def _events_per_minute(timestamps: list[float]) -> float:
    """Event rate over the span of *timestamps* (seconds)."""
    if len(timestamps) < 2:
        return 0.0
    span = max(timestamps) - min(timestamps)
    if span <= 0 or not math.isfinite(span):
        return 0.0
    return (len(timestamps) - 1) / (span / 60.0)
