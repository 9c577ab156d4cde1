"""Affect pipeline orchestrator — ties extraction, classification, aggregation
and history together.

This module provides :class:`AffectPipeline`, an explicitly owned object
the caller constructs once per sensor session.  For each input it:

1. Derives features (acceleration) or a channel reading (rotation, touch)
2. Classifies it into a :class:`DetectedEmotion`
3. Records the emotion in the :class:`HistoryTracker`
4. Blends the trailing window of recorded emotions into an
   :class:`AffectiveState`
5. Records that state and returns both as an :class:`AffectUpdate`

All public calls run under one re-entrant lock shared with the tracker, so
a producer thread can feed samples while a display thread polls
:meth:`AffectPipeline.snapshot`.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Iterable

import structlog

from sensorhub_affect.affect.aggregator import StateAggregator
from sensorhub_affect.affect.channels import RotationAnalyzer, TouchAnalyzer
from sensorhub_affect.affect.classifier import EmotionClassifier
from sensorhub_affect.affect.features import (
    DEFAULT_MAX_MAGNITUDE,
    DEFAULT_WINDOW_SIZE,
    FeatureExtractor,
)
from sensorhub_affect.affect.history import DEFAULT_HISTORY_SIZE, HistoryTracker
from sensorhub_affect.affect.models import (
    AffectSnapshot,
    AffectUpdate,
    AffectiveState,
    ClassifierThresholds,
    DetectedEmotion,
    FeatureVector,
)
from sensorhub_affect.models import AccelerationSample, RotationSample, TouchEvent

if TYPE_CHECKING:
    from sensorhub_affect.config import Settings

logger = structlog.get_logger(__name__)


class AffectPipeline:
    """Orchestrator for the affect inference subsystem.

    Parameters
    ----------
    window_size : int
        Acceleration window length; also the classifier warm-up.
    thresholds : ClassifierThresholds | None
        Rule constants shared by the extractor and classifier.
    aggregation_window : int
        Number of most recent emotions blended into each state.
    emotion_history_size, state_history_size : int
        Tracker buffer capacities.
    display_history_size : int
        Emotions included in :meth:`snapshot`.
    max_magnitude : float
        Clamp applied to acceleration magnitudes.
    """

    def __init__(
        self,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
        thresholds: ClassifierThresholds | None = None,
        aggregation_window: int = 10,
        emotion_history_size: int = DEFAULT_HISTORY_SIZE,
        state_history_size: int = DEFAULT_HISTORY_SIZE,
        display_history_size: int = 50,
        max_magnitude: float = DEFAULT_MAX_MAGNITUDE,
    ) -> None:
        if thresholds is None:
            thresholds = ClassifierThresholds()
        self._lock = threading.RLock()
        self._extractor = FeatureExtractor(window_size, thresholds, max_magnitude)
        self._classifier = EmotionClassifier(window_size, thresholds)
        self._aggregator = StateAggregator()
        self._rotation = RotationAnalyzer()
        self._touch = TouchAnalyzer()
        self._tracker = HistoryTracker(emotion_history_size, state_history_size, lock=self._lock)
        self._aggregation_window = aggregation_window
        self._display_history_size = display_history_size

    @classmethod
    def from_settings(cls, settings: Settings) -> AffectPipeline:
        """Build a pipeline from application :class:`Settings`."""
        return cls(
            window_size=settings.affect_window_size,
            thresholds=settings.affect_thresholds,
            aggregation_window=settings.affect_aggregation_window,
            emotion_history_size=settings.affect_emotion_history_size,
            state_history_size=settings.affect_state_history_size,
            display_history_size=settings.affect_display_history_size,
            max_magnitude=settings.affect_max_magnitude,
        )

    @property
    def tracker(self) -> HistoryTracker:
        return self._tracker

    # ── Inputs ────────────────────────────────────────────────

    def process(self, sample: AccelerationSample) -> AffectUpdate:
        """Run one acceleration sample through the full pipeline."""
        with self._lock:
            features = self._extractor.observe(sample)
            emotion = self._classifier.classify(features)
            return self._commit(emotion, features)

    def process_rotation(self, sample: RotationSample) -> AffectUpdate:
        """Run one gyroscope sample through the rotation channel."""
        with self._lock:
            return self._commit(self._rotation.analyze(sample))

    def process_touches(self, events: TouchEvent | Iterable[TouchEvent]) -> AffectUpdate:
        """Run one touch event or a batch through the touch channel."""
        with self._lock:
            return self._commit(self._touch.analyze(events))

    # ── Outputs ───────────────────────────────────────────────

    def snapshot(self) -> AffectSnapshot:
        """Return a consistent view of the current state and history."""
        with self._lock:
            return AffectSnapshot(
                current_emotion=self._tracker.get_latest_emotion(),
                state=self._tracker.get_latest_state() or AffectiveState(),
                emotion_history=self._tracker.get_recent_emotions(self._display_history_size),
                distribution=self._tracker.get_distribution(),
                average_arousal=self._tracker.get_average_arousal(),
                average_valence=self._tracker.get_average_valence(),
                average_stress=self._tracker.get_average_stress(),
                average_focus=self._tracker.get_average_focus(),
            )

    def reset(self) -> None:
        """Clear every window and the history; equivalent to a new instance."""
        with self._lock:
            self._extractor.reset()
            self._rotation.reset()
            self._touch.reset()
            self._tracker.clear()
        logger.info("affect.pipeline_reset")

    # ── Internals ─────────────────────────────────────────────

    def _commit(
        self,
        emotion: DetectedEmotion,
        features: FeatureVector | None = None,
    ) -> AffectUpdate:
        previous = self._tracker.get_latest_emotion()
        self._tracker.record_emotion(emotion)
        state = self._aggregator.aggregate(
            self._tracker.get_recent_emotions(self._aggregation_window)
        )
        self._tracker.record_state(state)

        if previous is not None and previous.emotion != emotion.emotion:
            logger.info(
                "affect.emotion_changed",
                previous=previous.emotion.value,
                current=emotion.emotion.value,
                confidence=round(emotion.confidence, 3),
            )
        return AffectUpdate(features=features, emotion=emotion, state=state)
