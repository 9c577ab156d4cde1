"""Bounded emotion / state history with distribution and running averages."""

from __future__ import annotations

import statistics
import threading
from collections import Counter

import structlog

from sensorhub_affect.affect.buffer import RingBuffer
from sensorhub_affect.affect.models import (
    NEUTRAL_SCORE,
    AffectiveState,
    DetectedEmotion,
    EmotionType,
)

logger = structlog.get_logger(__name__)

DEFAULT_HISTORY_SIZE = 1000


class HistoryTracker:
    """Store recent emotions and states for display.

    The two buffers evict independently.  Distribution counts are kept
    apart from the emotion buffer, so they keep counting events that have
    already been evicted; only :meth:`clear` resets them.

    Parameters
    ----------
    emotion_capacity : int
        Maximum number of :class:`DetectedEmotion` values retained.
    state_capacity : int
        Maximum number of :class:`AffectiveState` values retained.
    lock : threading.RLock | None
        Lock guarding every public call.  Pass the owning pipeline's lock to
        share one mutual-exclusion discipline across components.
    """

    def __init__(
        self,
        emotion_capacity: int = DEFAULT_HISTORY_SIZE,
        state_capacity: int = DEFAULT_HISTORY_SIZE,
        lock: threading.RLock | None = None,
    ) -> None:
        self._emotions: RingBuffer[DetectedEmotion] = RingBuffer(emotion_capacity)
        self._states: RingBuffer[AffectiveState] = RingBuffer(state_capacity)
        self._distribution: Counter[EmotionType] = Counter()
        self._lock = lock if lock is not None else threading.RLock()

    # ── Recording ─────────────────────────────────────────────

    def record_emotion(self, emotion: DetectedEmotion) -> None:
        with self._lock:
            self._emotions.append(emotion)
            self._distribution[emotion.emotion] += 1

    def record_state(self, state: AffectiveState) -> None:
        with self._lock:
            self._states.append(state)

    # ── Accessors ─────────────────────────────────────────────

    def get_emotion_history(self) -> list[DetectedEmotion]:
        """Return retained emotions, oldest first."""
        with self._lock:
            return self._emotions.to_list()

    def get_recent_emotions(self, n: int) -> list[DetectedEmotion]:
        """Return up to the *n* newest emotions, oldest first."""
        with self._lock:
            return self._emotions.last(n)

    def get_state_history(self) -> list[AffectiveState]:
        with self._lock:
            return self._states.to_list()

    def get_latest_emotion(self) -> DetectedEmotion | None:
        with self._lock:
            return self._emotions.newest()

    def get_latest_state(self) -> AffectiveState | None:
        with self._lock:
            return self._states.newest()

    def get_distribution(self) -> dict[EmotionType, int]:
        """Return the count of every emotion recorded since the last clear."""
        with self._lock:
            return dict(self._distribution)

    def get_average_arousal(self) -> float:
        return self._average("arousal")

    def get_average_valence(self) -> float:
        return self._average("valence")

    def get_average_stress(self) -> float:
        return self._average("stress")

    def get_average_focus(self) -> float:
        return self._average("focus")

    # ── Reset ─────────────────────────────────────────────────

    def clear(self) -> None:
        """Empty both buffers and the distribution."""
        with self._lock:
            self._emotions.clear()
            self._states.clear()
            self._distribution.clear()
        logger.info("affect.history_cleared")

    # ── Internals ─────────────────────────────────────────────

    def _average(self, dimension: str) -> float:
        with self._lock:
            if not len(self._states):
                return NEUTRAL_SCORE
            return statistics.fmean(getattr(s, dimension) for s in self._states)
