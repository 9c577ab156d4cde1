"""Feature engineering — sliding-window statistics over acceleration magnitude.

This module turns raw :class:`AccelerationSample` values into
:class:`FeatureVector` objects for the emotion classifier.

Key responsibilities
--------------------
1. **Sanitisation** — non-finite components are coerced to zero and the
   magnitude is clamped, so nothing non-finite reaches the statistics.
2. **Windowed aggregation** — population mean / std dev of the last N
   magnitudes plus the newest short-term delta (a jerk proxy).
3. **Temporal evidence** — stillness run length, samples since the last
   high-volatility window, and the delta reversal rate.  These let the
   classifier stay stateless.
"""

from __future__ import annotations

import math
import statistics

import structlog

from sensorhub_affect.affect.buffer import RingBuffer
from sensorhub_affect.affect.models import ClassifierThresholds, FeatureVector
from sensorhub_affect.models import AccelerationSample

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SIZE = 30
DEFAULT_MAX_MAGNITUDE = 1000.0


def sanitize(value: float) -> float:
    """Return *value* unchanged if finite, else ``0.0``."""
    return value if math.isfinite(value) else 0.0


def compute_magnitude(x: float, y: float, z: float, *, limit: float = DEFAULT_MAX_MAGNITUDE) -> float:
    """Euclidean norm of a 3-axis vector, clamped to ``[0, limit]``."""
    return min(math.hypot(sanitize(x), sanitize(y), sanitize(z)), limit)


def reversal_rate(values: list[float]) -> float:
    """Fraction of sign reversals between consecutive non-zero deltas."""
    signs = [
        1 if b > a else -1
        for a, b in zip(values, values[1:])
        if b != a
    ]
    if len(signs) < 2:
        return 0.0
    reversals = sum(1 for s, t in zip(signs, signs[1:]) if s != t)
    return reversals / (len(signs) - 1)


class FeatureExtractor:
    """Maintain the magnitude window and derive a feature vector per sample.

    Parameters
    ----------
    window_size : int
        Number of magnitudes kept in the sliding window (default 30).
    thresholds : ClassifierThresholds | None
        Supplies ``still_delta`` and ``active_std`` for the temporal fields.
    max_magnitude : float
        Upper clamp applied to each magnitude (m/s²).
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        thresholds: ClassifierThresholds | None = None,
        max_magnitude: float = DEFAULT_MAX_MAGNITUDE,
    ) -> None:
        self._window: RingBuffer[float] = RingBuffer(window_size)
        self._thresholds = thresholds if thresholds is not None else ClassifierThresholds()
        self._max_magnitude = max_magnitude
        self._still_run = 0
        self._samples_since_activity: int | None = None

    @property
    def window_size(self) -> int:
        return self._window.capacity

    def observe(self, sample: AccelerationSample) -> FeatureVector:
        """Push one sample into the window and return the updated features."""
        if not all(math.isfinite(v) for v in (sample.x, sample.y, sample.z)):
            logger.debug("affect.sample_sanitized", timestamp=sample.timestamp)

        magnitude = compute_magnitude(sample.x, sample.y, sample.z, limit=self._max_magnitude)
        previous = self._window.newest()
        self._window.append(magnitude)

        delta = abs(magnitude - previous) if previous is not None else 0.0
        if delta < self._thresholds.still_delta:
            self._still_run += 1
        else:
            self._still_run = 0

        values = self._window.to_list()
        mean = statistics.fmean(values)
        std_dev = statistics.pstdev(values) if len(values) > 1 else 0.0

        if std_dev >= self._thresholds.active_std:
            self._samples_since_activity = 0
        elif self._samples_since_activity is not None:
            self._samples_since_activity += 1

        return FeatureVector(
            magnitude_mean=mean,
            magnitude_std_dev=std_dev,
            short_term_delta=delta,
            sample_count=len(values),
            still_run=self._still_run,
            samples_since_activity=self._samples_since_activity,
            reversal_rate=reversal_rate(values),
            timestamp=sanitize(sample.timestamp),
        )

    def reset(self) -> None:
        """Drop the window and all temporal counters."""
        self._window.clear()
        self._still_run = 0
        self._samples_since_activity = None
