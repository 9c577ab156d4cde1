"""Emotion classifier — ordered rule policy over acceleration features.

The policy maps a :class:`FeatureVector` to exactly one
:class:`EmotionType`.  Rules are evaluated as a fixed priority list and the
first match wins:

==========  =================================================================
Emotion     Condition
==========  =================================================================
ACTIVE      high std dev, high delta, mean elevated above gravity
STRESSED    high std dev, very high delta (mean not elevated)
FOCUSED     near-zero std dev over a long still run, shortly after activity
RESTING     near-zero std dev over a long still run, at the gravity baseline
CALM        low std dev at the gravity baseline
DISTRACTED  std dev above calm with frequent delta sign reversals
ANXIOUS     low-to-moderate std dev with small deltas (rhythmic oscillation)
UNKNOWN     nothing matched, or the window is still warming up
==========  =================================================================

Confidence grows with how far each tested feature sits beyond its
threshold; ``factors`` lists exactly the feature values the rule tested.
"""

from __future__ import annotations

from typing import Callable, Iterable

import structlog

from sensorhub_affect.affect.features import DEFAULT_WINDOW_SIZE
from sensorhub_affect.affect.models import (
    ClassifierThresholds,
    DetectedEmotion,
    EmotionType,
    FeatureVector,
)

logger = structlog.get_logger(__name__)

# Confidence of a rule matched exactly on its thresholds.
CONFIDENCE_FLOOR = 0.3

# (emotion, margins, factors) for a matched rule, ``None`` otherwise.
RuleMatch = tuple[EmotionType, list[float], dict[str, float]]
Rule = Callable[[FeatureVector, ClassifierThresholds], "RuleMatch | None"]


# ── Confidence helpers ───────────────────────────────────────


def margin_above(value: float, threshold: float) -> float:
    """Normalised distance of *value* above *threshold*, in [0, 1]."""
    if threshold <= 0:
        return 1.0 if value > threshold else 0.0
    return max(0.0, min(1.0, (value - threshold) / threshold))


def margin_below(value: float, threshold: float) -> float:
    """Normalised distance of *value* below *threshold*, in [0, 1]."""
    if threshold <= 0:
        return 1.0 if value < threshold else 0.0
    return max(0.0, min(1.0, (threshold - value) / threshold))


def rule_confidence(margins: Iterable[float]) -> float:
    """Map per-feature margins to a confidence in ``[CONFIDENCE_FLOOR, 1]``."""
    margins = list(margins)
    if not margins:
        return CONFIDENCE_FLOOR
    mean_margin = sum(margins) / len(margins)
    return max(CONFIDENCE_FLOOR, min(1.0, CONFIDENCE_FLOOR + (1 - CONFIDENCE_FLOOR) * mean_margin))


# ── Rules (priority order) ───────────────────────────────────


def _active(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    offset = f.magnitude_mean - t.gravity
    if (
        f.magnitude_std_dev >= t.active_std
        and f.short_term_delta >= t.active_delta
        and offset >= t.active_mean_offset
    ):
        return (
            EmotionType.ACTIVE,
            [
                margin_above(f.magnitude_std_dev, t.active_std),
                margin_above(f.short_term_delta, t.active_delta),
                margin_above(offset, t.active_mean_offset),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "short_term_delta": f.short_term_delta,
                "magnitude_mean": f.magnitude_mean,
            },
        )
    return None


def _stressed(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    if f.magnitude_std_dev >= t.active_std and f.short_term_delta >= t.stressed_delta:
        return (
            EmotionType.STRESSED,
            [
                margin_above(f.magnitude_std_dev, t.active_std),
                margin_above(f.short_term_delta, t.stressed_delta),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "short_term_delta": f.short_term_delta,
            },
        )
    return None


def _focused(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    since = f.samples_since_activity
    if (
        since is not None
        and since <= t.focus_memory
        and f.magnitude_std_dev <= t.focus_std
        and f.still_run >= t.focus_run
    ):
        return (
            EmotionType.FOCUSED,
            [
                margin_below(f.magnitude_std_dev, t.focus_std),
                margin_above(f.still_run, t.focus_run),
                margin_below(since, t.focus_memory),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "still_run": float(f.still_run),
                "samples_since_activity": float(since),
            },
        )
    return None


def _resting(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    offset = abs(f.magnitude_mean - t.gravity)
    if (
        f.magnitude_std_dev <= t.resting_std
        and offset <= t.rest_tolerance
        and f.still_run >= t.resting_run
    ):
        return (
            EmotionType.RESTING,
            [
                margin_below(f.magnitude_std_dev, t.resting_std),
                margin_below(offset, t.rest_tolerance),
                margin_above(f.still_run, t.resting_run),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "magnitude_mean": f.magnitude_mean,
                "still_run": float(f.still_run),
            },
        )
    return None


def _calm(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    offset = abs(f.magnitude_mean - t.gravity)
    if f.magnitude_std_dev <= t.calm_std and offset <= t.rest_tolerance:
        return (
            EmotionType.CALM,
            [
                margin_below(f.magnitude_std_dev, t.calm_std),
                margin_below(offset, t.rest_tolerance),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "magnitude_mean": f.magnitude_mean,
            },
        )
    return None


def _distracted(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    if f.magnitude_std_dev > t.calm_std and f.reversal_rate >= t.distracted_reversal_rate:
        return (
            EmotionType.DISTRACTED,
            [
                margin_above(f.magnitude_std_dev, t.calm_std),
                margin_above(f.reversal_rate, t.distracted_reversal_rate),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "reversal_rate": f.reversal_rate,
            },
        )
    return None


def _anxious(f: FeatureVector, t: ClassifierThresholds) -> RuleMatch | None:
    if (
        t.calm_std < f.magnitude_std_dev <= t.anxious_std
        and f.short_term_delta <= t.anxious_delta
    ):
        return (
            EmotionType.ANXIOUS,
            [
                margin_above(f.magnitude_std_dev, t.calm_std),
                margin_below(f.short_term_delta, t.anxious_delta),
            ],
            {
                "magnitude_std_dev": f.magnitude_std_dev,
                "short_term_delta": f.short_term_delta,
            },
        )
    return None


RULES: tuple[Rule, ...] = (
    _active,
    _stressed,
    _focused,
    _resting,
    _calm,
    _distracted,
    _anxious,
)


# ── Classifier ───────────────────────────────────────────────


class EmotionClassifier:
    """Stateless classifier over :class:`FeatureVector` values.

    Parameters
    ----------
    window_size : int
        Samples required before any label other than UNKNOWN is emitted.
    thresholds : ClassifierThresholds | None
        Rule constants; defaults are used when omitted.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        thresholds: ClassifierThresholds | None = None,
    ) -> None:
        self._window_size = window_size
        self._thresholds = thresholds if thresholds is not None else ClassifierThresholds()

    @property
    def thresholds(self) -> ClassifierThresholds:
        return self._thresholds

    def classify(self, features: FeatureVector) -> DetectedEmotion:
        """Return the first matching rule's emotion, or UNKNOWN."""
        if features.sample_count < self._window_size:
            return DetectedEmotion(timestamp=features.timestamp)

        for rule in RULES:
            match = rule(features, self._thresholds)
            if match is None:
                continue
            emotion, margins, factors = match
            return DetectedEmotion(
                emotion=emotion,
                confidence=rule_confidence(margins),
                factors=factors,
                timestamp=features.timestamp,
            )

        logger.debug(
            "affect.no_rule_matched",
            std_dev=features.magnitude_std_dev,
            delta=features.short_term_delta,
        )
        return DetectedEmotion(timestamp=features.timestamp)
