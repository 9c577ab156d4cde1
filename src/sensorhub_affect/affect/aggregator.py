"""State aggregation — confidence-weighted blending of recent emotions.

A single classification is too jittery to display directly.  The
aggregator maps each emotion onto a canonical point in the
(arousal, valence, stress, focus) space and averages a short trailing
window of them, weighting each by its confidence.
"""

from __future__ import annotations

import math
from typing import Sequence

from sensorhub_affect.affect.models import AffectiveState, DetectedEmotion, EmotionType

# (arousal, valence, stress, focus) per emotion.  UNKNOWN has no entry and
# is left out of the blend entirely.
CANONICAL_CONTRIBUTIONS: dict[EmotionType, tuple[float, float, float, float]] = {
    EmotionType.CALM: (0.2, 0.7, 0.1, 0.6),
    EmotionType.STRESSED: (0.8, 0.3, 0.9, 0.4),
    EmotionType.ACTIVE: (0.9, 0.6, 0.5, 0.7),
    EmotionType.RESTING: (0.3, 0.5, 0.2, 0.5),
    EmotionType.ANXIOUS: (0.7, 0.2, 0.8, 0.3),
    EmotionType.FOCUSED: (0.6, 0.7, 0.3, 0.9),
    EmotionType.DISTRACTED: (0.5, 0.4, 0.6, 0.2),
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class StateAggregator:
    """Pure reducer from recent :class:`DetectedEmotion` values to state."""

    def __init__(
        self,
        contributions: dict[EmotionType, tuple[float, float, float, float]] | None = None,
    ) -> None:
        self._contributions = CANONICAL_CONTRIBUTIONS if contributions is None else contributions

    def aggregate(self, recent: Sequence[DetectedEmotion]) -> AffectiveState:
        """Blend *recent* (most recent last) into an :class:`AffectiveState`.

        Returns the neutral state when the input is empty or carries no
        usable weight.
        """
        totals = [0.0, 0.0, 0.0, 0.0]
        total_weight = 0.0

        for detected in recent:
            contribution = self._contributions.get(detected.emotion)
            weight = detected.confidence
            if contribution is None or not math.isfinite(weight) or weight <= 0:
                continue
            total_weight += weight
            for i, value in enumerate(contribution):
                totals[i] += weight * value

        timestamp = recent[-1].timestamp if recent else None
        if total_weight <= 0:
            return AffectiveState(timestamp=timestamp)

        arousal, valence, stress, focus = (_clamp(t / total_weight) for t in totals)
        return AffectiveState(
            arousal=arousal,
            valence=valence,
            stress=stress,
            focus=focus,
            timestamp=timestamp,
        )
