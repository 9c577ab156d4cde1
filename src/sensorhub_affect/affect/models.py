"""Pydantic models for the affective inference subsystem.

These models represent:
- The categorical emotion label set
- The feature vector derived from the acceleration window
- Detected emotions with confidence and explainability factors
- Dimensional affect (arousal, valence, stress, focus)
- Tunable classifier thresholds
- Pipeline step results and display snapshots

Every value object is frozen: history is updated by replacing buffer
contents, never by mutating a recorded value.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# Standard gravity (m/s²), the magnitude of a device lying still.
STANDARD_GRAVITY = 9.80665

NEUTRAL_SCORE = 0.5


# ── Enums ─────────────────────────────────────────────────────


class EmotionType(str, Enum):
    """Closed set of emotion labels produced by the classifiers.

    ``UNKNOWN`` is the fallback and the only label emitted during warm-up.
    """

    CALM = "calm"
    STRESSED = "stressed"
    ACTIVE = "active"
    RESTING = "resting"
    ANXIOUS = "anxious"
    FOCUSED = "focused"
    DISTRACTED = "distracted"
    UNKNOWN = "unknown"


# ── Features ─────────────────────────────────────────────────


class FeatureVector(BaseModel):
    """Statistics over the current acceleration window.

    Recomputed on every sample by :class:`FeatureExtractor`; the temporal
    fields (``still_run``, ``samples_since_activity``, ``reversal_rate``)
    carry the history the stateless classifier needs.
    """

    model_config = ConfigDict(frozen=True)

    magnitude_mean: float = 0.0
    magnitude_std_dev: float = 0.0
    short_term_delta: float = 0.0
    sample_count: int = 0

    still_run: int = Field(
        0,
        description="Consecutive samples whose short-term delta stayed below the stillness threshold.",
    )
    samples_since_activity: int | None = Field(
        None,
        description="Samples since the window std dev last reached the activity threshold.",
    )
    reversal_rate: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Fraction of sign reversals among consecutive magnitude deltas.",
    )
    timestamp: float | None = None


# ── Classification output ────────────────────────────────────


class DetectedEmotion(BaseModel):
    """A single classification with confidence and contributing factors."""

    model_config = ConfigDict(frozen=True)

    emotion: EmotionType = EmotionType.UNKNOWN
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    factors: Mapping[str, float] = Field(
        default_factory=dict,
        validate_default=True,
        description="Feature name → value pairs the matching rule tested.",
    )
    timestamp: float | None = None

    @field_validator("factors", mode="after")
    @classmethod
    def _freeze_factors(cls, value: Mapping[str, float]) -> Mapping[str, float]:
        # Read-only view over a private copy.
        return MappingProxyType(dict(value))

    @field_serializer("factors")
    def _dump_factors(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value)


class AffectiveState(BaseModel):
    """Dimensional affect estimate, each score in [0, 1].

    The defaults are the neutral state returned whenever there is nothing
    to blend.
    """

    model_config = ConfigDict(frozen=True)

    arousal: float = Field(NEUTRAL_SCORE, ge=0.0, le=1.0, description="0 = calm, 1 = excited.")
    valence: float = Field(NEUTRAL_SCORE, ge=0.0, le=1.0, description="0 = negative, 1 = positive.")
    stress: float = Field(NEUTRAL_SCORE, ge=0.0, le=1.0, description="0 = relaxed, 1 = stressed.")
    focus: float = Field(NEUTRAL_SCORE, ge=0.0, le=1.0, description="0 = distracted, 1 = focused.")
    timestamp: float | None = None


# ── Thresholds ───────────────────────────────────────────────


class ClassifierThresholds(BaseModel):
    """Tunable constants for the acceleration rule policy.

    Magnitudes are in m/s², run lengths and memories in samples.  The
    defaults assume a sensor rate of tens of Hz and a 30-sample window.
    """

    model_config = ConfigDict(frozen=True)

    gravity: float = STANDARD_GRAVITY
    rest_tolerance: float = 0.5  # |mean − gravity| still counted as "at rest"

    # Volatility
    active_std: float = 2.0
    active_delta: float = 1.5
    active_mean_offset: float = 1.5
    stressed_delta: float = 3.0

    # Stillness
    still_delta: float = 0.05
    calm_std: float = 0.3
    resting_std: float = 0.05
    resting_run: int = 90
    focus_std: float = 0.05
    focus_run: int = 60
    focus_memory: int = 300

    # Oscillation
    anxious_std: float = 1.0
    anxious_delta: float = 0.6
    distracted_reversal_rate: float = 0.5


# ── Pipeline results ─────────────────────────────────────────


class AffectUpdate(BaseModel):
    """Result of pushing one input through :class:`AffectPipeline`."""

    model_config = ConfigDict(frozen=True)

    features: FeatureVector | None = None
    emotion: DetectedEmotion
    state: AffectiveState


class AffectSnapshot(BaseModel):
    """Pull-based view of the pipeline for display and export."""

    model_config = ConfigDict(frozen=True)

    current_emotion: DetectedEmotion | None = None
    state: AffectiveState = Field(default_factory=AffectiveState)
    emotion_history: list[DetectedEmotion] = Field(default_factory=list)
    distribution: dict[EmotionType, int] = Field(default_factory=dict)
    average_arousal: float = NEUTRAL_SCORE
    average_valence: float = NEUTRAL_SCORE
    average_stress: float = NEUTRAL_SCORE
    average_focus: float = NEUTRAL_SCORE
