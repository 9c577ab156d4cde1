"""Affect inference — rule-based emotion detection from phone motion.

This package implements a deterministic, explainable pipeline that turns
a live stream of acceleration samples into categorical emotion labels and
smooth dimensional affect (arousal, valence, stress, focus).

Architecture
------------
1. **Feature engineering** (`features.py`)
   - Sliding window of acceleration magnitudes (ring buffer)
   - Mean, population std dev, short-term delta
   - Stillness run, samples since activity, delta reversal rate

2. **Classification** (`classifier.py`, `channels.py`)
   - Ordered rule policy, first match wins, UNKNOWN during warm-up
   - Margin-based confidence and auditable factors
   - Supplementary gyroscope and touch channels

3. **Aggregation** (`aggregator.py`)
   - Confidence-weighted blend of canonical contribution vectors

4. **History** (`history.py`)
   - Bounded emotion / state buffers, distribution, running averages

5. **Orchestration** (`pipeline.py`)
   - :class:`AffectPipeline` wires the above under a single lock

Limitations
-----------
This is a heuristic for stable, low-jitter display indicators, not a
validated affect-recognition model.  Outputs are never diagnoses.
"""

from sensorhub_affect.affect.models import (
    AffectSnapshot,
    AffectUpdate,
    AffectiveState,
    ClassifierThresholds,
    DetectedEmotion,
    EmotionType,
    FeatureVector,
)

__all__ = [
    "AffectSnapshot",
    "AffectUpdate",
    "AffectiveState",
    "ClassifierThresholds",
    "DetectedEmotion",
    "EmotionType",
    "FeatureVector",
]
