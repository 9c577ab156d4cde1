"""Sensor samples delivered by the producer side of the pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AccelerationSample(BaseModel):
    """A single tri-axial accelerometer reading (m/s², gravity included)."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = 0.0  # seconds, producer clock
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class RotationSample(BaseModel):
    """A single gyroscope reading (angular velocity in rad/s)."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class TouchEvent(BaseModel):
    """A completed touch interaction on the screen."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = 0.0
    x: float = 0.0
    y: float = 0.0
    pressure: float = Field(0.0, description="Normalised touch pressure (0–1).")
    duration: float = Field(0.0, description="Contact duration in milliseconds.")
