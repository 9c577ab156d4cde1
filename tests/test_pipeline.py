"""Tests for the affect pipeline orchestrator and the async sample stream."""

from __future__ import annotations

import asyncio
import math
import threading

import pytest

from conftest import WINDOW, accel, alternating_signal, constant_signal
from sensorhub_affect.affect.models import (
    AffectSnapshot,
    AffectUpdate,
    AffectiveState,
    ClassifierThresholds,
    EmotionType,
)
from sensorhub_affect.affect.pipeline import AffectPipeline
from sensorhub_affect.config import Settings
from sensorhub_affect.models import RotationSample, TouchEvent
from sensorhub_affect.streaming.pipeline import SampleStream


def feed(pipeline: AffectPipeline, samples) -> list[AffectUpdate]:
    return [pipeline.process(s) for s in samples]


# ── Orchestrator ─────────────────────────────────────────────


class TestAffectPipeline:
    def test_update_carries_features_emotion_and_state(self, pipeline):
        update = pipeline.process(accel(9.8, t=0.5))
        assert update.features is not None
        assert update.features.sample_count == 1
        assert update.emotion.emotion == EmotionType.UNKNOWN
        assert update.state == AffectiveState(timestamp=0.5)

    def test_calm_stream_lowers_arousal_and_stress(self, pipeline):
        updates = feed(pipeline, constant_signal(WINDOW + 10))
        assert updates[-1].emotion.emotion == EmotionType.CALM
        assert updates[-1].state.arousal < 0.5
        assert updates[-1].state.stress < 0.5

    def test_volatile_stream_raises_stress(self, pipeline):
        updates = feed(pipeline, alternating_signal(WINDOW + 10, 0.0, 20.0))
        assert updates[-1].emotion.emotion == EmotionType.STRESSED
        assert updates[-1].state.stress > 0.5

    def test_every_input_is_recorded(self, pipeline):
        feed(pipeline, constant_signal(WINDOW + 5))
        tracker = pipeline.tracker
        assert len(tracker.get_emotion_history()) == WINDOW + 5
        assert len(tracker.get_state_history()) == WINDOW + 5
        assert tracker.get_distribution() == {
            EmotionType.UNKNOWN: WINDOW - 1,
            EmotionType.CALM: 6,
        }

    def test_snapshot(self):
        pipeline = AffectPipeline(window_size=WINDOW, display_history_size=5)
        updates = feed(pipeline, constant_signal(WINDOW + 10))
        snap = pipeline.snapshot()
        assert snap.current_emotion == updates[-1].emotion
        assert snap.state == updates[-1].state
        assert len(snap.emotion_history) == 5
        assert snap.distribution[EmotionType.CALM] == 11
        assert 0.0 <= snap.average_arousal <= 1.0

    def test_snapshot_of_fresh_pipeline_is_neutral(self, pipeline):
        assert pipeline.snapshot() == AffectSnapshot()

    def test_reset_returns_to_initial_state(self, pipeline, captured_logs):
        feed(pipeline, alternating_signal(WINDOW * 2, 0.0, 20.0))
        pipeline.process_rotation(RotationSample(z=1.0))
        pipeline.reset()

        assert pipeline.snapshot() == AffectSnapshot()
        assert pipeline.tracker.get_average_arousal() == 0.5
        # Extractor window was cleared too: warm-up starts again.
        update = pipeline.process(accel(9.8))
        assert update.features.sample_count == 1
        assert update.emotion.emotion == EmotionType.UNKNOWN
        assert any(entry["event"] == "affect.pipeline_reset" for entry in captured_logs)

    def test_emotion_change_is_logged(self, pipeline, captured_logs):
        feed(pipeline, constant_signal(WINDOW))
        changes = [e for e in captured_logs if e["event"] == "affect.emotion_changed"]
        assert changes[-1]["previous"] == "unknown"
        assert changes[-1]["current"] == "calm"

    def test_outputs_are_deterministic(self):
        samples = (
            alternating_signal(WINDOW, 8.0, 20.0)
            + constant_signal(80, start=WINDOW)
            + alternating_signal(40, 9.0, 10.6, start=WINDOW + 80)
        )
        first = feed(AffectPipeline(window_size=WINDOW), samples)
        second = feed(AffectPipeline(window_size=WINDOW), samples)
        assert first == second

    def test_non_finite_input_never_escapes(self, pipeline):
        samples = [accel(math.nan if i % 3 else math.inf, x=-math.inf) for i in range(WINDOW * 2)]
        for update in feed(pipeline, samples):
            state = update.state
            assert math.isfinite(update.emotion.confidence)
            for value in (state.arousal, state.valence, state.stress, state.focus):
                assert math.isfinite(value)
                assert 0.0 <= value <= 1.0

    def test_aggregation_window_limits_blend(self):
        pipeline = AffectPipeline(window_size=WINDOW, aggregation_window=3)
        feed(pipeline, alternating_signal(WINDOW + 5, 0.0, 20.0))
        updates = feed(pipeline, constant_signal(WINDOW + 3, start=WINDOW + 5))
        # Only the last three (all CALM) emotions are blended.
        assert updates[-1].state.stress == pytest.approx(0.1)

    def test_from_settings(self):
        settings = Settings(
            affect_window_size=10,
            affect_display_history_size=3,
            affect_thresholds=ClassifierThresholds(calm_std=0.5),
        )
        pipeline = AffectPipeline.from_settings(settings)
        updates = feed(pipeline, constant_signal(10))
        assert updates[8].emotion.emotion == EmotionType.UNKNOWN
        assert updates[9].emotion.emotion == EmotionType.CALM
        assert len(pipeline.snapshot().emotion_history) == 3

    def test_rotation_and_touch_channels_share_history(self, pipeline):
        for i in range(25):
            pipeline.process_rotation(RotationSample(timestamp=i * 0.02))
        touches = [
            TouchEvent(timestamp=float(i), pressure=0.9, duration=120.0)
            for i in range(12)
        ]
        update = pipeline.process_touches(touches)
        assert update.features is None
        assert update.emotion.emotion == EmotionType.STRESSED
        distribution = pipeline.tracker.get_distribution()
        assert distribution[EmotionType.FOCUSED] == 6
        assert distribution[EmotionType.STRESSED] == 1

    def test_rejected_touch_input_records_nothing(self, pipeline):
        with pytest.raises(TypeError):
            pipeline.process_touches([TouchEvent(), accel(9.8)])
        assert pipeline.tracker.get_emotion_history() == []

        for i in range(11):
            pipeline.process_touches(TouchEvent(timestamp=float(i), pressure=0.9, duration=120.0))
        update = pipeline.process_touches(TouchEvent(timestamp=11.0, pressure=0.9, duration=120.0))
        assert update.emotion.emotion == EmotionType.STRESSED
        assert len(pipeline.tracker.get_emotion_history()) == 12

    def test_concurrent_producer_and_reader(self, pipeline):
        samples = alternating_signal(300, 8.0, 20.0)
        errors: list[Exception] = []
        done = threading.Event()

        def produce() -> None:
            feed(pipeline, samples)
            done.set()

        def read() -> None:
            try:
                while not done.is_set():
                    snap = pipeline.snapshot()
                    assert sum(snap.distribution.values()) >= len(snap.emotion_history)
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        reader = threading.Thread(target=read)
        producer = threading.Thread(target=produce)
        reader.start()
        producer.start()
        producer.join()
        reader.join()

        assert errors == []
        assert sum(pipeline.tracker.get_distribution().values()) == 300


# ── Async stream ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stream_publish_and_consume():
    """Samples published to the stream reach registered consumers as updates."""
    received: list[AffectUpdate] = []

    async def consumer(update: AffectUpdate) -> None:
        received.append(update)

    stream = SampleStream(AffectPipeline(window_size=WINDOW))
    stream.add_consumer(consumer)

    # Start stream in background
    task = asyncio.create_task(stream.start())

    await stream.publish(accel(9.8))

    # Give the consume loop time to process
    await asyncio.sleep(0.2)
    await stream.stop()
    task.cancel()

    assert len(received) == 1
    assert received[0].features.sample_count == 1


@pytest.mark.asyncio
async def test_stream_batch_classifies_after_warm_up():
    received: list[AffectUpdate] = []

    async def consumer(update: AffectUpdate) -> None:
        received.append(update)

    stream = SampleStream(AffectPipeline(window_size=WINDOW))
    stream.add_consumer(consumer)
    task = asyncio.create_task(stream.start())

    await stream.publish_batch(constant_signal(WINDOW + 2))
    await asyncio.wait_for(stream.join(), timeout=5.0)
    await stream.stop()
    task.cancel()

    assert len(received) == WINDOW + 2
    assert received[-1].emotion.emotion == EmotionType.CALM
    assert stream.pending == 0
    assert stream.processed_total == WINDOW + 2


@pytest.mark.asyncio
async def test_stream_dispatches_rotation_and_touches():
    received: list[AffectUpdate] = []

    async def consumer(update: AffectUpdate) -> None:
        received.append(update)

    stream = SampleStream(AffectPipeline(window_size=WINDOW))
    stream.add_consumer(consumer)
    task = asyncio.create_task(stream.start())

    await stream.publish(RotationSample(z=0.01))
    await stream.publish([TouchEvent(timestamp=0.0, pressure=0.5)])
    await asyncio.wait_for(stream.join(), timeout=5.0)
    await stream.stop()
    task.cancel()

    assert len(received) == 2
    assert all(update.features is None for update in received)


@pytest.mark.asyncio
async def test_stream_consumer_error_does_not_stop_loop(captured_logs):
    received: list[AffectUpdate] = []

    async def broken(update: AffectUpdate) -> None:
        raise RuntimeError("display gone")

    async def consumer(update: AffectUpdate) -> None:
        received.append(update)

    stream = SampleStream(AffectPipeline(window_size=WINDOW))
    stream.add_consumer(broken)
    stream.add_consumer(consumer)
    task = asyncio.create_task(stream.start())

    await stream.publish_batch(constant_signal(3))
    await asyncio.wait_for(stream.join(), timeout=5.0)
    await stream.stop()
    task.cancel()

    assert len(received) == 3
    errors = [e for e in captured_logs if e["event"] == "stream_pipeline.consumer_error"]
    assert len(errors) == 3
    assert errors[0]["error"] == "display gone"


@pytest.mark.asyncio
async def test_stream_accepts_single_touch_and_survives_bad_items(captured_logs):
    received: list[AffectUpdate] = []

    async def consumer(update: AffectUpdate) -> None:
        received.append(update)

    stream = SampleStream(AffectPipeline(window_size=WINDOW))
    stream.add_consumer(consumer)
    task = asyncio.create_task(stream.start())

    await stream.publish(TouchEvent(timestamp=0.0, pressure=0.5))
    await stream.publish([TouchEvent(timestamp=1.0), "not a touch"])  # type: ignore[list-item]
    await stream.publish(accel(9.8))
    await asyncio.wait_for(stream.join(), timeout=5.0)
    await stream.stop()
    task.cancel()

    assert len(received) == 2
    assert received[0].emotion.emotion == EmotionType.UNKNOWN
    assert received[1].features is not None
    errors = [e for e in captured_logs if e["event"] == "stream_pipeline.dispatch_error"]
    assert len(errors) == 1
    assert errors[0]["item_type"] == "list"
