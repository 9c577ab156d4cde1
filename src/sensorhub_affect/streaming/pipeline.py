"""Async sample stream connecting a sensor producer → affect pipeline → consumers."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Sequence, Union

import structlog

from sensorhub_affect.affect.models import AffectUpdate
from sensorhub_affect.affect.pipeline import AffectPipeline
from sensorhub_affect.models import AccelerationSample, RotationSample, TouchEvent

logger = structlog.get_logger(__name__)

StreamItem = Union[AccelerationSample, RotationSample, TouchEvent, Sequence[TouchEvent]]
Consumer = Callable[[AffectUpdate], Awaitable[None]]


class SampleStream:
    """In-process async stream that buffers sensor samples, runs them through
    an :class:`AffectPipeline`, and forwards every :class:`AffectUpdate` to
    registered consumers (e.g. a display refresher).

    The stream decouples the sensor callback from inference using an
    :class:`asyncio.Queue`; the pipeline itself stays synchronous.
    """

    def __init__(self, pipeline: AffectPipeline, maxsize: int = 10_000) -> None:
        self._pipeline = pipeline
        self._queue: asyncio.Queue[StreamItem] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Consumer] = []
        self._running = False
        self._processed_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: Consumer) -> None:
        """Register an async callback that receives every update."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, item: StreamItem) -> None:
        """Enqueue a sample, a touch event or a batch of touch events."""
        await self._queue.put(item)

    async def publish_batch(self, items: Sequence[StreamItem]) -> None:
        for item in items:
            await self._queue.put(item)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the consume loop (run as a background task)."""
        self._running = True
        self._processed_total = 0
        logger.info("stream_pipeline.started", consumers=len(self._consumers))

        last_stats_time = time.monotonic()

        while self._running:
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                update = self._dispatch(item)
            except (TypeError, ValueError) as exc:
                logger.error(
                    "stream_pipeline.dispatch_error",
                    item_type=type(item).__name__,
                    error=str(exc),
                )
                self._queue.task_done()
                continue

            for consumer in self._consumers:
                try:
                    await consumer(update)
                except Exception as exc:
                    logger.error(
                        "stream_pipeline.consumer_error",
                        consumer=getattr(consumer, "__qualname__", repr(consumer)),
                        error=str(exc),
                    )

            self._processed_total += 1
            self._queue.task_done()

            # Periodic stats every 60 seconds
            now = time.monotonic()
            if now - last_stats_time >= 60:
                logger.info(
                    "stream_pipeline.stats",
                    processed_total=self._processed_total,
                    queue_pending=self._queue.qsize(),
                )
                last_stats_time = now

    async def stop(self) -> None:
        """Gracefully stop the consume loop."""
        self._running = False
        logger.info("stream_pipeline.stopped", processed_total=self._processed_total)

    async def join(self) -> None:
        """Wait until every queued item has been processed."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total

    # ── Internals ─────────────────────────────────────────────

    def _dispatch(self, item: StreamItem) -> AffectUpdate:
        if isinstance(item, AccelerationSample):
            return self._pipeline.process(item)
        if isinstance(item, RotationSample):
            return self._pipeline.process_rotation(item)
        if isinstance(item, TouchEvent):
            return self._pipeline.process_touches([item])
        return self._pipeline.process_touches(item)
