"""
Detection loop for the VisionClerk client.

Two cooperative tasks share the frame source. The capture task reads frames
at camera rate and publishes each one for display. The inference chain awaits
one detection on the latest frame, publishes the result, yields to the event
loop and schedules the next tick. A new inference is never requested before
the previous one resolved, so the inference rate degrades with model latency
instead of queueing work, while the preview keeps the camera rate.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from inference.adapter import DetectorAdapter
from models.frame import FrameData
from models.prediction import Prediction
from observation import ObservationSource
from runtime.context import RuntimeContext


@dataclass
class LoopConfig:
    """
    Configuration for the detection loop.

    Attributes:
        min_interval: Seconds to yield between ticks (0 = next event-loop turn).
        stats_log_interval: Seconds between status log messages.
        idle_interval: Seconds to wait when no frame is available yet.
    """
    min_interval: float = 0.0
    stats_log_interval: float = 60.0
    idle_interval: float = 0.01


@dataclass
class LoopStats:
    """Runtime statistics for the detection loop."""
    tick_count: int = 0
    inference_count: int = 0
    skipped_count: int = 0
    failure_count: int = 0
    frames_read: int = 0
    frames_missed: int = 0
    max_in_flight: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
class DetectionLoop:
    """
    Drives continuous inference against a frame source and a detector.

    Owns the "latest predictions" value in ``ctx.predictions`` and the latest
    raw frame in ``ctx.latest_frame``; nothing else writes them. The overlay
    is composed at display time, so the preview advances at camera rate while
    the boxes advance at inference rate.

    Example:
        loop = DetectionLoop(source, detector, ctx, LoopConfig())
        task = asyncio.create_task(loop.run())
        ...
        loop.stop()
        await task
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: DetectorAdapter,
        ctx: RuntimeContext,
        config: LoopConfig,
    ):
        self.source = source
        self.detector = detector
        self.ctx = ctx
        self.config = config
        self.stats = LoopStats()
        self._in_flight = asyncio.Semaphore(1)
        self._in_flight_count = 0
        self._stop_event = asyncio.Event()
        self._latest: Optional[FrameData] = None
        self._callbacks: List[Callable[[FrameData, List[Prediction]], None]] = []

    def add_callback(self, callback: Callable[[FrameData, List[Prediction]], None]) -> None:
        """
        Add a callback invoked after each completed inference.

        Args:
            callback: Function taking (frame_data, predictions).
        """
        self._callbacks.append(callback)

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    @property
    def latest_frame(self) -> Optional[FrameData]:
        return self._latest

    async def run(self) -> None:
        """
        Run the capture task and the inference chain until stop() is called.

        Returns immediately if the model or capture is not ready; that is an
        acquisition failure and the status message already describes it.
        """
        state = self.ctx.loop_state
        if not state.can_infer:
            logging.error(
                f"Detection loop not started: model_ready={state.model_ready}, "
                f"capture_ready={state.capture_ready}"
            )
            return

        self.stats = LoopStats()
        logging.info(f"Detection loop started: source={self.source.source_id}")

        capture_task = asyncio.create_task(self._capture_frames())
        try:
            while not self._stop_event.is_set():
                await self.tick()
                self._handle_periodic_tasks()
                if self._latest is None:
                    await asyncio.sleep(self.config.idle_interval)
                else:
                    await asyncio.sleep(self.config.min_interval)
        finally:
            self._stop_event.set()
            await capture_task
            logging.info(
                f"Detection loop stopped: ticks={self.stats.tick_count}, "
                f"inferences={self.stats.inference_count}, failures={self.stats.failure_count}, "
                f"frames={self.stats.frames_read}"
            )

    def stop(self) -> None:
        """Signal the loop to stop after the current tick."""
        self._stop_event.set()

    async def capture(self) -> Optional[FrameData]:
        """
        Read one frame from the source and publish it as the latest frame.

        Returns None when the source is closed or has no decodable frame.
        """
        if not self.source.is_open:
            return None
        try:
            frame_data = await asyncio.to_thread(self.source.read)
        except Exception as e:
            logging.warning(f"Frame read failed: {e}")
            frame_data = None

        if frame_data is None:
            self.stats.frames_missed += 1
            return None

        self._latest = frame_data
        self.stats.frames_read += 1
        self.ctx.update_frame(frame_data.frame)
        return frame_data

    async def _capture_frames(self) -> None:
        while not self._stop_event.is_set():
            if await self.capture() is None:
                await asyncio.sleep(self.config.idle_interval)
            else:
                await asyncio.sleep(0)

    async def tick(self) -> bool:
        """
        Run one inference on the latest captured frame.

        Returns True if an inference completed and was published. A missing
        frame or a failure returns False; neither ends the loop.
        """
        async with self._in_flight:
            self._in_flight_count += 1
            self.stats.max_in_flight = max(self.stats.max_in_flight, self._in_flight_count)
            try:
                return await self._process_tick()
            finally:
                self._in_flight_count -= 1

    async def _process_tick(self) -> bool:
        self.stats.tick_count += 1
        frame_data = self._latest
        if frame_data is None or not self.source.is_open:
            self.stats.skipped_count += 1
            return False

        try:
            predictions = await self.detector.detect(frame_data.frame)
            self.ctx.predictions.publish(predictions)
            self.stats.inference_count += 1
        except Exception as e:
            self.stats.failure_count += 1
            logging.warning(f"Detection tick failed: {e}")
            logging.debug(traceback.format_exc())
            return False

        for callback in self._callbacks:
            try:
                callback(frame_data, predictions)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        if self.stats.inference_count % 30 == 0 and predictions:
            logging.debug(
                f"[DETECT] inference={self.stats.inference_count} "
                f"labels={[p.class_name for p in predictions]}"
            )
        return True

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-6)
            logging.info(
                f"Detection loop stats: ticks={self.stats.tick_count}, "
                f"inferences={self.stats.inference_count}, "
                f"skipped={self.stats.skipped_count}, failures={self.stats.failure_count}, "
                f"rate={self.stats.inference_count / elapsed:.1f}/s, "
                f"camera={self.stats.frames_read / elapsed:.1f} fps"
            )
            self.stats.last_stats_log_time = now


def create_loop_from_config(
    config: Dict[str, Any],
    source: ObservationSource,
    detector: DetectorAdapter,
    ctx: RuntimeContext,
) -> DetectionLoop:
    """Factory: build a DetectionLoop from the ``detection`` config section."""
    detection_cfg = config.get("detection", {}) or {}
    loop_config = LoopConfig(
        min_interval=float(detection_cfg.get("min_interval", 0.0)),
        stats_log_interval=float(detection_cfg.get("stats_log_interval", 60.0)),
    )
    return DetectionLoop(source, detector, ctx, loop_config)
