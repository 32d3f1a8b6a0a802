"""
Detection loop.

Once a detector is attached and the video feed has a frame, every tick runs the
detector on the current frame, publishes the resulting Detection Set to the
session and redraws the live overlay. Ticks come from a RepeatingTask, so a new
detection never starts before the previous one has been published.

States:
    IDLE      - waiting for a model and a playable frame
    RUNNING   - detecting
    SUSPENDED - session is frozen; no detector calls
    STOPPED   - disposed (terminal)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.errors import InferenceError, ModelUnavailableError
from runtime.session import ERROR_INFERENCE, ViewerSession
from .scheduler import RepeatingTask

DETECTION_ERROR_MESSAGE = "Error during object detection"


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUSPENDED = "suspended"
    STOPPED = "stopped"


@dataclass
class LoopStats:
    """Runtime statistics for the detection loop."""
    cycles: int = 0
    failures: int = 0
    last_latency_ms: Optional[float] = None
    fps: float = 0.0
    last_cycle_ts: Optional[float] = None


class DetectionLoop:
    """
    Args:
        session: Session receiving detections and error state.
        feed: Anything with current_frame() -> Optional[FrameData] (VideoFeed).
        target_fps: Upper bound on ticks per second.
    """

    def __init__(self, session: ViewerSession, feed, target_fps: float = 30.0):
        self._session = session
        self._feed = feed
        self._interval = 1.0 / max(1.0, float(target_fps))
        self._model = None
        self._task: Optional[RepeatingTask] = None
        self._state = LoopState.IDLE
        self._state_lock = threading.Lock()
        self.stats = LoopStats()

    @property
    def state(self) -> LoopState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: LoopState) -> None:
        with self._state_lock:
            if self._state is LoopState.STOPPED:
                return
            if self._state is not state:
                logging.debug(f"Detection loop: {self._state.value} -> {state.value}")
            self._state = state

    def attach_model(self, model) -> None:
        self._model = model

    def start(self) -> None:
        """Arm the repeating task. Ticks stay idle until a model and a frame exist."""
        if self.state is LoopState.STOPPED:
            raise RuntimeError("Detection loop has been stopped")
        if self._task is not None:
            return
        self._task = RepeatingTask(self.tick, interval=self._interval, name="detection-loop")
        self._task.start()
        logging.info(f"Detection loop started (target interval {self._interval * 1000:.0f} ms)")

    def stop(self) -> None:
        """Cancel the pending iteration. Terminal."""
        with self._state_lock:
            self._state = LoopState.STOPPED
        if self._task is not None:
            self._task.cancel()
            self._task = None
        logging.info("Detection loop stopped")

    def tick(self) -> Optional[bool]:
        """
        One loop iteration. Returns False when the loop has to end.
        """
        if self.state is LoopState.STOPPED:
            return False

        if self._session.is_frozen:
            self._set_state(LoopState.SUSPENDED)
            return None

        model = self._model
        frame_data = self._feed.current_frame()
        if model is None or frame_data is None:
            if self.state is not LoopState.RUNNING:
                self._set_state(LoopState.IDLE)
            return None

        self._set_state(LoopState.RUNNING)
        started = time.monotonic()
        try:
            detections = model.detect(frame_data.frame)
        except ModelUnavailableError as e:
            logging.error(f"Detection error: {e}; stopping detection loop")
            self._session.set_error(DETECTION_ERROR_MESSAGE, ERROR_INFERENCE)
            with self._state_lock:
                self._state = LoopState.STOPPED
            return False
        except Exception as e:
            self.stats.failures += 1
            if not isinstance(e, InferenceError):
                logging.exception(f"Unexpected detector failure: {e}")
            else:
                logging.error(f"Detection error: {e}")
            self._session.set_error(DETECTION_ERROR_MESSAGE, ERROR_INFERENCE)
            self._session.update_stats({"inference_failures": self.stats.failures})
            return None

        latency_ms = (time.monotonic() - started) * 1000.0
        if self._session.publish_detections(detections):
            self._session.overlay.draw(detections)
            self._session.clear_error((ERROR_INFERENCE,))
        self._record_cycle(latency_ms)
        return None

    def _record_cycle(self, latency_ms: float) -> None:
        now = time.time()
        stats = self.stats
        if stats.last_cycle_ts is not None:
            dt = now - stats.last_cycle_ts
            if dt > 0:
                instant = 1.0 / dt
                stats.fps = instant if stats.fps == 0 else 0.9 * stats.fps + 0.1 * instant
        stats.cycles += 1
        stats.last_latency_ms = latency_ms
        stats.last_cycle_ts = now
        self._session.update_stats({
            "detect_fps": round(stats.fps, 2),
            "infer_latency_ms": round(latency_ms, 1),
            "detection_cycles": stats.cycles,
        })
