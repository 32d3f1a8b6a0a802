"""
Live video feed.

Pumps frames from the CameraSource on a repeating task and keeps the most
recent one. The feed is "ready" when it holds a fresh frame from the stream
that is currently active.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from models.frame import FrameData
from pipeline.scheduler import RepeatingTask
from runtime.session import ViewerSession
from .camera_source import CameraSource


class VideoFeed:
    def __init__(
        self,
        camera: CameraSource,
        session: ViewerSession,
        fps: float = 30.0,
        stale_after_s: float = 2.0,
    ):
        self._camera = camera
        self._session = session
        self._interval = 1.0 / max(1.0, float(fps))
        self._stale_after_s = stale_after_s
        self._lock = threading.Lock()
        self._latest: Optional[FrameData] = None
        self._task: Optional[RepeatingTask] = None

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = RepeatingTask(self.pump, interval=self._interval, name="video-feed")
        self._task.start()

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        with self._lock:
            self._latest = None

    def pump(self) -> None:
        """Read one frame from the active stream."""
        frame_data = self._camera.read()
        if frame_data is None:
            return
        with self._lock:
            self._latest = frame_data
        self._session.update_stats({"last_frame_ts": frame_data.timestamp})

    def current_frame(self) -> Optional[FrameData]:
        """Latest frame of the active stream, or None when not ready."""
        with self._lock:
            latest = self._latest
        if latest is None:
            return None

        camera = self._session.camera
        if camera is None or latest.source != camera.source_id:
            return None
        if time.time() - latest.timestamp > self._stale_after_s:
            return None
        return latest

    @property
    def ready(self) -> bool:
        return self.current_frame() is not None
