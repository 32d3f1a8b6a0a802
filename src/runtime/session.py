"""
Viewer session state.

One ViewerSession owns the mutable state of a viewing session: the open camera
session, the latest Detection Set, the session mode, the live Capture, the
user-visible error slot and the overlay surface. Components get the session
passed in and go through its accessors; nothing here is a module-level global.

Writers:
- CameraSource: camera session
- DetectionLoop: detections, overlay (while live)
- FreezeController: mode, capture
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Iterable, Optional

from models.detection import DetectionSet, EMPTY_SET
from models.session import CameraSession, Capture, SessionMode, describe_capture
from rendering.overlay import OverlaySurface

ERROR_DEVICE = "device"
ERROR_LOAD = "load"
ERROR_INFERENCE = "inference"

# Kinds that block the session until the user acts.
FATAL_ERRORS = (ERROR_DEVICE, ERROR_LOAD)


class ViewerSession:
    def __init__(self, overlay: Optional[OverlaySurface] = None):
        self._lock = threading.RLock()
        self._mode = SessionMode.LIVE
        self._detections: DetectionSet = EMPTY_SET
        self._detections_ts: Optional[float] = None
        self._camera: Optional[CameraSession] = None
        self._capture: Optional[Capture] = None
        self._error: Optional[str] = None
        self._error_kind: Optional[str] = None
        self._is_loading = True
        self._model_ready = False
        self.overlay = overlay or OverlaySurface()
        self._stats: Dict[str, Any] = {
            "start_time": time.time(),
            "detect_fps": 0.0,
            "infer_latency_ms": None,
            "detection_cycles": 0,
            "inference_failures": 0,
        }

    # -- mode -----------------------------------------------------------------

    @property
    def mode(self) -> SessionMode:
        with self._lock:
            return self._mode

    @property
    def is_frozen(self) -> bool:
        return self.mode is SessionMode.FROZEN

    def begin_freeze(self) -> bool:
        """
        Suspend the live loop ahead of compositing a capture.

        Returns False (and changes nothing) if the session is already frozen.
        """
        with self._lock:
            if self._mode is SessionMode.FROZEN:
                return False
            self._mode = SessionMode.FROZEN
            self._capture = None
            return True

    def attach_capture(self, capture: Capture) -> None:
        with self._lock:
            self._capture = capture

    def resume(self) -> Optional[Capture]:
        """Back to Live; returns the discarded capture, if any."""
        with self._lock:
            discarded = self._capture
            self._capture = None
            self._mode = SessionMode.LIVE
            return discarded

    @property
    def capture(self) -> Optional[Capture]:
        with self._lock:
            return self._capture

    # -- detections -----------------------------------------------------------

    def publish_detections(self, detections: DetectionSet) -> bool:
        """
        Replace the Detection Set.

        Results that arrive after a freeze are dropped so the capture keeps the
        set that was current at the freeze instant.
        """
        with self._lock:
            if self._mode is SessionMode.FROZEN:
                return False
            self._detections = tuple(detections)
            self._detections_ts = time.time()
            return True

    @property
    def detections(self) -> DetectionSet:
        with self._lock:
            return self._detections

    @property
    def detections_timestamp(self) -> Optional[float]:
        with self._lock:
            return self._detections_ts

    # -- camera ---------------------------------------------------------------

    @property
    def camera(self) -> Optional[CameraSession]:
        with self._lock:
            return self._camera

    def set_camera(self, camera: Optional[CameraSession]) -> None:
        with self._lock:
            self._camera = camera
        if camera is not None:
            self.overlay.resize(camera.native_size)
        else:
            self.overlay.clear()

    # -- model ----------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._is_loading

    @property
    def model_ready(self) -> bool:
        with self._lock:
            return self._model_ready

    def set_model_ready(self, ready: bool) -> None:
        with self._lock:
            self._model_ready = ready
            self._is_loading = False

    # -- errors ---------------------------------------------------------------

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def error_kind(self) -> Optional[str]:
        with self._lock:
            return self._error_kind

    @property
    def has_fatal_error(self) -> bool:
        with self._lock:
            return self._error_kind in FATAL_ERRORS

    def set_error(self, message: str, kind: str) -> None:
        """
        Set the user-visible error slot.

        A transient error never replaces a blocking one, and a load error is
        never replaced.
        """
        with self._lock:
            if self._error_kind == ERROR_LOAD and kind != ERROR_LOAD:
                return
            if kind not in FATAL_ERRORS and self._error_kind in FATAL_ERRORS:
                return
            self._error = message
            self._error_kind = kind

    def clear_error(self, kinds: Iterable[str]) -> None:
        """Clear the error slot if it currently holds one of the given kinds."""
        with self._lock:
            if self._error_kind in tuple(kinds):
                self._error = None
                self._error_kind = None

    # -- stats ----------------------------------------------------------------

    def update_stats(self, stats: Dict[str, Any]) -> None:
        with self._lock:
            self._stats.update(stats)

    def get_stats_copy(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._stats)

    def snapshot(self) -> Dict[str, Any]:
        """Point-in-time view for the status endpoint."""
        with self._lock:
            camera = self._camera
            return {
                "mode": self._mode.value,
                "is_loading": self._is_loading,
                "model_ready": self._model_ready,
                "error": self._error,
                "error_kind": self._error_kind,
                "facing": camera.facing.value if camera else None,
                "native_size": list(camera.native_size) if camera else None,
                "detections": len(self._detections),
                "capture": describe_capture(self._capture),
                "stats": dict(self._stats),
            }
