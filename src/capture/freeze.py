"""
Freeze/capture.

capture() suspends the detection loop, snapshots the current video frame at
the overlay's intrinsic resolution, bakes the last published Detection Set into
it and keeps the PNG-encoded result as the session's Capture. resume() throws
the Capture away and returns to live view.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import cv2

from models.errors import CaptureError
from models.session import Capture
from rendering.overlay import OverlayStyle, composite, new_surface, render
from runtime.session import ViewerSession


class FreezeController:
    """
    Args:
        session: Session owning mode, detections and the overlay surface.
        feed: Anything with current_frame() -> Optional[FrameData] (VideoFeed).
        style: Overlay style used for the baked-in boxes.
    """

    def __init__(self, session: ViewerSession, feed, style: Optional[OverlayStyle] = None):
        self._session = session
        self._feed = feed
        self._style = style or session.overlay.style
        self._lock = threading.Lock()

    def capture(self) -> Capture:
        """
        Freeze the current frame with its overlay.

        Already frozen: the existing Capture is returned unchanged.

        Raises:
            CaptureError: No playable frame (no state change), or encoding failed.
        """
        with self._lock:
            existing = self._session.capture
            if self._session.is_frozen and existing is not None:
                logging.debug("Capture ignored: session already frozen")
                return existing

            frame_data = self._feed.current_frame()
            if frame_data is None:
                raise CaptureError("Video frame not ready")

            if not self._session.begin_freeze():
                raise CaptureError("Session is already frozen")
            detections = self._session.detections

            try:
                image, composited = self._compose(frame_data.frame, detections)
            except CaptureError:
                self._session.resume()
                raise

            capture = Capture(
                image=image,
                frame=composited,
                detections=detections,
                timestamp=time.time(),
            )
            self._session.attach_capture(capture)
            logging.info(
                f"Captured frame {capture.size[0]}x{capture.size[1]} "
                f"with {len(detections)} detections"
            )
            return capture

    def _compose(self, frame, detections):
        canvas_w, canvas_h = self._session.overlay.size
        frame_h, frame_w = frame.shape[:2]
        if canvas_w <= 0 or canvas_h <= 0:
            canvas_w, canvas_h = frame_w, frame_h

        snapshot = frame.copy()
        if (frame_w, frame_h) != (canvas_w, canvas_h):
            snapshot = cv2.resize(snapshot, (canvas_w, canvas_h), interpolation=cv2.INTER_LINEAR)

        if detections:
            overlay = render(new_surface((canvas_w, canvas_h)), detections, self._style)
            snapshot = composite(snapshot, overlay)

        ok, buf = cv2.imencode(".png", snapshot)
        if not ok:
            raise CaptureError("Failed to encode PNG")
        return buf.tobytes(), snapshot

    def resume(self) -> Optional[Capture]:
        """Discard the Capture and go back to live. No-op when already live."""
        with self._lock:
            if not self._session.is_frozen:
                return None
            discarded = self._session.resume()
            logging.info("Resumed live view")
            return discarded
