from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

import cv2
import numpy as np

from rendering.overlay import composite
from runtime.viewer import Viewer


class StreamService:
    @staticmethod
    def encode_jpeg(frame: np.ndarray, quality: int = 80) -> Optional[bytes]:
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        if not ok:
            return None
        return buf.tobytes()

    @staticmethod
    def live_frame(viewer: Viewer) -> Optional[np.ndarray]:
        """Current video frame with the live overlay on top, or None when not ready."""
        frame_data = viewer.feed.current_frame()
        if frame_data is None:
            return None
        return composite(frame_data.frame, viewer.session.overlay.snapshot())

    @staticmethod
    def mjpeg_stream(viewer: Viewer, fps: int = 15, quality: int = 80) -> Iterable[bytes]:
        """
        Yield MJPEG multipart chunks of the annotated live view.

        Frames are only pulled from the shared feed; the camera itself stays
        owned by the viewer.
        """
        fps = max(1, min(30, int(fps)))
        delay = 1.0 / fps
        last_index = None

        while True:
            frame_data = viewer.feed.current_frame()
            if frame_data is None or frame_data.frame_index == last_index:
                time.sleep(delay)
                continue
            last_index = frame_data.frame_index

            frame = composite(frame_data.frame, viewer.session.overlay.snapshot())
            jpg = StreamService.encode_jpeg(frame, quality)
            if jpg is None:
                logging.debug("Failed to encode stream frame")
                time.sleep(delay)
                continue
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)
