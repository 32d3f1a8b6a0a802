"""
OpenCV-based observation source.

Supports:
- USB/CSI webcams (device_id as int, e.g., 0)
- Video files and device paths (device_id as str)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int) or device/file path (str).
        buffer_size: OpenCV capture buffer size (keeps live latency low).
        max_retries: Attempts at opening the device before giving up.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror frames horizontally.
        flip_vertical: Flip frames vertically.
        warmup_s: Pause after opening a live camera before the first read.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 1
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    warmup_s: float = 0.5

    @classmethod
    def from_camera_config(
        cls,
        camera_cfg: Dict[str, Any],
        device_id: Union[int, str],
        source_id: str = "camera",
        mirror: bool = False,
    ) -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from the camera config dict.

        Args:
            camera_cfg: Camera configuration dict (from config.yaml).
            device_id: Device chosen for the requested facing mode.
            source_id: Identifier for this source.
            mirror: Mirror frames on top of any configured flip.
        """
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        flip_h = bool(camera_cfg.get("flip_horizontal", False))
        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=device_id,
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 1),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=flip_h != bool(mirror),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1920, 1080))
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        """Check if this is a video file."""
        return isinstance(self.device_id, str) and os.path.isfile(self.device_id)

    def open(self) -> None:
        """Open the device and determine its delivered resolution."""
        if self._is_open:
            return

        self._initialize(retry_count=0)

        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._release_capture()
            raise RuntimeError(f"Device {self.device_id} opened but delivered no frames")
        frame = self._apply_transforms(frame)
        self._native_size = (frame.shape[1], frame.shape[0])

        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, native_size={self._native_size}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        """Initialize or reinitialize the capture device."""
        self._release_capture()

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            self._release_capture()
            if retry_count < self._opencv_config.max_retries - 1:
                logging.warning(f"Failed to open device {self.device_id}, retrying...")
                return self._initialize(retry_count + 1)
            raise RuntimeError(
                f"Failed to open device {self.device_id} after "
                f"{self._opencv_config.max_retries} attempts"
            )

        # Resolution is a request; the driver picks the closest mode it has.
        if not self.is_file and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

            actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
            actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
            actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
            logging.info(
                f"Camera actual settings - Resolution: ({actual_w}x{actual_h}), FPS: {actual_fps}"
            )

        if not self.is_file and self._opencv_config.warmup_s > 0:
            time.sleep(self._opencv_config.warmup_s)

        self._consecutive_failures = 0

    def read(self) -> Optional[FrameData]:
        """Read the next frame from the source."""
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()

        if not ret or frame is None:
            self._consecutive_failures += 1
            if self.is_file:
                logging.info("End of video file reached")
            elif self._consecutive_failures in (1, 10, 100):
                logging.warning(
                    f"Failed to read frame from {self.source_id} (failures: {self._consecutive_failures})"
                )
            return None

        self._consecutive_failures = 0
        frame = self._apply_transforms(frame)
        self._frame_index += 1

        return FrameData(
            frame=frame,
            width=frame.shape[1],
            height=frame.shape[0],
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured rotation and flips."""
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            if cfg.flip_horizontal and cfg.flip_vertical:
                flip_code = -1
            elif cfg.flip_horizontal:
                flip_code = 1
            else:
                flip_code = 0
            frame = cv2.flip(frame, flip_code)

        return frame

    def _release_capture(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def close(self) -> None:
        """Stop the stream and release the device."""
        was_open = self._is_open or self._cap is not None
        self._release_capture()
        self._is_open = False
        if was_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
