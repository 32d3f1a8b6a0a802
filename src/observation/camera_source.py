"""
Camera source with facing-mode selection.

Holds at most one open ObservationSource. Acquiring a facing mode always
releases the held source first, then tries the requested facing and, if that
fails, the opposite facing once before giving up.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Dict, Optional

from models.errors import DeviceError
from models.frame import FrameData
from models.session import CameraSession, Facing
from runtime.session import ERROR_DEVICE, ERROR_INFERENCE, ViewerSession
from .base import ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig

CAMERA_ERROR_MESSAGE = "Failed to start camera"

SourceFactory = Callable[[Facing, str], ObservationSource]


def opencv_source_factory(camera_cfg: Dict[str, Any]) -> SourceFactory:
    """Build OpenCV sources for the devices mapped in camera.devices."""
    devices = camera_cfg.get("devices") or {}
    mirror_front = bool(camera_cfg.get("mirror_front", False))

    def factory(facing: Facing, source_id: str) -> ObservationSource:
        device_id = devices.get(facing.value)
        if device_id is None:
            raise DeviceError(f"No {facing.value} camera configured")
        cfg = OpenCVSourceConfig.from_camera_config(
            camera_cfg,
            device_id=device_id,
            source_id=source_id,
            mirror=mirror_front and facing is Facing.FRONT,
        )
        return OpenCVSource(cfg)

    return factory


class CameraSource:
    """
    Owns the single active camera stream of a ViewerSession.

    Args:
        session: Session receiving the camera session and error state.
        factory: Builds an unopened source for a facing mode.
        default_facing: Facing mode requested on first load.
    """

    def __init__(
        self,
        session: ViewerSession,
        factory: SourceFactory,
        default_facing: Facing = Facing.REAR,
    ):
        self._session = session
        self._factory = factory
        self._default_facing = default_facing
        self._source: Optional[ObservationSource] = None
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

    @property
    def active_source(self) -> Optional[ObservationSource]:
        with self._lock:
            return self._source

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._source is not None and self._source.is_open

    def _open(self, facing: Facing) -> ObservationSource:
        source_id = f"{facing.value}-{next(self._ids)}"
        source = self._factory(facing, source_id)
        try:
            source.open()
        except (RuntimeError, OSError) as e:
            source.close()
            raise DeviceError(f"{facing.value} camera unavailable: {e}") from e
        if source.native_size is None:
            source.close()
            raise DeviceError(f"{facing.value} camera reported no resolution")
        return source

    def acquire(self, facing: Optional[Facing] = None) -> CameraSession:
        """
        Open the camera for a facing mode, falling back to the opposite one.

        Raises:
            DeviceError: Both facing modes failed. No stream is left open.
        """
        facing = facing or self._default_facing
        with self._lock:
            self._release_locked()

            try:
                source = self._open(facing)
            except DeviceError as first:
                fallback = facing.opposite
                logging.warning(f"Camera error ({first}); trying {fallback.value} camera")
                try:
                    source = self._open(fallback)
                except DeviceError as second:
                    logging.error(f"Camera error ({second}); no camera available")
                    self._session.set_camera(None)
                    self._session.set_error(CAMERA_ERROR_MESSAGE, ERROR_DEVICE)
                    raise DeviceError(CAMERA_ERROR_MESSAGE) from second
                facing = fallback

            self._source = source
            camera = CameraSession(
                facing=facing,
                native_size=source.native_size,
                source_id=source.source_id,
            )
            self._session.set_camera(camera)
            self._session.clear_error((ERROR_DEVICE, ERROR_INFERENCE))
            logging.info(f"Camera acquired: facing={facing.value}, native_size={camera.native_size}")
            return camera

    def toggle(self) -> CameraSession:
        """Switch to the opposite facing mode of the current stream."""
        current = self._session.camera
        facing = current.facing if current else self._default_facing
        return self.acquire(facing.opposite)

    def read(self) -> Optional[FrameData]:
        with self._lock:
            if self._source is None:
                return None
            return self._source.read()

    def _release_locked(self) -> None:
        if self._source is not None:
            self._source.close()
            self._source = None

    def release(self) -> None:
        """Stop the held stream. Safe to call on every exit path."""
        with self._lock:
            self._release_locked()
        self._session.set_camera(None)
