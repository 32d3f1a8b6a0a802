"""
Viewer composition root.

Builds one ViewerSession and the components that act on it (camera source,
video feed, detection loop, model loader, freeze controller, exporter), and
owns their start-up and disposal.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from capture.freeze import FreezeController
from export.exporter import Exporter
from inference.backend import load_detector
from inference.loader import LoadFn, ModelLoader
from models.config import Config
from models.errors import DeviceError
from models.session import CameraSession, Facing
from observation.camera_source import CameraSource, SourceFactory, opencv_source_factory
from observation.video_feed import VideoFeed
from pipeline.detection_loop import DetectionLoop
from rendering.overlay import OverlayStyle, OverlaySurface
from .session import ViewerSession


class Viewer:
    """
    Example:
        viewer = Viewer(Config.from_dict(cfg))
        viewer.start()
        try:
            serve(viewer)
        finally:
            viewer.dispose()
    """

    def __init__(
        self,
        config: Config,
        source_factory: Optional[SourceFactory] = None,
        load_fn: LoadFn = load_detector,
    ):
        self.config = config
        style = OverlayStyle.from_config(config.overlay)
        self.session = ViewerSession(overlay=OverlaySurface(style=style))

        self.camera = CameraSource(
            self.session,
            source_factory or opencv_source_factory(config.camera.to_dict()),
            default_facing=Facing(config.camera.default_facing),
        )
        self.feed = VideoFeed(self.camera, self.session, fps=config.camera.fps)
        self.loop = DetectionLoop(self.session, self.feed, target_fps=config.detection.target_fps)
        self.loader = ModelLoader(
            config.detection,
            self.session,
            on_ready=self._on_model_ready,
            load_fn=load_fn,
        )
        self.freezer = FreezeController(self.session, self.feed, style=style)
        self.exporter = Exporter(config.export.output_dir)

        self._lock = threading.Lock()
        self._started = False
        self._disposed = False

    def _on_model_ready(self, model) -> None:
        with self._lock:
            if self._disposed:
                model.close()
                return
            self.loop.attach_model(model)
            self.loop.start()

    def start(self, background_load: bool = True) -> None:
        """
        Begin loading the model and open the default camera.

        A camera failure is reported on the session; the viewer keeps serving so
        the user can see the error and try the other camera.
        """
        with self._lock:
            if self._started:
                return
            self._started = True

        if background_load:
            self.loader.start()
        else:
            self.loader.load()

        try:
            self.camera.acquire()
        except DeviceError as e:
            logging.error(f"Camera unavailable at start-up: {e}")
        self.feed.start()

    def toggle_camera(self) -> CameraSession:
        """
        Raises:
            DeviceError: Neither camera could be opened.
        """
        return self.camera.toggle()

    def dispose(self) -> None:
        """Stop the loop and release the camera and model. Safe to call twice."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True

        self.loop.stop()
        self.feed.stop()
        self.camera.release()
        self.loader.close()
        logging.info("Viewer disposed")
