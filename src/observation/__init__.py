"""
Observation layer: camera sources and the live video feed.

Sources abstract where frames come from; CameraSource picks the device for a
facing mode and VideoFeed keeps the latest decoded frame of the active stream.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .camera_source import CameraSource, opencv_source_factory, CAMERA_ERROR_MESSAGE
from .video_feed import VideoFeed

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "CameraSource",
    "opencv_source_factory",
    "CAMERA_ERROR_MESSAGE",
    "VideoFeed",
]
