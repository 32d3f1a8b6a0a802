"""
Typed models for the object detection viewer.
"""

from .frame import FrameData
from .detection import (
    BoundingBox,
    Detection,
    DetectionSet,
    EMPTY_BOX,
    EMPTY_SET,
    detection_set,
    detections_to_dicts,
)
from .session import CameraSession, Capture, Facing, SessionMode
from .errors import (
    ViewerError,
    DeviceError,
    LoadError,
    InferenceError,
    ModelUnavailableError,
    CaptureError,
)
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    OverlayConfig,
    ExportConfig,
    WebConfig,
    PROFILE_MODELS,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Detection",
    "DetectionSet",
    "EMPTY_BOX",
    "EMPTY_SET",
    "detection_set",
    "detections_to_dicts",
    # Session
    "CameraSession",
    "Capture",
    "Facing",
    "SessionMode",
    # Errors
    "ViewerError",
    "DeviceError",
    "LoadError",
    "InferenceError",
    "ModelUnavailableError",
    "CaptureError",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "OverlayConfig",
    "ExportConfig",
    "WebConfig",
    "PROFILE_MODELS",
]
