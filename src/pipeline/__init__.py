"""
Pipeline module for the object detection viewer.

- RepeatingTask: cancellable, single in-flight repeating task
- DetectionLoop: per-frame detect -> publish -> draw cycle
"""

from .scheduler import RepeatingTask
from .detection_loop import DetectionLoop, LoopState, LoopStats, DETECTION_ERROR_MESSAGE

__all__ = [
    "RepeatingTask",
    "DetectionLoop",
    "LoopState",
    "LoopStats",
    "DETECTION_ERROR_MESSAGE",
]
