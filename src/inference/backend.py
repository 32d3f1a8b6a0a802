"""
Inference backend interface.

Backends take a BGR frame and return a Detection Set in the frame's pixel
coordinates, i.e. the native stream resolution.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from models.config import DetectionConfig
from models.detection import DetectionSet


class InferenceBackend(Protocol):
    def detect(self, frame: np.ndarray) -> DetectionSet:
        ...

    def close(self) -> None:
        ...


def load_detector(cfg: DetectionConfig) -> InferenceBackend:
    """
    Load the detector selected by the config.

    Raises:
        LoadError: Weights could not be fetched or the model failed to initialize.
    """
    from .ultralytics_backend import UltralyticsDetector

    return UltralyticsDetector(cfg)
