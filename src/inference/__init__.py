"""
Object detector backends and model loading.
"""

from .backend import InferenceBackend, load_detector
from .loader import ModelLoader

__all__ = ["InferenceBackend", "load_detector", "ModelLoader"]
