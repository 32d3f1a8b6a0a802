"""
Error kinds raised by the viewer pipeline.
"""

from __future__ import annotations


class ViewerError(Exception):
    """Base class for viewer errors."""


class DeviceError(ViewerError):
    """Camera unavailable or access denied (after facing-mode fallback)."""


class LoadError(ViewerError):
    """The detector model failed to initialize."""


class InferenceError(ViewerError):
    """A single detection call failed. Transient."""


class ModelUnavailableError(InferenceError):
    """The detector was released; further inference is impossible."""


class CaptureError(ViewerError):
    """Capture attempted without a ready frame, or the snapshot could not be encoded."""
