"""
Detection overlay drawing and compositing.
"""

from .overlay import OverlayStyle, OverlaySurface, composite, render

__all__ = ["OverlayStyle", "OverlaySurface", "composite", "render"]
