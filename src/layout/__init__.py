"""
On-screen geometry for the live video and its overlay.
"""

from .surface import SurfaceGeometry, fit

__all__ = ["SurfaceGeometry", "fit"]
