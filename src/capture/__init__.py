"""
Freeze/capture of the annotated live frame.
"""

from .freeze import FreezeController

__all__ = ["FreezeController"]
