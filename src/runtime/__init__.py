"""
Runtime state shared by the viewer components.
"""

from .session import ViewerSession

__all__ = ["ViewerSession"]
