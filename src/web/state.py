"""
Access to the viewer owned by the running app.

The Viewer (and with it the ViewerSession) is created by the caller and handed
to create_app(); routes reach it through this dependency instead of a
module-level singleton.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from runtime.viewer import Viewer


def get_viewer(request: Request) -> Viewer:
    viewer = getattr(request.app.state, "viewer", None)
    if viewer is None:
        raise HTTPException(status_code=503, detail="Viewer not initialized")
    return viewer
