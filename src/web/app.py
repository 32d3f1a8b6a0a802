"""
FastAPI application factory for the object detection viewer.

Routes:
- /        -> viewer page (Jinja2 template)
- /api/*   -> REST API (status, surface, detections, stream, capture, export)
"""

from __future__ import annotations

from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from runtime.viewer import Viewer
from .routes import pages, api


def create_app(viewer: Viewer, cors_origins: Sequence[str] = ()) -> FastAPI:
    """Create the FastAPI app bound to one viewer."""
    app = FastAPI(
        title="Object Detection Viewer",
        version="0.1.0",
        description="Live camera object detection with freeze and export",
    )
    app.state.viewer = viewer

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api.router, prefix="/api")
    app.include_router(pages.router)

    return app
