"""
Page routes for the viewer web interface.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from runtime.viewer import Viewer
from ..state import get_viewer

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
def viewer_page(request: Request, viewer: Viewer = Depends(get_viewer)):
    """Live camera view with capture controls."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": "Object Detection",
            "poll_ms": 1000,
            "profile": viewer.config.detection.profile,
        },
    )
