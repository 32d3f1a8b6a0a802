from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DetectionModel(BaseModel):
    class_name: str = Field(..., alias="class")
    score: float
    bbox: List[float] = Field(..., description="[x, y, width, height] in native pixels")

    model_config = {"populate_by_name": True}


class DetectionsResponse(BaseModel):
    mode: str
    timestamp: Optional[float] = Field(None, description="Unix time the set was published")
    detections: List[DetectionModel]


class CaptureInfo(BaseModel):
    timestamp: str = Field(..., description="ISO-8601 capture time")
    unix_millis: int
    detections: int
    size: List[int]


class StatusResponse(BaseModel):
    """
    Polled by the page to drive the loading/error overlays and button states.
    """
    mode: str = Field(..., description="live|frozen")
    is_loading: bool
    model_ready: bool
    error: Optional[str] = None
    error_kind: Optional[str] = Field(None, description="device|load|inference")
    blocking: bool = Field(False, description="True when the error stops the session")
    facing: Optional[str] = None
    native_size: Optional[List[int]] = None
    feed_ready: bool = False
    loop_state: str
    profile: str
    detections: int = 0
    capture: Optional[CaptureInfo] = None
    stats: Dict[str, object] = Field(default_factory=dict)


class SurfaceResponse(BaseModel):
    scale: float
    display_size: List[int]
    canvas_size: List[int]


class CameraResponse(BaseModel):
    facing: str
    native_size: List[int]


class ModeResponse(BaseModel):
    mode: str


class SaveResponse(BaseModel):
    ok: bool
    saved: List[str]
    errors: Dict[str, str] = Field(default_factory=dict)
