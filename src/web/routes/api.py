from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse

from export.exporter import ExportFile, image_file, record_file
from layout.surface import fit
from models.errors import CaptureError, DeviceError
from models.session import Capture, describe_capture
from runtime.viewer import Viewer
from ..api_models import (
    CameraResponse,
    CaptureInfo,
    DetectionModel,
    DetectionsResponse,
    ModeResponse,
    SaveResponse,
    StatusResponse,
    SurfaceResponse,
)
from ..services.logs_service import LogsService
from ..services.stream_service import StreamService
from ..state import get_viewer

router = APIRouter()


def _require_capture(viewer: Viewer) -> Capture:
    capture = viewer.session.capture
    if capture is None:
        raise HTTPException(status_code=404, detail="No capture; freeze a frame first")
    return capture


def _file_response(export: ExportFile, inline: bool = False) -> Response:
    disposition = "inline" if inline else "attachment"
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'{disposition}; filename="{export.filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.get("/status", response_model=StatusResponse)
def status(viewer: Viewer = Depends(get_viewer)):
    """
    Session status for the page:
    - mode: live|frozen
    - is_loading / model_ready: detector load progress
    - error / error_kind / blocking: user-visible error slot
    - facing / native_size: active camera session
    - feed_ready / loop_state: whether detection is actually running
    - stats: detect fps, inference latency, cycle and failure counts
    """
    snap = viewer.session.snapshot()
    return StatusResponse(
        mode=snap["mode"],
        is_loading=snap["is_loading"],
        model_ready=snap["model_ready"],
        error=snap["error"],
        error_kind=snap["error_kind"],
        blocking=viewer.session.has_fatal_error,
        facing=snap["facing"],
        native_size=snap["native_size"],
        feed_ready=viewer.feed.ready,
        loop_state=viewer.loop.state.value,
        profile=viewer.config.detection.profile,
        detections=snap["detections"],
        capture=snap["capture"],
        stats=snap["stats"],
    )


@router.get("/surface", response_model=SurfaceResponse)
def surface(
    width: float = Query(..., gt=0, description="Container width in CSS pixels"),
    height: float = Query(..., gt=0, description="Container height in CSS pixels"),
    viewer: Viewer = Depends(get_viewer),
):
    camera = viewer.session.camera
    if camera is None:
        raise HTTPException(status_code=503, detail="No active camera")
    try:
        geometry = fit(camera.native_size, (width, height))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SurfaceResponse(**geometry.to_dict())


@router.get("/detections", response_model=DetectionsResponse)
def detections(viewer: Viewer = Depends(get_viewer)):
    session = viewer.session
    return DetectionsResponse(
        mode=session.mode.value,
        timestamp=session.detections_timestamp,
        detections=[DetectionModel(**d.to_dict()) for d in session.detections],
    )


@router.get("/stream.mjpg")
def stream(fps: int = 0, viewer: Viewer = Depends(get_viewer)):
    web_cfg = viewer.config.web
    gen = StreamService.mjpeg_stream(
        viewer,
        fps=fps or web_cfg.stream_fps,
        quality=web_cfg.jpeg_quality,
    )
    return StreamingResponse(gen, media_type="multipart/x-mixed-replace; boundary=frame")


@router.get("/snapshot.jpg")
def snapshot(viewer: Viewer = Depends(get_viewer)):
    frame = StreamService.live_frame(viewer)
    if frame is None:
        raise HTTPException(status_code=503, detail="Video frame not ready")
    jpg = StreamService.encode_jpeg(frame, viewer.config.web.jpeg_quality)
    if jpg is None:
        raise HTTPException(status_code=500, detail="Failed to encode JPEG")
    return Response(content=jpg, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


@router.post("/camera/toggle", response_model=CameraResponse)
def toggle_camera(viewer: Viewer = Depends(get_viewer)):
    try:
        camera = viewer.toggle_camera()
    except DeviceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return CameraResponse(facing=camera.facing.value, native_size=list(camera.native_size))


@router.post("/capture", response_model=CaptureInfo)
def capture(viewer: Viewer = Depends(get_viewer)):
    try:
        result = viewer.freezer.capture()
    except CaptureError as e:
        logging.info(f"Capture rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return CaptureInfo(**describe_capture(result))


@router.post("/resume", response_model=ModeResponse)
def resume(viewer: Viewer = Depends(get_viewer)):
    viewer.freezer.resume()
    return ModeResponse(mode=viewer.session.mode.value)


@router.get("/capture/image")
def capture_image(inline: bool = False, viewer: Viewer = Depends(get_viewer)):
    return _file_response(image_file(_require_capture(viewer)), inline=inline)


@router.get("/capture/record")
def capture_record(viewer: Viewer = Depends(get_viewer)):
    return _file_response(record_file(_require_capture(viewer)))


@router.post("/capture/save", response_model=SaveResponse)
def capture_save(viewer: Viewer = Depends(get_viewer)):
    result = viewer.exporter.save(_require_capture(viewer))
    return SaveResponse(ok=result.ok, saved=result.saved, errors=result.errors)


@router.get("/logs/tail")
def logs_tail(lines: int = 200, viewer: Viewer = Depends(get_viewer)):
    log_path = viewer.config.log_path
    return {"path": log_path, "lines": LogsService.tail(log_path, lines=lines)}
