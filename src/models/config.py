"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DeviceId = Union[int, str]

# Inference profiles trade speed for accuracy.
PROFILE_MODELS: Dict[str, str] = {
    "lightweight": "yolov8n.pt",
    "high_accuracy": "yolov8l.pt",
}


@dataclass
class CameraConfig:
    """Camera configuration."""
    devices: Dict[str, DeviceId] = field(default_factory=lambda: {"rear": 0, "front": 1})
    default_facing: str = "rear"
    resolution: List[int] = field(default_factory=lambda: [1920, 1080])
    fps: int = 30
    buffer_size: int = 1
    max_retries: int = 1
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    mirror_front: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            devices=dict(d.get("devices") or {"rear": 0, "front": 1}),
            default_facing=d.get("default_facing", "rear"),
            resolution=list(d.get("resolution", [1920, 1080])),
            fps=d.get("fps", 30),
            buffer_size=d.get("buffer_size", 1),
            max_retries=d.get("max_retries", 1),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            mirror_front=d.get("mirror_front", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "devices": dict(self.devices),
            "default_facing": self.default_facing,
            "resolution": self.resolution,
            "fps": self.fps,
            "buffer_size": self.buffer_size,
            "max_retries": self.max_retries,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "mirror_front": self.mirror_front,
        }


@dataclass
class DetectionConfig:
    """Detector and detection loop configuration."""
    profile: str = "lightweight"
    model: Optional[str] = None
    min_score: float = 0.5
    max_detections: int = 20
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None
    device: Optional[str] = None
    target_fps: float = 30.0

    @property
    def model_path(self) -> str:
        """Explicit model wins over the profile's default weights."""
        return self.model or PROFILE_MODELS.get(self.profile, PROFILE_MODELS["lightweight"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            profile=d.get("profile", "lightweight"),
            model=d.get("model") or None,
            min_score=d.get("min_score", 0.5),
            max_detections=d.get("max_detections", 20),
            iou_threshold=d.get("iou_threshold", 0.45),
            classes=d.get("classes"),
            device=d.get("device"),
            target_fps=d.get("target_fps", 30.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "profile": self.profile,
            "min_score": self.min_score,
            "max_detections": self.max_detections,
            "iou_threshold": self.iou_threshold,
            "target_fps": self.target_fps,
        }
        if self.model:
            d["model"] = self.model
        if self.classes is not None:
            d["classes"] = self.classes
        if self.device:
            d["device"] = self.device
        return d


@dataclass
class OverlayConfig:
    """Overlay drawing style."""
    line_width: int = 4
    label_height: int = 30
    font_scale: float = 0.7

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            line_width=d.get("line_width", 4),
            label_height=d.get("label_height", 30),
            font_scale=d.get("font_scale", 0.7),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_width": self.line_width,
            "label_height": self.label_height,
            "font_scale": self.font_scale,
        }


@dataclass
class ExportConfig:
    output_dir: str = "output/captures"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExportConfig":
        return cls(output_dir=d.get("output_dir", "output/captures"))

    def to_dict(self) -> Dict[str, Any]:
        return {"output_dir": self.output_dir}


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    stream_fps: int = 15
    jpeg_quality: int = 80

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
            stream_fps=d.get("stream_fps", 15),
            jpeg_quality=d.get("jpeg_quality", 80),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "stream_fps": self.stream_fps,
            "jpeg_quality": self.jpeg_quality,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/object_viewer.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay", {}) or {}),
            export=ExportConfig.from_dict(d.get("export", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/object_viewer.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "overlay": self.overlay.to_dict(),
            "export": self.export.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
