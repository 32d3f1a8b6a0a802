"""
Overlay renderer.

Draws detection boxes and label chips onto a BGRA surface. The surface is cleared
on every call, so its content depends only on the detections passed in. The same
renderer is used for the live overlay and for baking the overlay into a capture.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import OverlayConfig
from models.detection import Detection

Color = Tuple[int, int, int, int]


@dataclass(frozen=True)
class OverlayStyle:
    """Colors are BGRA."""
    box_color: Color = (0, 255, 0, 255)
    label_fill: Color = (0, 255, 0, 77)  # green at 30% opacity
    text_color: Color = (255, 255, 255, 255)
    line_width: int = 4
    label_height: int = 30
    font_scale: float = 0.7
    font_thickness: int = 2
    text_inset: int = 5
    text_baseline: int = 8

    @classmethod
    def from_config(cls, cfg: OverlayConfig) -> "OverlayStyle":
        return cls(
            line_width=int(cfg.line_width),
            label_height=int(cfg.label_height),
            font_scale=float(cfg.font_scale),
        )


DEFAULT_STYLE = OverlayStyle()


def new_surface(size: Tuple[int, int]) -> np.ndarray:
    """Allocate a transparent BGRA surface of (width, height)."""
    w, h = size
    return np.zeros((int(h), int(w), 4), dtype=np.uint8)


def _fill_over(surface: np.ndarray, p1: Tuple[int, int], p2: Tuple[int, int], color: Color) -> None:
    """Fill a rectangle by alpha-blending color over the existing BGRA pixels."""
    sh, sw = surface.shape[:2]
    x1, x2 = max(0, min(p1[0], p2[0])), min(sw, max(p1[0], p2[0]) + 1)
    y1, y2 = max(0, min(p1[1], p2[1])), min(sh, max(p1[1], p2[1]) + 1)
    if x1 >= x2 or y1 >= y2:
        return

    region = surface[y1:y2, x1:x2].astype(np.float32)
    src_a = color[3] / 255.0
    dst_a = region[..., 3:] / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)
    src_rgb = np.array(color[:3], dtype=np.float32)
    out_rgb = src_rgb * src_a + region[..., :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(out_rgb, out_a, out=np.zeros_like(out_rgb), where=out_a > 0)

    region[..., :3] = out_rgb
    region[..., 3:] = out_a * 255.0
    surface[y1:y2, x1:x2] = np.clip(region + 0.5, 0, 255).astype(np.uint8)


def _draw_detection(surface: np.ndarray, det: Detection, style: OverlayStyle) -> None:
    x, y, w, h = det.bbox.as_int_tuple()

    # Band first so the outline stays opaque where they overlap.
    _fill_over(surface, (x, y - style.label_height), (x + w, y), style.label_fill)
    cv2.rectangle(surface, (x, y), (x + w, y + h), style.box_color, style.line_width)
    cv2.putText(
        surface,
        det.label,
        (x + style.text_inset, y - style.text_baseline),
        cv2.FONT_HERSHEY_SIMPLEX,
        style.font_scale,
        style.text_color,
        style.font_thickness,
        cv2.LINE_AA,
    )


def render(surface: np.ndarray, detections: Sequence[Detection], style: OverlayStyle = DEFAULT_STYLE) -> np.ndarray:
    """
    Clear the surface and draw all detections in order.

    Later detections draw over earlier ones. Detections carrying the empty box
    sentinel are skipped.

    Args:
        surface: BGRA array, modified in place.
        detections: Detection Set to draw.
        style: Drawing style.

    Returns:
        The same surface, for chaining.
    """
    if surface.ndim != 3 or surface.shape[2] != 4:
        raise ValueError(f"overlay surface must be HxWx4, got shape {surface.shape}")

    surface[:] = 0
    for det in detections:
        if det.bbox.is_empty:
            continue
        _draw_detection(surface, det, style)
    return surface


def composite(frame: np.ndarray, overlay: Optional[np.ndarray]) -> np.ndarray:
    """
    Alpha-blend a BGRA overlay onto a BGR frame.

    The input frame is not modified. An overlay with a different size is scaled
    to the frame first.
    """
    out = frame.copy()
    if overlay is None or overlay.size == 0:
        return out

    fh, fw = frame.shape[:2]
    if overlay.shape[:2] != (fh, fw):
        overlay = cv2.resize(overlay, (fw, fh), interpolation=cv2.INTER_NEAREST)

    alpha_channel = overlay[..., 3]
    if not alpha_channel.any():
        return out

    alpha = alpha_channel.astype(np.float32)[..., None] / 255.0
    blended = out.astype(np.float32) * (1.0 - alpha) + overlay[..., :3].astype(np.float32) * alpha
    return np.clip(blended + 0.5, 0, 255).astype(np.uint8)


class OverlaySurface:
    """
    The live overlay: a BGRA buffer whose intrinsic size follows the stream's
    native resolution, independent of the on-screen size.
    """

    def __init__(self, size: Tuple[int, int] = (0, 0), style: OverlayStyle = DEFAULT_STYLE):
        self._lock = threading.Lock()
        self._style = style
        self._buffer = new_surface(size)

    @property
    def style(self) -> OverlayStyle:
        return self._style

    @property
    def size(self) -> Tuple[int, int]:
        """Intrinsic (width, height)."""
        with self._lock:
            h, w = self._buffer.shape[:2]
        return (w, h)

    def resize(self, size: Tuple[int, int]) -> None:
        """Match the intrinsic resolution to a new stream; drops prior drawing."""
        with self._lock:
            h, w = self._buffer.shape[:2]
            if (w, h) != tuple(size):
                self._buffer = new_surface(size)
            else:
                self._buffer[:] = 0

    def draw(self, detections: Sequence[Detection]) -> None:
        with self._lock:
            render(self._buffer, detections, self._style)

    def clear(self) -> None:
        with self._lock:
            self._buffer[:] = 0

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self._buffer.copy()
