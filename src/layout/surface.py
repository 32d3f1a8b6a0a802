"""
Surface sizing for the live view.

The video and the overlay share one on-screen size, scaled uniformly to fit the
container. The overlay's intrinsic resolution stays at the stream's native
resolution so detector coordinates map onto it one-to-one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

Size = Tuple[int, int]


@dataclass(frozen=True)
class SurfaceGeometry:
    """
    Attributes:
        scale: Uniform scale applied to the native size.
        display_size: On-screen (width, height) for both video and overlay.
        canvas_size: Intrinsic (width, height) of the overlay surface.
    """
    scale: float
    display_size: Size
    canvas_size: Size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scale": self.scale,
            "display_size": list(self.display_size),
            "canvas_size": list(self.canvas_size),
        }


def _check(name: str, size: Tuple[float, float]) -> None:
    if len(size) != 2 or size[0] <= 0 or size[1] <= 0:
        raise ValueError(f"{name} must be a positive (width, height), got {size}")


def fit(video_native_size: Tuple[int, int], container_size: Tuple[float, float]) -> SurfaceGeometry:
    """
    Fit the native video size inside the container, preserving aspect ratio.

    Args:
        video_native_size: Stream resolution (width, height).
        container_size: Available (width, height) on screen.

    Returns:
        SurfaceGeometry with the scaled display size and the unscaled canvas size.
    """
    _check("video_native_size", video_native_size)
    _check("container_size", container_size)

    vw, vh = video_native_size
    cw, ch = container_size
    scale = min(cw / vw, ch / vh)

    # Rounding may not push past the container on either axis.
    display_w = min(int(round(vw * scale)), int(cw))
    display_h = min(int(round(vh * scale)), int(ch))

    return SurfaceGeometry(
        scale=scale,
        display_size=(display_w, display_h),
        canvas_size=(int(vw), int(vh)),
    )
