"""
Camera session, session mode and capture models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .detection import DetectionSet, EMPTY_SET


class Facing(str, Enum):
    """Which physical camera supplies the stream."""
    REAR = "rear"
    FRONT = "front"

    @property
    def opposite(self) -> "Facing":
        return Facing.FRONT if self is Facing.REAR else Facing.REAR


class SessionMode(str, Enum):
    LIVE = "live"
    FROZEN = "frozen"


@dataclass(frozen=True)
class CameraSession:
    """
    The currently open stream.

    Attributes:
        facing: Facing mode the stream was opened with.
        native_size: Stream resolution as (width, height).
        source_id: Identifier of the observation source holding the device.
    """
    facing: Facing
    native_size: Tuple[int, int]
    source_id: str


@dataclass(frozen=True)
class Capture:
    """
    A frozen frame with its overlay baked in.

    Attributes:
        image: PNG-encoded composited snapshot.
        frame: The composited snapshot as a BGR array (canvas intrinsic size).
        detections: Detection Set published last before the freeze.
        timestamp: Unix timestamp of the freeze.
    """
    image: bytes
    frame: np.ndarray = field(repr=False)
    detections: DetectionSet = EMPTY_SET
    timestamp: float = 0.0

    @property
    def unix_millis(self) -> int:
        return int(self.timestamp * 1000)

    @property
    def iso_timestamp(self) -> str:
        """ISO-8601 UTC timestamp with millisecond precision."""
        dt = datetime.fromtimestamp(self.timestamp, tz=timezone.utc)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.frame.shape[:2]
        return (w, h)


def describe_capture(capture: Optional[Capture]) -> Optional[dict]:
    """Small JSON-friendly summary for status endpoints."""
    if capture is None:
        return None
    return {
        "timestamp": capture.iso_timestamp,
        "unix_millis": capture.unix_millis,
        "detections": len(capture.detections),
        "size": list(capture.size),
    }
