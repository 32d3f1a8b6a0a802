"""
Detection models for object detection results.

Boxes are (x, y, width, height) in pixel coordinates of the detection surface,
which is the stream's native resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in surface pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        """True for the zero-size sentinel used when a detector gives no box."""
        return self.width <= 0 or self.height <= 0

    def as_list(self) -> List[float]:
        """Return as [x, y, width, height]."""
        return [float(self.x), float(self.y), float(self.width), float(self.height)]

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height) tuple."""
        return (int(round(self.x)), int(round(self.y)), int(round(self.width)), int(round(self.height)))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "BoundingBox":
        """Create from an [x, y, width, height] sequence."""
        if len(values) != 4:
            raise ValueError(f"bbox must have 4 values, got {len(values)}")
        return cls(x=float(values[0]), y=float(values[1]), width=float(values[2]), height=float(values[3]))


EMPTY_BOX = BoundingBox()


@dataclass(frozen=True)
class Detection:
    """
    A single object reported by the detector.

    Attributes:
        class_name: Human-readable class label.
        score: Confidence score in [0, 1].
        bbox: Bounding box; EMPTY_BOX when the detector reported none.
    """
    class_name: str
    score: float
    bbox: BoundingBox = EMPTY_BOX

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within [0, 1], got {self.score}")

    @property
    def percent(self) -> int:
        """Score as a rounded integer percentage."""
        return int(round(self.score * 100))

    @property
    def label(self) -> str:
        return f"{self.class_name} {self.percent}%"

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form used by the exported detection record."""
        return {
            "class": self.class_name,
            "score": float(self.score),
            "bbox": self.bbox.as_list(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Detection":
        bbox = d.get("bbox")
        return cls(
            class_name=str(d["class"]),
            score=float(d["score"]),
            bbox=BoundingBox.from_sequence(bbox) if bbox else EMPTY_BOX,
        )


# Ordered, immutable; replaced wholesale on every detection cycle.
DetectionSet = Tuple[Detection, ...]

EMPTY_SET: DetectionSet = ()


def detection_set(detections: Sequence[Detection]) -> DetectionSet:
    """Freeze a sequence of detections into a DetectionSet, keeping order."""
    return tuple(detections)


def detections_to_dicts(detections: Sequence[Detection]) -> List[Dict[str, Any]]:
    return [d.to_dict() for d in detections]
