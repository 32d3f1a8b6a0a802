"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import BoundingBox, Detection  # noqa: E402
from models.errors import InferenceError  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import ObservationConfig, ObservationSource  # noqa: E402
from runtime.session import ViewerSession  # noqa: E402


class FakeSource(ObservationSource):
    """In-memory camera: serves solid frames of a fixed size, or fails to open."""

    def __init__(self, config: ObservationConfig, size=(640, 480), fail=False, value=40):
        super().__init__(config)
        self._size = size
        self._fail = fail
        self._value = value
        self.closed_count = 0

    def open(self) -> None:
        if self._fail:
            raise RuntimeError(f"device {self.source_id} busy")
        self._is_open = True
        self._frame_index = 0
        self._native_size = self._size

    def read(self):
        if not self._is_open:
            return None
        w, h = self._size
        frame = np.full((h, w, 3), self._value, dtype=np.uint8)
        self._frame_index += 1
        return FrameData(
            frame=frame,
            width=w,
            height=h,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        if self._is_open:
            self.closed_count += 1
        self._is_open = False


class SourceRegistry:
    """Source factory for CameraSource that records every source it builds."""

    def __init__(self, failing=(), sizes=None):
        self.failing = set(failing)
        self.sizes = sizes or {}
        self.created = []

    def __call__(self, facing, source_id):
        source = FakeSource(
            ObservationConfig(source_id=source_id),
            size=self.sizes.get(facing.value, (640, 480)),
            fail=facing.value in self.failing,
        )
        self.created.append(source)
        return source

    @property
    def open_sources(self):
        return [s for s in self.created if s.is_open]


class StaticFeed:
    """Stand-in for VideoFeed returning a fixed frame (or nothing)."""

    def __init__(self, frame_data=None):
        self.frame_data = frame_data

    def current_frame(self):
        return self.frame_data


class FakeDetector:
    """Returns queued results in order; an Exception entry is raised instead."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = 0
        self.closed = False

    def detect(self, frame):
        self.calls += 1
        if not self.results:
            return ()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return tuple(result)

    def close(self):
        self.closed = True


def make_frame_data(size=(640, 480), value=40, source="rear-1", index=1):
    w, h = size
    return FrameData(
        frame=np.full((h, w, 3), value, dtype=np.uint8),
        width=w,
        height=h,
        timestamp=time.time(),
        frame_index=index,
        source=source,
    )


@pytest.fixture
def session():
    return ViewerSession()


@pytest.fixture
def person():
    return Detection(class_name="person", score=0.87, bbox=BoundingBox(x=100, y=120, width=200, height=300))


@pytest.fixture
def dog():
    return Detection(class_name="dog", score=0.51, bbox=BoundingBox(x=300, y=200, width=150, height=100))


@pytest.fixture
def inference_failure():
    return InferenceError("bad frame")


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  devices:
    rear: 0
    front: 1
  default_facing: "rear"
  resolution: [1280, 720]
  fps: 30

detection:
  profile: "lightweight"
  min_score: 0.5
  max_detections: 20

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "devices": {"rear": 0, "front": 1},
            "default_facing": "rear",
            "resolution": [1920, 1080],
            "fps": 30,
        },
        "detection": {
            "profile": "lightweight",
            "min_score": 0.5,
            "max_detections": 20,
            "iou_threshold": 0.45,
            "target_fps": 30,
        },
        "export": {"output_dir": "output/captures"},
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
