"""
Tests for freezing a frame into a Capture.
"""

from unittest.mock import patch

import cv2
import numpy as np
import pytest

from capture.freeze import FreezeController
from conftest import StaticFeed, make_frame_data
from models.errors import CaptureError
from models.session import CameraSession, Facing, SessionMode


def _controller(session, size=(640, 480), frame=True, native_size=None):
    session.set_camera(
        CameraSession(facing=Facing.REAR, native_size=native_size or size, source_id="rear-1")
    )
    feed = StaticFeed(make_frame_data(size=size, value=40) if frame else None)
    return FreezeController(session, feed), feed


def _decode(capture):
    return cv2.imdecode(np.frombuffer(capture.image, dtype=np.uint8), cv2.IMREAD_COLOR)


class TestCapture:
    def test_not_ready_leaves_session_live(self, session):
        freezer, _ = _controller(session, frame=False)

        with pytest.raises(CaptureError, match="not ready"):
            freezer.capture()

        assert session.mode is SessionMode.LIVE
        assert session.capture is None

    def test_capture_without_detections_is_plain_frame(self, session):
        freezer, _ = _controller(session)

        capture = freezer.capture()

        assert session.mode is SessionMode.FROZEN
        assert session.capture is capture
        assert capture.detections == ()
        assert capture.size == (640, 480)
        decoded = _decode(capture)
        assert decoded.shape == (480, 640, 3)
        assert (decoded == 40).all()

    def test_capture_bakes_in_overlay(self, session, person):
        freezer, _ = _controller(session)
        session.publish_detections([person])

        capture = freezer.capture()

        assert capture.detections == (person,)
        decoded = _decode(capture)
        x, y, w, h = person.bbox.as_int_tuple()
        assert tuple(decoded[y + h // 2, x]) == (0, 255, 0)
        # Interior of the box is untouched video
        assert tuple(decoded[y + h // 2, x + w // 2]) == (40, 40, 40)

    def test_capture_uses_overlay_resolution(self, session):
        freezer, _ = _controller(session, size=(320, 240), native_size=(640, 480))

        capture = freezer.capture()

        assert capture.size == (640, 480)

    def test_second_capture_returns_existing(self, session, person, dog):
        freezer, _ = _controller(session)
        session.publish_detections([person])
        first = freezer.capture()

        session.publish_detections([dog])
        second = freezer.capture()

        assert second is first
        assert second.detections == (person,)

    def test_freeze_resume_freeze(self, session, person, dog):
        freezer, _ = _controller(session)
        session.publish_detections([person])
        first = freezer.capture()

        discarded = freezer.resume()
        assert discarded is first
        assert session.mode is SessionMode.LIVE
        assert session.capture is None

        session.publish_detections([dog])
        second = freezer.capture()
        assert second is not first
        assert second.detections == (dog,)

    def test_resume_when_live_is_noop(self, session):
        freezer, _ = _controller(session)
        assert freezer.resume() is None
        assert session.mode is SessionMode.LIVE

    def test_encode_failure_returns_to_live(self, session, person):
        freezer, _ = _controller(session)
        session.publish_detections([person])

        with patch("capture.freeze.cv2.imencode", return_value=(False, None)):
            with pytest.raises(CaptureError):
                freezer.capture()

        assert session.mode is SessionMode.LIVE
        assert session.capture is None

    def test_capture_timestamp_is_set(self, session):
        freezer, _ = _controller(session)
        capture = freezer.capture()

        assert capture.timestamp > 0
        assert capture.iso_timestamp.endswith("Z")
