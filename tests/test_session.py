"""
Tests for ViewerSession state handling.
"""

import numpy as np

from models.session import Capture, CameraSession, Facing, SessionMode
from runtime.session import ERROR_DEVICE, ERROR_INFERENCE, ERROR_LOAD


def _capture(dets=()):
    return Capture(image=b"png", frame=np.zeros((4, 4, 3), dtype=np.uint8), detections=tuple(dets), timestamp=1.0)


class TestMode:
    def test_starts_live_and_loading(self, session):
        assert session.mode is SessionMode.LIVE
        assert session.is_loading is True
        assert session.model_ready is False
        assert session.capture is None

    def test_begin_freeze_only_once(self, session):
        assert session.begin_freeze() is True
        assert session.is_frozen
        assert session.begin_freeze() is False

    def test_resume_discards_capture(self, session):
        session.begin_freeze()
        cap = _capture()
        session.attach_capture(cap)

        discarded = session.resume()

        assert discarded is cap
        assert session.capture is None
        assert session.mode is SessionMode.LIVE


class TestDetections:
    def test_publish_while_live(self, session, person):
        assert session.publish_detections([person]) is True
        assert session.detections == (person,)
        assert session.detections_timestamp is not None

    def test_publish_dropped_while_frozen(self, session, person, dog):
        session.publish_detections([person])
        session.begin_freeze()

        assert session.publish_detections([dog]) is False
        assert session.detections == (person,)


class TestCamera:
    def test_set_camera_resizes_overlay(self, session):
        session.set_camera(CameraSession(facing=Facing.FRONT, native_size=(1280, 720), source_id="front-1"))

        assert session.overlay.size == (1280, 720)
        assert session.snapshot()["facing"] == "front"
        assert session.snapshot()["native_size"] == [1280, 720]

    def test_clearing_camera_keeps_overlay_size(self, session):
        session.set_camera(CameraSession(facing=Facing.REAR, native_size=(640, 480), source_id="rear-1"))
        session.set_camera(None)

        assert session.camera is None
        assert session.overlay.size == (640, 480)

    def test_clearing_camera_drops_overlay_drawing(self, session, person):
        session.set_camera(CameraSession(facing=Facing.REAR, native_size=(640, 480), source_id="rear-1"))
        session.overlay.draw([person])
        assert session.overlay.snapshot().any()

        session.set_camera(None)

        assert not session.overlay.snapshot().any()


class TestErrors:
    def test_transient_error_does_not_replace_fatal(self, session):
        session.set_error("Failed to start camera", ERROR_DEVICE)
        session.set_error("Error during object detection", ERROR_INFERENCE)

        assert session.error == "Failed to start camera"
        assert session.error_kind == ERROR_DEVICE
        assert session.has_fatal_error

    def test_fatal_error_replaces_transient(self, session):
        session.set_error("Error during object detection", ERROR_INFERENCE)
        session.set_error("network error", ERROR_LOAD)

        assert session.error == "network error"
        assert session.has_fatal_error

    def test_load_error_is_never_replaced(self, session):
        session.set_error("network error", ERROR_LOAD)
        session.set_error("Failed to start camera", ERROR_DEVICE)
        session.set_error("Error during object detection", ERROR_INFERENCE)
        session.clear_error((ERROR_DEVICE, ERROR_INFERENCE))

        assert session.error == "network error"
        assert session.error_kind == ERROR_LOAD

    def test_clear_error_only_matching_kind(self, session):
        session.set_error("network error", ERROR_LOAD)
        session.clear_error((ERROR_DEVICE, ERROR_INFERENCE))
        assert session.error == "network error"

        session.clear_error((ERROR_LOAD,))
        assert session.error is None
        assert session.error_kind is None

    def test_model_ready_ends_loading(self, session):
        session.set_model_ready(False)
        assert session.is_loading is False
        assert session.model_ready is False


class TestSnapshot:
    def test_snapshot_describes_capture(self, session, person):
        session.begin_freeze()
        session.attach_capture(_capture([person]))

        snap = session.snapshot()

        assert snap["mode"] == "frozen"
        assert snap["capture"]["detections"] == 1
        assert snap["capture"]["unix_millis"] == 1000
        assert snap["capture"]["size"] == [4, 4]
