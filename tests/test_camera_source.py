"""
Tests for CameraSource facing-mode selection and fallback.
"""

import pytest

from conftest import SourceRegistry
from models.errors import DeviceError
from models.session import Facing
from observation.camera_source import CAMERA_ERROR_MESSAGE, CameraSource, opencv_source_factory
from runtime.session import ERROR_DEVICE, ERROR_INFERENCE, ERROR_LOAD


class TestAcquire:
    def test_default_rear_camera(self, session):
        registry = SourceRegistry(sizes={"rear": (1920, 1080)})
        camera = CameraSource(session, registry)

        cam = camera.acquire()

        assert cam.facing is Facing.REAR
        assert cam.native_size == (1920, 1080)
        assert session.camera == cam
        assert session.overlay.size == (1920, 1080)
        assert camera.is_active

    def test_falls_back_to_front(self, session):
        registry = SourceRegistry(failing={"rear"}, sizes={"front": (1280, 720)})
        camera = CameraSource(session, registry)

        cam = camera.acquire()

        assert cam.facing is Facing.FRONT
        assert cam.native_size == (1280, 720)
        assert session.error is None
        assert len(registry.open_sources) == 1

    def test_both_cameras_fail(self, session):
        registry = SourceRegistry(failing={"rear", "front"})
        camera = CameraSource(session, registry)

        with pytest.raises(DeviceError, match=CAMERA_ERROR_MESSAGE):
            camera.acquire()

        assert session.camera is None
        assert session.error == CAMERA_ERROR_MESSAGE
        assert session.error_kind == ERROR_DEVICE
        assert registry.open_sources == []
        assert not camera.is_active

    def test_success_clears_device_and_inference_errors(self, session):
        session.set_error("Failed to start camera", ERROR_DEVICE)
        CameraSource(session, SourceRegistry()).acquire()
        assert session.error is None

        session.set_error("Error during object detection", ERROR_INFERENCE)
        CameraSource(session, SourceRegistry()).acquire()
        assert session.error is None

    def test_success_keeps_load_error(self, session):
        session.set_error("network error", ERROR_LOAD)
        CameraSource(session, SourceRegistry()).acquire()
        assert session.error == "network error"

    def test_source_ids_are_unique(self, session):
        registry = SourceRegistry()
        camera = CameraSource(session, registry)

        first = camera.acquire(Facing.REAR)
        second = camera.acquire(Facing.REAR)

        assert first.source_id != second.source_id
        assert second.source_id.startswith("rear-")


class TestToggle:
    def test_toggle_releases_old_stream(self, session):
        registry = SourceRegistry(sizes={"rear": (1920, 1080), "front": (1280, 720)})
        camera = CameraSource(session, registry)
        camera.acquire()
        rear_source = camera.active_source

        cam = camera.toggle()

        assert cam.facing is Facing.FRONT
        assert rear_source.closed_count == 1
        assert registry.open_sources == [camera.active_source]
        assert session.overlay.size == (1280, 720)

    def test_toggle_twice_returns_to_rear(self, session):
        registry = SourceRegistry()
        camera = CameraSource(session, registry)
        camera.acquire()

        camera.toggle()
        cam = camera.toggle()

        assert cam.facing is Facing.REAR
        assert len(registry.open_sources) == 1

    def test_toggle_falls_back_when_front_missing(self, session):
        registry = SourceRegistry(failing={"front"})
        camera = CameraSource(session, registry)
        camera.acquire()

        cam = camera.toggle()

        assert cam.facing is Facing.REAR
        assert len(registry.open_sources) == 1

    def test_toggle_without_stream_uses_default(self, session):
        camera = CameraSource(session, SourceRegistry(), default_facing=Facing.REAR)
        assert camera.toggle().facing is Facing.FRONT


class TestRelease:
    def test_release_closes_stream(self, session):
        registry = SourceRegistry()
        camera = CameraSource(session, registry)
        camera.acquire()

        camera.release()
        camera.release()

        assert registry.open_sources == []
        assert registry.created[0].closed_count == 1
        assert session.camera is None
        assert camera.read() is None

    def test_read_tags_frames_with_source_id(self, session):
        camera = CameraSource(session, SourceRegistry())
        cam = camera.acquire()

        frame_data = camera.read()

        assert frame_data.source == cam.source_id
        assert frame_data.size == (640, 480)


class TestOpenCVFactory:
    def test_unconfigured_facing_raises_device_error(self):
        factory = opencv_source_factory({"devices": {"rear": 0}})
        with pytest.raises(DeviceError):
            factory(Facing.FRONT, "front-1")

    def test_builds_unopened_source(self):
        factory = opencv_source_factory({"devices": {"rear": 0, "front": 1}, "mirror_front": True})
        source = factory(Facing.FRONT, "front-1")

        assert source.source_id == "front-1"
        assert not source.is_open
