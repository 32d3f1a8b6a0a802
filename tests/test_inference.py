"""
Tests for the YOLO detector backend and background model loading.
"""

from unittest.mock import MagicMock, Mock, patch

import numpy as np
import pytest

from inference.loader import ModelLoader
from inference.ultralytics_backend import UltralyticsDetector
from models.config import DetectionConfig
from models.errors import InferenceError, LoadError, ModelUnavailableError
from runtime.session import ERROR_LOAD


def _tensor(values):
    return Mock(cpu=Mock(return_value=Mock(numpy=Mock(return_value=np.array(values)))))


def _results(xyxy, conf, cls, names=None):
    result = MagicMock()
    result.names = names or {0: "person", 16: "dog", 2: "car"}
    result.boxes = MagicMock()
    result.boxes.xyxy = _tensor(xyxy)
    result.boxes.conf = _tensor(conf)
    result.boxes.cls = _tensor(cls)
    return [result]


@pytest.fixture
def mock_yolo():
    with patch("ultralytics.YOLO") as yolo_cls:
        yield yolo_cls


class TestProfiles:
    def test_lightweight_profile(self, mock_yolo):
        UltralyticsDetector(DetectionConfig(profile="lightweight"))
        mock_yolo.assert_called_once_with("yolov8n.pt")

    def test_high_accuracy_profile(self, mock_yolo):
        UltralyticsDetector(DetectionConfig(profile="high_accuracy"))
        mock_yolo.assert_called_once_with("yolov8l.pt")

    def test_explicit_model_wins(self, mock_yolo):
        UltralyticsDetector(DetectionConfig(profile="high_accuracy", model="models/custom.pt"))
        mock_yolo.assert_called_once_with("models/custom.pt")

    def test_weights_failure_is_load_error(self, mock_yolo):
        mock_yolo.side_effect = ConnectionError("network error")
        with pytest.raises(LoadError, match="network error"):
            UltralyticsDetector(DetectionConfig())


class TestDetect:
    def test_converts_to_xywh(self, mock_yolo):
        detector = UltralyticsDetector(DetectionConfig(min_score=0.5))
        mock_yolo.return_value.predict.return_value = _results(
            [[100, 120, 300, 420], [300, 200, 450, 300]],
            [0.87, 0.51],
            [0, 16],
        )

        dets = detector.detect(np.zeros((480, 640, 3), dtype=np.uint8))

        assert [d.class_name for d in dets] == ["person", "dog"]
        assert dets[0].bbox.as_list() == [100.0, 120.0, 200.0, 300.0]
        assert dets[0].score == pytest.approx(0.87)
        assert dets[1].label == "dog 51%"

    def test_passes_thresholds_to_predict(self, mock_yolo):
        cfg = DetectionConfig(min_score=0.6, iou_threshold=0.4, max_detections=5, classes=[0, 2])
        detector = UltralyticsDetector(cfg)
        mock_yolo.return_value.predict.return_value = []

        assert detector.detect(np.zeros((10, 10, 3), dtype=np.uint8)) == ()

        kwargs = mock_yolo.return_value.predict.call_args.kwargs
        assert kwargs["conf"] == 0.6
        assert kwargs["iou"] == 0.4
        assert kwargs["max_det"] == 5
        assert kwargs["classes"] == [0, 2]
        assert kwargs["verbose"] is False

    def test_truncates_to_max_detections(self, mock_yolo):
        detector = UltralyticsDetector(DetectionConfig(max_detections=2))
        mock_yolo.return_value.predict.return_value = _results(
            [[0, 0, 10, 10]] * 4, [0.9, 0.8, 0.7, 0.6], [2, 2, 2, 2]
        )

        dets = detector.detect(np.zeros((10, 10, 3), dtype=np.uint8))

        assert len(dets) == 2
        assert [d.class_name for d in dets] == ["car", "car"]

    def test_unknown_class_id_uses_number(self, mock_yolo):
        detector = UltralyticsDetector(DetectionConfig())
        mock_yolo.return_value.predict.return_value = _results([[0, 0, 5, 5]], [0.7], [99])

        assert detector.detect(np.zeros((10, 10, 3), dtype=np.uint8))[0].class_name == "99"

    def test_predict_failure_is_inference_error(self, mock_yolo):
        detector = UltralyticsDetector(DetectionConfig())
        mock_yolo.return_value.predict.side_effect = RuntimeError("CUDA out of memory")

        with pytest.raises(InferenceError):
            detector.detect(np.zeros((10, 10, 3), dtype=np.uint8))

    def test_closed_model_is_unavailable(self, mock_yolo):
        detector = UltralyticsDetector(DetectionConfig())
        detector.close()

        assert detector.is_closed
        with pytest.raises(ModelUnavailableError):
            detector.detect(np.zeros((10, 10, 3), dtype=np.uint8))


class TestModelLoader:
    def test_successful_load(self, session):
        model = Mock()
        ready = []
        loader = ModelLoader(DetectionConfig(), session, on_ready=ready.append, load_fn=lambda cfg: model)

        assert loader.load() is model

        assert ready == [model]
        assert session.model_ready is True
        assert session.is_loading is False
        assert session.error is None

    def test_network_error(self, session):
        def failing(cfg):
            raise LoadError("network error")

        ready = []
        loader = ModelLoader(DetectionConfig(), session, on_ready=ready.append, load_fn=failing)

        assert loader.load() is None

        assert ready == []
        assert session.is_loading is False
        assert session.model_ready is False
        assert session.error == "network error"
        assert session.error_kind == ERROR_LOAD

    def test_background_load(self, session):
        model = Mock()
        loader = ModelLoader(DetectionConfig(), session, on_ready=lambda m: None, load_fn=lambda cfg: model)

        loader.start()
        loader.join(timeout=2.0)

        assert loader.model is model
        assert session.model_ready

    def test_close_releases_model(self, session):
        model = Mock()
        loader = ModelLoader(DetectionConfig(), session, on_ready=lambda m: None, load_fn=lambda cfg: model)
        loader.load()

        loader.close()

        model.close.assert_called_once()
        assert loader.model is None
