"""
Ultralytics YOLO detector backend.

The inference profile picks the weights: "lightweight" for a small fast model,
"high_accuracy" for a larger backbone. An explicit detection.model overrides the
profile.
"""

from __future__ import annotations

import logging
import threading
from typing import List

import numpy as np

from models.config import DetectionConfig
from models.detection import BoundingBox, Detection, DetectionSet
from models.errors import InferenceError, LoadError, ModelUnavailableError


def _to_numpy(values) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


class UltralyticsDetector:
    def __init__(self, cfg: DetectionConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise LoadError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        try:
            self._model = YOLO(cfg.model_path)
        except Exception as e:
            raise LoadError(f"Failed to load model {cfg.model_path}: {e}") from e

        self._lock = threading.Lock()
        logging.info(f"Detector loaded: profile={cfg.profile}, model={cfg.model_path}")

    @property
    def is_closed(self) -> bool:
        return self._model is None

    def detect(self, frame: np.ndarray) -> DetectionSet:
        with self._lock:
            if self._model is None:
                raise ModelUnavailableError("Detector has been released")
            try:
                results = self._model.predict(
                    source=frame,
                    conf=self.cfg.min_score,
                    iou=self.cfg.iou_threshold,
                    max_det=self.cfg.max_detections,
                    classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
                    device=self.cfg.device,
                    verbose=False,
                )
            except Exception as e:
                raise InferenceError(f"Inference failed: {e}") from e

        return self._parse(results)

    def _parse(self, results) -> DetectionSet:
        if not results:
            return ()

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return ()

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            out.append(
                Detection(
                    class_name=str(names.get(class_id, class_id)),
                    score=min(1.0, max(0.0, float(c))),
                    bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                )
            )
            if len(out) >= self.cfg.max_detections:
                break

        return tuple(out)

    def close(self) -> None:
        with self._lock:
            self._model = None
