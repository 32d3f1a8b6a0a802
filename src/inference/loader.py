"""
Background model loading.

Loading weights can take a while (download plus initialization), so it runs on
its own thread while the session reports is_loading. A failed load is terminal:
the error is shown and nothing retries.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models.config import DetectionConfig
from runtime.session import ERROR_LOAD, ViewerSession
from .backend import InferenceBackend, load_detector

LoadFn = Callable[[DetectionConfig], InferenceBackend]


class ModelLoader:
    def __init__(
        self,
        cfg: DetectionConfig,
        session: ViewerSession,
        on_ready: Callable[[InferenceBackend], None],
        load_fn: LoadFn = load_detector,
    ):
        self._cfg = cfg
        self._session = session
        self._on_ready = on_ready
        self._load_fn = load_fn
        self._thread: Optional[threading.Thread] = None
        self.model: Optional[InferenceBackend] = None

    def load(self) -> Optional[InferenceBackend]:
        """Load synchronously. Returns None on failure (error set on the session)."""
        logging.info(f"Loading detector (profile={self._cfg.profile}, model={self._cfg.model_path})")
        try:
            model = self._load_fn(self._cfg)
        except Exception as e:
            message = str(e)
            logging.error(f"Initialization error: {message}")
            self._session.set_model_ready(False)
            self._session.set_error(message, ERROR_LOAD)
            return None

        self.model = model
        self._session.set_model_ready(True)
        self._on_ready(model)
        return model

    def start(self) -> None:
        """Load on a background thread."""
        self._thread = threading.Thread(target=self.load, name="model-loader", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def close(self) -> None:
        if self.model is not None:
            self.model.close()
            self.model = None
