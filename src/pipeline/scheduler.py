"""
Cancellable repeating task.

Runs a callable over and over on one worker thread, paced to a target rate. The
next iteration is only scheduled after the previous one has returned, so there
is never more than one invocation in flight.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


class RepeatingTask:
    """
    Example:
        task = RepeatingTask(tick, interval=1 / 30, name="detect")
        task.start()
        ...
        task.cancel()

    The callable may return False to end the task from inside. Exceptions are
    logged and do not end the task.
    """

    def __init__(self, fn: Callable[[], Optional[bool]], interval: float, name: str = "task"):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._fn = fn
        self._interval = interval
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.iterations = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Task {self._name} already started")
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            started = time.monotonic()
            try:
                keep_going = self._fn()
            except Exception as e:
                logging.exception(f"Task {self._name} iteration failed: {e}")
                keep_going = True
            self.iterations += 1
            if keep_going is False:
                logging.debug(f"Task {self._name} finished")
                self._stop.set()
                break
            elapsed = time.monotonic() - started
            self._stop.wait(max(0.0, self._interval - elapsed))

    def cancel(self, timeout: Optional[float] = 2.0) -> None:
        """Stop scheduling iterations and wait for the in-flight one to return."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logging.warning(f"Task {self._name} did not stop within {timeout}s")
