"""
Detector adapter: owns the model handle and exposes an awaitable detect().

The backend is built lazily by ``load()`` so a model failure becomes a
readiness/status problem instead of an import-time crash.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

import numpy as np

from models.prediction import Prediction
from models.state import LoopState
from .backend import InferenceBackend


class DetectorNotReadyError(RuntimeError):
    """detect() was called before the model finished loading."""


class DetectorAdapter:
    """
    Async wrapper around an InferenceBackend.

    The backend runs in a worker thread; the caller awaits the result.
    No state is kept between detect() calls.
    """

    def __init__(self, backend_factory: Callable[[], InferenceBackend], loop_state: LoopState):
        self._backend_factory = backend_factory
        self._loop_state = loop_state
        self._backend: Optional[InferenceBackend] = None

    @property
    def ready(self) -> bool:
        return self._backend is not None

    async def load(self) -> bool:
        """
        Load the model. Returns False (and records a status message) on failure.
        """
        self._loop_state.status_message = "Loading detection model..."
        try:
            self._backend = await asyncio.to_thread(self._backend_factory)
        except Exception as e:
            logging.error(f"Model load error: {e}")
            self._loop_state.model_ready = False
            self._loop_state.status_message = "Failed to load the detection model."
            return False

        self._loop_state.model_ready = True
        logging.info("Detection model loaded")
        return True

    async def detect(self, frame: np.ndarray) -> List[Prediction]:
        if self._backend is None:
            raise DetectorNotReadyError("Detection model is not loaded")
        return await asyncio.to_thread(self._backend.detect, frame)
