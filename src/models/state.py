"""
Explicit state objects owned by the runtime components.

Each object has exactly one writer:
- LoopState: startup code (DetectorAdapter.load and acquire_capture), read by
  DetectionLoop and the display
- PredictionState: DetectionLoop, read by the renderer and HistorySynchronizer callers
- SaveState: HistorySynchronizer
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional

from .prediction import Prediction, labels_of


@dataclass
class LoopState:
    """
    Readiness of the detection pipeline.

    Attributes:
        model_ready: Detector model loaded.
        capture_ready: Frame source opened.
        status_message: User-facing status (loading text or fatal error).
    """
    model_ready: bool = False
    capture_ready: bool = False
    status_message: str = "Loading detection model..."

    @property
    def can_infer(self) -> bool:
        return self.model_ready and self.capture_ready


@dataclass
class SaveState:
    """Single-flight guard for the write path."""
    saving: bool = False


@dataclass
class PredictionState:
    """Latest completed inference result, replaced wholesale on each publish."""
    _predictions: List[Prediction] = field(default_factory=list)
    updated_at: Optional[float] = None
    inference_count: int = 0

    def publish(self, predictions: List[Prediction]) -> None:
        self._predictions = list(predictions)
        self.updated_at = time.time()
        self.inference_count += 1

    @property
    def predictions(self) -> List[Prediction]:
        return list(self._predictions)

    def labels(self) -> List[str]:
        return labels_of(self._predictions)
