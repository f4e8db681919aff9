"""
Inference backend interface.

Backends return pixel-space predictions in the original frame coordinate system.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.prediction import Prediction


class InferenceBackend(Protocol):
    def detect(self, frame: np.ndarray) -> List[Prediction]:
        ...
