from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from models.state import LoopState, PredictionState


@dataclass
class RuntimeContext:
    """Holds runtime state objects and service references; avoids global singletons."""

    config: Dict[str, Any]
    loop_state: LoopState = field(default_factory=LoopState)
    predictions: PredictionState = field(default_factory=PredictionState)

    # Observability (camera fps, shown in the display panel)
    system_stats: Dict[str, Any] = field(default_factory=dict)

    # Latest raw camera frame; the overlay is composed at display time
    latest_frame: Optional[np.ndarray] = None

    def update_frame(self, frame: np.ndarray) -> None:
        now = time.time()
        last = self.system_stats.get("last_frame_ts")
        if last is not None and now > last:
            self.system_stats["fps"] = 1.0 / (now - last)
        self.system_stats["last_frame_ts"] = now
        self.latest_frame = frame

    @property
    def fps(self) -> Optional[float]:
        return self.system_stats.get("fps")
