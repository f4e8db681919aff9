"""
CPU inference backend using a pretrained Ultralytics YOLO model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from models.prediction import BoundingBox, Prediction
from .backend import InferenceBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[Sequence[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None


class UltralyticsCpuBackend(InferenceBackend):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        self._model = YOLO(cfg.model)

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        return predictions_from_arrays(xyxy, conf, cls, names, self.cfg.class_name_overrides)


def predictions_from_arrays(
    xyxy: np.ndarray,
    conf: np.ndarray,
    cls: np.ndarray,
    names: Dict[int, str],
    class_name_overrides: Optional[Dict[int, str]] = None,
) -> List[Prediction]:
    """
    Convert detector output arrays to Prediction objects.

    Args:
        xyxy: (N, 4) corner boxes.
        conf: (N,) confidences.
        cls: (N,) class ids.
        names: Class id to label mapping from the model.
        class_name_overrides: Optional label replacements by class id.
    """
    out: List[Prediction] = []
    for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
        class_id = int(k)
        class_name = (
            (class_name_overrides or {}).get(class_id)
            or names.get(class_id)
            or str(class_id)
        )
        out.append(
            Prediction(
                bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                class_name=class_name,
                score=min(max(float(c), 0.0), 1.0),
            )
        )
    return out
