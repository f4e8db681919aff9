"""
Prediction models for object-detection results.

Bounding boxes are in (x, y, width, height) pixel format, which is what the
overlay and the detector adapter exchange.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"bbox.{name} must be a finite number, got {value!r}")

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) corners for drawing."""
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "BoundingBox":
        """Create from an (x, y, width, height) sequence."""
        if len(values) != 4:
            raise ValueError(f"bbox must have 4 components, got {len(values)}")
        return cls(x=float(values[0]), y=float(values[1]), width=float(values[2]), height=float(values[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Prediction:
    """
    A single detected object instance for one frame.

    Attributes:
        bbox: Bounding box in pixel coordinates.
        class_name: Detected class label (``class`` on the wire).
        score: Confidence score in [0, 1].
    """
    bbox: BoundingBox
    class_name: str
    score: float

    def __post_init__(self) -> None:
        if not isinstance(self.score, (int, float)) or not math.isfinite(self.score):
            raise ValueError(f"score must be a finite number, got {self.score!r}")
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within [0, 1], got {self.score}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "class": self.class_name,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Prediction":
        """Adapter: create from a ``{bbox, class, score}`` mapping."""
        return cls(
            bbox=BoundingBox.from_sequence(d["bbox"]),
            class_name=str(d["class"]),
            score=float(d["score"]),
        )


def labels_of(predictions: Sequence[Prediction]) -> List[str]:
    """Class labels in prediction order, duplicates kept."""
    return [p.class_name for p in predictions]
