"""
Overlay rendering for predictions.

All functions are pure: they allocate a new surface on every call and keep
no state, so identical input always produces identical pixels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import cv2
import numpy as np

from models.prediction import Prediction


@dataclass(frozen=True)
class OverlayStyle:
    """Drawing parameters (colors are BGR)."""
    box_color: Tuple[int, int, int] = (120, 187, 72)
    text_color: Tuple[int, int, int] = (255, 255, 255)
    line_width: int = 2
    font: int = cv2.FONT_HERSHEY_SIMPLEX
    font_scale: float = 0.5
    font_thickness: int = 1
    padding: int = 4


def format_label(prediction: Prediction) -> str:
    """Label text, e.g. ``person (92%)``."""
    return f"{prediction.class_name} ({round(prediction.score * 100)}%)"


def render_overlay(
    predictions: Sequence[Prediction],
    width: int,
    height: int,
    style: OverlayStyle = OverlayStyle(),
) -> np.ndarray:
    """
    Draw predictions on a freshly cleared BGRA surface.

    Each prediction gets a rectangle at its bbox and a label with a filled
    background sized to the measured text width.

    Returns:
        (height, width, 4) uint8 array; alpha is 0 wherever nothing was drawn.
    """
    surface = np.zeros((height, width, 4), dtype=np.uint8)
    box_color = (*style.box_color, 255)
    text_color = (*style.text_color, 255)

    for p in predictions:
        x1, y1, x2, y2 = p.bbox.as_int_tuple()
        cv2.rectangle(surface, (x1, y1), (x2, y2), box_color, style.line_width)

        label = format_label(p)
        (tw, th), baseline = cv2.getTextSize(label, style.font, style.font_scale, style.font_thickness)
        label_h = th + baseline + 2 * style.padding
        cv2.rectangle(surface, (x1, y1), (x1 + tw + 2 * style.padding, y1 + label_h), box_color, -1)
        cv2.putText(
            surface,
            label,
            (x1 + style.padding, y1 + style.padding + th),
            style.font,
            style.font_scale,
            text_color,
            style.font_thickness,
            cv2.LINE_AA,
        )

    return surface


def compose(frame: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """Alpha-blend a BGRA overlay onto a copy of a BGR frame."""
    if frame.shape[:2] != overlay.shape[:2]:
        raise ValueError(
            f"overlay size {overlay.shape[1]}x{overlay.shape[0]} does not match "
            f"frame size {frame.shape[1]}x{frame.shape[0]}"
        )
    alpha = overlay[..., 3:4].astype(np.float32) / 255.0
    blended = frame.astype(np.float32) * (1.0 - alpha) + overlay[..., :3].astype(np.float32) * alpha
    return blended.astype(np.uint8)


def draw_predictions(
    frame: np.ndarray,
    predictions: Sequence[Prediction],
    style: OverlayStyle = OverlayStyle(),
) -> np.ndarray:
    """Render predictions and compose them onto a copy of ``frame``."""
    h, w = frame.shape[:2]
    return compose(frame, render_overlay(predictions, w, h, style))


def draw_status(frame: np.ndarray, message: str) -> np.ndarray:
    """Dim the frame and print a status message in the middle."""
    out = (frame.astype(np.float32) * 0.25).astype(np.uint8)
    if not message:
        return out
    font = cv2.FONT_HERSHEY_SIMPLEX
    (tw, th), _ = cv2.getTextSize(message, font, 0.7, 2)
    h, w = out.shape[:2]
    cv2.putText(out, message, ((w - tw) // 2, (h + th) // 2), font, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
    return out
