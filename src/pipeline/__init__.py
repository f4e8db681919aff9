"""
Real-time detection pipeline: the detection loop and the overlay renderer.
"""

from .engine import DetectionLoop, LoopConfig, LoopStats, create_loop_from_config
from .overlay import OverlayStyle, compose, draw_predictions, format_label, render_overlay

__all__ = [
    "DetectionLoop",
    "LoopConfig",
    "LoopStats",
    "create_loop_from_config",
    "OverlayStyle",
    "compose",
    "draw_predictions",
    "format_label",
    "render_overlay",
]
