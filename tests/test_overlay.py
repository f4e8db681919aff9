"""
Tests for the overlay renderer.
"""

import cv2
import numpy as np
import pytest

from models.prediction import BoundingBox, Prediction
from pipeline.overlay import (
    OverlayStyle,
    compose,
    draw_predictions,
    draw_status,
    format_label,
    render_overlay,
)


def _person():
    return Prediction(bbox=BoundingBox(x=10, y=10, width=250, height=200), class_name="person", score=0.92)


class TestFormatLabel:
    def test_rounded_percentage(self):
        assert format_label(_person()) == "person (92%)"

    def test_rounds_to_nearest_percent(self):
        p = Prediction(bbox=BoundingBox(0, 0, 1, 1), class_name="cup", score=0.876)
        assert format_label(p) == "cup (88%)"


class TestRenderOverlay:
    def test_empty_predictions_give_cleared_surface(self):
        surface = render_overlay([], 64, 48)
        assert surface.shape == (48, 64, 4)
        assert surface.dtype == np.uint8
        assert not surface.any()

    def test_is_deterministic(self):
        preds = [_person()]
        first = render_overlay(preds, 320, 240)
        second = render_overlay(preds, 320, 240)
        assert np.array_equal(first, second)

    def test_draws_box_edge(self):
        style = OverlayStyle()
        surface = render_overlay([_person()], 320, 240, style)
        # Bottom edge of the rectangle at y = 210
        pixel = surface[210, 60]
        assert tuple(pixel) == (*style.box_color, 255)

    def test_label_background_sized_to_text(self):
        style = OverlayStyle()
        label = format_label(_person())
        (tw, th), baseline = cv2.getTextSize(label, style.font, style.font_scale, style.font_thickness)
        surface = render_overlay([_person()], 320, 240, style)

        # Bottom row of the label background, below the text
        row = 10 + th + baseline + 2 * style.padding - 1
        inside = surface[row, 10 + tw + 2 * style.padding - 1]
        outside = surface[row, 10 + tw + 2 * style.padding + 3]
        assert tuple(inside) == (*style.box_color, 255)
        assert outside[3] == 0

    def test_box_interior_untouched(self):
        surface = render_overlay([_person()], 320, 240)
        assert surface[150, 60, 3] == 0


class TestCompose:
    def test_empty_overlay_keeps_frame(self):
        frame = np.full((48, 64, 3), 77, dtype=np.uint8)
        out = compose(frame, render_overlay([], 64, 48))
        assert np.array_equal(out, frame)
        assert out is not frame

    def test_size_mismatch(self):
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        with pytest.raises(ValueError):
            compose(frame, render_overlay([], 32, 32))

    def test_draw_predictions_does_not_mutate_input(self):
        frame = np.zeros((240, 320, 3), dtype=np.uint8)
        out = draw_predictions(frame, [_person()])
        assert not frame.any()
        assert out.any()


class TestDrawStatus:
    def test_dims_and_writes_message(self):
        frame = np.full((48, 200, 3), 200, dtype=np.uint8)
        blank = draw_status(frame, "")
        assert blank.max() == 50
        with_text = draw_status(frame, "Loading")
        assert with_text.max() == 255
