"""
Tests for runtime services (capture acquisition and the display service).
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np

from conftest import FakeResponse, FakeSource
from history.client import PersistenceClient
from history.sync import HistorySynchronizer
from models.prediction import BoundingBox, Prediction
from models.state import LoopState
from runtime.context import RuntimeContext
from runtime.services import KEY_QUIT, KEY_REFRESH, KEY_SAVE, DisplayService, acquire_capture


class BrokenSource(FakeSource):
    def open(self):
        raise RuntimeError("Failed to open device 0 after 3 attempts")


def _display(*responses):
    session = MagicMock()
    session.request.side_effect = list(responses)
    history = HistorySynchronizer(PersistenceClient("http://store.test/api", session=session))
    ctx = RuntimeContext(config={})
    display = DisplayService(ctx, history, loop=MagicMock(), size=(64, 48), panel_width=200)
    return display, ctx, history, session


class TestAcquireCapture:
    def test_success(self):
        state = LoopState()
        source = FakeSource()

        assert asyncio.run(acquire_capture(source, state)) is True
        assert state.capture_ready
        assert source.is_open
        assert state.status_message == ""

    def test_failure_is_surfaced(self):
        state = LoopState()

        assert asyncio.run(acquire_capture(BrokenSource(), state)) is False
        assert not state.capture_ready
        assert state.status_message == "Webcam access error."


class TestDisplayService:
    def test_quit_key(self):
        display, *_ = _display()
        assert display.handle_key(KEY_QUIT) is False

    def test_unmapped_key_is_ignored(self):
        display, _, _, session = _display()

        async def scenario():
            keep_going = display.handle_key(ord("x"))
            await display.wait_pending()
            return keep_going

        assert asyncio.run(scenario()) is True
        session.request.assert_not_called()

    def test_save_key_saves_current_labels(self):
        display, ctx, history, session = _display(
            FakeResponse(201, {"id": "1", "objects": ["person"], "createdAt": "2024-05-01T12:00:00.000Z"}),
            FakeResponse(200, [{"id": "1", "objects": ["person"], "createdAt": "2024-05-01T12:00:00.000Z"}]),
        )
        ctx.predictions.publish([
            Prediction(bbox=BoundingBox(10, 10, 100, 200), class_name="person", score=0.92)
        ])

        async def scenario():
            display.handle_key(KEY_SAVE)
            display.handle_key(KEY_SAVE)
            await display.wait_pending()

        asyncio.run(scenario())

        methods = [c.args[0] for c in session.request.call_args_list]
        assert methods == ["POST", "GET"]
        assert history.history[0].objects == ("person",)

    def test_refresh_key(self):
        display, _, history, session = _display(
            FakeResponse(200, [{"id": "9", "objects": ["cup"], "createdAt": "2024-05-01T12:00:00.000Z"}]),
        )

        async def scenario():
            display.handle_key(KEY_REFRESH)
            await display.wait_pending()

        asyncio.run(scenario())
        assert [s.id for s in history.history] == ["9"]

    def test_render_shows_status_until_ready(self):
        display, ctx, _, _ = _display()
        ctx.loop_state.status_message = "Loading detection model..."

        image = display.render()

        assert image.shape == (48, 64 + 200, 3)

    def test_render_uses_latest_frame(self):
        display, ctx, _, _ = _display()
        ctx.loop_state.model_ready = True
        ctx.loop_state.capture_ready = True
        ctx.update_frame(np.full((48, 64, 3), 123, dtype=np.uint8))

        image = display.render()

        assert (image[:, :64] == 123).all()

    def test_render_resizes_other_frame_sizes(self):
        display, ctx, _, _ = _display()
        ctx.loop_state.model_ready = True
        ctx.loop_state.capture_ready = True
        ctx.update_frame(np.zeros((96, 128, 3), dtype=np.uint8))

        assert display.render().shape == (48, 264, 3)

    def test_render_draws_latest_predictions_over_latest_frame(self):
        display, ctx, _, _ = _display()
        ctx.loop_state.model_ready = True
        ctx.loop_state.capture_ready = True
        ctx.update_frame(np.zeros((48, 64, 3), dtype=np.uint8))
        ctx.predictions.publish([
            Prediction(bbox=BoundingBox(5, 20, 40, 20), class_name="cup", score=0.8)
        ])

        image = display.render()

        assert image[:, :64].any()
        # The published frame itself is left untouched
        assert not ctx.latest_frame.any()

    def test_stats_text_reports_camera_fps(self, monkeypatch):
        display, ctx, _, _ = _display()
        assert display.stats_text() == "camera -- fps  inferences 0"

        ctx.predictions.publish([])
        ticks = iter([10.0, 10.5])
        monkeypatch.setattr("runtime.context.time", SimpleNamespace(time=lambda: next(ticks)))
        ctx.update_frame(np.zeros((48, 64, 3), dtype=np.uint8))
        ctx.update_frame(np.zeros((48, 64, 3), dtype=np.uint8))

        assert display.stats_text() == "camera 2.0 fps  inferences 1"
