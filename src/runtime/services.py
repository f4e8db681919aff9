from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Set

import cv2
import numpy as np

from history.sync import HistorySynchronizer
from models.state import LoopState
from observation import ObservationSource
from pipeline.engine import DetectionLoop
from pipeline.overlay import draw_predictions, draw_status
from runtime.context import RuntimeContext

KEY_SAVE = ord("s")
KEY_REFRESH = ord("r")
KEY_QUIT = ord("q")

PANEL_BG = (45, 55, 72)
PANEL_ACCENT = (120, 187, 72)
PANEL_TEXT = (226, 232, 240)
PANEL_MUTED = (160, 174, 192)


async def acquire_capture(source: ObservationSource, loop_state: LoopState) -> bool:
    """
    Open the frame source and record capture readiness.

    On success the status message is cleared so the display switches to the
    live preview.

    A failure is fatal for the session: it is logged, surfaced as the status
    message and not retried.
    """
    loop_state.status_message = "Starting webcam..."
    try:
        await asyncio.to_thread(source.open)
    except Exception as e:
        logging.error(f"Webcam error: {e}")
        loop_state.capture_ready = False
        loop_state.status_message = "Webcam access error."
        return False

    loop_state.capture_ready = True
    loop_state.status_message = ""
    return True


class DisplayService:
    """
    Shows the annotated video next to a side panel and maps key presses to
    history actions.

    Keys: ``s`` save current labels, ``r`` refresh history, ``q`` quit.
    Save/refresh run as background tasks so the window keeps updating while
    requests are in flight.
    """

    def __init__(
        self,
        ctx: RuntimeContext,
        history: HistorySynchronizer,
        loop: DetectionLoop,
        window_name: str = "VisionClerk",
        size: tuple[int, int] = (640, 480),
        panel_width: int = 320,
        frame_interval: float = 1 / 30,
    ):
        self.ctx = ctx
        self.history = history
        self.loop = loop
        self.window_name = window_name
        self.size = size
        self.panel_width = panel_width
        self.frame_interval = frame_interval
        self._tasks: Set[asyncio.Task] = set()

    def handle_key(self, key: int) -> bool:
        """Dispatch a key press. Returns False when the user asked to quit."""
        if key == KEY_QUIT:
            return False
        if key == KEY_SAVE:
            self._spawn(self.history.save_current(self.ctx.predictions))
        elif key == KEY_REFRESH:
            self._spawn(self.history.refresh())
        return True

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_pending(self) -> None:
        """Wait for in-flight save/refresh tasks."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def render(self) -> np.ndarray:
        """
        Compose the current video area and the side panel into one image.

        The latest predictions are drawn over the latest camera frame, so the
        boxes may lag the video by one inference.
        """
        w, h = self.size
        frame = self.ctx.latest_frame
        state = self.ctx.loop_state
        if frame is None or not state.can_infer:
            video = draw_status(np.zeros((h, w, 3), dtype=np.uint8), state.status_message)
        else:
            video = draw_predictions(frame, self.ctx.predictions.predictions)
            if video.shape[:2] != (h, w):
                video = cv2.resize(video, (w, h))
        return np.hstack([video, self._render_panel(h)])

    def stats_text(self) -> str:
        fps = self.ctx.fps
        camera = f"{fps:.1f} fps" if fps is not None else "-- fps"
        return f"camera {camera}  inferences {self.ctx.predictions.inference_count}"

    def _render_panel(self, height: int) -> np.ndarray:
        panel = np.full((height, self.panel_width, 3), PANEL_BG, dtype=np.uint8)
        font = cv2.FONT_HERSHEY_SIMPLEX
        y = 28

        def line(text: str, color, scale: float = 0.5, thickness: int = 1, step: int = 20) -> None:
            nonlocal y
            if y < height - 8:
                cv2.putText(panel, text, (12, y), font, scale, color, thickness, cv2.LINE_AA)
            y += step

        line("Detected objects", PANEL_ACCENT, 0.6, 2, 26)
        predictions = self.ctx.predictions.predictions
        if predictions:
            for p in predictions[:8]:
                line(f"{p.class_name} ({p.score * 100:.1f}%)", PANEL_TEXT)
        else:
            line("No objects detected.", PANEL_MUTED)

        y += 6
        save_hint = "Saving..." if self.history.saving else "[s] save  [r] refresh  [q] quit"
        line(save_hint, PANEL_MUTED, 0.45)
        line(self.stats_text(), PANEL_MUTED, 0.45)

        y += 10
        line("History", PANEL_ACCENT, 0.6, 2, 26)
        snapshots = self.history.history
        if snapshots:
            for snapshot in snapshots:
                line(_truncate(snapshot.summary(), 38), PANEL_TEXT, 0.42, 1, 18)
        else:
            line("No history.", PANEL_MUTED)
        return panel

    async def run(self) -> None:
        """Show frames until quit is pressed or the window is closed."""
        logging.info("Display started (s = save, r = refresh, q = quit)")
        try:
            while True:
                cv2.imshow(self.window_name, self.render())
                key = cv2.waitKey(1) & 0xFF
                if not self.handle_key(key):
                    break
                if cv2.getWindowProperty(self.window_name, cv2.WND_PROP_VISIBLE) < 1:
                    break
                await asyncio.sleep(self.frame_interval)
        finally:
            cv2.destroyAllWindows()
            await self.wait_pending()


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."
