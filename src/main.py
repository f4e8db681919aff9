"""
VisionClerk client: live object detection with a saved-detections history.

Captures the webcam, runs the detector continuously, draws the results and
lets the user save the current labels to the detection store.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-display: Run headless (detection loop and logging only)
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Callable, Dict

from history import HistorySynchronizer, PersistenceClient
from inference import CpuYoloConfig, DetectorAdapter, InferenceBackend, UltralyticsCpuBackend
from models.config import Config, DetectionConfig
from observation import ObservationSource, create_source_from_config
from ops.config import load_config, validate_config
from ops.logging import setup_logging
from pipeline.engine import DetectionLoop, create_loop_from_config
from runtime.context import RuntimeContext
from runtime.services import DisplayService, acquire_capture


def backend_factory(detection_cfg: DetectionConfig) -> Callable[[], InferenceBackend]:
    """Deferred backend construction so model loading runs off the event loop."""
    def build() -> InferenceBackend:
        return UltralyticsCpuBackend(
            CpuYoloConfig(
                model=detection_cfg.model,
                conf_threshold=detection_cfg.conf_threshold,
                iou_threshold=detection_cfg.iou_threshold,
                classes=detection_cfg.classes,
                class_name_overrides=detection_cfg.class_name_overrides,
            )
        )
    return build


async def start_detection(detector: DetectorAdapter, source: ObservationSource, loop: DetectionLoop) -> None:
    """
    Load the model, then open the webcam, then run the detection loop.

    Each step updates the status message the display shows. A failed step
    ends the startup and leaves its error message in place. If the user quit
    while the model was loading, the webcam is not opened.
    """
    if not await detector.load() or not loop.running:
        return
    if not await acquire_capture(source, loop.ctx.loop_state):
        return
    await loop.run()


async def run_client(config: Dict[str, Any], display: bool = True) -> None:
    """Wire the components and run until the user quits (or the loop ends headless)."""
    ctx = RuntimeContext(config=config)
    typed = Config.from_dict(config)

    client = PersistenceClient(typed.persistence.base_url, timeout=typed.persistence.timeout_seconds)
    history = HistorySynchronizer(client)
    detector = DetectorAdapter(backend_factory(typed.detection), ctx.loop_state)
    source = create_source_from_config(typed.camera, source_id="webcam")
    loop = create_loop_from_config(config, source, detector, ctx)

    # Initial history load runs alongside startup; the display shows the
    # loading status until the loop is ready.
    initial_refresh = asyncio.create_task(history.refresh())
    detection_task = asyncio.create_task(start_detection(detector, source, loop))
    try:
        if display:
            await DisplayService(ctx, history, loop).run()
        else:
            await detection_task
    finally:
        loop.stop()
        await detection_task
        await initial_refresh
        source.close()
        client.close()


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description="VisionClerk - live object detection client")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--no-display", action="store_true",
                        help="Run without the preview window")
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config, role="client")
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config["log_path"], config["log_level"])
    logging.info(f"Starting VisionClerk client (store: {config['persistence']['base_url']})")

    try:
        asyncio.run(run_client(config, display=not args.no_display))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")

    logging.info("VisionClerk client stopped")


if __name__ == "__main__":
    main()
