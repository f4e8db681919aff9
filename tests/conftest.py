"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData  # noqa: E402
from observation.base import ObservationConfig, ObservationSource  # noqa: E402


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSource(ObservationSource):
    """
    In-memory frame source.

    ``frames`` entries that are None simulate a frame that is not decodable
    yet; once the list is exhausted, blank frames are returned.
    """

    def __init__(self, frames=None, size=(64, 48)):
        super().__init__(ObservationConfig(source_id="fake"))
        self._frames = list(frames or [])
        self._size = size
        self.read_count = 0

    def open(self):
        self._is_open = True

    def read(self):
        self.read_count += 1
        if self._frames:
            frame = self._frames.pop(0)
            if frame is None:
                return None
        else:
            w, h = self._size
            frame = np.zeros((h, w, 3), dtype=np.uint8)
        self._frame_index += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source="fake")

    def close(self):
        self._is_open = False


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  model: "yolov8n.pt"
  conf_threshold: 0.5

persistence:
  base_url: "http://localhost:4000/api"
  timeout_seconds: 5.0

server:
  host: "0.0.0.0"
  port: 4000

storage:
  local_database_path: "data/test.sqlite"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid client configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
        },
        "detection": {
            "model": "yolov8n.pt",
            "conf_threshold": 0.5,
            "iou_threshold": 0.45,
        },
        "persistence": {
            "base_url": "http://localhost:4000/api",
            "timeout_seconds": 5.0,
        },
        "server": {
            "host": "0.0.0.0",
            "port": 4000,
        },
        "storage": {
            "local_database_path": "data/test.sqlite",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
