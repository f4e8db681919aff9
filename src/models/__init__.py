"""
Typed models for the VisionClerk application.
"""

from .frame import FrameData
from .prediction import BoundingBox, Prediction, labels_of
from .snapshot import DetectionSnapshot
from .state import LoopState, PredictionState, SaveState
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    PersistenceConfig,
    ServerConfig,
    StorageConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Prediction",
    "labels_of",
    # History
    "DetectionSnapshot",
    # Runtime state
    "LoopState",
    "PredictionState",
    "SaveState",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "PersistenceConfig",
    "ServerConfig",
    "StorageConfig",
]
