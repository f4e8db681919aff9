"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    buffer_size: int = 1
    max_retries: int = 3
    flip_horizontal: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            buffer_size=d.get("buffer_size", 1),
            max_retries=d.get("max_retries", 3),
            flip_horizontal=d.get("flip_horizontal", False),
        )


@dataclass
class DetectionConfig:
    """Detector (Ultralytics YOLO) configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None
    min_interval: float = 0.0
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=float(d.get("conf_threshold", 0.5)),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            classes=d.get("classes"),
            class_name_overrides=d.get("class_name_overrides"),
            min_interval=float(d.get("min_interval", 0.0)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )


@dataclass
class PersistenceConfig:
    """Remote detection store configuration."""
    base_url: str = "http://localhost:4000/api"
    timeout_seconds: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PersistenceConfig":
        return cls(
            base_url=d.get("base_url", "http://localhost:4000/api"),
            timeout_seconds=float(d.get("timeout_seconds", 5.0)),
        )


@dataclass
class ServerConfig:
    """Detection store server configuration."""
    host: str = "0.0.0.0"
    port: int = 4000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 4000)),
        )


@dataclass
class StorageConfig:
    """Server-side storage configuration."""
    local_database_path: str = "data/detections.sqlite"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/detections.sqlite"),
        )


@dataclass
class Config:
    """
    Complete application configuration.

    Typed view of the merged YAML config (see main.load_config).
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_path: str = "logs/visionclerk.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            persistence=PersistenceConfig.from_dict(d.get("persistence", {}) or {}),
            server=ServerConfig.from_dict(d.get("server", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            log_path=d.get("log_path", "logs/visionclerk.log"),
            log_level=d.get("log_level", "INFO"),
        )
