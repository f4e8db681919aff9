"""
Configuration loading and validation.

Layering (later wins):
- ``config/default.yaml`` (checked in)
- ``config/config.yaml`` (local overrides)
- an explicitly provided ``--config`` path
- environment variables (VISIONCLERK_API_URL, PORT)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import yaml

API_URL_ENV = "VISIONCLERK_API_URL"
PORT_ENV = "PORT"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load the layered configuration.

    Exits the process with status 1 if a file cannot be read or parsed.
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return apply_env_overrides(merged)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def apply_env_overrides(config: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Apply environment overrides in place and return the config."""
    env = os.environ if environ is None else environ

    api_url = env.get(API_URL_ENV)
    if api_url:
        config.setdefault("persistence", {})["base_url"] = api_url

    port = env.get(PORT_ENV)
    if port:
        try:
            config.setdefault("server", {})["port"] = int(port)
        except ValueError:
            logging.warning(f"Ignoring non-integer {PORT_ENV}={port!r}")

    return config


def validate_config(config: Dict[str, Any], role: str = "client") -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary.
        role: "client" (camera + detector + store URL) or "server" (store only).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if role == "client":
        required_sections = ["camera", "detection", "persistence", "log_path", "log_level"]
    elif role == "server":
        required_sections = ["storage", "log_path", "log_level"]
    else:
        return False, f"Unknown config role: {role}"

    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    if role == "client":
        error = _validate_client_sections(config)
    else:
        error = _validate_server_sections(config)
    if error:
        return False, error

    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"
    if not isinstance(config["log_path"], str) or not config["log_path"]:
        return False, "log_path must be a non-empty string"

    return True, None


def _validate_client_sections(config: Dict[str, Any]) -> Optional[str]:
    camera = config.get("camera") or {}
    if "device_id" not in camera:
        return "Missing camera.device_id"
    if not isinstance(camera["device_id"], (int, str)):
        return "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(camera["device_id"], int) and camera["device_id"] < 0:
        return "camera.device_id integer must be non-negative"
    if "resolution" in camera:
        res = camera["resolution"]
        if not isinstance(res, list) or len(res) != 2:
            return "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return "camera.resolution values must be positive integers"
    if "fps" in camera and (not isinstance(camera["fps"], int) or camera["fps"] <= 0):
        return "camera.fps must be a positive integer"

    detection = config.get("detection") or {}
    if not isinstance(detection.get("model"), str) or not detection.get("model"):
        return "detection.model is required"
    conf = detection.get("conf_threshold", 0.5)
    if not isinstance(conf, (int, float)) or not (0 <= conf <= 1):
        return "detection.conf_threshold must be between 0 and 1"
    iou = detection.get("iou_threshold", 0.45)
    if not isinstance(iou, (int, float)) or not (0 < iou <= 1):
        return "detection.iou_threshold must be between 0 and 1"
    min_interval = detection.get("min_interval", 0.0)
    if not isinstance(min_interval, (int, float)) or min_interval < 0:
        return "detection.min_interval must be a non-negative number"

    persistence = config.get("persistence") or {}
    base_url = persistence.get("base_url")
    if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
        return "persistence.base_url must be an http(s) URL"
    timeout = persistence.get("timeout_seconds", 5.0)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        return "persistence.timeout_seconds must be a positive number"
    return None


def _validate_server_sections(config: Dict[str, Any]) -> Optional[str]:
    storage = config.get("storage") or {}
    if not isinstance(storage.get("local_database_path"), str):
        return "storage.local_database_path must be a string"

    server = config.get("server") or {}
    port = server.get("port", 4000)
    if not isinstance(port, int) or not (0 < port < 65536):
        return "server.port must be an integer between 1 and 65535"
    return None
