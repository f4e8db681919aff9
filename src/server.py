"""
VisionClerk detection store server.

Serves POST/GET /api/detections backed by SQLite.

Usage:
    python src/server.py --config config/config.yaml
"""

import argparse
import logging
import sys

import uvicorn

from models.config import Config
from ops.config import load_config, validate_config
from ops.logging import setup_logging
from storage.database import Database
from web.app import create_app


def main():
    parser = argparse.ArgumentParser(description="VisionClerk - detection store server")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--host", type=str, default=None, help="Override server.host")
    parser.add_argument("--port", type=int, default=None, help="Override server.port")
    args = parser.parse_args()

    config = load_config(args.config)
    server_cfg = config.setdefault("server", {})
    if args.host:
        server_cfg["host"] = args.host
    if args.port:
        server_cfg["port"] = args.port

    is_valid, error_msg = validate_config(config, role="server")
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    typed = Config.from_dict(config)
    setup_logging(typed.log_path, typed.log_level)

    db = Database(typed.storage.local_database_path)
    db.initialize()

    host, port = typed.server.host, typed.server.port
    logging.info(f"Detection store listening on http://{host}:{port}")
    try:
        uvicorn.run(create_app(db), host=host, port=port, log_level=typed.log_level.lower())
    finally:
        db.close()


if __name__ == "__main__":
    main()
