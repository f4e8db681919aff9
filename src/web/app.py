"""
FastAPI application factory for the detection store.

Routes:
- POST /api/detections -> save a snapshot of object labels
- GET  /api/detections -> list snapshots, newest first
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storage.database import Database
from .routes import api


def create_app(db: Database) -> FastAPI:
    """Create the FastAPI app around an initialized Database."""
    app = FastAPI(
        title="VisionClerk Detection Store",
        version="0.1.0",
        description="Stores snapshots of detected object labels",
    )

    # Browser and desktop clients on any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db = db
    app.include_router(api.router, prefix="/api")

    return app
