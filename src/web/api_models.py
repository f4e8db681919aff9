from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from models.snapshot import DetectionSnapshot, format_timestamp


class DetectionCreate(BaseModel):
    objects: List[str] = Field(..., description="Detected object class labels, in order")


class DetectionResponse(BaseModel):
    id: str
    objects: List[str]
    createdAt: str = Field(..., description="ISO-8601 UTC creation time")

    @classmethod
    def from_snapshot(cls, snapshot: DetectionSnapshot) -> "DetectionResponse":
        return cls(
            id=snapshot.id,
            objects=list(snapshot.objects),
            createdAt=format_timestamp(snapshot.created_at),
        )


class ErrorResponse(BaseModel):
    error: str
