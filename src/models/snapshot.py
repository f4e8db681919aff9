"""
DetectionSnapshot model: a persisted set of object labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Sequence, Tuple


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting the ``Z`` UTC suffix."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_timestamp(ts: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class DetectionSnapshot:
    """
    An immutable, persisted snapshot of detected object labels.

    Attributes:
        id: Opaque identifier generated by the store.
        objects: Class labels in save order (duplicates allowed).
        created_at: Store-generated creation time.
    """
    id: str
    objects: Tuple[str, ...]
    created_at: datetime

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionSnapshot":
        """Adapter: parse the wire shape ``{id, objects, createdAt}``."""
        objects = d["objects"]
        if not isinstance(objects, (list, tuple)):
            raise ValueError("objects must be an array of strings")
        return cls(
            id=str(d["id"]),
            objects=tuple(str(o) for o in objects),
            created_at=parse_timestamp(str(d["createdAt"])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "objects": list(self.objects),
            "createdAt": format_timestamp(self.created_at),
        }

    def summary(self) -> str:
        local = self.created_at.astimezone()
        return f"{local:%d/%m/%Y %H:%M:%S}  {', '.join(self.objects)}"


def is_descending(snapshots: Sequence[DetectionSnapshot]) -> bool:
    """Whether snapshots are ordered newest first."""
    return all(
        a.created_at >= b.created_at for a, b in zip(snapshots, snapshots[1:])
    )
