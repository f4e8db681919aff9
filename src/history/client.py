"""
HTTP client for the remote detection store.

Wire contract:
    POST {base}/detections  {"objects": [...]}  -> 201 {id, objects, createdAt}
    GET  {base}/detections                       -> 200 [{id, objects, createdAt}, ...]
    Either may answer 500 {"error": "..."}.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import requests

from models.snapshot import DetectionSnapshot


class PersistenceError(RuntimeError):
    """Any failure talking to the detection store (transport, status or payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceClient:
    """Blocking client; callers on the event loop wrap calls in a worker thread."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def detections_url(self) -> str:
        return f"{self.base_url}/detections"

    def create_detection(self, objects: Sequence[str]) -> DetectionSnapshot:
        """Persist labels; returns the stored snapshot with its generated id/createdAt."""
        payload = {"objects": list(objects)}
        body = self._request("POST", expected_status=201, json=payload)
        snapshot = self._parse_snapshot(body)
        logging.debug(f"Detection saved: id={snapshot.id}, objects={list(snapshot.objects)}")
        return snapshot

    def list_detections(self) -> List[DetectionSnapshot]:
        """Return all snapshots in the store's order (newest first)."""
        body = self._request("GET", expected_status=200)
        if not isinstance(body, list):
            raise PersistenceError("Expected a JSON array of detections")
        return [self._parse_snapshot(item) for item in body]

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, expected_status: int, **kwargs: Any) -> Any:
        try:
            response = self._session.request(method, self.detections_url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PersistenceError(f"{method} {self.detections_url} failed: {e}") from e

        if response.status_code != expected_status:
            detail = self._error_detail(response)
            raise PersistenceError(
                f"{method} {self.detections_url} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"{method} {self.detections_url} returned invalid JSON") from e

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or "no body"
        if isinstance(body, dict) and "error" in body:
            return str(body["error"])
        return str(body)

    @staticmethod
    def _parse_snapshot(item: Any) -> DetectionSnapshot:
        try:
            return DetectionSnapshot.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed detection payload: {item!r}") from e
