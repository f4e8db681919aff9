"""
History synchronizer: the save (write) and refresh (read) paths against the
detection store, plus the locally cached history.

The cache is only ever replaced by a successful refresh; a save does not
append locally but re-reads the store so the cache cannot drift from it.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Optional, Sequence, Tuple

from models.snapshot import DetectionSnapshot
from models.state import PredictionState, SaveState
from .client import PersistenceClient, PersistenceError


class HistorySynchronizer:
    """
    Owns SaveState and the HistoryCache.

    Overlapping refreshes are ordered by request token: a response is applied
    only if it was issued after the one currently reflected in the cache.
    """

    def __init__(self, client: PersistenceClient):
        self._client = client
        self.save_state = SaveState()
        self._history: Tuple[DetectionSnapshot, ...] = ()
        self._tokens = itertools.count(1)
        self._applied_token = 0

    @property
    def history(self) -> Tuple[DetectionSnapshot, ...]:
        return self._history

    @property
    def saving(self) -> bool:
        return self.save_state.saving

    async def save(self, labels: Sequence[str]) -> Optional[DetectionSnapshot]:
        """
        Persist labels, then refresh the cache from the store.

        Returns the stored snapshot, or None if the call was ignored (empty
        labels, another save in flight) or failed.
        """
        labels = list(labels)
        if not labels:
            logging.debug("Save ignored: no detected objects")
            return None
        if self.save_state.saving:
            logging.info("Save ignored: a save is already in progress")
            return None

        # Set before the first await so a concurrent call sees it.
        self.save_state.saving = True
        try:
            snapshot = await asyncio.to_thread(self._client.create_detection, labels)
            logging.info(f"Saved detection {snapshot.id}: {', '.join(snapshot.objects)}")
            await self.refresh()
            return snapshot
        except PersistenceError as e:
            logging.error(f"Save error: {e}")
            return None
        finally:
            self.save_state.saving = False

    async def save_current(self, predictions: PredictionState) -> Optional[DetectionSnapshot]:
        """Save the labels of the latest published predictions."""
        return await self.save(predictions.labels())

    async def refresh(self) -> bool:
        """
        Replace the cache with the store's current history.

        Returns False on failure (cache left untouched) or when the response
        was superseded by a newer refresh.
        """
        token = next(self._tokens)
        try:
            snapshots = await asyncio.to_thread(self._client.list_detections)
        except PersistenceError as e:
            logging.error(f"History fetch error: {e}")
            return False

        if token < self._applied_token:
            logging.debug(f"Discarding stale history response (token {token} < {self._applied_token})")
            return False

        self._applied_token = token
        self._history = tuple(snapshots)
        logging.debug(f"History refreshed: {len(self._history)} entries")
        return True
