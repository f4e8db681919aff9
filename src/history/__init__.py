"""
Detection history: store client and cache synchronizer.
"""

from .client import PersistenceClient, PersistenceError
from .sync import HistorySynchronizer

__all__ = ["PersistenceClient", "PersistenceError", "HistorySynchronizer"]
