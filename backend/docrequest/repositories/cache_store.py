"""Cache Store - short-lived JSON values with per-entry TTL"""
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .mongo_client import get_collection
from ..utils.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class CacheStore(ABC):
    """Key/value cache; entries vanish after their TTL"""

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def put(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        ...


class InMemoryCacheStore(CacheStore):
    """Process-local TTL cache"""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return dict(value)

    def put(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, dict(value))


class MongoCacheStore(CacheStore):
    """
    Cache shared across processes.

    Expired documents are removed by a MongoDB TTL index; reads also filter on
    expires_at because the TTL monitor only runs periodically.
    """

    COLLECTION = "cache_entries"

    def __init__(
        self,
        collection_factory: Callable[[str], Collection] = get_collection,
        clock: Clock = time.time
    ):
        self._entries: Collection = collection_factory(self.COLLECTION)
        self._clock = clock
        self._ensure_indexes()

    def _ensure_indexes(self):
        try:
            self._entries.create_index("expires_at", expireAfterSeconds=0)
        except PyMongoError as e:
            logger.warning(f"Failed to create cache indexes: {e}")

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        doc = self._entries.find_one({"_id": key, "expires_at": {"$gt": self._now()}})
        if doc is None:
            return None
        return dict(doc.get("value") or {})

    def put(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._entries.replace_one(
            {"_id": key},
            {"_id": key, "value": value, "expires_at": self._now() + timedelta(seconds=ttl_seconds)},
            upsert=True
        )
