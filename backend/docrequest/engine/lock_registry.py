"""Lock Registry - one lazily created lock per draft owner"""
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

from ..domain.errors import LockTimeoutError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OwnerLockRegistry:
    """
    Serializes writes per owner while letting different owners run in parallel.

    Locks live in a WeakValueDictionary: a lock disappears once no thread
    holds or waits on it, so the registry does not grow with every owner
    ever seen.
    """

    def __init__(self, timeout_seconds: float = 30.0):
        self.timeout_seconds = timeout_seconds
        self._registry_lock = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, owner_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[owner_id] = lock
            return lock

    @contextmanager
    def hold(self, owner_id: str) -> Iterator[None]:
        """Hold the owner's lock for the duration of the block"""
        lock = self._lock_for(owner_id)
        if not lock.acquire(timeout=self.timeout_seconds):
            logger.warning(
                f"Timed out after {self.timeout_seconds}s waiting for draft lock",
                extra={"actor_id": owner_id, "error_code": "LOCK_TIMEOUT"}
            )
            raise LockTimeoutError(
                "The request is busy, please try again",
                details={"timeout_seconds": self.timeout_seconds},
            )
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
