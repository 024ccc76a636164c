"""Rate Limiter - fixed window with restart, keyed by (action, actor)"""
import math
import threading
import time
from typing import Any, Callable, Tuple

from ..domain.errors import RateLimitError
from ..domain.models import RateLimitResult
from ..repositories.cache_store import CacheStore
from ..utils.idgen import sha256_hex
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RATE_LIMIT_COUNT = 10
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60


def rate_limit_key(action: str, actor_id: str) -> str:
    """Cache key for a counter; the actor ID is hashed so it never sits in the cache in clear"""
    return f"rl_{sha256_hex(f'{action}:{actor_id}')[:40]}"


def normalize_limits(max_count: Any, window_seconds: Any) -> Tuple[int, int]:
    """At least one call per window; a non-positive window falls back to the default"""
    try:
        count = max(1, math.floor(float(max_count)))
    except (TypeError, ValueError, OverflowError):
        count = DEFAULT_RATE_LIMIT_COUNT
    try:
        window = float(window_seconds)
    except (TypeError, ValueError, OverflowError):
        window = 0
    window = math.floor(window) if math.isfinite(window) and window >= 1 else DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    return count, window


class RateLimiter:
    """
    Counts calls per (action, actor) in a window that restarts on the first
    call after it elapses.

    Counter updates are serialized within a process. Across processes the
    read-modify-write on a shared cache can let one extra call through.
    """

    def __init__(self, cache: CacheStore, clock: Callable[[], float] = time.time):
        self._cache = cache
        self._clock = clock
        self._lock = threading.Lock()

    def check_and_consume(
        self,
        action: str,
        actor_id: str,
        max_count: int,
        window_seconds: int
    ) -> RateLimitResult:
        """Count one call and report whether it is within the limit"""
        max_count, window_seconds = normalize_limits(max_count, window_seconds)
        action = str(action or "").strip()
        actor_id = str(actor_id or "").strip()
        if not action or not actor_id:
            # Anonymous calls are not counted; every caller validates its actor first
            return RateLimitResult(allowed=True, count=0, limit=max_count, window_seconds=window_seconds)

        key = rate_limit_key(action, actor_id)
        with self._lock:
            now = self._clock()
            state = self._cache.get(key)
            if state is None or now - float(state.get("window_start", 0)) >= window_seconds:
                state = {"count": 1, "window_start": now}
            else:
                state = {"count": int(state.get("count", 0)) + 1, "window_start": float(state["window_start"])}
            self._cache.put(key, state, window_seconds)

        count = state["count"]
        return RateLimitResult(
            allowed=count <= max_count,
            count=count,
            limit=max_count,
            window_seconds=window_seconds,
        )

    def enforce(self, action: str, actor_id: str, max_count: int, window_seconds: int) -> RateLimitResult:
        """Count one call; raise RateLimitError when it exceeds the limit"""
        result = self.check_and_consume(action, actor_id, max_count, window_seconds)
        max_count, window_seconds = result.limit, result.window_seconds
        if not result.allowed:
            logger.warning(
                f"Rate limit exceeded for {action} ({result.count}/{max_count} in {window_seconds}s)",
                extra={"action": action, "actor_id": actor_id, "error_code": "RATE_LIMIT"}
            )
            raise RateLimitError(
                "Too many requests, please try again later",
                retry_after_seconds=window_seconds,
                details={"action": action},
            )
        return result
