"""Fixed-window rate limiting for the public API.

The limiter lives on ``app.state.rate_limiter`` so it can be swapped (tests
install a fresh one per app instance). ``hit`` counts one request for a key
and reports whether it is still within the window's budget. Limiters that
do network I/O set ``blocking = True`` and the middleware runs them in the
threadpool instead of on the event loop.
"""
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from redis import Redis, RedisError

from casalar.core.config import settings

logger = logging.getLogger(__name__)


class MemoryRateLimiter:
    """Per-process counter table.

    Entries are kept in the order their window started, so expired windows
    are always at the front and are dropped as new windows open. If the table
    is still over ``max_keys`` the oldest windows go first.
    """
    blocking = False

    def __init__(self, limit: int, window_seconds: int, max_keys: int = 10000,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._windows: 'OrderedDict[str, Tuple[float, int]]' = OrderedDict()

    def hit(self, key: str) -> bool:
        now = self._clock()
        entry = self._windows.get(key)
        if entry is not None and now - entry[0] < self.window_seconds:
            started, count = entry
            # same window: bump the count, keep the position
            self._windows[key] = (started, count + 1)
            return count + 1 <= self.limit
        self._windows[key] = (now, 1)
        self._windows.move_to_end(key)
        self._prune(now)
        return 1 <= self.limit

    def _prune(self, now: float):
        while self._windows:
            started, _ = next(iter(self._windows.values()))
            if now - started < self.window_seconds and len(self._windows) <= self.max_keys:
                break
            self._windows.popitem(last=False)

    def __len__(self):
        return len(self._windows)

    def __contains__(self, key):
        return key in self._windows


class RedisRateLimiter:
    """Counter per key and window in Redis; key TTL handles eviction.

    When Redis cannot be reached the request is let through and a warning is
    logged; an outage of the limiter never takes the API down with it.
    """
    blocking = True

    def __init__(self, client: Redis, limit: int, window_seconds: int, prefix: str = 'ratelimit',
                 clock: Callable[[], float] = time.time):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock

    def hit(self, key: str) -> bool:
        window = int(self._clock() // self.window_seconds)
        rkey = f"{self.prefix}:{key}:{window}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(rkey)
            pipe.expire(rkey, self.window_seconds)
            count, _ = pipe.execute()
        except RedisError as e:
            logger.warning('rate limiter unavailable, allowing %s: %s', key, e)
            return True
        return int(count) <= self.limit


def build_rate_limiter() -> Optional[object]:
    if not settings.RATE_LIMIT_ENABLED:
        return None
    if settings.REDIS_URL:
        logger.info('rate limiting backed by redis')
        client = Redis.from_url(settings.REDIS_URL, decode_responses=True,
                                socket_connect_timeout=1, socket_timeout=1)
        return RedisRateLimiter(client, settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)
    return MemoryRateLimiter(settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS,
                             max_keys=settings.RATE_LIMIT_MAX_KEYS)
