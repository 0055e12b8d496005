import threading
import time
from collections import OrderedDict

from app.util.log import logger


class CacheMetrics:
    """Thread-safe cache metrics tracker."""

    hits: int
    misses: int
    evictions: int
    _lock: threading.Lock

    def __init__(self):
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def record_hit(self):
        with self._lock:
            self.hits += 1

    def record_miss(self):
        with self._lock:
            self.misses += 1

    def record_eviction(self):
        with self._lock:
            self.evictions += 1

    def hit_rate(self) -> float:
        """Return cache hit rate as percentage (0-100)."""
        with self._lock:
            total = self.hits + self.misses
            if total == 0:
                return 0.0
            return (self.hits / total) * 100

    def reset(self):
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.evictions = 0


class TTLCache[VT, *KTs]:
    """LRU cache whose entries expire a fixed number of seconds after being set.

    Keys are the positional arguments given to ``get``/``set``, so a cache of
    title searches is declared as ``TTLCache[list[CatalogBookSummary], str, int]``
    and used as ``cache.get(title, limit)``.
    """

    _cache: OrderedDict[tuple[*KTs], tuple[float, VT]]
    _lock: threading.Lock
    _ttl: float
    _maxsize: int | None
    _metrics: CacheMetrics

    def __init__(self, ttl: float, maxsize: int | None = None):
        """
        Args:
            ttl: Seconds an entry stays valid. 0 disables caching entirely.
            maxsize: Maximum number of entries. None = unlimited.
        """
        self._cache = OrderedDict()
        self._lock = threading.Lock()
        self._ttl = ttl
        self._maxsize = maxsize
        self._metrics = CacheMetrics()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, *key: *KTs) -> VT | None:
        with self._lock:
            hit = self._cache.get(key)
            if hit is None:
                self._metrics.record_miss()
                return None
            cached_at, value = hit
            if cached_at + self._ttl < time.monotonic():
                del self._cache[key]
                self._metrics.record_miss()
                return None
            self._cache.move_to_end(key)
            self._metrics.record_hit()
            return value

    def set(self, value: VT, *key: *KTs):
        if not self.enabled:
            return
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            self._cache[key] = (time.monotonic(), value)

            if self._maxsize is not None and len(self._cache) > self._maxsize:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self._metrics.record_eviction()

    def flush(self):
        with self._lock:
            self._cache = OrderedDict()

    def get_metrics(self) -> CacheMetrics:
        return self._metrics

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def log_metrics(self, name: str):
        metrics = self._metrics
        logger.info(
            "Cache statistics",
            cache=name,
            size=self.size(),
            hits=metrics.hits,
            misses=metrics.misses,
            evictions=metrics.evictions,
            hit_rate=round(metrics.hit_rate(), 1),
        )
