"""
Per-client token buckets with full refill once a window has elapsed.

A bucket starts full. Each hit takes one token; an empty bucket rejects until
more than `window_ms` has passed since its last refill, at which point it is
topped back up to `limit` in one step (no continuous leak).
"""
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .models import RateLimitBucketRow

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class RateLimitOptions:
    limit: int  # tokens per window
    window_ms: int


DEFAULT_RATE_LIMIT = RateLimitOptions(limit=10, window_ms=60_000)
FIX_RATE_LIMIT = RateLimitOptions(limit=5, window_ms=60_000)


@dataclass
class RateLimitResult:
    ok: bool
    remaining: int


@dataclass
class Bucket:
    tokens: int
    last_refill: float  # epoch ms
    window_ms: int


def consume(bucket: Optional[Bucket], options: RateLimitOptions, now: float) -> Tuple[Bucket, RateLimitResult]:
    """Apply one hit to `bucket` (or a fresh one) and return the updated bucket."""
    if bucket is None:
        bucket = Bucket(tokens=options.limit, last_refill=now, window_ms=options.window_ms)
    bucket.window_ms = options.window_ms

    if now - bucket.last_refill > options.window_ms:
        bucket.tokens = options.limit
        bucket.last_refill = now

    if bucket.tokens <= 0:
        return bucket, RateLimitResult(ok=False, remaining=0)

    bucket.tokens -= 1
    return bucket, RateLimitResult(ok=True, remaining=bucket.tokens)


class BucketStore(ABC):
    # True when hit() does I/O and must stay off the event loop
    blocking = False

    @abstractmethod
    def hit(self, key: str, options: RateLimitOptions, now: float) -> RateLimitResult:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryBucketStore(BucketStore):
    """In-process buckets, bounded by LRU eviction and swept for idle keys.

    Dropping a bucket whose window has already expired loses nothing: the next
    hit would have refilled it anyway. Evicting a live bucket (LRU overflow)
    hands that client a fresh quota, which is the price of the bound.
    """

    def __init__(self, max_keys: int = 10_000, sweep_every: int = 1_000):
        self.max_keys = max_keys
        self.sweep_every = sweep_every
        self._buckets: "OrderedDict[str, Bucket]" = OrderedDict()
        self._hits_since_sweep = 0

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: str) -> bool:
        return key in self._buckets

    def hit(self, key: str, options: RateLimitOptions, now: float) -> RateLimitResult:
        # No await between read and write: safe within a single event loop
        bucket, result = consume(self._buckets.get(key), options, now)
        self._buckets[key] = bucket
        self._buckets.move_to_end(key)

        while len(self._buckets) > self.max_keys:
            evicted, _ = self._buckets.popitem(last=False)
            logger.debug(f"Rate limit store full, evicted bucket {evicted}")

        self._hits_since_sweep += 1
        if self._hits_since_sweep >= self.sweep_every:
            self.sweep(now)
        return result

    def sweep(self, now: float) -> int:
        stale = [k for k, b in self._buckets.items() if now - b.last_refill > b.window_ms]
        for k in stale:
            del self._buckets[k]
        self._hits_since_sweep = 0
        return len(stale)

    def clear(self) -> None:
        self._buckets.clear()
        self._hits_since_sweep = 0


class DatabaseBucketStore(BucketStore):
    """Buckets in a shared SQL table, for deployments running several workers."""

    blocking = True

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def hit(self, key: str, options: RateLimitOptions, now: float) -> RateLimitResult:
        try:
            return self._hit_once(key, options, now)
        except IntegrityError:
            # Another worker created the row between our read and insert
            logger.info(f"Concurrent bucket insert for {key}, retrying")
            return self._hit_once(key, options, now)

    def _hit_once(self, key: str, options: RateLimitOptions, now: float) -> RateLimitResult:
        with self.session_factory() as session:
            with session.begin():
                row = session.execute(
                    select(RateLimitBucketRow).where(RateLimitBucketRow.key == key).with_for_update()
                ).scalar_one_or_none()
                bucket = None
                if row is not None:
                    bucket = Bucket(tokens=row.tokens, last_refill=row.last_refill, window_ms=options.window_ms)
                bucket, result = consume(bucket, options, now)
                if row is None:
                    session.add(RateLimitBucketRow(key=key, tokens=bucket.tokens, last_refill=bucket.last_refill))
                else:
                    row.tokens = bucket.tokens
                    row.last_refill = bucket.last_refill
            return result

    def clear(self) -> None:
        with self.session_factory() as session:
            with session.begin():
                session.query(RateLimitBucketRow).delete()


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    def __init__(self, store: Optional[BucketStore] = None, clock: Callable[[], float] = _now_ms):
        self.store = store or MemoryBucketStore()
        self.clock = clock

    def hit(self, key: str, options: RateLimitOptions = DEFAULT_RATE_LIMIT) -> RateLimitResult:
        return self.store.hit(key, options, self.clock())

    async def hit_async(self, key: str, options: RateLimitOptions = DEFAULT_RATE_LIMIT) -> RateLimitResult:
        if self.store.blocking:
            return await run_in_threadpool(self.hit, key, options)
        return self.hit(key, options)

    def clear(self) -> None:
        self.store.clear()


def build_rate_limiter(settings, session_factory=None) -> RateLimiter:
    if settings.rate_limit_backend == "database":
        if session_factory is None:
            raise ValueError("RATE_LIMIT_BACKEND=database needs a database session factory")
        logger.info("Using database-backed rate limit buckets")
        return RateLimiter(DatabaseBucketStore(session_factory))
    if settings.rate_limit_backend != "memory":
        raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {settings.rate_limit_backend}")
    return RateLimiter(MemoryBucketStore(max_keys=settings.rate_limit_max_keys))


def client_key(headers: Mapping[str, str]) -> str:
    """First X-Forwarded-For hop, else a shared sentinel.

    Clients without the header all draw from the same bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return UNKNOWN_CLIENT
