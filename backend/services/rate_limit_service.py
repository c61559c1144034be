from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    endpoint: str
    limit: int
    window_seconds: int


class InMemoryRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.time, sweep_every: int = 256) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._windows: dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_every = max(int(sweep_every), 1)
        self._checks = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float) -> None:
        # Drop scopes whose newest hit has aged out of their window.
        for key in [k for k, bucket in self._hits.items() if not bucket or bucket[-1] <= now - self._windows[k]]:
            del self._hits[key]
            del self._windows[key]

    def check(self, *, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        now = self._clock()
        window = max(int(window_seconds), 1)
        max_hits = max(int(limit), 1)
        with self._lock:
            self._checks += 1
            if self._checks % self._sweep_every == 0:
                self._sweep(now)
            bucket = self._hits.setdefault(key, deque())
            self._windows[key] = window
            cutoff = now - window
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= max_hits:
                retry_after = int(max(bucket[0] + window - now, 1))
                return False, retry_after
            bucket.append(now)
            return True, 0

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._windows.clear()
            self._checks = 0


_RATE_LIMITER = InMemoryRateLimiter()


def _hash_scope(scope_key: str) -> str:
    raw = (scope_key or "").encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:24]


def enforce_rate_limit(*, rule: RateLimitRule, scope_key: str) -> tuple[bool, int]:
    allowed, retry_after = _RATE_LIMITER.check(
        key=f"{rule.endpoint}:{scope_key}",
        limit=rule.limit,
        window_seconds=rule.window_seconds,
    )
    if not allowed:
        logger.warning(
            "Rate limit hit on %s (scope=%s, retry_after=%ss)",
            rule.endpoint,
            _hash_scope(scope_key),
            retry_after,
        )
    return allowed, retry_after


def reset_rate_limits() -> None:
    _RATE_LIMITER.reset()
