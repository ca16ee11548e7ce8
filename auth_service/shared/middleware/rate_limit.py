# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import wraps

from flask import jsonify, request

from auth_service.shared.logging import logger


@dataclass
class Bucket:
    timestamps: deque[float] = field(default_factory=deque)


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by caller.

    Buckets whose window has fully elapsed are evicted, so the number of
    tracked keys stays bounded by the callers seen within one window.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, Bucket] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _prune(self, bucket: Bucket, now: float) -> None:
        while bucket.timestamps and (now - bucket.timestamps[0]) > self._window:
            bucket.timestamps.popleft()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        for key in list(self._buckets):
            bucket = self._buckets[key]
            self._prune(bucket, now)
            if not bucket.timestamps:
                del self._buckets[key]

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._buckets[key] = Bucket()
            else:
                self._prune(bucket, now)
            if len(bucket.timestamps) >= self._limit:
                return False
            bucket.timestamps.append(now)
            return True


def rate_limited(view: Callable, limiter: InMemoryRateLimiter | None) -> Callable:
    """Wrap a view with a per-path, per-client limit; a missing limiter disables it.

    The client is ``request.remote_addr``; forwarded headers only count once
    ``ProxyFix`` has rewritten it for a configured number of trusted hops.
    """
    if limiter is None:
        return view

    @wraps(view)
    def wrapper(*args, **kwargs):
        key = f"{request.path}:{request.remote_addr or 'unknown'}"
        if not limiter.allow(key):
            logger.warning(f"rate_limit: rejected {request.method} {request.path}")
            return jsonify({"error": "rate_limited"}), 429
        return view(*args, **kwargs)

    return wrapper


__all__ = ["InMemoryRateLimiter", "rate_limited"]
