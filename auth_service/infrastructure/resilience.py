# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Resilience utilities (retries, circuit breaker)."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from auth_service.shared.config import ResilienceConfig
from auth_service.shared.errors import CircuitOpenError
from auth_service.shared.logging import logger

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    backoff_base: float = 0.5
    backoff_cap: float = 8.0

    @classmethod
    def from_config(cls, config: ResilienceConfig) -> RetryPolicy:
        return cls(
            max_retries=config.max_retries,
            backoff_base=config.backoff_base,
            backoff_cap=config.backoff_cap,
        )


class CircuitBreaker:
    """Simple in-memory circuit breaker, safe to share between worker threads."""

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int,
        reset_timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._opened_at: float | None = None

    @classmethod
    def from_config(cls, name: str, config: ResilienceConfig) -> CircuitBreaker:
        return cls(
            name,
            failure_threshold=config.circuit_fail_threshold,
            reset_timeout=config.circuit_reset_timeout,
        )

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._opened_at is not None

    def allow(self) -> bool:
        with self._lock:
            if self._opened_at is None:
                return True
            if self._clock() - self._opened_at >= self.reset_timeout:
                logger.info(f"breaker[{self.name}]: half-open state")
                self._opened_at = None
                self._failures = 0
                return True
        logger.warning(f"breaker[{self.name}]: open state refusing call")
        return False

    def on_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None

    def on_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._failures < self.failure_threshold or self._opened_at is not None:
                return
            self._opened_at = self._clock()
        logger.error(f"breaker[{self.name}]: opening circuit after failures")


def resilient_call(  # noqa: UP047
    func: Callable[..., T],
    *args: Any,
    policy: RetryPolicy | None = None,
    breaker: CircuitBreaker | None = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """Execute call with retries and an optional circuit breaker.

    The breaker counts one failure per exhausted call, not per attempt.
    """

    policy = policy or RetryPolicy()

    if breaker is not None and not breaker.allow():
        raise CircuitOpenError(breaker.name)

    retry = Retrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(multiplier=policy.backoff_base, max=policy.backoff_cap),
        retry=retry_if_exception_type(retry_on),
        sleep=sleep,
        reraise=True,
    )

    try:
        for attempt in retry:
            with attempt:
                logger.debug(
                    f"resilience: attempt={attempt.retry_state.attempt_number} "
                    f"func={getattr(func, '__name__', 'call')}"
                )
                result = func(*args, **kwargs)
                if breaker is not None:
                    breaker.on_success()
                return result
    except Exception:
        if breaker is not None:
            breaker.on_failure()
        raise
    raise RuntimeError("resilience: reached unexpected branch")


__all__ = ["CircuitBreaker", "RetryPolicy", "resilient_call"]
