# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Announcements of committed registrations.

Delivery is at least once and best effort: a publish may be lost when the bus
stays down past the retry budget, and may be duplicated when an acknowledged
write is retried. Consumers dedupe by user id.
"""

from __future__ import annotations

import contextvars
import json
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import redis
from redis.exceptions import RedisError

from auth_service.application.interfaces import RegistrationNotifier
from auth_service.domain.users.entities import UserRegistered
from auth_service.infrastructure.resilience import CircuitBreaker, RetryPolicy, resilient_call
from auth_service.shared.config import MessagingConfig
from auth_service.shared.logging import logger

EVENT_TYPE = "user.registered"


class RedisRegistrationNotifier(RegistrationNotifier):
    def __init__(
        self,
        client: Any,
        *,
        stream: str = "events:user.registered",
        maxlen: int = 100_000,
        policy: RetryPolicy | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._policy = policy or RetryPolicy()
        self._breaker = breaker

    @classmethod
    def from_config(
        cls,
        config: MessagingConfig,
        *,
        policy: RetryPolicy | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> RedisRegistrationNotifier:
        if not config.redis_url:
            raise ValueError("REDIS_URL is required for the redis notifier")
        client = redis.Redis.from_url(
            config.redis_url,
            decode_responses=True,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
        )
        return cls(
            client,
            stream=config.user_registered_stream,
            maxlen=config.stream_maxlen,
            policy=policy,
            breaker=breaker,
        )

    def publish(self, event: UserRegistered) -> None:
        fields = {
            "type": EVENT_TYPE,
            "id": event.id,
            "payload": json.dumps(event.to_payload()),
        }
        message_id = resilient_call(
            self._client.xadd,
            self._stream,
            fields,
            maxlen=self._maxlen,
            approximate=True,
            policy=self._policy,
            breaker=self._breaker,
            retry_on=(RedisError,),
        )
        logger.info(
            f"events: published {EVENT_TYPE} user_id={event.id} "
            f"stream={self._stream} message_id={message_id}"
        )

    def close(self) -> None:
        self._client.close()


class LogRegistrationNotifier(RegistrationNotifier):
    def publish(self, event: UserRegistered) -> None:
        logger.info(f"events: {EVENT_TYPE} user_id={event.id} (no bus configured)")


class BackgroundRegistrationNotifier(RegistrationNotifier):
    """Hands publishes to a worker pool so request threads never wait on the bus."""

    def __init__(self, delegate: RegistrationNotifier, *, max_workers: int = 2) -> None:
        self._delegate = delegate
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="registration-notifier"
        )

    def publish(self, event: UserRegistered) -> Future:
        context = contextvars.copy_context()
        future = self._executor.submit(context.run, self._delegate.publish, event)
        future.add_done_callback(lambda done: self._report(done, event))
        return future

    @staticmethod
    def _report(future: Future, event: UserRegistered) -> None:
        exc = future.exception()
        if exc is None:
            return
        logger.opt(exception=exc).error(
            f"events: dropped {EVENT_TYPE} user_id={event.id} error={type(exc).__name__}"
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        close = getattr(self._delegate, "close", None)
        if callable(close):
            close()


__all__ = [
    "EVENT_TYPE",
    "BackgroundRegistrationNotifier",
    "LogRegistrationNotifier",
    "RedisRegistrationNotifier",
]
