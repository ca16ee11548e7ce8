from .registration_notifier import (
    EVENT_TYPE,
    BackgroundRegistrationNotifier,
    LogRegistrationNotifier,
    RedisRegistrationNotifier,
)

__all__ = [
    "EVENT_TYPE",
    "BackgroundRegistrationNotifier",
    "LogRegistrationNotifier",
    "RedisRegistrationNotifier",
]
