# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from auth_service.domain.users.entities import UserRegistered
from auth_service.domain.users.repositories import UnitOfWork


class RegistrationNotifier(Protocol):
    """Announces committed registrations; delivery is best effort, at least once."""

    def publish(self, event: UserRegistered) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
