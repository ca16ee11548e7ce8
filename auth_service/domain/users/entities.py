# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from auth_service.domain.exceptions import InvariantViolation


def _require_aware(value: datetime, field: str) -> None:
    if value.tzinfo is None:
        raise InvariantViolation("timestamp must be timezone-aware", field=field)


@dataclass(slots=True, frozen=True)
class PublicUser:
    """User projection that is safe to hand to clients and other services."""

    id: str
    email: str
    display_name: str
    created_at: datetime


@dataclass(slots=True, frozen=True)
class UserCredential:

    id: str
    email: str
    display_name: str
    password_hash: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.id:
            raise InvariantViolation("credential id must be assigned", field="id")
        if not self.email:
            raise InvariantViolation("email cannot be empty", field="email")
        _require_aware(self.created_at, "created_at")

    def public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            created_at=self.created_at,
        )


@dataclass(slots=True, frozen=True)
class SessionToken:
    """Persisted, unconsumed refresh grant."""

    token_id: str
    user_id: str
    expires_at: datetime
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.token_id:
            raise InvariantViolation("token id cannot be empty", field="token_id")
        _require_aware(self.expires_at, "expires_at")
        _require_aware(self.created_at, "created_at")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


@dataclass(slots=True, frozen=True)
class AccessClaims:
    subject_id: str
    email: str


@dataclass(slots=True, frozen=True)
class RefreshClaims:
    subject_id: str
    token_id: str


@dataclass(slots=True, frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str


@dataclass(slots=True, frozen=True)
class RegistrationResult:
    tokens: AuthTokens
    user: PublicUser


@dataclass(slots=True, frozen=True)
class UserRegistered:
    """Fact announced to other services once a registration has committed."""

    id: str
    email: str
    display_name: str
    created_at: datetime

    @classmethod
    def from_user(cls, user: PublicUser) -> UserRegistered:
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            created_at=user.created_at,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "createdAt": self.created_at.isoformat(),
        }
