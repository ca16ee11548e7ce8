# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Signing and verification of access and refresh tokens.

Access and refresh tokens are HMAC-signed JWTs with independent secrets and
lifetimes. Each carries a ``type`` tag so a token of one class is never
accepted as the other, even if both secrets were configured identically.

Expiry is evaluated against the codec's own clock rather than PyJWT's wall
clock: a token is expired once ``exp <= now``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from auth_service.domain.users.entities import AccessClaims, RefreshClaims
from auth_service.domain.users.exceptions import InvalidTokenError
from auth_service.domain.users.repositories import TokenCodec

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JwtTokenCodec(TokenCodec):
    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if access_secret == refresh_secret:
            raise ValueError("access and refresh secrets must differ")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._algorithm = algorithm
        self._clock = clock

    def sign_access(self, subject_id: str, email: str) -> str:
        return self._encode(
            {"sub": subject_id, "email": email},
            secret=self._access_secret,
            token_type=TOKEN_TYPE_ACCESS,
            ttl=self._access_ttl,
        )

    def sign_refresh(self, subject_id: str, token_id: str) -> str:
        return self._encode(
            {"sub": subject_id, "tokenId": token_id},
            secret=self._refresh_secret,
            token_type=TOKEN_TYPE_REFRESH,
            ttl=self._refresh_ttl,
        )

    def verify_access(self, token: str) -> AccessClaims:
        payload = self._decode(token, secret=self._access_secret, token_type=TOKEN_TYPE_ACCESS)
        return AccessClaims(
            subject_id=self._string_claim(payload, "sub"),
            email=self._string_claim(payload, "email"),
        )

    def verify_refresh(self, token: str) -> RefreshClaims:
        payload = self._decode(token, secret=self._refresh_secret, token_type=TOKEN_TYPE_REFRESH)
        return RefreshClaims(
            subject_id=self._string_claim(payload, "sub"),
            token_id=self._string_claim(payload, "tokenId"),
        )

    def _encode(
        self, claims: dict[str, Any], *, secret: str, token_type: str, ttl: timedelta
    ) -> str:
        now = self._clock()
        payload = {
            **claims,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, *, secret: str, token_type: str) -> dict[str, Any]:
        if not token:
            raise InvalidTokenError(context={"reason": "empty"})
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={
                    "require": ["sub", "exp", "type"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(context={"reason": type(exc).__name__}) from exc

        if payload.get("type") != token_type:
            raise InvalidTokenError(context={"reason": "wrong_type"})

        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            raise InvalidTokenError(context={"reason": "malformed_exp"})
        if exp <= self._clock().timestamp():
            raise InvalidTokenError(context={"reason": "expired"})
        return payload

    @staticmethod
    def _string_claim(payload: dict[str, Any], name: str) -> str:
        value = payload.get(name)
        if not isinstance(value, str) or not value:
            raise InvalidTokenError(context={"reason": f"malformed_{name}"})
        return value


__all__ = ["JwtTokenCodec", "TOKEN_TYPE_ACCESS", "TOKEN_TYPE_REFRESH"]
