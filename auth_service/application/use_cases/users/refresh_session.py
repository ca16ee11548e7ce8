# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Refresh-token rotation.

A refresh token is redeemable exactly once: redemption deletes its session
record and issues a new one. The delete doubles as the single-use check, so
when two requests race on the same token only the one whose delete removed
the row gets a new pair.

Without a unit-of-work factory the delete and the create are separate writes
and a crash between them burns the old token without issuing a new one; the
client has to log in again. With a factory both writes commit together.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from auth_service.application.interfaces import UnitOfWorkFactory
from auth_service.domain.users.entities import AuthTokens, SessionToken, UserCredential
from auth_service.domain.users.exceptions import (
    IntegrityAnomalyError,
    InvalidTokenError,
    UnauthorizedError,
)
from auth_service.domain.users.repositories import (
    CredentialRepository,
    SessionTokenRepository,
    TokenCodec,
)
from auth_service.shared.logging import logger


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RefreshSessionUseCase:
    def __init__(
        self,
        *,
        credentials: CredentialRepository,
        tokens: SessionTokenRepository,
        token_codec: TokenCodec,
        uow_factory: UnitOfWorkFactory | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._credentials = credentials
        self._tokens = tokens
        self._token_codec = token_codec
        self._uow_factory = uow_factory
        self._clock = clock

    def execute(self, refresh_token: str) -> AuthTokens:
        try:
            claims = self._token_codec.verify_refresh(refresh_token)
        except InvalidTokenError as exc:
            logger.info(f"auth.refresh: rejected reason={(exc.context or {}).get('reason')}")
            raise UnauthorizedError() from exc

        record = self._tokens.find_by_token_and_user(claims.token_id, claims.subject_id)
        if record is None:
            logger.info(f"auth.refresh: rejected reason=unknown_session user_id={claims.subject_id}")
            raise UnauthorizedError()

        if record.is_expired(self._clock()):
            self._tokens.delete_by_token_id(record.token_id)
            logger.info(f"auth.refresh: rejected reason=expired user_id={claims.subject_id}")
            raise UnauthorizedError()

        user = self._credentials.find_by_id(claims.subject_id)
        if user is None:
            anomaly = IntegrityAnomalyError(
                context={"user_id": claims.subject_id, "token_id": record.token_id}
            )
            logger.error(
                f"auth.refresh: session token references missing user user_id={claims.subject_id}"
            )
            raise UnauthorizedError() from anomaly

        replacement = self._rotate(record, user)
        logger.info(f"auth.refresh: ok user_id={user.id}")
        return AuthTokens(
            access_token=self._token_codec.sign_access(user.id, user.email),
            refresh_token=self._token_codec.sign_refresh(user.id, replacement.token_id),
        )

    def _rotate(self, record: SessionToken, user: UserCredential) -> SessionToken:
        if self._uow_factory is None:
            if not self._tokens.delete_by_token_id(record.token_id):
                raise self._already_consumed(user)
            return self._tokens.create(user.id)

        with self._uow_factory() as uow:
            if not uow.tokens.delete_by_token_id(record.token_id):
                raise self._already_consumed(user)
            return uow.tokens.create(user.id)

    @staticmethod
    def _already_consumed(user: UserCredential) -> UnauthorizedError:
        logger.warning(f"auth.refresh: rejected reason=concurrent_redemption user_id={user.id}")
        return UnauthorizedError()
