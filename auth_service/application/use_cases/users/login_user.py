# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from auth_service.domain.users.entities import AuthTokens
from auth_service.domain.users.exceptions import UnauthorizedError
from auth_service.domain.users.repositories import (
    CredentialRepository,
    PasswordHasher,
    SessionTokenRepository,
    TokenCodec,
)
from auth_service.shared.logging import logger

_DUMMY_PASSWORD = "timing-equaliser-not-a-real-password"


class LoginUserUseCase:
    def __init__(
        self,
        *,
        credentials: CredentialRepository,
        tokens: SessionTokenRepository,
        password_hasher: PasswordHasher,
        token_codec: TokenCodec,
    ) -> None:
        self._credentials = credentials
        self._tokens = tokens
        self._password_hasher = password_hasher
        self._token_codec = token_codec
        self._dummy_hash: str | None = None

    def execute(self, email: str, password: str) -> AuthTokens:
        user = self._credentials.find_by_email(email)
        if user is None:
            # Unknown emails cost the same hashing work as a wrong password.
            self._password_hasher.verify(password, self._get_dummy_hash())
            logger.info("auth.login: rejected")
            raise UnauthorizedError()

        if not self._password_hasher.verify(password, user.password_hash):
            logger.info("auth.login: rejected")
            raise UnauthorizedError()

        session = self._tokens.create(user.id)
        logger.info(f"auth.login: ok user_id={user.id}")
        return AuthTokens(
            access_token=self._token_codec.sign_access(user.id, user.email),
            refresh_token=self._token_codec.sign_refresh(user.id, session.token_id),
        )

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self._password_hasher.hash(_DUMMY_PASSWORD)
        return self._dummy_hash
