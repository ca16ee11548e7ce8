# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from auth_service.application.interfaces import RegistrationNotifier, UnitOfWorkFactory
from auth_service.domain.users.entities import (
    AuthTokens,
    RegistrationResult,
    UserCredential,
    UserRegistered,
)
from auth_service.domain.users.exceptions import DuplicateEmailError, EmailAlreadyExistsError
from auth_service.domain.users.repositories import (
    CredentialRepository,
    PasswordHasher,
    TokenCodec,
)
from auth_service.shared.logging import logger


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        credentials: CredentialRepository,
        uow_factory: UnitOfWorkFactory,
        password_hasher: PasswordHasher,
        token_codec: TokenCodec,
        notifier: RegistrationNotifier,
    ) -> None:
        self._credentials = credentials
        self._uow_factory = uow_factory
        self._password_hasher = password_hasher
        self._token_codec = token_codec
        self._notifier = notifier

    def execute(self, email: str, password: str, display_name: str) -> RegistrationResult:
        # Fast path only; the store's unique constraint is authoritative.
        if self._credentials.find_by_email(email) is not None:
            raise EmailAlreadyExistsError()

        try:
            with self._uow_factory() as uow:
                password_hash = self._password_hasher.hash(password)
                user = uow.credentials.create(
                    email=email,
                    display_name=display_name,
                    password_hash=password_hash,
                )
                session = uow.tokens.create(user.id)
        except DuplicateEmailError as exc:
            logger.info("auth.register: lost concurrent registration race")
            raise EmailAlreadyExistsError() from exc

        tokens = AuthTokens(
            access_token=self._token_codec.sign_access(user.id, user.email),
            refresh_token=self._token_codec.sign_refresh(user.id, session.token_id),
        )
        self._announce(user)
        logger.info(f"auth.register: ok user_id={user.id}")
        return RegistrationResult(tokens=tokens, user=user.public())

    def _announce(self, user: UserCredential) -> None:
        try:
            self._notifier.publish(UserRegistered.from_user(user.public()))
        except Exception:
            logger.exception(f"auth.register: registration event dropped user_id={user.id}")
