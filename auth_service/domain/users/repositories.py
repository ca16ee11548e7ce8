# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import AccessClaims, RefreshClaims, SessionToken, UserCredential


class CredentialRepository(Protocol):
    def find_by_email(self, email: str) -> UserCredential | None: ...
    def find_by_id(self, user_id: str) -> UserCredential | None: ...
    def create(self, *, email: str, display_name: str, password_hash: str) -> UserCredential: ...


class SessionTokenRepository(Protocol):
    def create(self, user_id: str) -> SessionToken: ...
    def find_by_token_and_user(self, token_id: str, user_id: str) -> SessionToken | None: ...
    def delete_by_token_id(self, token_id: str) -> bool: ...
    def delete_all_for_user(self, user_id: str) -> int: ...


class UnitOfWork(Protocol):
    """Transactional scope: writes through its repositories commit together or not at all."""

    credentials: CredentialRepository
    tokens: SessionTokenRepository

    def __enter__(self) -> UnitOfWork: ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class TokenCodec(Protocol):
    def sign_access(self, subject_id: str, email: str) -> str: ...
    def sign_refresh(self, subject_id: str, token_id: str) -> str: ...
    def verify_access(self, token: str) -> AccessClaims: ...
    def verify_refresh(self, token: str) -> RefreshClaims: ...
