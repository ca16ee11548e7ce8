# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth_service.domain.users.entities import SessionToken as DomainSessionToken
from auth_service.domain.users.entities import UserCredential as DomainUserCredential
from auth_service.domain.users.exceptions import DuplicateEmailError
from auth_service.domain.users.repositories import CredentialRepository, SessionTokenRepository
from auth_service.infrastructure.db.models import RefreshToken, UserCredential
from auth_service.infrastructure.db.session import SessionFactory, session_scope

DEFAULT_SESSION_TTL = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class _SqlAlchemyRepository:
    """Runs each call in its own transaction, or inside a caller's unit of work when bound."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        session: Session | None = None,
    ) -> None:
        if session_factory is None and session is None:
            raise ValueError("either session_factory or session is required")
        self._session_factory = session_factory
        self._session = session

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return
        assert self._session_factory is not None
        with session_scope(self._session_factory) as session:
            yield session


def _to_domain_user(row: UserCredential) -> DomainUserCredential:
    return DomainUserCredential(
        id=row.id,
        email=row.email,
        display_name=row.display_name,
        password_hash=row.password_hash,
        created_at=_as_utc(row.created_at),
    )


def _to_domain_token(row: RefreshToken) -> DomainSessionToken:
    return DomainSessionToken(
        token_id=row.token_id,
        user_id=row.user_id,
        expires_at=_as_utc(row.expires_at),
        created_at=_as_utc(row.created_at),
    )


class SqlAlchemyCredentialRepository(_SqlAlchemyRepository, CredentialRepository):
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        session: Session | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(session_factory, session=session)
        self._clock = clock

    def find_by_email(self, email: str) -> DomainUserCredential | None:
        with self._scope() as session:
            row = session.execute(
                select(UserCredential).where(UserCredential.email == email)
            ).scalar_one_or_none()
            return _to_domain_user(row) if row else None

    def find_by_id(self, user_id: str) -> DomainUserCredential | None:
        with self._scope() as session:
            row = session.get(UserCredential, user_id)
            return _to_domain_user(row) if row else None

    def create(self, *, email: str, display_name: str, password_hash: str) -> DomainUserCredential:
        with self._scope() as session:
            row = UserCredential(
                email=email,
                display_name=display_name,
                password_hash=password_hash,
                created_at=self._clock(),
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as exc:
                raise DuplicateEmailError() from exc
            return _to_domain_user(row)


class SqlAlchemySessionTokenRepository(_SqlAlchemyRepository, SessionTokenRepository):
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        session: Session | None = None,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(session_factory, session=session)
        self._ttl = ttl
        self._clock = clock

    def create(self, user_id: str) -> DomainSessionToken:
        with self._scope() as session:
            now = self._clock()
            row = RefreshToken(
                token_id=secrets.token_urlsafe(32),
                user_id=user_id,
                expires_at=now + self._ttl,
                created_at=now,
            )
            session.add(row)
            session.flush()
            return _to_domain_token(row)

    def find_by_token_and_user(self, token_id: str, user_id: str) -> DomainSessionToken | None:
        with self._scope() as session:
            row = session.execute(
                select(RefreshToken).where(
                    RefreshToken.token_id == token_id,
                    RefreshToken.user_id == user_id,
                )
            ).scalar_one_or_none()
            return _to_domain_token(row) if row else None

    def delete_by_token_id(self, token_id: str) -> bool:
        with self._scope() as session:
            result = session.execute(delete(RefreshToken).where(RefreshToken.token_id == token_id))
            return bool(result.rowcount)

    def delete_all_for_user(self, user_id: str) -> int:
        with self._scope() as session:
            result = session.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
            return int(result.rowcount or 0)


__all__ = [
    "DEFAULT_SESSION_TTL",
    "SqlAlchemyCredentialRepository",
    "SqlAlchemySessionTokenRepository",
]
