# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Database unit of work implementation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from auth_service.domain.users.repositories import UnitOfWork
from auth_service.infrastructure.db.session import SessionFactory
from auth_service.infrastructure.repositories.users.sqlalchemy_user_repository import (
    DEFAULT_SESSION_TTL,
    SqlAlchemyCredentialRepository,
    SqlAlchemySessionTokenRepository,
)
from auth_service.shared.errors import StoreUnavailableError
from auth_service.shared.logging import logger


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-backed unit of work.

    Repositories exposed as ``credentials`` and ``tokens`` share one session;
    leaving the block normally commits, leaving it with an exception rolls back.
    """

    credentials: SqlAlchemyCredentialRepository
    tokens: SqlAlchemySessionTokenRepository

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        token_ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._token_ttl = token_ttl
        self._clock = clock
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.credentials = SqlAlchemyCredentialRepository(session=self._session, clock=self._clock)
        self.tokens = SqlAlchemySessionTokenRepository(
            session=self._session, ttl=self._token_ttl, clock=self._clock
        )
        logger.debug("uow: session opened")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._session is not None
        session = self._session
        self._session = None
        try:
            if exc:
                logger.warning(f"uow: rollback due to {exc_type.__name__}")
                session.rollback()
                if isinstance(exc, OperationalError):
                    raise StoreUnavailableError() from exc
                return
            try:
                session.commit()
            except OperationalError as commit_exc:
                logger.error("uow: store unavailable while committing")
                session.rollback()
                raise StoreUnavailableError() from commit_exc
            except Exception:
                logger.exception("uow: exception while committing")
                session.rollback()
                raise
            logger.debug("uow: committed")
        finally:
            session.close()
            logger.debug("uow: session closed")

    @property
    def session(self) -> Session:
        if self._session is None:
            msg = "UnitOfWork session accessed before entering context"
            raise RuntimeError(msg)
        return self._session


__all__ = ["SqlAlchemyUnitOfWork"]
