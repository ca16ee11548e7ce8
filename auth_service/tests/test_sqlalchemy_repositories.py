from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError

from auth_service.domain.users.exceptions import DuplicateEmailError
from auth_service.infrastructure.db import build_session_factory, create_db_engine, init_db
from auth_service.infrastructure.db.models import UserCredential
from auth_service.infrastructure.repositories.users import (
    SqlAlchemyCredentialRepository,
    SqlAlchemySessionTokenRepository,
)
from auth_service.infrastructure.unit_of_work import SqlAlchemyUnitOfWork
from auth_service.shared.config import DatabaseConfig

from .conftest import FixedClock


@pytest.fixture()
def engine() -> Engine:
    engine = create_db_engine(DatabaseConfig(url="sqlite://"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine):
    return build_session_factory(engine)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def credentials(session_factory, clock: FixedClock) -> SqlAlchemyCredentialRepository:
    return SqlAlchemyCredentialRepository(session_factory, clock=clock)


@pytest.fixture()
def tokens(session_factory, clock: FixedClock) -> SqlAlchemySessionTokenRepository:
    return SqlAlchemySessionTokenRepository(session_factory, ttl=timedelta(days=30), clock=clock)


def test_create_and_find_credential(credentials: SqlAlchemyCredentialRepository) -> None:
    created = credentials.create(
        email="alice@example.com", display_name="Alice", password_hash="hash"
    )

    by_email = credentials.find_by_email("alice@example.com")
    by_id = credentials.find_by_id(created.id)

    assert by_email == by_id == created
    assert len(created.id) == 36
    assert created.created_at.tzinfo is not None
    assert credentials.find_by_email("ALICE@example.com") is None


def test_duplicate_email_is_rejected_by_the_store(
    credentials: SqlAlchemyCredentialRepository, session_factory
) -> None:
    credentials.create(email="alice@example.com", display_name="Alice", password_hash="hash")

    with pytest.raises(DuplicateEmailError):
        credentials.create(email="alice@example.com", display_name="Twin", password_hash="hash")

    with session_factory() as session:
        rows = session.execute(select(UserCredential)).scalars().all()
    assert [row.display_name for row in rows] == ["Alice"]


def test_session_token_lifecycle(
    credentials: SqlAlchemyCredentialRepository,
    tokens: SqlAlchemySessionTokenRepository,
    clock: FixedClock,
) -> None:
    user = credentials.create(email="alice@example.com", display_name="Alice", password_hash="h")

    first = tokens.create(user.id)
    second = tokens.create(user.id)

    assert first.token_id != second.token_id
    found = tokens.find_by_token_and_user(first.token_id, user.id)
    assert found is not None
    assert found.expires_at == clock() + timedelta(days=30)
    assert tokens.find_by_token_and_user(first.token_id, "someone-else") is None

    assert tokens.delete_by_token_id(first.token_id) is True
    assert tokens.delete_by_token_id(first.token_id) is False
    assert tokens.delete_all_for_user(user.id) == 1
    assert tokens.delete_all_for_user(user.id) == 0


def test_expiry_survives_the_round_trip(
    credentials: SqlAlchemyCredentialRepository,
    tokens: SqlAlchemySessionTokenRepository,
    clock: FixedClock,
) -> None:
    user = credentials.create(email="alice@example.com", display_name="Alice", password_hash="h")
    session = tokens.create(user.id)

    stored = tokens.find_by_token_and_user(session.token_id, user.id)
    assert stored is not None
    assert not stored.is_expired(clock() + timedelta(days=30))
    assert stored.is_expired(clock() + timedelta(days=30, seconds=1))


def test_unit_of_work_commits_both_writes(session_factory, clock: FixedClock) -> None:
    with SqlAlchemyUnitOfWork(session_factory, clock=clock) as uow:
        user = uow.credentials.create(
            email="alice@example.com", display_name="Alice", password_hash="h"
        )
        session = uow.tokens.create(user.id)

    credentials = SqlAlchemyCredentialRepository(session_factory)
    tokens = SqlAlchemySessionTokenRepository(session_factory)
    assert credentials.find_by_id(user.id) is not None
    assert tokens.find_by_token_and_user(session.token_id, user.id) is not None


def test_unit_of_work_rolls_back_on_error(session_factory, clock: FixedClock) -> None:
    with pytest.raises(RuntimeError):
        with SqlAlchemyUnitOfWork(session_factory, clock=clock) as uow:
            uow.credentials.create(
                email="alice@example.com", display_name="Alice", password_hash="h"
            )
            raise RuntimeError("session store failed")

    assert SqlAlchemyCredentialRepository(session_factory).find_by_email("alice@example.com") is None


def test_unit_of_work_rolls_back_duplicate_email(session_factory, clock: FixedClock) -> None:
    credentials = SqlAlchemyCredentialRepository(session_factory, clock=clock)
    credentials.create(email="alice@example.com", display_name="Alice", password_hash="h")

    with pytest.raises(DuplicateEmailError):
        with SqlAlchemyUnitOfWork(session_factory, clock=clock) as uow:
            uow.credentials.create(
                email="alice@example.com", display_name="Twin", password_hash="h"
            )

    assert credentials.find_by_email("alice@example.com").display_name == "Alice"


def test_session_token_requires_existing_user(tokens: SqlAlchemySessionTokenRepository) -> None:
    with pytest.raises(IntegrityError):
        tokens.create("00000000-0000-0000-0000-000000000000")
