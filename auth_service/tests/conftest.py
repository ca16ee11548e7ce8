from __future__ import annotations

import copy
import uuid
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from auth_service.application.services.token_codec import JwtTokenCodec
from auth_service.domain.users.entities import SessionToken, UserCredential, UserRegistered
from auth_service.domain.users.exceptions import DuplicateEmailError
from auth_service.domain.users.repositories import (
    CredentialRepository,
    PasswordHasher,
    SessionTokenRepository,
)
from auth_service.shared.config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    MessagingConfig,
    SecurityConfig,
)

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012"


class FixedClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemoryStore:
    def __init__(self) -> None:
        self.users: dict[str, UserCredential] = {}
        self.tokens: dict[str, SessionToken] = {}

    def snapshot(self) -> tuple[dict[str, UserCredential], dict[str, SessionToken]]:
        return copy.copy(self.users), copy.copy(self.tokens)

    def restore(self, state: tuple[dict[str, UserCredential], dict[str, SessionToken]]) -> None:
        self.users, self.tokens = state


class InMemoryCredentialRepository(CredentialRepository):
    def __init__(self, store: InMemoryStore, clock: FixedClock) -> None:
        self._store = store
        self._clock = clock

    def find_by_email(self, email: str) -> UserCredential | None:
        return next((u for u in self._store.users.values() if u.email == email), None)

    def find_by_id(self, user_id: str) -> UserCredential | None:
        return self._store.users.get(user_id)

    def create(self, *, email: str, display_name: str, password_hash: str) -> UserCredential:
        if any(u.email == email for u in self._store.users.values()):
            raise DuplicateEmailError()
        user = UserCredential(
            id=str(uuid.uuid4()),
            email=email,
            display_name=display_name,
            password_hash=password_hash,
            created_at=self._clock(),
        )
        self._store.users[user.id] = user
        return user


class InMemorySessionTokenRepository(SessionTokenRepository):
    def __init__(self, store: InMemoryStore, clock: FixedClock, ttl: timedelta) -> None:
        self._store = store
        self._clock = clock
        self._ttl = ttl
        self._seq = 0

    def create(self, user_id: str) -> SessionToken:
        self._seq += 1
        now = self._clock()
        token = SessionToken(
            token_id=f"tok-{self._seq}-{uuid.uuid4().hex[:8]}",
            user_id=user_id,
            expires_at=now + self._ttl,
            created_at=now,
        )
        self._store.tokens[token.token_id] = token
        return token

    def find_by_token_and_user(self, token_id: str, user_id: str) -> SessionToken | None:
        token = self._store.tokens.get(token_id)
        if token is None or token.user_id != user_id:
            return None
        return token

    def delete_by_token_id(self, token_id: str) -> bool:
        return self._store.tokens.pop(token_id, None) is not None

    def delete_all_for_user(self, user_id: str) -> int:
        doomed = [t for t, rec in self._store.tokens.items() if rec.user_id == user_id]
        for token_id in doomed:
            del self._store.tokens[token_id]
        return len(doomed)


class InMemoryUnitOfWork:
    def __init__(
        self,
        store: InMemoryStore,
        credentials: CredentialRepository,
        tokens: SessionTokenRepository,
    ) -> None:
        self._store = store
        self.credentials = credentials
        self.tokens = tokens
        self._saved: tuple | None = None

    def __enter__(self) -> InMemoryUnitOfWork:
        self._saved = self._store.snapshot()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None and self._saved is not None:
            self._store.restore(self._saved)
        self._saved = None


class DeterministicHasher(PasswordHasher):
    def __init__(self) -> None:
        self.verify_calls = 0

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        self.verify_calls += 1
        return hashed == f"hashed:{password}"


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[UserRegistered] = []

    def publish(self, event: UserRegistered) -> None:
        self.events.append(event)


class FailingNotifier:
    def publish(self, event: UserRegistered) -> None:
        raise ConnectionError("bus down")


class AuthFixture:
    def __init__(self, ttl: timedelta = timedelta(days=30)) -> None:
        self.clock = FixedClock()
        self.store = InMemoryStore()
        self.credentials = InMemoryCredentialRepository(self.store, self.clock)
        self.tokens = InMemorySessionTokenRepository(self.store, self.clock, ttl)
        self.hasher = DeterministicHasher()
        self.notifier = RecordingNotifier()
        self.codec = JwtTokenCodec(
            access_secret=ACCESS_SECRET,
            refresh_secret=REFRESH_SECRET,
            access_ttl=timedelta(minutes=15),
            refresh_ttl=timedelta(days=30),
            clock=self.clock,
        )

    def uow_factory(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self.store, self.credentials, self.tokens)


@pytest.fixture()
def auth() -> AuthFixture:
    return AuthFixture()


def make_config(**security: object) -> AppConfig:
    security_kwargs: dict[str, object] = {
        "internal_api_token": None,
        "allowed_origins": ["*"],
        "enable_rate_limit": False,
    }
    security_kwargs.update(security)
    return AppConfig(
        app_env="test",
        log_file=None,
        auth=AuthConfig(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET),
        database=DatabaseConfig(url="sqlite://"),
        messaging=MessagingConfig(redis_url=None),
        security=SecurityConfig(**security_kwargs),
    )


@pytest.fixture()
def app_config() -> Iterator[AppConfig]:
    yield make_config()


@pytest.fixture()
def config_factory():
    return make_config
