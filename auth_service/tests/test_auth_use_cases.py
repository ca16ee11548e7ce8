from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from auth_service.application.use_cases.users import (
    LoginUserUseCase,
    RefreshSessionUseCase,
    RegisterUserUseCase,
    RevokeSessionsUseCase,
)
from auth_service.domain.users.exceptions import (
    EmailAlreadyExistsError,
    IntegrityAnomalyError,
    UnauthorizedError,
)
from auth_service.infrastructure.messaging import BackgroundRegistrationNotifier

from .conftest import AuthFixture, FailingNotifier


def _register(auth: AuthFixture, notifier=None) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        credentials=auth.credentials,
        uow_factory=auth.uow_factory,
        password_hasher=auth.hasher,
        token_codec=auth.codec,
        notifier=notifier or auth.notifier,
    )


def _login(auth: AuthFixture) -> LoginUserUseCase:
    return LoginUserUseCase(
        credentials=auth.credentials,
        tokens=auth.tokens,
        password_hasher=auth.hasher,
        token_codec=auth.codec,
    )


def _refresh(auth: AuthFixture, *, atomic: bool = False) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(
        credentials=auth.credentials,
        tokens=auth.tokens,
        token_codec=auth.codec,
        uow_factory=auth.uow_factory if atomic else None,
        clock=auth.clock,
    )


# Register


def test_register_creates_user_session_and_event(auth: AuthFixture) -> None:
    result = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")

    assert result.user.email == "alice@example.com"
    assert result.user.display_name == "Alice"
    stored = auth.credentials.find_by_email("alice@example.com")
    assert stored is not None
    assert stored.password_hash == "hashed:s3cret-pass"

    access = auth.codec.verify_access(result.tokens.access_token)
    refresh = auth.codec.verify_refresh(result.tokens.refresh_token)
    assert access.subject_id == result.user.id
    assert access.email == "alice@example.com"
    assert auth.tokens.find_by_token_and_user(refresh.token_id, result.user.id) is not None

    assert [event.id for event in auth.notifier.events] == [result.user.id]
    assert auth.notifier.events[0].to_payload()["displayName"] == "Alice"


def test_register_duplicate_email_is_rejected(auth: AuthFixture) -> None:
    register = _register(auth)
    register.execute("alice@example.com", "s3cret-pass", "Alice")

    with pytest.raises(EmailAlreadyExistsError):
        register.execute("alice@example.com", "other-pass", "Alice Again")

    assert len(auth.store.users) == 1
    assert len(auth.notifier.events) == 1


def test_register_email_is_case_sensitive(auth: AuthFixture) -> None:
    register = _register(auth)
    register.execute("alice@example.com", "s3cret-pass", "Alice")
    register.execute("Alice@example.com", "s3cret-pass", "Alice Upper")

    assert len(auth.store.users) == 2


def test_register_losing_a_race_past_the_precheck_is_a_conflict(auth: AuthFixture) -> None:
    _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    tokens_before = dict(auth.store.tokens)

    class BlindPrecheck:
        def find_by_email(self, email: str):
            return None

    racing = RegisterUserUseCase(
        credentials=BlindPrecheck(),
        uow_factory=auth.uow_factory,
        password_hasher=auth.hasher,
        token_codec=auth.codec,
        notifier=auth.notifier,
    )

    with pytest.raises(EmailAlreadyExistsError):
        racing.execute("alice@example.com", "other-pass", "Alice Twin")

    assert len(auth.store.users) == 1
    assert auth.store.tokens == tokens_before


def test_register_rolls_back_credential_when_session_creation_fails(
    auth: AuthFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _broken_create(user_id: str):
        raise RuntimeError("token store down")

    monkeypatch.setattr(auth.tokens, "create", _broken_create)

    with pytest.raises(RuntimeError):
        _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")

    assert auth.credentials.find_by_email("alice@example.com") is None
    assert auth.notifier.events == []


def test_register_succeeds_when_notifier_fails(auth: AuthFixture) -> None:
    result = _register(auth, notifier=FailingNotifier()).execute(
        "alice@example.com", "s3cret-pass", "Alice"
    )

    assert auth.credentials.find_by_id(result.user.id) is not None


def test_register_does_not_wait_for_background_delivery(auth: AuthFixture) -> None:
    release = threading.Event()
    delivered = threading.Event()

    class SlowNotifier:
        def publish(self, event) -> None:
            release.wait(timeout=5)
            delivered.set()

    background = BackgroundRegistrationNotifier(SlowNotifier(), max_workers=1)
    try:
        _register(auth, notifier=background).execute("alice@example.com", "s3cret-pass", "Alice")
        assert not delivered.is_set()
        release.set()
        assert delivered.wait(timeout=5)
    finally:
        release.set()
        background.shutdown()


# Login


def test_login_issues_tokens_for_valid_credentials(auth: AuthFixture) -> None:
    user = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice").user

    tokens = _login(auth).execute("alice@example.com", "s3cret-pass")

    assert auth.codec.verify_access(tokens.access_token).subject_id == user.id
    claims = auth.codec.verify_refresh(tokens.refresh_token)
    assert auth.tokens.find_by_token_and_user(claims.token_id, user.id) is not None


def test_login_wrong_password_and_unknown_email_fail_alike(auth: AuthFixture) -> None:
    _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    login = _login(auth)

    with pytest.raises(UnauthorizedError) as wrong_password:
        login.execute("alice@example.com", "wrong-pass")
    with pytest.raises(UnauthorizedError) as unknown_email:
        login.execute("bob@example.com", "s3cret-pass")

    assert wrong_password.value.to_dict() == unknown_email.value.to_dict()


def test_login_unknown_email_still_verifies_a_password(auth: AuthFixture) -> None:
    with pytest.raises(UnauthorizedError):
        _login(auth).execute("ghost@example.com", "whatever-pass")

    assert auth.hasher.verify_calls == 1


# Refresh


def test_refresh_rotates_the_session(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    refresh = _refresh(auth)

    rotated = refresh.execute(registered.tokens.refresh_token)

    old_id = auth.codec.verify_refresh(registered.tokens.refresh_token).token_id
    new_id = auth.codec.verify_refresh(rotated.refresh_token).token_id
    assert old_id != new_id
    assert auth.tokens.find_by_token_and_user(old_id, registered.user.id) is None
    assert auth.tokens.find_by_token_and_user(new_id, registered.user.id) is not None
    assert auth.codec.verify_access(rotated.access_token).email == "alice@example.com"


def test_refresh_token_is_single_use(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    refresh = _refresh(auth)
    refresh.execute(registered.tokens.refresh_token)

    for _ in range(2):
        with pytest.raises(UnauthorizedError):
            refresh.execute(registered.tokens.refresh_token)


def test_refresh_with_atomic_rotation(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    refresh = _refresh(auth, atomic=True)

    rotated = refresh.execute(registered.tokens.refresh_token)

    assert len(auth.store.tokens) == 1
    with pytest.raises(UnauthorizedError):
        refresh.execute(registered.tokens.refresh_token)
    assert refresh.execute(rotated.refresh_token).access_token


def test_expired_session_is_rejected_and_removed() -> None:
    auth = AuthFixture(ttl=timedelta(days=1))
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    token_id = auth.codec.verify_refresh(registered.tokens.refresh_token).token_id
    refresh = _refresh(auth)

    auth.clock.advance(timedelta(days=2))

    with pytest.raises(UnauthorizedError):
        refresh.execute(registered.tokens.refresh_token)
    assert token_id not in auth.store.tokens
    with pytest.raises(UnauthorizedError):
        refresh.execute(registered.tokens.refresh_token)


def test_refresh_rejects_invalid_tokens(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    refresh = _refresh(auth)

    with pytest.raises(UnauthorizedError):
        refresh.execute("garbage")
    with pytest.raises(UnauthorizedError):
        refresh.execute(registered.tokens.access_token)


def test_refresh_for_missing_user_is_an_integrity_anomaly(auth: AuthFixture) -> None:
    session = auth.tokens.create("vanished-user")
    token = auth.codec.sign_refresh("vanished-user", session.token_id)

    with pytest.raises(UnauthorizedError) as exc_info:
        _refresh(auth).execute(token)

    assert isinstance(exc_info.value.__cause__, IntegrityAnomalyError)


def test_concurrent_redemption_loses_when_row_already_consumed(
    auth: AuthFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    monkeypatch.setattr(auth.tokens, "delete_by_token_id", lambda token_id: False)

    with pytest.raises(UnauthorizedError):
        _refresh(auth).execute(registered.tokens.refresh_token)

    assert len(auth.store.tokens) == 1


# Revoke


def test_revoke_invalidates_every_outstanding_refresh_token(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    second = _login(auth).execute("alice@example.com", "s3cret-pass")
    refresh = _refresh(auth)

    RevokeSessionsUseCase(tokens=auth.tokens).execute(registered.user.id)

    for token in (registered.tokens.refresh_token, second.refresh_token):
        with pytest.raises(UnauthorizedError):
            refresh.execute(token)


def test_revoke_without_sessions_is_a_no_op(auth: AuthFixture) -> None:
    RevokeSessionsUseCase(tokens=auth.tokens).execute("nobody")

    assert auth.store.tokens == {}


def test_alice_scenario(auth: AuthFixture) -> None:
    registered = _register(auth).execute("alice@example.com", "s3cret-pass", "Alice")
    refresh = _refresh(auth)

    rotated = refresh.execute(registered.tokens.refresh_token)
    with pytest.raises(UnauthorizedError):
        refresh.execute(registered.tokens.refresh_token)

    RevokeSessionsUseCase(tokens=auth.tokens).execute(registered.user.id)
    with pytest.raises(UnauthorizedError):
        refresh.execute(rotated.refresh_token)
