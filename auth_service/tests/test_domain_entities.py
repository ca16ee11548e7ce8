from datetime import UTC, datetime, timedelta

import pytest

from auth_service.domain import InvariantViolation
from auth_service.domain.users.entities import SessionToken, UserCredential, UserRegistered

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def test_credential_requires_aware_timestamp() -> None:
    with pytest.raises(InvariantViolation) as exc_info:
        UserCredential(
            id="u1",
            email="alice@example.com",
            display_name="Alice",
            password_hash="h",
            created_at=datetime(2025, 1, 1),
        )
    assert exc_info.value.field == "created_at"


def test_public_projection_drops_password_hash() -> None:
    user = UserCredential(
        id="u1", email="alice@example.com", display_name="Alice", password_hash="h", created_at=NOW
    )

    public = user.public()

    assert not hasattr(public, "password_hash")
    assert UserRegistered.from_user(public).to_payload() == {
        "id": "u1",
        "email": "alice@example.com",
        "displayName": "Alice",
        "createdAt": "2025-01-01T00:00:00+00:00",
    }


def test_session_token_expiry_boundary() -> None:
    token = SessionToken(token_id="t1", user_id="u1", expires_at=NOW, created_at=NOW - timedelta(days=1))

    assert token.is_expired(NOW) is False
    assert token.is_expired(NOW + timedelta(microseconds=1)) is True
