# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Use-case for revoking every outstanding refresh grant of a user."""

from __future__ import annotations

from auth_service.domain.users.repositories import SessionTokenRepository
from auth_service.shared.logging import logger


class RevokeSessionsUseCase:
    def __init__(self, *, tokens: SessionTokenRepository) -> None:
        self._tokens = tokens

    def execute(self, user_id: str) -> None:
        removed = self._tokens.delete_all_for_user(user_id)
        logger.info(f"auth.revoke: user_id={user_id} sessions_removed={removed}")
