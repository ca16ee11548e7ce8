# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .login_user import LoginUserUseCase
from .refresh_session import RefreshSessionUseCase
from .register_user import RegisterUserUseCase
from .revoke_sessions import RevokeSessionsUseCase

__all__ = [
    "LoginUserUseCase",
    "RefreshSessionUseCase",
    "RegisterUserUseCase",
    "RevokeSessionsUseCase",
]
