# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .interfaces import RegistrationNotifier, UnitOfWorkFactory
from .use_cases.users import (
    LoginUserUseCase,
    RefreshSessionUseCase,
    RegisterUserUseCase,
    RevokeSessionsUseCase,
)

__all__ = [
    "RegistrationNotifier",
    "UnitOfWorkFactory",
    "LoginUserUseCase",
    "RefreshSessionUseCase",
    "RegisterUserUseCase",
    "RevokeSessionsUseCase",
]
