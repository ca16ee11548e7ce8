# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import (
    AccessClaims,
    AuthTokens,
    PublicUser,
    RefreshClaims,
    RegistrationResult,
    SessionToken,
    UserCredential,
    UserRegistered,
)
from .exceptions import (
    DuplicateEmailError,
    EmailAlreadyExistsError,
    IntegrityAnomalyError,
    InvalidTokenError,
    UnauthorizedError,
)

__all__ = [
    "AccessClaims",
    "AuthTokens",
    "PublicUser",
    "RefreshClaims",
    "RegistrationResult",
    "SessionToken",
    "UserCredential",
    "UserRegistered",
    "DuplicateEmailError",
    "EmailAlreadyExistsError",
    "IntegrityAnomalyError",
    "InvalidTokenError",
    "UnauthorizedError",
]
