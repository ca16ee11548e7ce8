# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from auth_service.shared.errors.base import DomainError


class EmailAlreadyExistsError(DomainError):
    code = "email_exists"
    status = HTTPStatus.CONFLICT


class DuplicateEmailError(DomainError):
    """Raised by the credential store when its unique constraint rejects an insert."""

    code = "duplicate_email"
    status = HTTPStatus.CONFLICT


class UnauthorizedError(DomainError):
    """Every authentication failure, deliberately indistinguishable to clients."""

    code = "unauthorized"
    status = HTTPStatus.UNAUTHORIZED


class InvalidTokenError(DomainError):
    code = "invalid_token"
    status = HTTPStatus.UNAUTHORIZED


class IntegrityAnomalyError(DomainError):
    code = "integrity_anomaly"
    status = HTTPStatus.INTERNAL_SERVER_ERROR
