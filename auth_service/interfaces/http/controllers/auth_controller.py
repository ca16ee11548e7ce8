# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request
from pydantic import ValidationError

from auth_service.application.use_cases.users import (
    LoginUserUseCase,
    RefreshSessionUseCase,
    RegisterUserUseCase,
    RevokeSessionsUseCase,
)
from auth_service.domain.users.exceptions import UnauthorizedError
from auth_service.infrastructure.audit import AuditAction, audit_log
from auth_service.interfaces.http.dto.auth import (
    LoginRequestDTO,
    RefreshRequestDTO,
    RegisterRequestDTO,
    RegisterResponseDTO,
    RevokeRequestDTO,
    TokenPairDTO,
)
from auth_service.shared.errors.validation import raise_validation_error
from auth_service.shared.middleware.rate_limit import InMemoryRateLimiter, rate_limited


def _get_client_ip() -> str | None:
    ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
    if ip_address and "," in ip_address:
        ip_address = ip_address.split(",")[0].strip()
    return ip_address


class AuthController:
    def __init__(
        self,
        *,
        register_use_case: RegisterUserUseCase,
        login_use_case: LoginUserUseCase,
        refresh_use_case: RefreshSessionUseCase,
        revoke_use_case: RevokeSessionsUseCase,
        rate_limiter: InMemoryRateLimiter | None = None,
    ) -> None:
        self._register_use_case = register_use_case
        self._login_use_case = login_use_case
        self._refresh_use_case = refresh_use_case
        self._revoke_use_case = revoke_use_case
        self._rate_limiter = rate_limiter

    def register(self) -> tuple[Response, int]:
        try:
            dto = RegisterRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        result = self._register_use_case.execute(dto.email, dto.password, dto.display_name)

        audit_log(
            AuditAction.REGISTER,
            user_id=result.user.id,
            ip_address=_get_client_ip(),
            details={"email": dto.email},
            success=True,
        )
        return jsonify(RegisterResponseDTO.from_result(result).to_json()), 201

    def login(self) -> tuple[Response, int]:
        try:
            dto = LoginRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            tokens = self._login_use_case.execute(dto.email, dto.password)
        except UnauthorizedError:
            audit_log(
                AuditAction.LOGIN_FAILED,
                ip_address=ip_address,
                details={"email": dto.email},
                success=False,
            )
            raise

        audit_log(
            AuditAction.LOGIN_SUCCESS,
            ip_address=ip_address,
            details={"email": dto.email},
            success=True,
        )
        return jsonify(TokenPairDTO.from_tokens(tokens).to_json()), 200

    def refresh(self) -> tuple[Response, int]:
        try:
            dto = RefreshRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            tokens = self._refresh_use_case.execute(dto.refresh_token)
        except UnauthorizedError:
            audit_log(AuditAction.TOKEN_REFRESH_FAILED, ip_address=ip_address, success=False)
            raise

        audit_log(AuditAction.TOKEN_REFRESHED, ip_address=ip_address, success=True)
        return jsonify(TokenPairDTO.from_tokens(tokens).to_json()), 200

    def revoke(self) -> tuple[Response, int]:
        try:
            dto = RevokeRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        user_id = str(dto.user_id)
        self._revoke_use_case.execute(user_id)

        audit_log(
            AuditAction.SESSIONS_REVOKED,
            user_id=user_id,
            ip_address=_get_client_ip(),
            success=True,
        )
        return Response(status=204), 204

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__)
        bp.add_url_rule(
            "/register",
            endpoint="register",
            view_func=rate_limited(self.register, self._rate_limiter),
            methods=["POST"],
        )
        bp.add_url_rule(
            "/login",
            endpoint="login",
            view_func=rate_limited(self.login, self._rate_limiter),
            methods=["POST"],
        )
        bp.add_url_rule("/refresh", view_func=self.refresh, methods=["POST"])
        bp.add_url_rule("/revoke", view_func=self.revoke, methods=["POST"])
        return bp
