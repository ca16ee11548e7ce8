# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from auth_service.domain.users.entities import AuthTokens, PublicUser, RegistrationResult
from auth_service.shared.errors.validation_types import ValidationErrorType

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(value: str) -> str:
    if not value:
        raise PydanticCustomError(ValidationErrorType.MISSING, "Email cannot be empty", {})
    if not _EMAIL_RE.match(value):
        raise PydanticCustomError(
            ValidationErrorType.EMAIL_INVALID,
            "Email must look like name@domain.tld",
            {"pattern": _EMAIL_RE.pattern},
        )
    return value


class RegisterRequestDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(max_length=320)
    password: str = Field(min_length=8, max_length=128)
    display_name: str = Field(alias="displayName", min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError(
                ValidationErrorType.DISPLAY_NAME_BLANK,
                "Display name cannot be blank",
                {},
            )
        return value


class LoginRequestDTO(BaseModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class RefreshRequestDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(alias="refreshToken", min_length=1)

    @field_validator("refresh_token")
    @classmethod
    def validate_refresh_token(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError(
                ValidationErrorType.TOKEN_BLANK,
                "Refresh token cannot be blank",
                {},
            )
        return value


class RevokeRequestDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(alias="userId")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class TokenPairDTO(_CamelModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    @classmethod
    def from_tokens(cls, tokens: AuthTokens) -> TokenPairDTO:
        return cls(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


class PublicUserDTO(_CamelModel):
    id: str
    email: str
    display_name: str = Field(alias="displayName")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_user(cls, user: PublicUser) -> PublicUserDTO:
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            created_at=user.created_at,
        )


class RegisterResponseDTO(TokenPairDTO):
    user: PublicUserDTO

    @classmethod
    def from_result(cls, result: RegistrationResult) -> RegisterResponseDTO:
        return cls(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            user=PublicUserDTO.from_user(result.user),
        )
