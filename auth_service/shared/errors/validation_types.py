# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from enum import StrEnum


class ValidationErrorType(StrEnum):
    MISSING = "missing"
    EMAIL_INVALID = "email_invalid"
    DISPLAY_NAME_BLANK = "display_name_blank"
    TOKEN_BLANK = "token_blank"


__all__ = ["ValidationErrorType"]
