# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hmac
from collections.abc import Iterable

from flask import Flask, jsonify, request

from auth_service.shared.logging import logger

INTERNAL_TOKEN_HEADER = "X-Internal-Token"


def configure_internal_auth(
    app: Flask,
    token: str | None,
    *,
    exempt_paths: Iterable[str] = ("/health",),
) -> None:
    """Require the shared internal token on every request outside ``exempt_paths``."""
    if not token:
        logger.warning("internal_auth: INTERNAL_API_TOKEN not set, endpoints are open")
        return

    expected = token.encode()
    exempt = frozenset(exempt_paths)

    @app.before_request
    def _require_internal_token():
        if request.method == "OPTIONS" or request.path in exempt:
            return None
        presented = (request.headers.get(INTERNAL_TOKEN_HEADER) or "").encode()
        if hmac.compare_digest(presented, expected):
            return None
        logger.warning(f"internal_auth: rejected {request.method} {request.path}")
        return jsonify({"error": "unauthorized"}), 401


__all__ = ["INTERNAL_TOKEN_HEADER", "configure_internal_auth"]
