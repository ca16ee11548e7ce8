# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, jsonify
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth_service.infrastructure.health import check_database
from auth_service.shared.logging import logger


class MiscController:
    def __init__(self, *, engine: Engine, service_name: str = "auth-service") -> None:
        self._engine = engine
        self._service_name = service_name

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("misc", __name__)
        bp.add_url_rule("/health", view_func=self.health, methods=["GET"])
        return bp

    def health(self):
        status: dict[str, object] = {"status": "ok", "service": self._service_name}
        try:
            check_database(self._engine)
            status["database"] = "ok"
        except SQLAlchemyError as exc:
            logger.error(f"health: database check failed error={type(exc).__name__}")
            status["status"] = "degraded"
            status["database"] = "unavailable"
            return jsonify(status), 503
        return jsonify(status), 200
