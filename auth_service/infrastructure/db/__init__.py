# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .session import (
    Base,
    SessionFactory,
    build_session_factory,
    create_db_engine,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "SessionFactory",
    "build_session_factory",
    "create_db_engine",
    "init_db",
    "session_scope",
]
