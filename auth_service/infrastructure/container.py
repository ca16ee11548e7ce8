# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import cached_property

from sqlalchemy import Engine

from auth_service.application.interfaces import RegistrationNotifier
from auth_service.application.services.password_hashing import WerkzeugPasswordHasher
from auth_service.application.services.token_codec import JwtTokenCodec
from auth_service.application.use_cases.users import (
    LoginUserUseCase,
    RefreshSessionUseCase,
    RegisterUserUseCase,
    RevokeSessionsUseCase,
)
from auth_service.infrastructure.db import (
    SessionFactory,
    build_session_factory,
    create_db_engine,
)
from auth_service.infrastructure.db import init_db as _init_db
from auth_service.infrastructure.messaging import (
    BackgroundRegistrationNotifier,
    LogRegistrationNotifier,
    RedisRegistrationNotifier,
)
from auth_service.infrastructure.repositories.users import (
    SqlAlchemyCredentialRepository,
    SqlAlchemySessionTokenRepository,
)
from auth_service.infrastructure.resilience import CircuitBreaker, RetryPolicy
from auth_service.infrastructure.unit_of_work import SqlAlchemyUnitOfWork
from auth_service.interfaces.http.controllers.auth_controller import AuthController
from auth_service.interfaces.http.controllers.misc_controller import MiscController
from auth_service.shared.config import AppConfig, load_config
from auth_service.shared.logging import logger
from auth_service.shared.middleware.rate_limit import InMemoryRateLimiter


class Container:
    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or load_config()

    # Storage

    @cached_property
    def engine(self) -> Engine:
        return create_db_engine(self.config.database)

    @cached_property
    def session_factory(self) -> SessionFactory:
        return build_session_factory(self.engine)

    def init_db(self) -> None:
        _init_db(self.engine)

    @cached_property
    def credential_repository(self) -> SqlAlchemyCredentialRepository:
        return SqlAlchemyCredentialRepository(self.session_factory)

    @cached_property
    def session_token_repository(self) -> SqlAlchemySessionTokenRepository:
        return SqlAlchemySessionTokenRepository(
            self.session_factory, ttl=self.config.auth.session_ttl
        )

    def uow_factory(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory, token_ttl=self.config.auth.session_ttl)

    # Services

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher()

    @cached_property
    def token_codec(self) -> JwtTokenCodec:
        auth = self.config.auth
        return JwtTokenCodec(
            access_secret=auth.access_secret,
            refresh_secret=auth.refresh_secret,
            access_ttl=auth.access_ttl,
            refresh_ttl=auth.refresh_ttl,
            algorithm=auth.algorithm,
        )

    @cached_property
    def notifier(self) -> BackgroundRegistrationNotifier:
        messaging = self.config.messaging
        delegate: RegistrationNotifier
        if messaging.redis_url:
            delegate = RedisRegistrationNotifier.from_config(
                messaging,
                policy=RetryPolicy.from_config(self.config.resilience),
                breaker=CircuitBreaker.from_config("user-registered", self.config.resilience),
            )
            logger.info(f"events: publishing to stream {messaging.user_registered_stream}")
        else:
            delegate = LogRegistrationNotifier()
            logger.warning("events: REDIS_URL not set, registration events are only logged")
        return BackgroundRegistrationNotifier(delegate, max_workers=messaging.notifier_workers)

    # Use cases

    @cached_property
    def register_user_use_case(self) -> RegisterUserUseCase:
        return RegisterUserUseCase(
            credentials=self.credential_repository,
            uow_factory=self.uow_factory,
            password_hasher=self.password_hasher,
            token_codec=self.token_codec,
            notifier=self.notifier,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            credentials=self.credential_repository,
            tokens=self.session_token_repository,
            password_hasher=self.password_hasher,
            token_codec=self.token_codec,
        )

    @cached_property
    def refresh_session_use_case(self) -> RefreshSessionUseCase:
        return RefreshSessionUseCase(
            credentials=self.credential_repository,
            tokens=self.session_token_repository,
            token_codec=self.token_codec,
            uow_factory=self.uow_factory if self.config.auth.atomic_rotation else None,
        )

    @cached_property
    def revoke_sessions_use_case(self) -> RevokeSessionsUseCase:
        return RevokeSessionsUseCase(tokens=self.session_token_repository)

    # Controllers

    @cached_property
    def rate_limiter(self) -> InMemoryRateLimiter | None:
        security = self.config.security
        if not security.enable_rate_limit:
            return None
        return InMemoryRateLimiter(security.rate_limit_requests, security.rate_limit_window)

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            register_use_case=self.register_user_use_case,
            login_use_case=self.login_user_use_case,
            refresh_use_case=self.refresh_session_use_case,
            revoke_use_case=self.revoke_sessions_use_case,
            rate_limiter=self.rate_limiter,
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController(engine=self.engine, service_name=self.config.service_name)

    def shutdown(self) -> None:
        if "notifier" in self.__dict__:
            self.notifier.shutdown()
        if "engine" in self.__dict__:
            self.engine.dispose()
        logger.info("container: shut down")


__all__ = ["Container"]
