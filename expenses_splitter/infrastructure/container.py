# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import timedelta
from functools import cached_property

from expenses_splitter.application.services.password_hashing import \
    WerkzeugPasswordHasher
from expenses_splitter.application.use_cases.users.get_current_user import \
    GetCurrentUserUseCase
from expenses_splitter.application.use_cases.users.login_user import LoginUserUseCase
from expenses_splitter.application.use_cases.users.logout_user import LogoutUserUseCase
from expenses_splitter.application.use_cases.users.register_user import \
    RegisterUserUseCase
from expenses_splitter.domain.users.policy import CredentialPolicy
from expenses_splitter.domain.users.repositories import SessionRepository, UserRepository
from expenses_splitter.infrastructure.db import SessionLocal
from expenses_splitter.infrastructure.repositories.users.memory import \
    InMemorySessionRepository
from expenses_splitter.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemySessionRepository, SqlAlchemyUserRepository)
from expenses_splitter.interfaces.http.controllers.auth_controller import AuthController
from expenses_splitter.interfaces.http.controllers.misc_controller import MiscController
from expenses_splitter.interfaces.http.session_binder import SessionBinder
from expenses_splitter.shared.config import AppConfig, load_config


class Container:
    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config

    @cached_property
    def config(self) -> AppConfig:
        return self._config or load_config()

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        policy = self.config.auth_policy
        return WerkzeugPasswordHasher(method=policy.hash_method, salt_length=policy.salt_length)

    @cached_property
    def credential_policy(self) -> CredentialPolicy:
        policy = self.config.auth_policy
        return CredentialPolicy(
            username_min_length=policy.username_min_length,
            password_min_length=policy.password_min_length,
        )

    @cached_property
    def user_repository(self) -> UserRepository:
        return SqlAlchemyUserRepository(SessionLocal)

    @cached_property
    def session_repository(self) -> SessionRepository:
        lifetime = timedelta(seconds=self.config.sessions.lifetime_seconds)
        if self.config.sessions.backend == "memory":
            return InMemorySessionRepository(lifetime=lifetime)
        return SqlAlchemySessionRepository(SessionLocal, lifetime=lifetime)

    @cached_property
    def get_current_user_use_case(self) -> GetCurrentUserUseCase:
        return GetCurrentUserUseCase()

    @cached_property
    def register_user_use_case(self) -> RegisterUserUseCase:
        return RegisterUserUseCase(
            users=self.user_repository,
            password_hasher=self.password_hasher,
            policy=self.credential_policy,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            users=self.user_repository,
            password_hasher=self.password_hasher,
        )

    @cached_property
    def logout_user_use_case(self) -> LogoutUserUseCase:
        return LogoutUserUseCase()

    @cached_property
    def session_binder(self) -> SessionBinder:
        return SessionBinder(
            sessions=self.session_repository,
            users=self.user_repository,
            config=self.config,
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            get_current_user_use_case=self.get_current_user_use_case,
            register_use_case=self.register_user_use_case,
            login_use_case=self.login_user_use_case,
            logout_use_case=self.logout_user_use_case,
            landing_route=self.config.landing_route,
            expose_failure_reason=self.config.security.expose_login_failure_reason,
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController()


container = Container()
