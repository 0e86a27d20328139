# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.domain.users.entities import User
from expenses_splitter.domain.users.exceptions import (DuplicateUsernameError,
                                                       PasswordMismatchError)
from expenses_splitter.domain.users.policy import CredentialPolicy
from expenses_splitter.domain.users.repositories import PasswordHasher, UserRepository
from expenses_splitter.shared.logging import logger


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
        policy: CredentialPolicy | None = None,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._policy = policy or CredentialPolicy()

    def execute(
        self, auth: AuthSession, username: str, password: str, confirm_password: str
    ) -> User:
        if password != confirm_password:
            raise PasswordMismatchError()
        self._policy.check_username(username)
        self._policy.check_password(password)

        # The unique constraint in the store settles concurrent registrations
        if self._users.find_by_username(username) is not None:
            raise DuplicateUsernameError()

        hashed = self._password_hasher.hash(password)
        user = self._users.add(username, hashed)
        logger.info(f"auth.register: created user_id={user.id}")

        auth.login(user.id)
        return user
