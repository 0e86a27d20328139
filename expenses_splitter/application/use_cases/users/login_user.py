# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.domain.users.entities import User
from expenses_splitter.domain.users.exceptions import UserNotFoundError, WrongPasswordError
from expenses_splitter.domain.users.repositories import PasswordHasher, UserRepository
from expenses_splitter.shared.logging import logger


class LoginUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._dummy_hash = password_hasher.hash("dummy-password-for-timing")

    def execute(self, auth: AuthSession, username: str, password: str) -> User:
        user = self._users.find_by_username(username)

        if user is None:
            # Same hashing cost as a real check so timing does not reveal the username
            self._password_hasher.verify(password, self._dummy_hash)
            logger.info("auth.login: unknown username")
            raise UserNotFoundError()

        if not self._password_hasher.verify(password, user.password_hash):
            logger.info(f"auth.login: wrong password for user_id={user.id}")
            raise WrongPasswordError()

        auth.login(user.id)
        logger.info(f"auth.login: user_id={user.id} authenticated")
        return user
