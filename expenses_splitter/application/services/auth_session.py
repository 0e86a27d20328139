# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Per-request view of the caller's session and identity."""

from __future__ import annotations

from dataclasses import replace

from expenses_splitter.domain.users.entities import SessionState, User
from expenses_splitter.domain.users.repositories import UserRepository
from expenses_splitter.shared.logging import logger


class AuthSession:
    """Single authority over the identity bound to one request's session.

    Built once per request by the session binder and handed to handlers.
    Identity changes stay in memory until the binder saves the state after a
    successful response.
    """

    def __init__(
        self, *, state: SessionState, users: UserRepository, is_new: bool = False
    ) -> None:
        self._state = state
        self._users = users
        self._is_new = is_new
        self._initial_user_id = state.user_id
        self._modified = False
        self._user: User | None = None
        self._resolved = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> str:
        return self._state.token

    @property
    def user_id(self) -> int | None:
        return self._state.user_id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def identity_changed(self) -> bool:
        return self._state.user_id != self._initial_user_id

    def current_user(self) -> User | None:
        if self._state.user_id is None:
            return None
        if not self._resolved:
            user = self._users.find_by_id(self._state.user_id)
            self._resolved = True
            if user is None:
                logger.warning(
                    f"auth.session: user_id={self._state.user_id} no longer exists, dropping identity"
                )
                self.logout()
                return None
            self._user = user
        return self._user

    def login(self, user_id: int) -> None:
        if self._state.user_id == user_id:
            return
        self._state = replace(self._state, user_id=user_id)
        self._modified = True
        self._user = None
        self._resolved = False

    def logout(self) -> None:
        if self._state.user_id is None:
            return
        self._state = replace(self._state, user_id=None)
        self._modified = True
        self._user = None
