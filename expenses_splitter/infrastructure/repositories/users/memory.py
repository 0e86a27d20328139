# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Process-local stores, used for tests and single-process setups."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from threading import Lock

from expenses_splitter.domain.users.entities import SessionState, User
from expenses_splitter.domain.users.exceptions import DuplicateUsernameError
from expenses_splitter.domain.users.repositories import SessionRepository, UserRepository
from expenses_splitter.infrastructure.repositories.users.sqlalchemy_user_repository import \
    TOKEN_BYTES
from expenses_splitter.shared.logging import logger


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._by_id: dict[int, User] = {}
        self._next_id = 1

    def find_by_username(self, username: str) -> User | None:
        with self._lock:
            for user in self._by_id.values():
                if user.username == username:
                    return user
        return None

    def find_by_id(self, user_id: int) -> User | None:
        with self._lock:
            return self._by_id.get(user_id)

    def add(self, username: str, password_hash: str) -> User:
        with self._lock:
            if any(user.username == username for user in self._by_id.values()):
                raise DuplicateUsernameError()
            user = User(
                id=self._next_id,
                username=username,
                password_hash=password_hash,
                created_at=datetime.now(UTC),
            )
            self._by_id[user.id] = user
            self._next_id += 1
        return user


class InMemorySessionRepository(SessionRepository):
    def __init__(
        self,
        *,
        lifetime: timedelta,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._lifetime = lifetime
        self._clock = clock or (lambda: datetime.now(UTC))
        self._lock = Lock()
        self._states: dict[str, SessionState] = {}

    def load(self, token: str) -> SessionState | None:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            state = self._states.get(token)
            if state is None:
                return None
            if state.is_expired(now):
                del self._states[token]
                return None
            return state

    def create(self) -> SessionState:
        now = self._clock()
        with self._lock:
            token = secrets.token_urlsafe(TOKEN_BYTES)
            while token in self._states:
                token = secrets.token_urlsafe(TOKEN_BYTES)
            state = SessionState(
                token=token,
                user_id=None,
                created_at=now,
                expires_at=now + self._lifetime,
            )
            self._states[token] = state
        return state

    def save(self, state: SessionState) -> SessionState:
        saved = replace(state, expires_at=self._clock() + self._lifetime, data=dict(state.data))
        with self._lock:
            self._states[saved.token] = saved
        return saved

    def rotate(self, state: SessionState) -> SessionState:
        now = self._clock()
        with self._lock:
            token = secrets.token_urlsafe(TOKEN_BYTES)
            while token in self._states:
                token = secrets.token_urlsafe(TOKEN_BYTES)
            rotated = replace(
                state,
                token=token,
                created_at=now,
                expires_at=now + self._lifetime,
                data=dict(state.data),
            )
            self._states.pop(state.token, None)
            self._states[token] = rotated
        return rotated

    def delete(self, token: str) -> None:
        with self._lock:
            self._states.pop(token, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [token for token, state in self._states.items() if state.is_expired(now)]
            for token in expired:
                del self._states[token]
        logger.info(f"sessions: purged {len(expired)} expired sessions")
        return len(expired)
