# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import SessionState, User


class UserRepository(Protocol):
    """Credential store. ``add`` raises DuplicateUsernameError on conflict."""

    def find_by_username(self, username: str) -> User | None: ...
    def find_by_id(self, user_id: int) -> User | None: ...
    def add(self, username: str, password_hash: str) -> User: ...


class SessionRepository(Protocol):
    """Session store. Unknown or expired tokens load as ``None``."""

    def load(self, token: str) -> SessionState | None: ...
    def create(self) -> SessionState: ...
    def save(self, state: SessionState) -> SessionState: ...
    def rotate(self, state: SessionState) -> SessionState: ...
    def delete(self, token: str) -> None: ...
    def purge_expired(self) -> int: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
