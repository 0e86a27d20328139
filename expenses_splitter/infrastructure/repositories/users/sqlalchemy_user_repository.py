# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from expenses_splitter.domain.users.entities import SessionState
from expenses_splitter.domain.users.entities import User as DomainUser
from expenses_splitter.domain.users.exceptions import (DuplicateUsernameError,
                                                       SessionUnavailableError)
from expenses_splitter.domain.users.repositories import SessionRepository, UserRepository
from expenses_splitter.infrastructure.db.models import SessionRecord, User
from expenses_splitter.infrastructure.unit_of_work import unit_of_work_scope
from expenses_splitter.shared.logging import logger

TOKEN_BYTES = 32
_CREATE_ATTEMPTS = 3


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@contextmanager
def _store_errors(store: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"{store} store unavailable: {type(exc).__name__}")
        raise SessionUnavailableError(store) from exc


def _to_domain_user(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=_as_utc(row.created_at),
    )


def _to_session_state(row: SessionRecord) -> SessionState:
    return SessionState(
        token=row.token,
        user_id=row.user_id,
        created_at=_as_utc(row.created_at),
        expires_at=_as_utc(row.expires_at),
        data=dict(row.data or {}),
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def find_by_username(self, username: str) -> DomainUser | None:
        with _store_errors("credentials"), unit_of_work_scope(self._session_factory) as session:
            row = session.scalars(select(User).where(User.username == username)).first()
            return _to_domain_user(row) if row else None

    def find_by_id(self, user_id: int) -> DomainUser | None:
        with _store_errors("credentials"), unit_of_work_scope(self._session_factory) as session:
            row = session.get(User, user_id)
            return _to_domain_user(row) if row else None

    def add(self, username: str, password_hash: str) -> DomainUser:
        with _store_errors("credentials"):
            try:
                with unit_of_work_scope(self._session_factory) as session:
                    row = User(
                        username=username,
                        password_hash=password_hash,
                        created_at=datetime.now(UTC),
                    )
                    session.add(row)
                    session.flush()
                    user = _to_domain_user(row)
            except IntegrityError as exc:
                logger.info("users: username already taken")
                raise DuplicateUsernameError() from exc
        return user


class SqlAlchemySessionRepository(SessionRepository):
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        lifetime: timedelta,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lifetime = lifetime
        self._clock = clock or (lambda: datetime.now(UTC))

    def load(self, token: str) -> SessionState | None:
        if not token:
            return None
        now = self._clock()
        with _store_errors("sessions"), unit_of_work_scope(self._session_factory) as session:
            row = session.get(SessionRecord, token)
            if row is None:
                return None
            if _as_utc(row.expires_at) <= now:
                session.delete(row)
                logger.debug("sessions: dropped expired session")
                return None
            return _to_session_state(row)

    def create(self) -> SessionState:
        now = self._clock()
        with _store_errors("sessions"):
            for _ in range(_CREATE_ATTEMPTS):
                state = SessionState(
                    token=secrets.token_urlsafe(TOKEN_BYTES),
                    user_id=None,
                    created_at=now,
                    expires_at=now + self._lifetime,
                )
                try:
                    with unit_of_work_scope(self._session_factory) as session:
                        session.add(
                            SessionRecord(
                                token=state.token,
                                user_id=None,
                                data={},
                                created_at=state.created_at,
                                expires_at=state.expires_at,
                            )
                        )
                except IntegrityError:
                    logger.warning("sessions: token collision, regenerating")
                    continue
                return state
        raise SessionUnavailableError("sessions")

    def save(self, state: SessionState) -> SessionState:
        saved = replace(state, expires_at=self._clock() + self._lifetime)
        with _store_errors("sessions"), unit_of_work_scope(self._session_factory) as session:
            row = session.get(SessionRecord, saved.token)
            if row is None:
                row = SessionRecord(token=saved.token, created_at=saved.created_at)
                session.add(row)
            row.user_id = saved.user_id
            row.data = dict(saved.data)
            row.expires_at = saved.expires_at
        return saved

    def rotate(self, state: SessionState) -> SessionState:
        """Move ``state`` to a fresh token and drop the old one atomically."""
        now = self._clock()
        with _store_errors("sessions"):
            for _ in range(_CREATE_ATTEMPTS):
                rotated = replace(
                    state,
                    token=secrets.token_urlsafe(TOKEN_BYTES),
                    created_at=now,
                    expires_at=now + self._lifetime,
                )
                try:
                    with unit_of_work_scope(self._session_factory) as session:
                        session.execute(
                            delete(SessionRecord).where(SessionRecord.token == state.token)
                        )
                        session.add(
                            SessionRecord(
                                token=rotated.token,
                                user_id=rotated.user_id,
                                data=dict(rotated.data),
                                created_at=rotated.created_at,
                                expires_at=rotated.expires_at,
                            )
                        )
                except IntegrityError:
                    logger.warning("sessions: token collision on rotate, regenerating")
                    continue
                return rotated
        raise SessionUnavailableError("sessions")

    def delete(self, token: str) -> None:
        if not token:
            return
        with _store_errors("sessions"), unit_of_work_scope(self._session_factory) as session:
            session.execute(delete(SessionRecord).where(SessionRecord.token == token))

    def purge_expired(self) -> int:
        now = self._clock()
        with _store_errors("sessions"), unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                delete(SessionRecord).where(SessionRecord.expires_at <= now)
            )
            removed = int(result.rowcount or 0)
        logger.info(f"sessions: purged {removed} expired sessions")
        return removed
