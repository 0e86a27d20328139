# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Binds the session cookie of each request to an :class:`AuthSession`.

The session is resolved once, before any handler runs, and stored on
``flask.g``. Handlers receive it through :func:`with_auth_session` or
:func:`login_required` instead of reading the cookie themselves. State is
written back only after a successful response, so a failed request never
persists half-applied identity changes.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps

from flask import Flask, Response, g, request

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.domain.users.exceptions import (NotAuthenticatedError,
                                                       SessionUnavailableError)
from expenses_splitter.domain.users.repositories import SessionRepository, UserRepository
from expenses_splitter.shared.config import AppConfig
from expenses_splitter.shared.errors import handle_app_error
from expenses_splitter.shared.logging import logger


class SessionBinder:
    def __init__(
        self,
        *,
        sessions: SessionRepository,
        users: UserRepository,
        config: AppConfig,
        exempt_blueprints: tuple[str, ...] = ("misc",),
    ) -> None:
        self._sessions = sessions
        self._exempt_blueprints = frozenset(exempt_blueprints)
        self._users = users
        self._cookie_name = config.sessions.cookie_name
        self._max_age = config.sessions.lifetime_seconds
        self._cookie_secure = config.security.cookie_secure
        self._cookie_samesite = config.security.cookie_samesite

    def init_app(self, app: Flask) -> None:
        app.before_request(self._bind)
        app.after_request(self._persist)

    def _is_exempt(self) -> bool:
        # Unrouted requests (404, 405) and static files never get a session
        if request.url_rule is None or request.endpoint == "static":
            return True
        return request.blueprint in self._exempt_blueprints

    def _bind(self) -> None:
        if self._is_exempt():
            return
        token = request.cookies.get(self._cookie_name, "")
        state = self._sessions.load(token) if token else None
        is_new = state is None
        if state is None:
            if token:
                logger.debug("session_binder: unknown or expired session, issuing a new one")
            state = self._sessions.create()

        g.auth_session = AuthSession(state=state, users=self._users, is_new=is_new)
        g.user_id = state.user_id

    def _persist(self, response: Response) -> Response:
        auth: AuthSession | None = getattr(g, "auth_session", None)
        if auth is None:
            return response
        g.user_id = auth.user_id

        if response.status_code >= 500:
            return response

        token = auth.token
        if auth.modified:
            try:
                if auth.identity_changed and not auth.is_new:
                    # A token known before the identity changed is never reused
                    token = self._sessions.rotate(auth.state).token
                else:
                    self._sessions.save(auth.state)
            except SessionUnavailableError as exc:
                logger.error("session_binder: could not persist session state")
                error_response, status = handle_app_error(exc)
                error_response.status_code = status
                return error_response

        if auth.is_new or auth.modified:
            response.set_cookie(
                self._cookie_name,
                token,
                max_age=self._max_age,
                httponly=True,
                secure=self._cookie_secure,
                samesite=self._cookie_samesite,
            )
        return response


def current_auth_session() -> AuthSession:
    auth: AuthSession | None = getattr(g, "auth_session", None)
    if auth is None:
        raise RuntimeError("SessionBinder is not installed on this application")
    return auth


def with_auth_session(f: Callable) -> Callable:
    @wraps(f)
    def inner(*args, **kwargs):
        kwargs["auth"] = current_auth_session()
        return f(*args, **kwargs)

    return inner


def login_required(f: Callable) -> Callable:
    @wraps(f)
    def inner(*args, **kwargs):
        auth = current_auth_session()
        user = auth.current_user()
        if user is None:
            logger.info(f"login_required: anonymous request to {request.method} {request.path}")
            raise NotAuthenticatedError()
        kwargs["auth"] = auth
        kwargs["user"] = user
        return f(*args, **kwargs)

    return inner


__all__ = ["SessionBinder", "current_auth_session", "login_required", "with_auth_session"]
