# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, jsonify, redirect, request
from pydantic import ValidationError

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.application.use_cases.users.get_current_user import \
    GetCurrentUserUseCase
from expenses_splitter.application.use_cases.users.login_user import LoginUserUseCase
from expenses_splitter.application.use_cases.users.logout_user import LogoutUserUseCase
from expenses_splitter.application.use_cases.users.register_user import \
    RegisterUserUseCase
from expenses_splitter.domain.users.entities import User
from expenses_splitter.domain.users.exceptions import (DuplicateUsernameError,
                                                       InvalidCredentialsError)
from expenses_splitter.infrastructure.audit import AuditAction, audit_log
from expenses_splitter.interfaces.http.dto.auth import (AuthSuccessDTO, CurrentUserDTO,
                                                        LoginRequestDTO,
                                                        RegisterRequestDTO,
                                                        SessionInfoDTO, UserDTO)
from expenses_splitter.interfaces.http.session_binder import (login_required,
                                                              with_auth_session)
from expenses_splitter.shared.errors.validation import raise_validation_error
from expenses_splitter.shared.logging import logger
from expenses_splitter.shared.middleware.rate_limit import rate_limit

_FORM_MIMETYPES = {"application/x-www-form-urlencoded", "multipart/form-data"}


def _get_client_ip() -> str | None:
    return request.remote_addr


def _is_form_post() -> bool:
    return request.mimetype in _FORM_MIMETYPES


def _request_payload() -> dict[str, Any]:
    if _is_form_post():
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


def _user_dto(user: User) -> UserDTO:
    return UserDTO(id=user.id, username=user.username)


class AuthController:
    ROUTES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
        ("/user", "current_user", ("GET",)),
        ("/login", "login", ("POST",)),
        ("/register", "register", ("POST",)),
        ("/logout", "logout", ("POST", "DELETE")),
        ("/session", "session_info", ("GET",)),
    )

    def __init__(
        self,
        *,
        get_current_user_use_case: GetCurrentUserUseCase,
        register_use_case: RegisterUserUseCase,
        login_use_case: LoginUserUseCase,
        logout_use_case: LogoutUserUseCase,
        landing_route: str = "/",
        expose_failure_reason: bool = False,
    ) -> None:
        self._get_current_user_use_case = get_current_user_use_case
        self._register_use_case = register_use_case
        self._login_use_case = login_use_case
        self._logout_use_case = logout_use_case
        self._landing_route = landing_route
        self._expose_failure_reason = expose_failure_reason

    def _success(self) -> Response | tuple[Response, int]:
        if _is_form_post():
            return redirect(self._landing_route, code=303)
        return jsonify(AuthSuccessDTO(redirect=self._landing_route).model_dump()), 200

    @with_auth_session
    def current_user(self, *, auth: AuthSession) -> tuple[Response, int]:
        user = self._get_current_user_use_case.execute(auth)
        payload = CurrentUserDTO(user=_user_dto(user) if user else None)
        return jsonify(payload.model_dump()), 200

    @rate_limit()
    @with_auth_session
    def login(self, *, auth: AuthSession):
        try:
            dto = LoginRequestDTO.model_validate(_request_payload())
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()

        try:
            user = self._login_use_case.execute(auth, dto.username, dto.password)
        except InvalidCredentialsError as exc:
            audit_log(
                AuditAction.LOGIN_FAILED,
                user_id=None,
                ip_address=ip_address,
                details={"username": dto.username, "reason": exc.reason},
                success=False,
            )
            if self._expose_failure_reason:
                raise type(exc)(context={"reason": exc.reason}) from exc
            raise

        audit_log(
            AuditAction.LOGIN_SUCCESS,
            user_id=user.id,
            ip_address=ip_address,
            details={"username": dto.username},
            success=True,
        )
        logger.info(f"auth.login: ok user_id={user.id}")
        return self._success()

    @rate_limit()
    @with_auth_session
    def register(self, *, auth: AuthSession):
        try:
            dto = RegisterRequestDTO.model_validate(_request_payload())
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()

        try:
            user = self._register_use_case.execute(
                auth, dto.username, dto.password, dto.confirm_password
            )
        except DuplicateUsernameError:
            audit_log(
                AuditAction.REGISTER_FAILED,
                ip_address=ip_address,
                details={"username": dto.username, "reason": "duplicate_username"},
                success=False,
            )
            raise

        audit_log(
            AuditAction.REGISTER,
            user_id=user.id,
            ip_address=ip_address,
            details={"username": dto.username},
            success=True,
        )
        logger.info(f"auth.register: ok user_id={user.id}")
        return self._success()

    @with_auth_session
    def logout(self, *, auth: AuthSession):
        user_id = auth.user_id
        self._logout_use_case.execute(auth)

        audit_log(
            AuditAction.LOGOUT,
            user_id=user_id,
            ip_address=_get_client_ip(),
            success=True,
        )
        logger.info("auth.logout: ok")
        return self._success()

    @login_required
    def session_info(self, *, auth: AuthSession, user: User) -> tuple[Response, int]:
        payload = SessionInfoDTO(
            user=_user_dto(user),
            created_at=auth.state.created_at.isoformat(),
            expires_at=auth.state.expires_at.isoformat(),
        )
        return jsonify(payload.model_dump()), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        for rule, name, methods in self.ROUTES:
            bp.add_url_rule(rule, endpoint=name, view_func=getattr(self, name), methods=list(methods))
        return bp
