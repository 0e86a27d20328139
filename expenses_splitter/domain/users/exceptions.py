# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from expenses_splitter.shared.errors.base import DomainError, InfrastructureError


class DuplicateUsernameError(DomainError):
    code = "duplicate_username"
    status = HTTPStatus.CONFLICT


class InvalidCredentialsError(DomainError):
    """Login failed. ``reason`` tells the two cases apart for logs and audit."""

    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    reason = "invalid_credentials"


class UserNotFoundError(InvalidCredentialsError):
    reason = "user_not_found"


class WrongPasswordError(InvalidCredentialsError):
    reason = "wrong_password"


class PasswordMismatchError(DomainError):
    code = "password_mismatch"
    status = HTTPStatus.BAD_REQUEST


class CredentialPolicyError(DomainError):
    code = "credential_policy"
    status = HTTPStatus.UNPROCESSABLE_ENTITY

    def __init__(self, field: str, message: str, *, min_length: int | None = None) -> None:
        context: dict[str, object] = {"field": field, "message": message}
        if min_length is not None:
            context["min_length"] = min_length
        super().__init__(context=context)
        self.field = field


class NotAuthenticatedError(DomainError):
    code = "not_authenticated"
    status = HTTPStatus.UNAUTHORIZED


class SessionUnavailableError(InfrastructureError):
    def __init__(self, store: str = "sessions") -> None:
        super().__init__(
            "session_unavailable",
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            context={"store": store},
        )


class PasswordHashingError(InfrastructureError):
    """Hashing failed. Rendered like any other internal failure."""

    def __init__(self) -> None:
        super().__init__("internal_error")
