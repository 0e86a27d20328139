"""Use-case for dropping the identity bound to a session."""

from __future__ import annotations

from expenses_splitter.application.services.auth_session import AuthSession


class LogoutUserUseCase:
    def execute(self, auth: AuthSession) -> None:
        auth.logout()
