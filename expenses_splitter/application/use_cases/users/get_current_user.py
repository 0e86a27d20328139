from __future__ import annotations

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.domain.users.entities import User


class GetCurrentUserUseCase:
    def execute(self, auth: AuthSession) -> User | None:
        return auth.current_user()
