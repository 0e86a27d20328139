from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.application.services.password_hashing import \
    WerkzeugPasswordHasher
from expenses_splitter.application.use_cases.users.get_current_user import \
    GetCurrentUserUseCase
from expenses_splitter.application.use_cases.users.login_user import LoginUserUseCase
from expenses_splitter.application.use_cases.users.logout_user import LogoutUserUseCase
from expenses_splitter.application.use_cases.users.register_user import \
    RegisterUserUseCase
from expenses_splitter.domain.users.exceptions import (CredentialPolicyError,
                                                       DuplicateUsernameError,
                                                       InvalidCredentialsError,
                                                       PasswordMismatchError,
                                                       UserNotFoundError,
                                                       WrongPasswordError)
from expenses_splitter.domain.users.policy import CredentialPolicy
from expenses_splitter.infrastructure.repositories.users.memory import (
    InMemorySessionRepository, InMemoryUserRepository)


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def sessions() -> InMemorySessionRepository:
    return InMemorySessionRepository(lifetime=timedelta(hours=6))


@pytest.fixture()
def new_auth(users: InMemoryUserRepository, sessions: InMemorySessionRepository):
    def factory() -> AuthSession:
        return AuthSession(state=sessions.create(), users=users, is_new=True)

    return factory


@pytest.fixture()
def register(users: InMemoryUserRepository, password_hasher: WerkzeugPasswordHasher):
    return RegisterUserUseCase(
        users=users, password_hasher=password_hasher, policy=CredentialPolicy()
    )


@pytest.fixture()
def login(users: InMemoryUserRepository, password_hasher: WerkzeugPasswordHasher):
    return LoginUserUseCase(users=users, password_hasher=password_hasher)


def test_register_logs_the_new_user_in(register, new_auth) -> None:
    auth = new_auth()

    user = register.execute(auth, "alice", "secret123", "secret123")

    assert user.username == "alice"
    assert user.password_hash != "secret123"
    assert GetCurrentUserUseCase().execute(auth) == user


def test_register_rejects_mismatched_passwords(register, new_auth, users) -> None:
    auth = new_auth()

    with pytest.raises(PasswordMismatchError):
        register.execute(auth, "alice", "secret123", "secret124")

    assert auth.user_id is None
    assert users.find_by_username("alice") is None


@pytest.mark.parametrize(
    ("username", "accepted"),
    [("abcd", False), ("abcde", True), ("", False)],
)
def test_username_length_boundary(register, new_auth, username: str, accepted: bool) -> None:
    auth = new_auth()

    if accepted:
        assert register.execute(auth, username, "secret123", "secret123").username == username
    else:
        with pytest.raises(CredentialPolicyError) as exc_info:
            register.execute(auth, username, "secret123", "secret123")
        assert exc_info.value.field == "username"
        assert auth.user_id is None


@pytest.mark.parametrize(
    ("password", "accepted"),
    [("1234567", False), ("12345678", True)],
)
def test_password_length_boundary(register, new_auth, password: str, accepted: bool) -> None:
    auth = new_auth()

    if accepted:
        register.execute(auth, "alice", password, password)
        assert auth.user_id is not None
    else:
        with pytest.raises(CredentialPolicyError) as exc_info:
            register.execute(auth, "alice", password, password)
        assert exc_info.value.field == "password"
        assert exc_info.value.context == {
            "field": "password",
            "message": "Password must be at least 8 characters long",
            "min_length": 8,
        }


def test_register_duplicate_username(register, new_auth) -> None:
    register.execute(new_auth(), "alice", "secret123", "secret123")
    second = new_auth()

    with pytest.raises(DuplicateUsernameError):
        register.execute(second, "alice", "another-pass", "another-pass")

    assert second.user_id is None


def test_login_with_correct_password(register, login, new_auth) -> None:
    alice = register.execute(new_auth(), "alice", "secret123", "secret123")
    auth = new_auth()

    user = login.execute(auth, "alice", "secret123")

    assert user.id == alice.id
    assert auth.current_user() == alice


def test_login_unknown_user_keeps_session_anonymous(login, new_auth) -> None:
    auth = new_auth()

    with pytest.raises(UserNotFoundError) as exc_info:
        login.execute(auth, "ghost", "secret123")

    assert exc_info.value.code == "invalid_credentials"
    assert exc_info.value.reason == "user_not_found"
    assert auth.user_id is None
    assert not auth.modified


def test_login_wrong_password_keeps_session_anonymous(register, login, new_auth) -> None:
    register.execute(new_auth(), "alice", "secret123", "secret123")
    auth = new_auth()

    with pytest.raises(WrongPasswordError) as exc_info:
        login.execute(auth, "alice", "wrong-password")

    assert isinstance(exc_info.value, InvalidCredentialsError)
    assert exc_info.value.reason == "wrong_password"
    assert auth.user_id is None


def test_login_unknown_user_still_runs_a_hash_check(users, new_auth) -> None:
    hasher = MagicMock()
    hasher.hash.return_value = "dummy-hash"
    hasher.verify.return_value = False
    use_case = LoginUserUseCase(users=users, password_hasher=hasher)
    assert hasher.hash.call_count == 1

    with pytest.raises(UserNotFoundError):
        use_case.execute(new_auth(), "ghost", "secret123")

    hasher.verify.assert_called_once_with("secret123", "dummy-hash")
    assert hasher.hash.call_count == 1


def test_logout_returns_session_to_anonymous(register, new_auth) -> None:
    auth = new_auth()
    register.execute(auth, "alice", "secret123", "secret123")

    LogoutUserUseCase().execute(auth)

    assert auth.user_id is None
    assert GetCurrentUserUseCase().execute(auth) is None
