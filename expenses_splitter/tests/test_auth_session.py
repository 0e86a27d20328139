from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.domain.users.entities import SessionState, User
from expenses_splitter.infrastructure.repositories.users.memory import \
    InMemoryUserRepository


def _state(user_id: int | None = None) -> SessionState:
    now = datetime.now(UTC)
    return SessionState(
        token="tok", user_id=user_id, created_at=now, expires_at=now + timedelta(hours=1)
    )


def test_anonymous_session_has_no_user() -> None:
    auth = AuthSession(state=_state(), users=InMemoryUserRepository(), is_new=True)

    assert auth.current_user() is None
    assert auth.is_new
    assert not auth.modified


def test_login_binds_identity() -> None:
    users = InMemoryUserRepository()
    alice = users.add("alice", "hash")
    auth = AuthSession(state=_state(), users=users)

    auth.login(alice.id)

    assert auth.modified
    assert auth.user_id == alice.id
    assert auth.current_user() == alice
    assert auth.state.is_authenticated


def test_login_is_idempotent_for_the_same_user() -> None:
    auth = AuthSession(state=_state(user_id=7), users=InMemoryUserRepository())

    auth.login(7)

    assert auth.user_id == 7
    assert not auth.modified


def test_logout_clears_identity_and_is_idempotent() -> None:
    users = InMemoryUserRepository()
    alice = users.add("alice", "hash")
    auth = AuthSession(state=_state(user_id=alice.id), users=users)

    auth.logout()
    auth.logout()

    assert auth.user_id is None
    assert auth.current_user() is None
    assert auth.modified


def test_logout_on_anonymous_session_changes_nothing() -> None:
    auth = AuthSession(state=_state(), users=InMemoryUserRepository())

    auth.logout()

    assert not auth.modified


def test_stale_identity_is_dropped() -> None:
    auth = AuthSession(state=_state(user_id=99), users=InMemoryUserRepository())

    assert auth.current_user() is None
    assert auth.user_id is None
    assert auth.modified


def test_current_user_is_resolved_once_per_request() -> None:
    user = User(id=3, username="carol", password_hash="hash", created_at=datetime.now(UTC))
    users = MagicMock()
    users.find_by_id.return_value = user
    auth = AuthSession(state=_state(user_id=3), users=users)

    assert auth.current_user() is user
    assert auth.current_user() is user
    users.find_by_id.assert_called_once_with(3)


def test_identity_change_is_tracked_against_the_loaded_state() -> None:
    users = InMemoryUserRepository()
    alice = users.add("alice", "hash")

    same = AuthSession(state=_state(user_id=alice.id), users=users)
    same.login(alice.id)
    switched = AuthSession(state=_state(), users=users)
    switched.login(alice.id)
    dropped = AuthSession(state=_state(user_id=alice.id), users=users)
    dropped.logout()
    restored = AuthSession(state=_state(user_id=alice.id), users=users)
    restored.logout()
    restored.login(alice.id)

    assert not same.identity_changed
    assert switched.identity_changed
    assert dropped.identity_changed
    assert not restored.identity_changed
