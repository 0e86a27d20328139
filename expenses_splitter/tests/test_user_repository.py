from __future__ import annotations

import threading
from datetime import UTC

import pytest

from expenses_splitter.domain.users.exceptions import DuplicateUsernameError
from expenses_splitter.infrastructure.db import SessionLocal
from expenses_splitter.infrastructure.repositories.users.sqlalchemy_user_repository import \
    SqlAlchemyUserRepository

pytestmark = pytest.mark.usefixtures("reset_database")


@pytest.fixture()
def users() -> SqlAlchemyUserRepository:
    return SqlAlchemyUserRepository(SessionLocal)


def test_add_and_find(users: SqlAlchemyUserRepository) -> None:
    created = users.add("alice", "hash-value")

    by_name = users.find_by_username("alice")
    by_id = users.find_by_id(created.id)

    assert by_name == by_id == created
    assert created.created_at.tzinfo == UTC


def test_unknown_user_is_none(users: SqlAlchemyUserRepository) -> None:
    assert users.find_by_username("nobody") is None
    assert users.find_by_id(404) is None


def test_usernames_are_case_sensitive(users: SqlAlchemyUserRepository) -> None:
    users.add("alice", "hash")

    assert users.find_by_username("Alice") is None


def test_duplicate_username_is_rejected(users: SqlAlchemyUserRepository) -> None:
    users.add("alice", "hash")

    with pytest.raises(DuplicateUsernameError):
        users.add("alice", "other-hash")

    assert users.find_by_username("alice").password_hash == "hash"


def test_concurrent_registration_yields_one_user(users: SqlAlchemyUserRepository) -> None:
    barrier = threading.Barrier(2)
    created: list[int] = []
    rejected: list[Exception] = []

    def worker() -> None:
        barrier.wait()
        try:
            created.append(users.add("alice", "hash").id)
        except DuplicateUsernameError as exc:
            rejected.append(exc)
        finally:
            SessionLocal.remove()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert len(created) == 1
    assert len(rejected) == 1
    assert users.find_by_username("alice").id == created[0]
