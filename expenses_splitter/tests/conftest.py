from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

# Settings are read once at import time, so the environment has to be in
# place before anything from the project is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="expenses-splitter-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "test.log")
os.environ["APP_ENV"] = "test"
os.environ["ENABLE_RATE_LIMIT"] = "false"
os.environ["SESSION_BACKEND"] = "database"
os.environ["PASSWORD_HASH_METHOD"] = "pbkdf2:sha256:1000"

import pytest  # noqa: E402

from expenses_splitter.application.services.password_hashing import \
    WerkzeugPasswordHasher  # noqa: E402
from expenses_splitter.infrastructure.db import ENGINE, Base  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def reset_database() -> Iterator[None]:
    from expenses_splitter.infrastructure.db import models  # noqa: F401

    Base.metadata.drop_all(bind=ENGINE)
    Base.metadata.create_all(bind=ENGINE)
    yield
    Base.metadata.drop_all(bind=ENGINE)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def password_hasher() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")
