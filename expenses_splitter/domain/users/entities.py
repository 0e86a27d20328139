# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class User:

    id: int
    username: str
    password_hash: str = field(repr=False)
    created_at: datetime


@dataclass(slots=True, frozen=True)
class SessionState:
    """Server-side state behind one session cookie.

    ``user_id`` is ``None`` for an anonymous session.
    """

    token: str = field(repr=False)
    user_id: int | None
    created_at: datetime
    expires_at: datetime
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.now(UTC))
