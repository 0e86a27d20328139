# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import CredentialPolicyError


@dataclass(slots=True, frozen=True)
class CredentialPolicy:
    username_min_length: int = 5
    password_min_length: int = 8

    def check_username(self, username: str) -> None:
        if not username:
            raise CredentialPolicyError("username", "Username cannot be empty")
        if len(username) < self.username_min_length:
            raise CredentialPolicyError(
                "username",
                f"Username must be at least {self.username_min_length} characters long",
                min_length=self.username_min_length,
            )

    def check_password(self, password: str) -> None:
        if not password:
            raise CredentialPolicyError("password", "Password cannot be empty")
        if len(password) < self.password_min_length:
            raise CredentialPolicyError(
                "password",
                f"Password must be at least {self.password_min_length} characters long",
                min_length=self.password_min_length,
            )
