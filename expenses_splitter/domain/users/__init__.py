# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import SessionState, User
from .policy import CredentialPolicy

__all__ = ["CredentialPolicy", "SessionState", "User"]
