"""Password hashing strategies."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from expenses_splitter.domain.users.exceptions import PasswordHashingError
from expenses_splitter.domain.users.repositories import PasswordHasher
from expenses_splitter.shared.logging import logger


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted, adaptive hashing backed by werkzeug.

    The method string (``scrypt:32768:8:1``, ``pbkdf2:sha256:600000``...) is
    stored as the prefix of every hash, so raising the cost later keeps old
    hashes verifiable.
    """

    def __init__(self, method: str = "scrypt", salt_length: int = 16) -> None:
        self._method = method
        self._salt_length = salt_length

    @property
    def method(self) -> str:
        return self._method

    def hash(self, password: str) -> str:
        try:
            return str(
                generate_password_hash(
                    password, method=self._method, salt_length=self._salt_length
                )
            )
        except (ValueError, TypeError, MemoryError) as exc:
            logger.error(f"password_hasher: hashing failed ({type(exc).__name__})")
            raise PasswordHashingError() from None

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return bool(check_password_hash(hashed, password))
        except (ValueError, TypeError):
            logger.warning("password_hasher: stored hash is malformed, treating as mismatch")
            return False
