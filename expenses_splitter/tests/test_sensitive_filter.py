from __future__ import annotations

from expenses_splitter.infrastructure.audit import _sanitize_details
from expenses_splitter.shared.logging import sanitize_message
from expenses_splitter.shared.middleware.request_logger import _sanitize_headers


def test_password_values_are_redacted() -> None:
    message = sanitize_message("payload password=hunter2 confirm_password=hunter2")

    assert "hunter2" not in message
    assert "***REDACTED***" in message


def test_session_ids_are_redacted() -> None:
    token = "Zm9vYmFyYmF6cXV4cXV1eHF1dXhxdXV4"
    message = sanitize_message(f"session_id={token}")

    assert token not in message


def test_stored_hashes_are_redacted() -> None:
    message = sanitize_message("stored pbkdf2:sha256:1000$abcdSALT$0123456789abcdef")

    assert "0123456789abcdef" not in message
    assert message.startswith("stored pbkdf2:sha256:1000$")


def test_plain_messages_pass_through() -> None:
    assert sanitize_message("auth.login: user_id=4 authenticated") == (
        "auth.login: user_id=4 authenticated"
    )


def test_audit_details_redact_sensitive_keys() -> None:
    details = _sanitize_details(
        {"username": "alice", "password": "secret123", "extra": {"session_token": "abc"}}
    )

    assert details == {
        "username": "alice",
        "password": "***REDACTED***",
        "extra": {"session_token": "***REDACTED***"},
    }


def test_session_headers_are_hashed_in_request_logs() -> None:
    headers = _sanitize_headers(
        {"Cookie": "session_id=abc", "Authorization": "Bearer abc", "Accept": "text/html"}
    )

    assert headers["Cookie"].startswith("<hashed:")
    assert headers["Authorization"].startswith("<hashed:")
    assert headers["Accept"] == "text/html"
