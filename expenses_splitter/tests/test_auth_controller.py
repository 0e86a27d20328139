from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from flask import Flask

from expenses_splitter.application.services.auth_session import AuthSession
from expenses_splitter.application.use_cases.users.get_current_user import \
    GetCurrentUserUseCase
from expenses_splitter.domain.users.entities import User
from expenses_splitter.domain.users.exceptions import (UserNotFoundError,
                                                       WrongPasswordError)
from expenses_splitter.infrastructure.repositories.users.memory import (
    InMemorySessionRepository, InMemoryUserRepository)
from expenses_splitter.interfaces.http.controllers.auth_controller import AuthController
from expenses_splitter.interfaces.http.session_binder import SessionBinder
from expenses_splitter.shared.config import load_config
from expenses_splitter.shared.middleware.error_handler import configure_error_handling


def _user(user_id: int = 1, username: str = "alice") -> User:
    return User(id=user_id, username=username, password_hash="hash", created_at=datetime.now(UTC))


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def flask_app(users: InMemoryUserRepository) -> Flask:
    app = Flask(__name__)
    configure_error_handling(app)
    SessionBinder(
        sessions=InMemorySessionRepository(lifetime=timedelta(hours=6)),
        users=users,
        config=load_config(),
    ).init_app(app)
    return app


def _controller(**overrides) -> AuthController:
    kwargs = {
        "get_current_user_use_case": GetCurrentUserUseCase(),
        "register_use_case": MagicMock(),
        "login_use_case": MagicMock(),
        "logout_use_case": MagicMock(),
    }
    kwargs.update(overrides)
    return AuthController(**kwargs)


def test_login_invalid_payload_returns_422(flask_app: Flask) -> None:
    login_use_case = MagicMock()
    flask_app.register_blueprint(_controller(login_use_case=login_use_case).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post("/api/auth/login", json={"username": "alice"})

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["context"]["fields"] == ["password"]
    login_use_case.execute.assert_not_called()


def test_login_passes_request_session_to_use_case(flask_app: Flask) -> None:
    login_use_case = MagicMock()
    login_use_case.execute.return_value = _user()
    flask_app.register_blueprint(_controller(login_use_case=login_use_case).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret123"}
        )

    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "redirect": "/"}
    args = login_use_case.execute.call_args.args
    assert isinstance(args[0], AuthSession)
    assert args[1:] == ("alice", "secret123")


def test_form_login_redirects_to_landing_route(flask_app: Flask) -> None:
    login_use_case = MagicMock()
    login_use_case.execute.return_value = _user()
    controller = _controller(login_use_case=login_use_case, landing_route="/groups")
    flask_app.register_blueprint(controller.as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/login", data={"username": "alice", "password": "secret123"}
        )

    assert response.status_code == 303
    assert response.headers["Location"].endswith("/groups")


def test_login_failure_hides_reason_by_default(flask_app: Flask) -> None:
    login_use_case = MagicMock()
    login_use_case.execute.side_effect = UserNotFoundError()
    flask_app.register_blueprint(_controller(login_use_case=login_use_case).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/login", json={"username": "ghost", "password": "secret123"}
        )

    assert response.status_code == 401
    assert response.get_json() == {"error": "invalid_credentials"}


def test_login_failure_reason_can_be_exposed(flask_app: Flask) -> None:
    login_use_case = MagicMock()
    login_use_case.execute.side_effect = WrongPasswordError()
    controller = _controller(login_use_case=login_use_case, expose_failure_reason=True)
    flask_app.register_blueprint(controller.as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": "nope"}
        )

    assert response.status_code == 401
    assert response.get_json() == {
        "error": "invalid_credentials",
        "context": {"reason": "wrong_password"},
    }


def test_register_requires_confirmation_field(flask_app: Flask) -> None:
    register_use_case = MagicMock()
    flask_app.register_blueprint(_controller(register_use_case=register_use_case).as_blueprint())

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/register", json={"username": "alice", "password": "secret123"}
        )

    assert response.status_code == 422
    assert response.get_json()["context"]["fields"] == ["confirm_password"]
    register_use_case.execute.assert_not_called()


def test_current_user_is_null_for_new_visitor(flask_app: Flask) -> None:
    flask_app.register_blueprint(_controller().as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/auth/user")

    assert response.status_code == 200
    assert response.get_json() == {"user": None}
    assert "session_id=" in response.headers["Set-Cookie"]


def test_session_info_requires_login(flask_app: Flask) -> None:
    flask_app.register_blueprint(_controller().as_blueprint())

    with flask_app.test_client() as client:
        response = client.get("/api/auth/session")

    assert response.status_code == 401
    assert response.get_json() == {"error": "not_authenticated"}


def test_logout_accepts_post_and_delete(flask_app: Flask) -> None:
    logout_use_case = MagicMock()
    flask_app.register_blueprint(_controller(logout_use_case=logout_use_case).as_blueprint())

    with flask_app.test_client() as client:
        assert client.post("/api/auth/logout").status_code == 200
        assert client.delete("/api/auth/logout").status_code == 200

    assert logout_use_case.execute.call_count == 2
