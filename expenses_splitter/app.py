# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import click
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from expenses_splitter.infrastructure.container import Container, container as default_container
from expenses_splitter.infrastructure.db import init_db
from expenses_splitter.shared.logging import logger, setup_logging
from expenses_splitter.shared.middleware.error_handler import configure_error_handling
from expenses_splitter.shared.middleware.request_logger import configure_request_logging


def _configure_security_headers(app: Flask, *, enable_hsts: bool) -> None:
    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")

        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")

        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")

        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
        )

        if enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp


def _register_cli(app: Flask, container: Container) -> None:
    @app.cli.command("purge-sessions")
    def purge_sessions() -> None:
        """Delete expired sessions from the session store."""
        removed = container.session_repository.purge_expired()
        click.echo(f"Removed {removed} expired session(s)")


def create_app(container: Container | None = None) -> Flask:
    container = container or default_container
    config = container.config

    init_db()
    setup_logging(debug_mode=config.debug_logging)

    app = Flask(__name__)
    app.config.update(SECRET_KEY=config.secret_key)
    if config.security.trusted_proxy_hops:
        hops = config.security.trusted_proxy_hops
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops)  # type: ignore[method-assign]

    configure_error_handling(app)
    configure_request_logging(app)
    container.session_binder.init_app(app)

    app.register_blueprint(container.misc_controller.as_blueprint())
    app.register_blueprint(container.auth_controller.as_blueprint())

    _configure_security_headers(app, enable_hsts=config.security.enable_hsts)
    _register_cli(app, container)

    logger.info(
        f"Flask app initialized (env={config.app_env}, session_backend={config.sessions.backend})"
    )
    return app


if __name__ == "__main__":
    create_app().run(host="127.0.0.1", port=5000, debug=True)
