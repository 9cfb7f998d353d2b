import logging
import secrets

import click
from flask import Flask, jsonify

from .config import BaseConfig, get_config_class
from .guard import GuardError
from .main import main_bp
from .auth import auth_bp
from .sessions import RenewError, SessionIssuer
from .token_store import build_revocation_store
from .tokens import TokenCodec


def _configure_logging(app: Flask) -> None:
    """Configure application logging from the LOG_LEVEL config value."""

    log_level_name = app.config.get("LOG_LEVEL", "INFO")
    log_level = getattr(logging, str(log_level_name).upper(), logging.INFO)
    logging.basicConfig(level=log_level)
    app.logger.setLevel(log_level)


def _register_error_handlers(app: Flask) -> None:
    """Register centralized JSON error handlers."""

    @app.errorhandler(GuardError)
    def handle_guard_error(error: GuardError):
        app.logger.info("Rejected request: %s", error.code)
        return jsonify({"error": error.code}), error.status_code

    @app.errorhandler(RenewError)
    def handle_renew_error(error: RenewError):
        app.logger.info("Rejected token renewal: %s", error.code)
        return jsonify({"error": error.code}), error.status_code

    @app.errorhandler(400)
    def handle_bad_request(error):  # type: ignore[unused-argument]
        app.logger.warning("Bad request: %s", error)
        return jsonify({"error": "bad_request"}), 400

    @app.errorhandler(404)
    def handle_not_found(error):  # type: ignore[unused-argument]
        return jsonify({"error": "not_found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):  # type: ignore[unused-argument]
        return jsonify({"error": "method_not_allowed"}), 405

    @app.errorhandler(500)
    def handle_internal_error(error):  # type: ignore[unused-argument]
        app.logger.error("Internal server error: %s", error)
        return jsonify({"error": "internal_error"}), 500


def _register_commands(app: Flask) -> None:
    @app.cli.command("gen-secret")
    @click.option("--bytes", "num_bytes", default=64, show_default=True, help="Random bytes to draw.")
    def gen_secret(num_bytes: int) -> None:
        """Print a random hex string for use as a token secret."""
        click.echo(secrets.token_hex(num_bytes))


def _build_session_issuer(app: Flask) -> SessionIssuer:
    store = build_revocation_store(
        app.config.get("REVOCATION_STORE_URL"),
        app.config.get("REVOCATION_STORE_KEY", "token_auth:refresh_tokens"),
    )
    app.logger.info("Using %s for refresh tokens", type(store).__name__)
    return SessionIssuer(
        codec=TokenCodec(app.config.get("JWT_ALGORITHM", "HS256")),
        store=store,
        access_secret=app.config["ACCESS_TOKEN_SECRET"],
        refresh_secret=app.config["REFRESH_TOKEN_SECRET"],
        access_ttl=app.config["ACCESS_TOKEN_TTL_SECONDS"],
        rotate_refresh_tokens=bool(app.config.get("REFRESH_TOKEN_ROTATION")),
    )


def create_app(config_class: type[BaseConfig] | None = None) -> Flask:
    """Application factory for the token authentication service."""

    if config_class is None:
        config_class = get_config_class()

    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)
    config_class.validate(app.config)

    app.extensions["session_issuer"] = _build_session_issuer(app)

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    _register_error_handlers(app)
    _register_commands(app)

    return app
