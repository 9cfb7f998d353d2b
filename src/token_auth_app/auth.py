from flask import Blueprint, current_app, jsonify, request

from .sessions import SessionIssuer


auth_bp = Blueprint("auth", __name__)


def _issuer() -> SessionIssuer:
    return current_app.extensions["session_issuer"]


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


@auth_bp.route("/login", methods=["POST"])
def login():
    """Issue an access/refresh token pair.

    Credentials are assumed to have been checked upstream; the posted
    username becomes the identity claim.
    """

    username = _json_body().get("username")
    if not isinstance(username, str) or not username.strip():
        current_app.logger.warning("Login request without a usable username")
        return jsonify({"error": "username_required"}), 400

    tokens = _issuer().login({"username": username.strip()})
    current_app.logger.info("Logged in username=%s", username.strip())

    return jsonify(
        {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token}
    )


@auth_bp.route("/createtoken", methods=["POST"])
def create_token():
    """Exchange a refresh token for a new access token.

    Rejections are raised as ``RenewError`` and rendered by the
    application's error handlers.
    """

    renewed = _issuer().renew(_json_body().get("token"))

    body = {"accessToken": renewed.access_token}
    if renewed.refresh_token is not None:
        body["refreshToken"] = renewed.refresh_token
    return jsonify(body)


@auth_bp.route("/logout", methods=["DELETE"])
def logout():
    """Revoke the posted refresh token. Always succeeds."""

    _issuer().logout(_json_body().get("token"))
    current_app.logger.info("Refresh token revoked on logout")
    return "", 204
