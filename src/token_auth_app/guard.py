"""Bearer-token guard for protected routes."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable

from flask import current_app, g, request

from .tokens import TokenCodec, TokenError

logger = logging.getLogger(__name__)


class GuardError(Exception):
    """Base error for a request rejected by the guard."""

    status_code = 403
    code = "invalid_token"


class NoTokenError(GuardError):
    status_code = 401
    code = "no_token"


class InvalidTokenError(GuardError):
    pass


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


def authenticate(authorization: str | None, codec: TokenCodec, secret_key: str) -> dict[str, Any]:
    """Verify the bearer token in an Authorization header value.

    Tampered, foreign and expired tokens all surface as
    ``InvalidTokenError``; the precise cause is only logged.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise NoTokenError("Missing bearer token")

    try:
        return codec.verify(token, secret_key)
    except TokenError as e:
        logger.debug("Rejected access token: %s", e.reason)
        raise InvalidTokenError("Invalid or expired token") from e


def token_required(view: Callable) -> Callable:
    """Require a valid access token and expose its claims as ``g.identity``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        issuer = current_app.extensions["session_issuer"]
        g.identity = authenticate(
            request.headers.get("Authorization"),
            issuer.codec,
            issuer.access_secret,
        )
        return view(*args, **kwargs)

    return wrapper
