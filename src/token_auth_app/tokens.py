"""Signing and verification of self-describing bearer tokens.

Tokens are compact JWTs (``header.payload.signature``) carrying the caller's
claims plus ``iat`` and, optionally, ``exp``. The integrity tag is an HMAC
over the encoded header and payload, so the server needs nothing but the
secret key to check a token.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidSignatureError,
    PyJWTError,
)

RESERVED_CLAIMS = ("exp", "iat")


class TokenError(Exception):
    """Base token verification error."""

    reason = "invalid_token"


class MalformedTokenError(TokenError):
    """Token does not parse into the expected structure."""

    reason = "malformed_token"


class BadSignatureError(TokenError):
    """Integrity tag mismatch: the token was altered or signed with another key."""

    reason = "bad_signature"


class TokenExpiredError(TokenError):
    """Token carried an expiration that has passed."""

    reason = "expired"


def _as_timedelta(expires_in: float | timedelta) -> timedelta:
    if isinstance(expires_in, timedelta):
        return expires_in
    return timedelta(seconds=expires_in)


class TokenCodec:
    """Stateless signer/verifier for HMAC-signed JWTs.

    Instances hold only the algorithm name and are safe to share between
    threads.
    """

    def __init__(self, algorithm: str = "HS256") -> None:
        self.algorithm = algorithm

    def sign(
        self,
        claims: Mapping[str, Any],
        secret_key: str,
        expires_in: float | timedelta | None = None,
        issued_at: datetime | None = None,
    ) -> str:
        """Sign ``claims`` into a token string.

        Without ``expires_in`` the token never expires. ``issued_at``
        defaults to the current UTC time.
        """
        reserved = [name for name in RESERVED_CLAIMS if name in claims]
        if reserved:
            raise ValueError(f"Reserved claim names not allowed: {', '.join(reserved)}")

        now = issued_at or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        payload = dict(claims)
        payload["iat"] = now
        if expires_in is not None:
            # NumericDate is whole seconds; round up so a token never
            # expires earlier than requested.
            payload["exp"] = math.ceil((now + _as_timedelta(expires_in)).timestamp())

        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(jwt.encode(payload, secret_key, algorithm=self.algorithm))

    def verify(self, token: str, secret_key: str) -> dict[str, Any]:
        """Return the claims signed into ``token``.

        Raises ``MalformedTokenError``, ``BadSignatureError`` or
        ``TokenExpiredError``. The signature is checked before expiry, so a
        forged token is reported as such even when it is also stale.
        """
        if not isinstance(token, str) or not token:
            raise MalformedTokenError("Token must be a non-empty string")

        try:
            payload = jwt.decode(
                token,
                secret_key,
                algorithms=[self.algorithm],
                # Only the signature and our own exp are checked; any other
                # registered claim names are opaque caller data.
                options={
                    "verify_iat": False,
                    "verify_aud": False,
                    "verify_iss": False,
                    "verify_nbf": False,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except InvalidSignatureError as e:
            raise BadSignatureError("Token signature does not match") from e
        except DecodeError as e:
            raise MalformedTokenError(f"Token could not be decoded: {e}") from e
        except PyJWTError as e:
            # Disallowed algorithm or a non-numeric exp: not one of our tokens.
            raise MalformedTokenError(f"Invalid token: {e}") from e

        return {key: value for key, value in payload.items() if key not in RESERVED_CLAIMS}
