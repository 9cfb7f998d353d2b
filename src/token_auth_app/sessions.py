"""Issuing, renewing and ending token sessions."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional

from .token_store import RevocationStore
from .tokens import TokenCodec, TokenError

logger = logging.getLogger(__name__)

# Per-token nonce carried only by refresh tokens.
REFRESH_NONCE_CLAIM = "jti"


class RenewError(Exception):
    """Base error for a rejected token renewal."""

    status_code = 403
    code = "renewal_failed"


class MissingTokenError(RenewError):
    """No refresh token was presented."""

    status_code = 401
    code = "missing_token"


class NotRegisteredError(RenewError):
    """Refresh token is unknown or has been revoked."""

    code = "not_registered"


class VerificationFailedError(RenewError):
    """Refresh token failed cryptographic verification."""

    code = "verification_failed"

    def __init__(self, reason: TokenError) -> None:
        super().__init__(f"Refresh token verification failed: {reason.reason}")
        self.reason = reason


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class RenewedTokens:
    access_token: str
    # Only set when refresh token rotation is enabled.
    refresh_token: Optional[str] = None


class SessionIssuer:
    """Mints access/refresh token pairs and tracks live refresh tokens.

    Access tokens are verified purely from their signature and expiry;
    refresh tokens must additionally be present in ``store``.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: RevocationStore,
        access_secret: str,
        refresh_secret: str,
        access_ttl: float | timedelta,
        rotate_refresh_tokens: bool = False,
    ) -> None:
        self.codec = codec
        self.store = store
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.rotate_refresh_tokens = rotate_refresh_tokens

    def _mint_access(self, claims: Mapping[str, Any]) -> str:
        return self.codec.sign(claims, self.access_secret, expires_in=self.access_ttl)

    def _mint_refresh(self, claims: Mapping[str, Any]) -> str:
        payload = dict(claims)
        payload[REFRESH_NONCE_CLAIM] = secrets.token_hex(16)
        token = self.codec.sign(payload, self.refresh_secret)
        self.store.register(token)
        return token

    def login(self, claims: Mapping[str, Any]) -> IssuedTokens:
        """Issue a token pair for an already-authenticated user."""
        username = claims.get("username")
        if not isinstance(username, str) or not username:
            raise ValueError("Claims must include a non-empty 'username'")

        identity = {k: v for k, v in claims.items() if k != REFRESH_NONCE_CLAIM}
        tokens = IssuedTokens(
            access_token=self._mint_access(identity),
            refresh_token=self._mint_refresh(identity),
        )
        logger.info("Issued session for username=%s", username)
        return tokens

    def renew(self, refresh_token: Optional[str]) -> RenewedTokens:
        """Exchange a live refresh token for a new access token."""
        if not isinstance(refresh_token, str) or not refresh_token:
            raise MissingTokenError("No refresh token presented")

        # Membership comes first: a logged-out token is refused even if its
        # signature is still good.
        if not self.store.is_active(refresh_token):
            raise NotRegisteredError("Refresh token is not registered")

        try:
            payload = self.codec.verify(refresh_token, self.refresh_secret)
        except TokenError as e:
            logger.warning("Registered refresh token failed verification: %s", e.reason)
            raise VerificationFailedError(e) from e

        # With rotation a refresh token is single-use: only the renewal that
        # removes it from the store may proceed.
        if self.rotate_refresh_tokens and not self.store.consume(refresh_token):
            raise NotRegisteredError("Refresh token is not registered")

        claims = {k: v for k, v in payload.items() if k != REFRESH_NONCE_CLAIM}
        access_token = self._mint_access(claims)

        new_refresh = None
        if self.rotate_refresh_tokens:
            new_refresh = self._mint_refresh(claims)

        logger.info(
            "Renewed access token for username=%s (rotated=%s)",
            claims.get("username"),
            new_refresh is not None,
        )
        return RenewedTokens(access_token=access_token, refresh_token=new_refresh)

    def logout(self, refresh_token: Optional[str]) -> None:
        """Revoke a refresh token. Unknown or absent tokens are ignored."""
        if not isinstance(refresh_token, str) or not refresh_token:
            return
        self.store.revoke(refresh_token)
