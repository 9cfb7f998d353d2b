from datetime import datetime, timedelta, timezone

import pytest

from token_auth_app.guard import (
    InvalidTokenError,
    NoTokenError,
    authenticate,
    extract_bearer_token,
)


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc.def.ghi", "abc.def.ghi"),
        ("Bearer   padded  ", "padded"),
        ("Bearer ", None),
        ("Basic dXNlcjpwYXNz", None),
        ("abc.def.ghi", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_authenticate_returns_claims(codec, access_secret):
    token = codec.sign({"username": "Kyle"}, access_secret, expires_in=15)

    assert authenticate(f"Bearer {token}", codec, access_secret) == {"username": "Kyle"}


@pytest.mark.parametrize("header", [None, "", "Token abc"])
def test_authenticate_without_token(codec, access_secret, header):
    with pytest.raises(NoTokenError) as exc_info:
        authenticate(header, codec, access_secret)
    assert exc_info.value.status_code == 401


def test_authenticate_collapses_failure_causes(codec, access_secret, refresh_secret):
    stale = datetime.now(timezone.utc) - timedelta(minutes=1)
    expired = codec.sign({"username": "Kyle"}, access_secret, expires_in=1, issued_at=stale)
    foreign = codec.sign({"username": "Kyle"}, refresh_secret, expires_in=15)

    for token in (expired, foreign, "garbage"):
        with pytest.raises(InvalidTokenError) as exc_info:
            authenticate(f"Bearer {token}", codec, access_secret)
        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "invalid_token"
