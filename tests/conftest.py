import pathlib
import sys

import pytest


PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from token_auth_app import create_app
from token_auth_app.config import TestingConfig
from token_auth_app.token_store import InMemoryRevocationStore
from token_auth_app.tokens import TokenCodec
from token_auth_app.sessions import SessionIssuer


ACCESS_SECRET = "unit-access-secret-a1b2c3d4e5f60718293a4b5c6d7e8f90"
REFRESH_SECRET = "unit-refresh-secret-0f9e8d7c6b5a49382716aabbccddeeff"


@pytest.fixture()
def app():
    app = create_app(config_class=TestingConfig)
    app.config.update({"TESTING": True})
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def access_secret():
    return ACCESS_SECRET


@pytest.fixture()
def refresh_secret():
    return REFRESH_SECRET


@pytest.fixture()
def codec():
    return TokenCodec()


@pytest.fixture()
def store():
    return InMemoryRevocationStore()


@pytest.fixture()
def issuer(codec, store):
    return SessionIssuer(
        codec=codec,
        store=store,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=15,
    )
