import os
from typing import Mapping

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int | str:
    """Parse an integer setting, leaving bad values for ``validate`` to report."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return raw


class BaseConfig:
    """Base configuration shared by all environments."""

    # --- Token signing ---
    # Two independent secrets so an access token can never be replayed as a
    # refresh token and vice versa. Generate with `flask gen-secret`.
    ACCESS_TOKEN_SECRET = os.environ.get("ACCESS_TOKEN_SECRET")
    REFRESH_TOKEN_SECRET = os.environ.get("REFRESH_TOKEN_SECRET")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

    # Access tokens are short-lived; refresh tokens never expire on their own
    # and are only invalidated through the revocation store.
    ACCESS_TOKEN_TTL_SECONDS = _env_int("ACCESS_TOKEN_TTL_SECONDS", 15)

    # When enabled, every renewal issues a fresh refresh token and revokes
    # the one that was presented.
    REFRESH_TOKEN_ROTATION = _env_flag("REFRESH_TOKEN_ROTATION")

    # --- Revocation store ---
    # Empty or memory:// keeps refresh tokens in process; redis:// URLs use a
    # shared Redis set so several workers see the same logouts.
    REVOCATION_STORE_URL = os.environ.get("REVOCATION_STORE_URL", "")
    REVOCATION_STORE_KEY = os.environ.get(
        "REVOCATION_STORE_KEY", "token_auth:refresh_tokens"
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls, config: Mapping[str, object] | None = None) -> None:
        """Validate that critical configuration values are present.

        In production this should run at startup to fail fast when
        required environment variables are missing.
        """

        if config is None:
            config = {name: getattr(cls, name) for name in dir(cls) if name.isupper()}
        source = config

        required = ["ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"]
        missing = [name for name in required if not source.get(name)]
        if missing:
            raise RuntimeError(
                f"Missing required configuration values: {', '.join(missing)}. "
                "Check your environment variables or .env file."
            )

        if source.get("ACCESS_TOKEN_SECRET") == source.get("REFRESH_TOKEN_SECRET"):
            raise RuntimeError(
                "ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be different."
            )

        ttl = source.get("ACCESS_TOKEN_TTL_SECONDS", cls.ACCESS_TOKEN_TTL_SECONDS)
        if not isinstance(ttl, int) or ttl <= 0:
            raise RuntimeError(
                f"ACCESS_TOKEN_TTL_SECONDS must be a positive integer, got {ttl!r}."
            )

        algorithm = source.get("JWT_ALGORITHM", cls.JWT_ALGORITHM)
        if algorithm not in HMAC_ALGORITHMS:
            raise RuntimeError(
                f"Unsupported JWT_ALGORITHM {algorithm!r}; "
                f"expected one of {', '.join(HMAC_ALGORITHMS)}."
            )


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False


class TestingConfig(BaseConfig):
    """Configuration used in unit tests.

    Provides dummy but syntactically valid values so tests do not
    require real secrets or a Redis server.
    """

    TESTING = True
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef0123456789"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef012345678"
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL_SECONDS = 15
    REFRESH_TOKEN_ROTATION = False
    REVOCATION_STORE_URL = ""

    @classmethod
    def validate(cls, config: Mapping[str, object] | None = None) -> None:  # type: ignore[override]
        """Skip strict validation during tests."""
        return


def get_config_class() -> type[BaseConfig]:
    """Select the appropriate configuration class from APP_ENV.

    Defaults to ``DevelopmentConfig`` when ``APP_ENV`` is not set.
    """

    env = os.environ.get("APP_ENV", "development").lower()
    if env in {"prod", "production"}:
        return ProductionConfig
    if env in {"test", "testing"}:
        return TestingConfig
    return DevelopmentConfig
