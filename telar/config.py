"""Runtime configuration for the app (read from the environment, replaceable during tests)."""
import os
from typing import NamedTuple


class Settings(NamedTuple):
    database_url: str
    jwt_secret: str
    token_ttl_seconds: int
    default_page_size: int
    log_level: str
    cookie_secure: bool


def _truthy(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./telar.db"),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret"),
        # 2 days, same lifetime as the auth cookie
        token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", str(60 * 60 * 24 * 2))),
        default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", "20")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cookie_secure=_truthy(os.getenv("COOKIE_SECURE", "0")),
    )


state = load_settings()


def get_settings() -> Settings:
    return state


def override(**changes) -> Settings:
    global state
    state = state._replace(**changes)
    return state
