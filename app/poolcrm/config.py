import os
from dataclasses import dataclass

from app.poolcrm.constants import DEFAULT_KEAP_BASE_URL, DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str

    keap_api_key: str
    keap_base_url: str
    keap_page_size: int
    keap_timeout_seconds: float | None


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    try:
        value = int(raw) if raw else default
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")
    return value if value > 0 else default


def _getenv_seconds(name: str) -> float | None:
    # Empty means "use the transport default".
    raw = _getenv(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number of seconds (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        keap_api_key=_getenv("KEAP_API_KEY", ""),
        keap_base_url=_getenv("KEAP_BASE_URL", DEFAULT_KEAP_BASE_URL),
        keap_page_size=_getenv_int("KEAP_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        keap_timeout_seconds=_getenv_seconds("KEAP_TIMEOUT_SECONDS"),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "KEAP_API_KEY": s.keap_api_key,
        "KEAP_BASE_URL": s.keap_base_url,
        "KEAP_PAGE_SIZE": s.keap_page_size,
        "KEAP_TIMEOUT_SECONDS": s.keap_timeout_seconds,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
