from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEV_FRONTEND_URL = "http://localhost:3000"


@dataclass(slots=True)
class OAuthConfig:
    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass(slots=True)
class AppConfig:
    oauth: OAuthConfig
    environment: str
    frontend_url: str
    cors_origins: List[str]
    host: str
    port: int
    user_id: str
    request_timeout: float
    display_timezone: Optional[ZoneInfo]
    log_dir: Path
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _resolve_path(value: str | None, fallback: str) -> Path:
    candidate = Path(value or fallback)
    if not candidate.is_absolute():
        candidate = PROJECT_ROOT / candidate
    return candidate


def _split_csv(value: str | None, fallback: List[str]) -> List[str]:
    if not value:
        return list(fallback)
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_timezone(name: str | None) -> Optional[ZoneInfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown DISPLAY_TIMEZONE '{name}'") from exc


def _parse_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got '{raw}'") from exc


def load_config(env_file: str | os.PathLike[str] | None = None) -> AppConfig:
    """Load configuration values from a .env file and environment variables."""

    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)

    environment = os.getenv("APP_ENV", "development").lower()
    frontend_url = DEV_FRONTEND_URL
    if environment == "production":
        frontend_url = os.getenv("FRONTEND_URL", DEV_FRONTEND_URL)

    oauth = OAuthConfig(
        client_id=os.getenv("CLIENT_ID", ""),
        client_secret=os.getenv("CLIENT_SECRET", ""),
        redirect_uri=os.getenv("REDIRECT_URI", "http://localhost:5000/auth/callback"),
    )

    request_timeout = _parse_number("REQUEST_TIMEOUT", "30", float)
    if request_timeout <= 0:
        raise ValueError("REQUEST_TIMEOUT must be positive")

    return AppConfig(
        oauth=oauth,
        environment=environment,
        frontend_url=frontend_url.rstrip("/"),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS"), [DEV_FRONTEND_URL]),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_parse_number("PORT", "5000", int),
        user_id=os.getenv("GMAIL_USER_ID", "me"),
        request_timeout=request_timeout,
        display_timezone=_parse_timezone(os.getenv("DISPLAY_TIMEZONE")),
        log_dir=_resolve_path(os.getenv("LOG_DIR"), "logs"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
