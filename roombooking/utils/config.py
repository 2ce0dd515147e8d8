"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str = "Meeting Room Booking Engine"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    database_path: Path = Path("data/roombooking.db")

    bookings_require_approval: bool = True
    admin_bookings_auto_confirm: bool = True
    dashboard_window_days: int = 14
    series_max_occurrences: int = 366

    password_hash_rounds: int = 12
    session_token_bytes: int = 32
    session_ttl_minutes: int = 480
    bootstrap_admin_email: str | None = None
    bootstrap_admin_password: str | None = None
    bootstrap_admin_name: str = "Administrator"

    seed_default_rooms: bool = True
    default_rooms: tuple[tuple[str, str, int, tuple[str, ...]], ...] = field(
        default=(
            ("Orion", "Floor 1", 8, ("projector", "whiteboard")),
            ("Lyra", "Floor 1", 4, ("tv",)),
            ("Draco", "Floor 2", 12, ("projector", "video-conference")),
            ("Board Room", "Floor 3", 20, ("projector", "video-conference", "whiteboard")),
        )
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from ROOMBOOKING_* variables."""
    return Settings(
        app_name=os.getenv("ROOMBOOKING_APP_NAME", Settings.app_name),
        app_version=os.getenv("ROOMBOOKING_APP_VERSION", Settings.app_version),
        log_level=os.getenv("ROOMBOOKING_LOG_LEVEL", Settings.log_level),
        log_format=os.getenv("ROOMBOOKING_LOG_FORMAT", Settings.log_format),
        database_path=Path(
            os.getenv("ROOMBOOKING_DATABASE_PATH", str(Settings.database_path))
        ),
        bookings_require_approval=_env_bool(
            "ROOMBOOKING_REQUIRE_APPROVAL", Settings.bookings_require_approval
        ),
        admin_bookings_auto_confirm=_env_bool(
            "ROOMBOOKING_ADMIN_AUTO_CONFIRM", Settings.admin_bookings_auto_confirm
        ),
        dashboard_window_days=_env_int(
            "ROOMBOOKING_DASHBOARD_WINDOW_DAYS", Settings.dashboard_window_days
        ),
        series_max_occurrences=_env_int(
            "ROOMBOOKING_SERIES_MAX_OCCURRENCES", Settings.series_max_occurrences
        ),
        password_hash_rounds=_env_int(
            "ROOMBOOKING_PASSWORD_HASH_ROUNDS", Settings.password_hash_rounds
        ),
        session_token_bytes=_env_int(
            "ROOMBOOKING_SESSION_TOKEN_BYTES", Settings.session_token_bytes
        ),
        session_ttl_minutes=_env_int(
            "ROOMBOOKING_SESSION_TTL_MINUTES", Settings.session_ttl_minutes
        ),
        bootstrap_admin_email=os.getenv("ADMIN_EMAIL") or None,
        bootstrap_admin_password=os.getenv("ADMIN_PASSWORD") or None,
        bootstrap_admin_name=os.getenv("ADMIN_NAME", Settings.bootstrap_admin_name),
        seed_default_rooms=_env_bool(
            "ROOMBOOKING_SEED_DEFAULT_ROOMS", Settings.seed_default_rooms
        ),
    )
