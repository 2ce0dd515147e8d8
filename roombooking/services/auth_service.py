"""Credential checks and bearer-token sessions."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from threading import RLock
from typing import Optional

from passlib.context import CryptContext

from roombooking.domain.models import CallerContext, Role
from roombooking.repository.data_repository import DataRepository
from roombooking.services.scheduling_service import Clock, local_now
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthenticationError(Exception):
    """Base authentication failure."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when email/password do not match a stored user."""


class InvalidSessionTokenError(AuthenticationError):
    """Raised when a bearer token is unknown, expired, or its user no longer exists."""


@lru_cache(maxsize=8)
def _context_for(rounds: int) -> CryptContext:
    return pwd_context.copy(bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int) -> str:
    """Hash a password with bcrypt at the given cost factor."""
    return _context_for(rounds).hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a stored hash; malformed hashes never match."""
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError) as exc:
        logger.warning("Password verification error: %s", exc)
        return False


@dataclass(frozen=True)
class _Session:
    user_id: int
    issued_at: datetime


class AuthService:
    """Validates login credentials and resolves bearer tokens to callers."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or local_now
        self._lock = RLock()
        self._sessions: dict[str, _Session] = {}

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(minutes=self._settings.session_ttl_minutes)

    def ensure_bootstrap_admin(self) -> None:
        """Create the configured admin account once, if credentials are set."""
        email = self._settings.bootstrap_admin_email
        password = self._settings.bootstrap_admin_password
        if not email or not password:
            logger.info("No bootstrap admin configured")
            return
        if self._repository.get_user_by_email(email) is not None:
            return
        self._repository.insert_user(
            full_name=self._settings.bootstrap_admin_name,
            email=email,
            role=Role.ADMIN,
            phone_number=None,
            password_hash=hash_password(password, self._settings.password_hash_rounds),
        )
        logger.info("Bootstrap admin %s created", email)

    def login(self, email: str, password: str) -> str:
        user = self._repository.get_user_by_email(email)
        if user is None:
            raise InvalidCredentialsError("Invalid email or password")
        stored = self._repository.get_password_hash(user.user_id)
        if stored is None or not verify_password(password, stored):
            raise InvalidCredentialsError("Invalid email or password")
        token = secrets.token_urlsafe(self._settings.session_token_bytes)
        with self._lock:
            self._sessions[token] = _Session(user_id=user.user_id, issued_at=self._clock())
        logger.info("User %s logged in", user.user_id)
        return token

    def logout(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_expired(self, now: datetime) -> None:
        cutoff = now - self.session_ttl
        with self._lock:
            expired = [
                token for token, session in self._sessions.items()
                if session.issued_at <= cutoff
            ]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info("Evicted %s expired sessions", len(expired))

    def resolve_caller(self, token: str) -> CallerContext:
        """Map a bearer token to the caller's current identity and role."""
        self._evict_expired(self._clock())
        with self._lock:
            session = self._sessions.get(token)
        if session is None:
            raise InvalidSessionTokenError("Invalid or expired bearer token")
        user = self._repository.get_user(session.user_id)
        if user is None:
            self.logout(token)
            raise InvalidSessionTokenError("Session user no longer exists")
        return CallerContext(user_id=user.user_id, role=user.role)
