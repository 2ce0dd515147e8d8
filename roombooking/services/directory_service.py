"""Room registry and user directory: lookups plus admin-governed CRUD."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from roombooking.domain.constraints import require_text
from roombooking.domain.errors import (
    BookingConflictError,
    BookingValidationError,
    EntityNotFoundError,
    ForbiddenActionError,
)
from roombooking.domain.models import CallerContext, Role, Room, User
from roombooking.repository.data_repository import DataRepository
from roombooking.services.auth_service import hash_password
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)


def _require_admin(caller: CallerContext, action: str) -> None:
    if not caller.is_admin:
        raise ForbiddenActionError(f"Only admins may {action}")


def _normalize_equipment(equipment: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted({item.strip() for item in equipment if item and item.strip()}))


def _normalize_email(email: str) -> str:
    cleaned = require_text(email, "email").lower()
    local, _, domain = cleaned.partition("@")
    if not local or "." not in domain:
        raise BookingValidationError(f"'{email}' is not a valid email address")
    return cleaned


class RoomRegistryService:
    """Holds bookable rooms; rooms still referenced by bookings cannot be deleted."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_room(self, room_id: int) -> Room:
        room = self._repository.get_room(room_id)
        if room is None:
            raise EntityNotFoundError(f"Room {room_id} not found")
        return room

    def list_rooms(self) -> list[Room]:
        return self._repository.list_rooms()

    def upsert_room(
        self,
        caller: CallerContext,
        *,
        name: str,
        location: str,
        capacity: int,
        equipment: Iterable[str] = (),
        room_id: Optional[int] = None,
    ) -> Room:
        _require_admin(caller, "manage rooms")
        cleaned_name = require_text(name, "name")
        if capacity < 0:
            raise BookingValidationError("capacity must be >= 0")
        normalized_equipment = _normalize_equipment(equipment)

        if room_id is None:
            new_id = self._repository.insert_room(
                name=cleaned_name,
                location=(location or "").strip(),
                capacity=capacity,
                equipment=normalized_equipment,
            )
            logger.info("Room %s created by user %s", new_id, caller.user_id)
            return self.get_room(new_id)

        room = replace(
            self.get_room(room_id),
            name=cleaned_name,
            location=(location or "").strip(),
            capacity=capacity,
            equipment=normalized_equipment,
        )
        self._repository.update_room(room)
        logger.info("Room %s updated by user %s", room_id, caller.user_id)
        return room

    def delete_room(self, caller: CallerContext, room_id: int) -> None:
        _require_admin(caller, "delete rooms")
        self.get_room(room_id)
        if self._repository.count_room_references(room_id) > 0:
            raise BookingConflictError(
                f"Room {room_id} is referenced by bookings and cannot be deleted"
            )
        self._repository.delete_room(room_id)
        logger.info("Room %s deleted by user %s", room_id, caller.user_id)


class UserDirectoryService:
    """Holds identities and roles. Admins manage everyone; users edit only themselves."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def _load(self, user_id: int) -> User:
        user = self._repository.get_user(user_id)
        if user is None:
            raise EntityNotFoundError(f"User {user_id} not found")
        return user

    def get_user(self, caller: CallerContext, user_id: int) -> User:
        if not caller.is_admin and caller.user_id != user_id:
            raise ForbiddenActionError("Users may only view their own profile")
        return self._load(user_id)

    def list_users(self, caller: CallerContext) -> list[User]:
        _require_admin(caller, "list users")
        return self._repository.list_users()

    def create_user(
        self,
        caller: CallerContext,
        *,
        full_name: str,
        email: str,
        password: str,
        role: Role = Role.EMPLOYEE,
        phone_number: Optional[str] = None,
    ) -> User:
        _require_admin(caller, "create users")
        cleaned_name = require_text(full_name, "full_name")
        cleaned_email = _normalize_email(email)
        cleaned_password = require_text(password, "password")
        user_id = self._repository.insert_user(
            full_name=cleaned_name,
            email=cleaned_email,
            role=Role(role),
            phone_number=(phone_number or "").strip() or None,
            password_hash=hash_password(
                cleaned_password, self._settings.password_hash_rounds
            ),
        )
        logger.info("User %s created by user %s", user_id, caller.user_id)
        return self._load(user_id)

    def update_user(
        self,
        caller: CallerContext,
        user_id: int,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        role: Optional[Role] = None,
        password: Optional[str] = None,
    ) -> User:
        if not caller.is_admin and caller.user_id != user_id:
            raise ForbiddenActionError("Users may only edit their own profile")
        current = self._load(user_id)
        if role is not None and Role(role) is not current.role and not caller.is_admin:
            raise ForbiddenActionError("Only admins may change roles")

        updated = replace(
            current,
            full_name=require_text(full_name, "full_name") if full_name is not None else current.full_name,
            email=_normalize_email(email) if email is not None else current.email,
            phone_number=(
                (phone_number.strip() or None) if phone_number is not None else current.phone_number
            ),
            role=Role(role) if role is not None else current.role,
        )
        if updated != current:
            self._repository.update_user(updated)
        if password is not None:
            self._repository.set_password_hash(
                user_id,
                hash_password(
                    require_text(password, "password"),
                    self._settings.password_hash_rounds,
                ),
            )
        logger.info("User %s updated by user %s", user_id, caller.user_id)
        return updated

    def delete_user(self, caller: CallerContext, user_id: int) -> None:
        _require_admin(caller, "delete users")
        self._load(user_id)
        if self._repository.count_user_references(user_id) > 0:
            raise BookingConflictError(
                f"User {user_id} organizes bookings and cannot be deleted"
            )
        self._repository.delete_user(user_id)
        logger.info("User %s deleted by user %s", user_id, caller.user_id)
