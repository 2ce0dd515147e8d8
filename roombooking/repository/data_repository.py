"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime, time
from pathlib import Path
from typing import Collection, Iterable, Optional

from roombooking.domain.errors import BookingConflictError
from roombooking.domain.models import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    RecurrenceRule,
    RecurrenceType,
    RecurringSeries,
    Role,
    Room,
    User,
)
from roombooking.utils.config import Settings, get_settings
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)


def _to_db_datetime(value: datetime) -> str:
    # Fixed-width text keeps lexical order equal to chronological order.
    return value.isoformat(sep=" ", timespec="microseconds")


def _from_db_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _to_db_time(value: time) -> str:
    return value.isoformat(timespec="microseconds")


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=int(row["id"]),
        name=str(row["name"]),
        location=str(row["location"] or ""),
        capacity=int(row["capacity"]),
        equipment=tuple(json.loads(row["equipment"] or "[]")),
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=int(row["id"]),
        full_name=str(row["full_name"]),
        email=str(row["email"]),
        role=Role(row["role"]),
        phone_number=row["phone_number"],
    )


def _row_to_booking(row: sqlite3.Row) -> Booking:
    return Booking(
        booking_id=int(row["id"]),
        title=str(row["title"]),
        room_id=int(row["room_id"]),
        organizer_id=int(row["organizer_id"]),
        start_time=_from_db_datetime(row["start_time"]),
        end_time=_from_db_datetime(row["end_time"]),
        status=BookingStatus(row["status"]),
        attendees=str(row["attendees"] or ""),
        admin_denial_reason=row["admin_denial_reason"],
        series_id=int(row["series_id"]) if row["series_id"] is not None else None,
    )


def _row_to_series(row: sqlite3.Row) -> RecurringSeries:
    return RecurringSeries(
        series_id=int(row["id"]),
        title=str(row["title"]),
        room_id=int(row["room_id"]),
        organizer_id=int(row["organizer_id"]),
        rule=RecurrenceRule(
            recurrence_type=RecurrenceType(row["recurrence_type"]),
            first_occurrence=date.fromisoformat(row["first_occurrence_date"]),
            series_end_date=date.fromisoformat(row["series_end_date"]),
            start_time_of_day=time.fromisoformat(row["start_time_of_day"]),
            end_time_of_day=time.fromisoformat(row["end_time_of_day"]),
        ),
        status=BookingStatus(row["status"]),
        attendees=str(row["attendees"] or ""),
        admin_denial_reason=row["admin_denial_reason"],
    )


def _status_values(statuses: Iterable[BookingStatus]) -> list[str]:
    return [BookingStatus(status).value for status in statuses]


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path, timeout=10.0)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        location TEXT NOT NULL DEFAULT '',
                        capacity INTEGER NOT NULL CHECK (capacity >= 0),
                        equipment TEXT NOT NULL DEFAULT '[]',
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        full_name TEXT NOT NULL,
                        email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                        phone_number TEXT,
                        role TEXT NOT NULL CHECK (role IN ('Employee', 'Admin')),
                        password_hash TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RecurringSeries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        room_id INTEGER NOT NULL,
                        organizer_id INTEGER NOT NULL,
                        recurrence_type TEXT NOT NULL,
                        first_occurrence_date TEXT NOT NULL,
                        series_end_date TEXT NOT NULL,
                        start_time_of_day TEXT NOT NULL,
                        end_time_of_day TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PendingApproval',
                        attendees TEXT NOT NULL DEFAULT '',
                        admin_denial_reason TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (room_id) REFERENCES Rooms(id),
                        FOREIGN KEY (organizer_id) REFERENCES Users(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        room_id INTEGER NOT NULL,
                        organizer_id INTEGER NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PendingApproval',
                        attendees TEXT NOT NULL DEFAULT '',
                        admin_denial_reason TEXT,
                        series_id INTEGER,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        CHECK (end_time > start_time),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id),
                        FOREIGN KEY (organizer_id) REFERENCES Users(id),
                        FOREIGN KEY (series_id) REFERENCES RecurringSeries(id)
                            ON DELETE SET NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_room_status_start
                    ON Bookings(room_id, status, start_time);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_organizer
                    ON Bookings(organizer_id, start_time);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_series
                    ON Bookings(series_id);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_default_rooms(self) -> None:
        """Seed the configured rooms only when the Rooms table is empty."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                room_count = int(cursor.fetchone()["count"])
                if room_count > 0:
                    logger.info("Rooms already present; skipping seed")
                    return

                cursor.executemany(
                    """
                    INSERT INTO Rooms (name, location, capacity, equipment)
                    VALUES (?, ?, ?, ?);
                    """,
                    [
                        (name, location, capacity, json.dumps(sorted(set(equipment))))
                        for name, location, capacity, equipment in self._settings.default_rooms
                    ],
                )
                conn.commit()
            logger.info("Seeded %s default rooms", len(self._settings.default_rooms))
        except sqlite3.Error as exc:
            raise RuntimeError(f"Room seeding failed: {exc}") from exc

    # --- Rooms -----------------------------------------------------------

    def get_room(self, room_id: int) -> Optional[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms WHERE id = ?;", (room_id,))
            row = cursor.fetchone()
            return _row_to_room(row) if row is not None else None

    def list_rooms(self) -> list[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms ORDER BY name COLLATE NOCASE ASC, id ASC;")
            return [_row_to_room(row) for row in cursor.fetchall()]

    def insert_room(
        self,
        name: str,
        location: str,
        capacity: int,
        equipment: Collection[str],
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Rooms (name, location, capacity, equipment)
                VALUES (?, ?, ?, ?);
                """,
                (name, location, capacity, json.dumps(sorted(set(equipment)))),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def update_room(self, room: Room) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE Rooms
                SET name = ?, location = ?, capacity = ?, equipment = ?
                WHERE id = ?;
                """,
                (
                    room.name,
                    room.location,
                    room.capacity,
                    json.dumps(sorted(set(room.equipment))),
                    room.room_id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_room(self, room_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Rooms WHERE id = ?;", (room_id,))
            conn.commit()
            return cursor.rowcount > 0

    def count_room_references(self, room_id: int) -> int:
        """Return bookings plus series that point at the room."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM Bookings WHERE room_id = ?)
                  + (SELECT COUNT(*) FROM RecurringSeries WHERE room_id = ?) AS count;
                """,
                (room_id, room_id),
            )
            return int(cursor.fetchone()["count"])

    # --- Users -----------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Users WHERE id = ?;", (user_id,))
            row = cursor.fetchone()
            return _row_to_user(row) if row is not None else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Users WHERE email = ?;", (email.strip(),))
            row = cursor.fetchone()
            return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Users ORDER BY full_name COLLATE NOCASE ASC, id ASC;")
            return [_row_to_user(row) for row in cursor.fetchall()]

    def insert_user(
        self,
        full_name: str,
        email: str,
        role: Role,
        phone_number: Optional[str],
        password_hash: Optional[str],
    ) -> int:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO Users (full_name, email, phone_number, role, password_hash)
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    (full_name, email, phone_number, Role(role).value, password_hash),
                )
                conn.commit()
                return int(cursor.lastrowid)
        except sqlite3.IntegrityError as exc:
            raise BookingConflictError(f"A user with email {email} already exists") from exc

    def update_user(self, user: User) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    UPDATE Users
                    SET full_name = ?, email = ?, phone_number = ?, role = ?
                    WHERE id = ?;
                    """,
                    (
                        user.full_name,
                        user.email,
                        user.phone_number,
                        user.role.value,
                        user.user_id,
                    ),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.IntegrityError as exc:
            raise BookingConflictError(f"A user with email {user.email} already exists") from exc

    def set_password_hash(self, user_id: int, password_hash: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE Users SET password_hash = ? WHERE id = ?;",
                (password_hash, user_id),
            )
            conn.commit()

    def get_password_hash(self, user_id: int) -> Optional[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT password_hash FROM Users WHERE id = ?;", (user_id,))
            row = cursor.fetchone()
            if row is None or row["password_hash"] is None:
                return None
            return str(row["password_hash"])

    def delete_user(self, user_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Users WHERE id = ?;", (user_id,))
            conn.commit()
            return cursor.rowcount > 0

    def count_user_references(self, user_id: int) -> int:
        """Return bookings plus series organized by the user."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM Bookings WHERE organizer_id = ?)
                  + (SELECT COUNT(*) FROM RecurringSeries WHERE organizer_id = ?) AS count;
                """,
                (user_id, user_id),
            )
            return int(cursor.fetchone()["count"])

    # --- Bookings --------------------------------------------------------

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Bookings WHERE id = ?;", (booking_id,))
            row = cursor.fetchone()
            return _row_to_booking(row) if row is not None else None

    def insert_booking(
        self,
        title: str,
        room_id: int,
        organizer_id: int,
        start_time: datetime,
        end_time: datetime,
        status: BookingStatus,
        attendees: str,
        series_id: Optional[int] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Bookings (
                    title,
                    room_id,
                    organizer_id,
                    start_time,
                    end_time,
                    status,
                    attendees,
                    series_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    title,
                    room_id,
                    organizer_id,
                    _to_db_datetime(start_time),
                    _to_db_datetime(end_time),
                    BookingStatus(status).value,
                    attendees,
                    series_id,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def update_booking_details(self, booking: Booking, expected_status: BookingStatus) -> bool:
        """Replace editable fields while the stored status still matches."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE Bookings
                SET title = ?, room_id = ?, start_time = ?, end_time = ?, attendees = ?
                WHERE id = ? AND status = ?;
                """,
                (
                    booking.title,
                    booking.room_id,
                    _to_db_datetime(booking.start_time),
                    _to_db_datetime(booking.end_time),
                    booking.attendees,
                    booking.booking_id,
                    BookingStatus(expected_status).value,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def transition_booking_status(
        self,
        booking_id: int,
        expected_statuses: Collection[BookingStatus],
        new_status: BookingStatus,
        admin_denial_reason: Optional[str] = None,
    ) -> bool:
        """Compare-and-set status update; False when the row moved on."""
        expected = _status_values(expected_statuses)
        placeholders = ",".join("?" for _ in expected)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE Bookings
                SET status = ?, admin_denial_reason = COALESCE(?, admin_denial_reason)
                WHERE id = ? AND status IN ({placeholders});
                """,
                (BookingStatus(new_status).value, admin_denial_reason, booking_id, *expected),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_booking(self, booking_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Bookings WHERE id = ?;", (booking_id,))
            conn.commit()
            return cursor.rowcount > 0

    def find_overlapping_bookings(
        self,
        room_id: int,
        start_time: datetime,
        end_time: datetime,
        excluding_booking_id: Optional[int] = None,
    ) -> list[Booking]:
        """Return room-holding bookings whose window overlaps [start, end)."""
        active = _status_values(ACTIVE_STATUSES)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT *
                FROM Bookings
                WHERE room_id = ?
                  AND status IN ({",".join("?" for _ in active)})
                  AND start_time < ?
                  AND end_time > ?
                  AND (? IS NULL OR id != ?)
                ORDER BY start_time ASC, id ASC;
                """,
                (
                    room_id,
                    *active,
                    _to_db_datetime(end_time),
                    _to_db_datetime(start_time),
                    excluding_booking_id,
                    excluding_booking_id,
                ),
            )
            return [_row_to_booking(row) for row in cursor.fetchall()]

    def list_bookings(
        self,
        *,
        organizer_id: Optional[int] = None,
        room_id: Optional[int] = None,
        statuses: Optional[Collection[BookingStatus]] = None,
        overlapping_start: Optional[datetime] = None,
        overlapping_end: Optional[datetime] = None,
        starting_from: Optional[datetime] = None,
        starting_before: Optional[datetime] = None,
        series_id: Optional[int] = None,
        newest_first: bool = False,
    ) -> list[Booking]:
        clauses: list[str] = []
        params: list[object] = []
        if organizer_id is not None:
            clauses.append("organizer_id = ?")
            params.append(organizer_id)
        if room_id is not None:
            clauses.append("room_id = ?")
            params.append(room_id)
        if statuses is not None:
            values = _status_values(statuses)
            if not values:
                return []
            clauses.append(f"status IN ({','.join('?' for _ in values)})")
            params.extend(values)
        if overlapping_start is not None:
            clauses.append("end_time > ?")
            params.append(_to_db_datetime(overlapping_start))
        if overlapping_end is not None:
            clauses.append("start_time < ?")
            params.append(_to_db_datetime(overlapping_end))
        if starting_from is not None:
            clauses.append("start_time >= ?")
            params.append(_to_db_datetime(starting_from))
        if starting_before is not None:
            clauses.append("start_time < ?")
            params.append(_to_db_datetime(starting_before))
        if series_id is not None:
            clauses.append("series_id = ?")
            params.append(series_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if newest_first else "ASC"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT *
                FROM Bookings
                {where}
                ORDER BY start_time {direction}, id {direction};
                """,
                tuple(params),
            )
            return [_row_to_booking(row) for row in cursor.fetchall()]

    def count_bookings_by_status(
        self,
        *,
        status: Optional[BookingStatus] = None,
        starting_from: Optional[datetime] = None,
        starting_before: Optional[datetime] = None,
    ) -> dict[BookingStatus, int]:
        """Aggregate booking counts per status for reporting."""
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(BookingStatus(status).value)
        if starting_from is not None:
            clauses.append("start_time >= ?")
            params.append(_to_db_datetime(starting_from))
        if starting_before is not None:
            clauses.append("start_time < ?")
            params.append(_to_db_datetime(starting_before))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT status, COUNT(*) AS count
                FROM Bookings
                {where}
                GROUP BY status;
                """,
                tuple(params),
            )
            return {
                BookingStatus(row["status"]): int(row["count"])
                for row in cursor.fetchall()
            }

    # --- Recurring series ------------------------------------------------

    def get_series(self, series_id: int) -> Optional[RecurringSeries]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM RecurringSeries WHERE id = ?;", (series_id,))
            row = cursor.fetchone()
            return _row_to_series(row) if row is not None else None

    def insert_series(
        self,
        title: str,
        room_id: int,
        organizer_id: int,
        rule: RecurrenceRule,
        status: BookingStatus,
        attendees: str,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO RecurringSeries (
                    title,
                    room_id,
                    organizer_id,
                    recurrence_type,
                    first_occurrence_date,
                    series_end_date,
                    start_time_of_day,
                    end_time_of_day,
                    status,
                    attendees
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    title,
                    room_id,
                    organizer_id,
                    RecurrenceType(rule.recurrence_type).value,
                    rule.first_occurrence.isoformat(),
                    rule.series_end_date.isoformat(),
                    _to_db_time(rule.start_time_of_day),
                    _to_db_time(rule.end_time_of_day),
                    BookingStatus(status).value,
                    attendees,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def list_series(
        self,
        *,
        organizer_id: Optional[int] = None,
        statuses: Optional[Collection[BookingStatus]] = None,
    ) -> list[RecurringSeries]:
        clauses: list[str] = []
        params: list[object] = []
        if organizer_id is not None:
            clauses.append("organizer_id = ?")
            params.append(organizer_id)
        if statuses is not None:
            values = _status_values(statuses)
            if not values:
                return []
            clauses.append(f"status IN ({','.join('?' for _ in values)})")
            params.extend(values)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT *
                FROM RecurringSeries
                {where}
                ORDER BY first_occurrence_date ASC, start_time_of_day ASC, id ASC;
                """,
                tuple(params),
            )
            return [_row_to_series(row) for row in cursor.fetchall()]

    def transition_series_status(
        self,
        series_id: int,
        expected_statuses: Collection[BookingStatus],
        new_status: BookingStatus,
        admin_denial_reason: Optional[str] = None,
    ) -> bool:
        expected = _status_values(expected_statuses)
        placeholders = ",".join("?" for _ in expected)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE RecurringSeries
                SET status = ?, admin_denial_reason = COALESCE(?, admin_denial_reason)
                WHERE id = ? AND status IN ({placeholders});
                """,
                (BookingStatus(new_status).value, admin_denial_reason, series_id, *expected),
            )
            conn.commit()
            return cursor.rowcount > 0

    def cancel_future_series_bookings(self, series_id: int, now: datetime) -> int:
        """Cancel room-holding member bookings that have not started yet."""
        active = _status_values(ACTIVE_STATUSES)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE Bookings
                SET status = ?
                WHERE series_id = ?
                  AND start_time > ?
                  AND status IN ({",".join("?" for _ in active)});
                """,
                (BookingStatus.CANCELED.value, series_id, _to_db_datetime(now), *active),
            )
            conn.commit()
            return cursor.rowcount

    def delete_series(self, series_id: int, now: datetime) -> Optional[int]:
        """Remove the series and its future bookings in one transaction.

        Returns the number of removed bookings, or None when the series does
        not exist. Past member bookings stay with their series link cleared.
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM RecurringSeries WHERE id = ?;", (series_id,))
            if cursor.fetchone() is None:
                return None
            cursor.execute(
                "DELETE FROM Bookings WHERE series_id = ? AND start_time > ?;",
                (series_id, _to_db_datetime(now)),
            )
            removed = cursor.rowcount
            cursor.execute(
                "UPDATE Bookings SET series_id = NULL WHERE series_id = ?;",
                (series_id,),
            )
            cursor.execute("DELETE FROM RecurringSeries WHERE id = ?;", (series_id,))
            conn.commit()
            return removed
