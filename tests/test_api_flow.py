from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from app import create_app
from roombooking.utils.config import get_settings


NOW = datetime(2025, 11, 10, 8, 0)
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        bookings_require_approval=True,
        admin_bookings_auto_confirm=True,
        password_hash_rounds=4,
        seed_default_rooms=True,
        bootstrap_admin_email=ADMIN_EMAIL,
        bootstrap_admin_password=ADMIN_PASSWORD,
    )


def _login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _series_payload(room_id: int) -> dict:
    return {
        "room_id": room_id,
        "first_occurrence_date": "2025-11-17",
        "start_time": "09:00:00",
        "end_time": "10:00:00",
        "recurrence": {"recurrence_type": "Weekly", "series_end_date": "2025-12-01"},
    }


def test_booking_lifecycle_end_to_end(tmp_path):
    settings = _build_test_settings(tmp_path, "api_flow.db")
    app = create_app(settings, clock=lambda: NOW)

    with TestClient(app) as client:
        # --- Auth guards ---
        assert client.get("/bookings/my").status_code == 401
        bad_login = client.post(
            "/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"}
        )
        assert bad_login.status_code == 401

        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)

        rooms = client.get("/rooms", headers=admin)
        assert rooms.status_code == 200
        room_names = [room["name"] for room in rooms.json()]
        assert room_names == sorted(room_names, key=str.lower)
        assert "Orion" in room_names
        orion_id = next(room["room_id"] for room in rooms.json() if room["name"] == "Orion")

        created_user = client.post(
            "/users",
            headers=admin,
            json={
                "full_name": "Ada Lovelace",
                "email": "ada@example.com",
                "password": "secret",
                "phone_number": "+1 555 0100",
            },
        )
        assert created_user.status_code == 201, created_user.text
        assert created_user.json()["role"] == "Employee"

        employee = _login(client, "ada@example.com", "secret")

        # --- Single booking: submit, conflict, approve ---
        booking_payload = {
            "title": "Planning",
            "room_id": orion_id,
            "start_time": "2025-11-17T09:00:00",
            "end_time": "2025-11-17T10:00:00",
            "attendees": "bob@example.com, carol@example.com",
        }
        created = client.post("/bookings", headers=employee, json=booking_payload)
        assert created.status_code == 201, created.text
        booking = created.json()
        assert booking["status"] == "PendingApproval"
        assert booking["attendee_emails"] == ["bob@example.com", "carol@example.com"]

        conflict = client.post(
            "/bookings",
            headers=admin,
            json={**booking_payload, "start_time": "2025-11-17T09:30:00", "end_time": "2025-11-17T10:30:00"},
        )
        assert conflict.status_code == 409

        past = client.post(
            "/bookings",
            headers=employee,
            json={**booking_payload, "start_time": "2025-11-01T09:00:00", "end_time": "2025-11-01T10:00:00"},
        )
        assert past.status_code == 400

        assert client.get("/admin/approval-queue", headers=employee).status_code == 403
        queue = client.get("/admin/approval-queue", headers=admin)
        assert queue.status_code == 200
        assert [(item["type"], item["id"]) for item in queue.json()] == [
            ("Single", booking["booking_id"])
        ]

        approve_by_employee = client.post(
            f"/admin/bookings/{booking['booking_id']}/approve", headers=employee
        )
        assert approve_by_employee.status_code == 403
        approved = client.post(f"/admin/bookings/{booking['booking_id']}/approve", headers=admin)
        assert approved.status_code == 200
        assert approved.json()["status"] == "Confirmed"
        again = client.post(f"/admin/bookings/{booking['booking_id']}/approve", headers=admin)
        assert again.status_code == 409
        assert client.post("/admin/bookings/9999/approve", headers=admin).status_code == 404

        dashboard = client.get("/bookings/dashboard", headers=employee)
        assert dashboard.status_code == 200
        entry = dashboard.json()[0]
        assert entry["room_name"] == "Orion"
        assert entry["organizer_email"] == "ada@example.com"
        assert entry["organizer_phone"] == "+1 555 0100"
        assert entry["is_past"] is False

        # --- Edit ---
        half_update = client.put(
            f"/bookings/{booking['booking_id']}",
            headers=employee,
            json={"start_time": "2025-11-17T09:00:00"},
        )
        assert half_update.status_code == 422
        renamed = client.put(
            f"/bookings/{booking['booking_id']}",
            headers=employee,
            json={"title": "Planning (final)"},
        )
        assert renamed.status_code == 200
        assert renamed.json()["title"] == "Planning (final)"
        assert renamed.json()["status"] == "Confirmed"

        # --- Deny ---
        second = client.post(
            "/bookings",
            headers=employee,
            json={**booking_payload, "start_time": "2025-11-18T09:00:00", "end_time": "2025-11-18T10:00:00"},
        ).json()
        no_reason = client.post(
            f"/admin/bookings/{second['booking_id']}/deny", headers=admin, json={"reason": " "}
        )
        assert no_reason.status_code == 400
        denied = client.post(
            f"/admin/bookings/{second['booking_id']}/deny",
            headers=admin,
            json={"reason": "Room reserved for interviews"},
        )
        assert denied.status_code == 200
        assert denied.json()["admin_denial_reason"] == "Room reserved for interviews"
        cancel_denied = client.post(f"/bookings/{second['booking_id']}/cancel", headers=employee)
        assert cancel_denied.status_code == 409

        # --- Recurring series: preview, approve with skip, cancel ---
        preview = client.post(
            "/bookings/recurring/preview", headers=employee, json=_series_payload(orion_id)
        )
        assert preview.status_code == 200
        assert [item["outcome"] for item in preview.json()] == ["Conflict", "Ok", "Ok"]

        series = client.post(
            "/bookings/recurring",
            headers=employee,
            json={**_series_payload(orion_id), "title": "Weekly sync"},
        )
        assert series.status_code == 201, series.text
        series_id = series.json()["series_id"]
        assert series.json()["status"] == "PendingApproval"

        mine = client.get("/recurring-bookings/my", headers=employee)
        assert [item["series_id"] for item in mine.json()] == [series_id]
        assert mine.json()[0]["details"] == "Weekly from 2025-11-17 to 2025-12-01, 09:00 - 10:00"

        materialized = client.post(
            f"/admin/recurring-bookings/{series_id}/approve", headers=admin
        )
        assert materialized.status_code == 200
        body = materialized.json()
        assert body["series"]["status"] == "Confirmed"
        assert len(body["accepted"]) == 2
        assert [(item["occurrence_date"], item["outcome"]) for item in body["skipped"]] == [
            ("2025-11-17", "Conflict")
        ]

        canceled = client.post(f"/recurring-bookings/{series_id}/cancel", headers=employee)
        assert canceled.status_code == 200
        assert canceled.json()["canceled_bookings"] == 2
        assert canceled.json()["series"]["status"] == "Canceled"

        # --- Oversight and reporting ---
        search = client.get("/admin/bookings", headers=admin, params={"search": "weekly"})
        assert search.status_code == 200
        assert len(search.json()) == 2

        report = client.get("/admin/reports/summary", headers=admin)
        assert report.status_code == 200
        summary = report.json()
        assert summary["total"] == 4
        assert summary["by_status"] == {
            "PendingApproval": 0,
            "Confirmed": 1,
            "Denied": 1,
            "Canceled": 2,
        }
        assert [item["status"] for item in summary["bookings"]] == [
            "Canceled",
            "Canceled",
            "Denied",
            "Confirmed",
        ]
        assert summary["bookings"][-1]["organizer_name"] == "Ada Lovelace"
        assert summary["bookings"][-1]["room_name"] == "Orion"
        confirmed_only = client.get(
            "/admin/reports/summary",
            headers=admin,
            params={"status": "Confirmed", "start_date": "2025-11-17", "end_date": "2025-11-17"},
        )
        assert confirmed_only.json()["total"] == 1
        assert [item["booking_id"] for item in confirmed_only.json()["bookings"]] == [
            booking["booking_id"]
        ]

        removed = client.delete(f"/admin/recurring-bookings/{series_id}", headers=admin)
        assert removed.status_code == 200
        assert removed.json() == {"series_id": series_id, "removed_bookings": 2}
        assert client.delete(f"/admin/bookings/{second['booking_id']}", headers=admin).status_code == 204

        my_bookings = client.get("/bookings/my", headers=employee)
        assert [item["booking_id"] for item in my_bookings.json()] == [booking["booking_id"]]

        # --- Logout ---
        assert client.post("/auth/logout", headers=employee).status_code == 204
        assert client.get("/bookings/my", headers=employee).status_code == 401


def test_directory_endpoints_enforce_roles(tmp_path):
    settings = _build_test_settings(tmp_path, "api_directory.db")
    app = create_app(settings, clock=lambda: NOW)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        created = client.post(
            "/users",
            headers=admin,
            json={"full_name": "Alan Turing", "email": "alan@example.com", "password": "pw"},
        )
        user_id = created.json()["user_id"]
        employee = _login(client, "alan@example.com", "pw")

        assert client.get("/users", headers=employee).status_code == 403
        own = client.put(f"/users/{user_id}", headers=employee, json={"phone_number": "+44 20"})
        assert own.status_code == 200
        assert own.json()["phone_number"] == "+44 20"
        promote = client.put(f"/users/{user_id}", headers=employee, json={"role": "Admin"})
        assert promote.status_code == 403

        duplicate = client.post(
            "/users",
            headers=admin,
            json={"full_name": "Alan T", "email": "ALAN@example.com", "password": "pw"},
        )
        assert duplicate.status_code == 409

        assert client.post(
            "/rooms", headers=employee, json={"name": "Pod", "capacity": 2}
        ).status_code == 403
        room = client.post(
            "/rooms",
            headers=admin,
            json={"name": "Pod", "location": "Floor 4", "capacity": 2, "equipment": ["tv"]},
        )
        assert room.status_code == 201
        room_id = room.json()["room_id"]
        updated = client.put(
            f"/rooms/{room_id}",
            headers=admin,
            json={"name": "Pod A", "location": "Floor 4", "capacity": 3},
        )
        assert updated.json()["name"] == "Pod A"
        assert client.get(f"/rooms/{room_id}", headers=employee).json()["capacity"] == 3
        assert client.delete(f"/rooms/{room_id}", headers=admin).status_code == 204
        assert client.get(f"/rooms/{room_id}", headers=employee).status_code == 404

        assert client.delete(f"/users/{user_id}", headers=admin).status_code == 204
        assert client.get("/bookings/my", headers=employee).status_code == 401


def test_dashboard_converts_offset_query_bounds_to_local_time(tmp_path):
    settings = _build_test_settings(tmp_path, "api_dashboard.db")
    app = create_app(settings, clock=lambda: NOW)
    far_offset = timezone(timedelta(hours=-11, minutes=-30))

    def _offset_bound(local: datetime) -> str:
        return local.astimezone().astimezone(far_offset).isoformat()

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        orion_id = next(
            room["room_id"]
            for room in client.get("/rooms", headers=admin).json()
            if room["name"] == "Orion"
        )
        created = client.post(
            "/bookings",
            headers=admin,
            json={
                "title": "Board review",
                "room_id": orion_id,
                "start_time": "2025-11-17T09:00:00",
                "end_time": "2025-11-17T10:00:00",
            },
        )
        assert created.status_code == 201, created.text

        inside = client.get(
            "/bookings/dashboard",
            headers=admin,
            params={
                "start": _offset_bound(datetime(2025, 11, 17, 9, 30)),
                "end": _offset_bound(datetime(2025, 11, 17, 9, 45)),
            },
        )
        assert inside.status_code == 200, inside.text
        assert [item["booking_id"] for item in inside.json()] == [created.json()["booking_id"]]

        after = client.get(
            "/bookings/dashboard",
            headers=admin,
            params={
                "start": _offset_bound(datetime(2025, 11, 17, 10, 30)),
                "end": _offset_bound(datetime(2025, 11, 17, 11, 0)),
            },
        )
        assert after.json() == []
