#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, time, timedelta
from importlib.metadata import version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from roombooking.domain.models import RecurrenceRule, RecurrenceType, ValidationOutcome
from roombooking.repository.data_repository import DataRepository
from roombooking.services.scheduling_service import SchedulingValidator
from roombooking.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="roombooking-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("passlib", "passlib"),
        ("bcrypt", "bcrypt"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            _ = version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        base_settings = get_settings()
        validation_settings = replace(
            base_settings,
            database_path=Path(temp_dir) / "roombooking_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Default room seeding
        try:
            repository.seed_default_rooms()
            room_count = len(repository.list_rooms())
            expected = len(validation_settings.default_rooms)
            if room_count != expected:
                raise RuntimeError(f"expected {expected} rooms, got {room_count}")
            ok, line = _print_result("Default rooms", True, f": {room_count} rooms")
        except Exception as exc:
            ok, line = _print_result("Default rooms", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Recurrence expansion and validation
        try:
            rooms = repository.list_rooms()
            if not rooms:
                raise RuntimeError("no rooms available to validate against")
            validator = SchedulingValidator(repository)
            first_day = (datetime.now() + timedelta(days=1)).date()
            rule = RecurrenceRule(
                recurrence_type=RecurrenceType.WEEKLY,
                first_occurrence=first_day,
                series_end_date=first_day + timedelta(weeks=3),
                start_time_of_day=time(9, 0),
                end_time_of_day=time(10, 0),
            )
            previews = validator.preview_occurrences(rule, rooms[0].room_id)
            if len(previews) != 4:
                raise RuntimeError(f"expected 4 weekly occurrences, got {len(previews)}")
            if any(preview.outcome is not ValidationOutcome.OK for preview in previews):
                raise RuntimeError("an occurrence in an empty room failed validation")
            ok, line = _print_result(
                "Recurrence preview",
                True,
                f": {len(previews)} occurrences from {first_day.isoformat()}",
            )
        except Exception as exc:
            ok, line = _print_result("Recurrence preview", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Booking Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
