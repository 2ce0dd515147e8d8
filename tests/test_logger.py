"""Tests for logging level resolution."""

from __future__ import annotations

import logging

from roombooking.utils.logger import _resolve_level, get_logger


def test_level_names_resolve_case_insensitively() -> None:
    assert _resolve_level("debug") == logging.DEBUG
    assert _resolve_level(" Warning ") == logging.WARNING


def test_unknown_level_name_is_rejected() -> None:
    assert _resolve_level("verbose") is None


def test_get_logger_returns_named_logger() -> None:
    assert get_logger("roombooking.tests").name == "roombooking.tests"
