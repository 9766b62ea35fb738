"""
Shared pytest fixtures for gridspine tests.

This module provides:
- Settings and logging isolation between tests
- Sample record collections
- A pinned reference date for date bucketing
"""

from __future__ import annotations

import json
import os
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import structlog

from gridspine.core.logging import clear_context
from gridspine.core.settings import clear_settings_cache


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Drop GRIDSPINE_* variables and the settings cache around every test."""
    for name in list(os.environ):
        if name.startswith("GRIDSPINE_"):
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any configure_logging() call and bound context."""
    yield
    clear_context()
    structlog.reset_defaults()


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def today() -> date:
    """Pinned reference date (a Wednesday)."""
    return date(2024, 3, 13)


@pytest.fixture
def users() -> list[dict[str, Any]]:
    return [
        {"id": 1, "name": "Ann", "age": 30, "active": True, "joined": "2024-03-13"},
        {"id": 2, "name": "Bob", "age": 41, "active": False, "joined": "2024-03-16"},
        {"id": 3, "name": "Cyd", "age": 25, "active": True, "joined": "2024-03-01"},
        {"id": 4, "name": "Dee", "age": 52, "active": False, "joined": "2024-03-13"},
    ]


@pytest.fixture
def users_file(tmp_path: Path, users: list[dict[str, Any]]) -> Path:
    path = tmp_path / "users.json"
    path.write_text(json.dumps(users), encoding="utf-8")
    return path
