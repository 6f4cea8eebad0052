from __future__ import annotations

import os

# must be set before assessment_calendar.infrastructure.logging is imported
os.environ.setdefault("APP_ENVIRONMENT", "testing")

import pytest  # noqa: E402

from assessment_calendar.infrastructure.config import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()
