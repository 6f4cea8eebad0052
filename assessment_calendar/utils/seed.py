from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from assessment_calendar.application.api import create_assessment
from assessment_calendar.infrastructure.logging import get_logger
from assessment_calendar.infrastructure.models import Base
from assessment_calendar.infrastructure.uow import UnitOfWork

logger = get_logger(__name__)


def initialise_database(engine: Engine) -> bool:
    """
    Ensure all ORM tables exist.

    Returns:
        True if every table already existed before this call, False if at least one table
        needed to be created (or could not be created; the failure is logged).
    """
    try:
        inspector = inspect(engine)
        existing_tables = set(inspector.get_table_names())
        expected_tables = [table.name for table in Base.metadata.sorted_tables]
        already_exists = all(table in existing_tables for table in expected_tables)
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialise database tables: {str(e)}")
        return False

    if not already_exists:
        logger.info("Created database tables")
    return already_exists


def load_seed_file(path: Path) -> list[dict[str, Any]]:
    """
    Read assessments from a JSON file.

    The file holds either a list of assessment objects or an object with a
    ``data`` list, matching the ``GET /api/calendar`` envelope.
    """
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a list of assessments")
    return [item for item in payload if isinstance(item, dict)]


def seed_assessments(SessionLocal: sessionmaker, items: list[dict[str, Any]]) -> int:
    """Insert ``items`` in one transaction and return how many rows were added."""
    uow = UnitOfWork(SessionLocal)
    with uow.begin() as session:
        for item in items:
            create_assessment(session, item)
    logger.info(f"Seeded {len(items)} assessments")
    return len(items)
