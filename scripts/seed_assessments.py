from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from assessment_calendar.infrastructure.config import DatabaseConfig
from assessment_calendar.infrastructure.db import make_engine_and_session
from assessment_calendar.infrastructure.exceptions import CalendarAppError
from assessment_calendar.utils.seed import initialise_database, load_seed_file, seed_assessments


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create the assessments table and load assessments from JSON")

    parser.add_argument(
        "--backend", choices=["sqlite", "mysql"], default=os.environ.get("DB_BACKEND", "sqlite")
    )
    parser.add_argument("--sqlite-path", default=os.environ.get("DB_SQLITE_PATH", "./calendarapp.db"))
    parser.add_argument("--mysql-host", default=os.environ.get("DB_MYSQL_HOST", "localhost"))
    parser.add_argument("--mysql-port", type=int, default=int(os.environ.get("DB_MYSQL_PORT") or 3306))
    parser.add_argument("--mysql-user", default=os.environ.get("DB_MYSQL_USER", "root"))
    parser.add_argument("--mysql-password", default=os.environ.get("DB_MYSQL_PASSWORD", ""))
    parser.add_argument(
        "--mysql-database",
        "--mysql-db",
        dest="mysql_database",
        default=os.environ.get("DB_MYSQL_DATABASE", "calendarapp"),
    )
    parser.add_argument("json_path", help="JSON list of {name, description?, submit_date, color?}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = DatabaseConfig(
        backend=args.backend,
        sqlite_path=args.sqlite_path,
        mysql_host=args.mysql_host,
        mysql_port=args.mysql_port,
        mysql_user=args.mysql_user,
        mysql_password=args.mysql_password,
        mysql_database=args.mysql_database,
    )
    engine, SessionLocal = make_engine_and_session(cfg.get_connection_url())
    initialise_database(engine)

    json_path = Path(args.json_path)
    if not json_path.exists():
        print(f"ERROR: seed file not found at {json_path}", file=sys.stderr)
        return 1

    try:
        count = seed_assessments(SessionLocal, load_seed_file(json_path))
    except (CalendarAppError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Seed completed: {count} assessments.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
