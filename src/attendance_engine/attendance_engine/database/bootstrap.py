"""Schema installation and demo seed for local environments."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# schema.sql may pin its own database; the configured one wins.
_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")

DEMO_LOCATIONS = [
    ("hq", "Head Office", 10.7769, 106.7009, 150, 1.0),
]
DEMO_HOURS = [
    ("hq", day, "07:00:00", "23:00:00", 0)
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
] + [("hq", "sunday", "00:00:00", "00:00:00", 1)]
DEMO_SHIFTS = [
    ("hq-day", "hq", "Day", "09:00:00", "18:00:00", 15, 0),
    ("hq-late", "hq", "Late", "14:00:00", "22:00:00", 15, 1),
]
DEMO_USERS = [
    ("admin", "Admin Demo", "admin", 1),
    ("staff", "Staff Demo", "staff", 0),
]


@contextmanager
def _session(db_config: dict, *, with_database: bool = True) -> Iterator:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect(with_database=with_database)
    try:
        cur = conn.cursor()
        yield cur
        conn.commit()
    finally:
        conn.close()


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Yield the statements of a script.

    ``--`` comment lines are dropped and ``;`` only ends a statement
    outside single or double quotes.
    """
    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is not None:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1
    tail = sql[start:].strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    with _session(db_config, with_database=False) as cur:
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    script = _DATABASE_DIRECTIVES.sub("", Path(schema_path).read_text(encoding="utf-8"))
    count = 0
    with _session(db_config) as cur:
        for stmt in iter_sql_statements(script):
            cur.execute(stmt)
            count += 1
    logger.info("Applied %d schema statements from %s", count, schema_path)


def ensure_demo_data(db_config: dict) -> None:
    """One demo location with a day and a late shift, plus an admin and a staff user."""
    with _session(db_config) as cur:
        cur.executemany(
            "INSERT IGNORE INTO locations(location_id, name, lat, lng, radius, break_hours, is_active) "
            "VALUES(%s, %s, %s, %s, %s, %s, 1)",
            DEMO_LOCATIONS,
        )
        cur.executemany(
            "INSERT IGNORE INTO location_working_hours(location_id, weekday, open_time, close_time, is_closed) "
            "VALUES(%s, %s, %s, %s, %s)",
            DEMO_HOURS,
        )
        cur.executemany(
            "INSERT IGNORE INTO location_shifts"
            "(shift_id, location_id, shift_name, start_time, end_time, grace_minutes, sort_order) "
            "VALUES(%s, %s, %s, %s, %s, %s, %s)",
            DEMO_SHIFTS,
        )
        cur.executemany(
            "INSERT IGNORE INTO users(user_id, full_name, role, allow_checkin_outside, is_active) "
            "VALUES(%s, %s, %s, %s, 1)",
            DEMO_USERS,
        )
        cur.executemany(
            "INSERT IGNORE INTO user_allowed_locations(user_id, location_id) VALUES(%s, %s)",
            [(user_id, "hq") for user_id, *_ in DEMO_USERS],
        )


def list_tables(db_config: dict) -> list[str]:
    with _session(db_config) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
