from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import User
from .repository import UserPermissionLookup


class MySQLUserRepository(UserPermissionLookup):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, role, allow_checkin_outside, is_active
                FROM users
                WHERE user_id=%s
                """,
                (user_id,),
            )
            row = fetchone(cur)
            if not row:
                return None

            cur.execute(
                "SELECT location_id FROM user_allowed_locations WHERE user_id=%s",
                (user_id,),
            )
            allowed = frozenset(str(r["location_id"]) for r in fetchall(cur))

            return User(
                user_id=str(row["user_id"]),
                full_name=row["full_name"],
                role=Role(row["role"]),
                allowed_location_ids=allowed,
                allow_checkin_outside=as_bool(row.get("allow_checkin_outside")),
                is_active=as_bool(row.get("is_active", 1)),
            )
