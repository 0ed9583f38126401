from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Weekday
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_decimal, db_cursor, fetchall, normalize_mysql_time
from ..shifts.model import Shift
from .model import Location, WorkingHours
from .repository import LocationDirectory


class MySQLLocationRepository(LocationDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self) -> Sequence[Location]:
        return self._load("WHERE is_active=1", ())

    def get_by_id(self, location_id: str) -> Optional[Location]:
        rows = self._load("WHERE location_id=%s", (location_id,))
        return rows[0] if rows else None

    def _load(self, where: str, params: tuple) -> list[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT location_id, name, lat, lng, radius, break_hours, is_active
                FROM locations
                {where}
                ORDER BY location_id
                """,
                params,
            )
            rows = fetchall(cur)
            if not rows:
                return []

            ids = tuple(r["location_id"] for r in rows)
            placeholders = ",".join(["%s"] * len(ids))

            cur.execute(
                f"""
                SELECT location_id, weekday, open_time, close_time, is_closed
                FROM location_working_hours
                WHERE location_id IN ({placeholders})
                """,
                ids,
            )
            hours: Dict[str, Dict[Weekday, WorkingHours]] = {}
            for h in fetchall(cur):
                hours.setdefault(h["location_id"], {})[Weekday(h["weekday"])] = WorkingHours(
                    open=normalize_mysql_time(h["open_time"]),
                    close=normalize_mysql_time(h["close_time"]),
                    is_closed=as_bool(h.get("is_closed")),
                )

            cur.execute(
                f"""
                SELECT shift_id, location_id, shift_name, start_time, end_time,
                       grace_minutes, late_buffer_minutes, standard_hours
                FROM location_shifts
                WHERE location_id IN ({placeholders})
                ORDER BY location_id, sort_order, shift_id
                """,
                ids,
            )
            shifts: Dict[str, list[Shift]] = {}
            for s in fetchall(cur):
                shifts.setdefault(s["location_id"], []).append(_shift_from_row(s))

            return [
                Location(
                    location_id=str(r["location_id"]),
                    name=r["name"],
                    lat=float(r["lat"]),
                    lng=float(r["lng"]),
                    radius=float(r["radius"]),
                    is_active=as_bool(r.get("is_active")),
                    working_hours=hours.get(r["location_id"], {}),
                    shifts=tuple(shifts.get(r["location_id"], [])),
                    break_hours=as_decimal(r.get("break_hours")),
                )
                for r in rows
            ]


def _shift_from_row(s: Dict[str, Any]) -> Shift:
    standard = s.get("standard_hours")
    return Shift(
        shift_id=str(s["shift_id"]),
        shift_name=s["shift_name"],
        start_time=normalize_mysql_time(s["start_time"]),
        end_time=normalize_mysql_time(s["end_time"]),
        grace_minutes=int(s.get("grace_minutes") or 0),
        late_buffer_minutes=int(s.get("late_buffer_minutes") or 0),
        standard_hours=as_decimal(standard) if standard is not None else None,
    )
