from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, CheckinMode
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_decimal, db_cursor, fetchall, normalize_mysql_time
from ..geo.model import GeoPoint
from ..shifts.model import Shift
from .model import AttendanceRecord, EditHistoryEntry
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, user_id, work_date, status, version, checkin_mode,
    check_in_time, check_in_lat, check_in_lng, locations_in_range,
    primary_location_id, primary_location_name,
    shift_id, shift_name, shift_start, shift_end, shift_grace_minutes,
    shift_late_buffer_minutes, shift_standard_hours,
    check_out_time, check_out_lat, check_out_lng,
    total_hours, regular_hours, overtime_hours, break_hours,
    is_late, late_minutes, is_early_checkout, is_overnight,
    needs_overtime_approval, overtime_approved, forgot_checkout, auto_checkout, manual_checkout,
    note, auth_reason, reminders_sent
"""

_ER_DUP_ENTRY = 1062


def _open_marker(status: AttendanceStatus) -> Optional[int]:
    return 1 if status == AttendanceStatus.CHECKED_IN else None


def _shift_from_row(r: Dict[str, Any]) -> Optional[Shift]:
    if not r.get("shift_id"):
        return None
    standard = r.get("shift_standard_hours")
    return Shift(
        shift_id=str(r["shift_id"]),
        shift_name=r.get("shift_name") or "",
        start_time=normalize_mysql_time(r["shift_start"]),
        end_time=normalize_mysql_time(r["shift_end"]),
        grace_minutes=int(r.get("shift_grace_minutes") or 0),
        late_buffer_minutes=int(r.get("shift_late_buffer_minutes") or 0),
        standard_hours=as_decimal(standard) if standard is not None else None,
    )


def _entry_from_row(r: Dict[str, Any]) -> EditHistoryEntry:
    approved = r.get("overtime_approved")
    return EditHistoryEntry(
        edited_by=r["edited_by"],
        edited_by_name=r["edited_by_name"],
        edited_at=r["edited_at"],
        field=r["field"],
        old_value=r.get("old_value"),
        new_value=r.get("new_value"),
        reason=r["reason"],
        overtime_approved=as_bool(approved) if approved is not None else None,
    )


def _record_from_row(r: Dict[str, Any], history: Sequence[EditHistoryEntry]) -> AttendanceRecord:
    in_range = r.get("locations_in_range")
    if isinstance(in_range, (bytes, str)):
        in_range = json.loads(in_range)
    reminders = r.get("reminders_sent")
    if isinstance(reminders, (bytes, str)):
        reminders = json.loads(reminders)
    check_out_point = None
    if r.get("check_out_lat") is not None and r.get("check_out_lng") is not None:
        check_out_point = GeoPoint(float(r["check_out_lat"]), float(r["check_out_lng"]))

    return AttendanceRecord(
        record_id=int(r["record_id"]),
        user_id=str(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_in_point=GeoPoint(float(r["check_in_lat"]), float(r["check_in_lng"])),
        mode=CheckinMode(r["checkin_mode"]),
        status=AttendanceStatus(r["status"]),
        locations_in_range=tuple(str(i) for i in (in_range or [])),
        primary_location_id=r.get("primary_location_id"),
        primary_location_name=r.get("primary_location_name"),
        shift=_shift_from_row(r),
        check_out_time=r.get("check_out_time"),
        check_out_point=check_out_point,
        total_hours=as_decimal(r.get("total_hours")),
        regular_hours=as_decimal(r.get("regular_hours")),
        overtime_hours=as_decimal(r.get("overtime_hours")),
        break_hours=as_decimal(r.get("break_hours")),
        is_late=as_bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        is_early_checkout=as_bool(r.get("is_early_checkout")),
        is_overnight=as_bool(r.get("is_overnight")),
        needs_overtime_approval=as_bool(r.get("needs_overtime_approval")),
        overtime_approved=as_bool(r.get("overtime_approved")),
        forgot_checkout=as_bool(r.get("forgot_checkout")),
        auto_checkout=as_bool(r.get("auto_checkout")),
        manual_checkout=as_bool(r.get("manual_checkout")),
        note=r.get("note"),
        auth_reason=r.get("auth_reason"),
        edit_history=tuple(history),
        reminders_sent=frozenset(str(k) for k in (reminders or [])),
        version=int(r.get("version") or 0),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_history(self, cur, record_ids: Sequence[int]) -> Dict[int, list[EditHistoryEntry]]:
        if not record_ids:
            return {}
        placeholders = ",".join(["%s"] * len(record_ids))
        cur.execute(
            f"""
            SELECT record_id, seq, edited_by, edited_by_name, edited_at, field,
                   old_value, new_value, reason, overtime_approved
            FROM attendance_edit_history
            WHERE record_id IN ({placeholders})
            ORDER BY record_id, seq
            """,
            tuple(record_ids),
        )
        history: Dict[int, list[EditHistoryEntry]] = {}
        for r in fetchall(cur):
            history.setdefault(int(r["record_id"]), []).append(_entry_from_row(r))
        return history

    def _select(self, where: str, params: tuple, *, suffix: str = "") -> list[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} {suffix}", params)
            rows = fetchall(cur)
            history = self._load_history(cur, [int(r["record_id"]) for r in rows])
            return [_record_from_row(r, history.get(int(r["record_id"]), [])) for r in rows]

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        rows = self._select("record_id=%s", (int(record_id),))
        return rows[0] if rows else None

    def get_open_for_user_and_date(self, user_id: str, work_date: date) -> Optional[AttendanceRecord]:
        rows = self._select(
            "user_id=%s AND work_date=%s AND status=%s",
            (user_id, work_date, AttendanceStatus.CHECKED_IN.value),
            suffix="LIMIT 1",
        )
        return rows[0] if rows else None

    def get_recent_for_user(self, user_id: str, limit: int) -> Sequence[AttendanceRecord]:
        return self._select(
            "user_id=%s",
            (user_id,),
            suffix=f"ORDER BY check_in_time DESC LIMIT {int(limit)}",
        )

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        return self._select("status=%s", (status.value,), suffix="ORDER BY check_in_time")

    def create_checkin(self, record: AttendanceRecord) -> int:
        shift = record.shift
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, status, open_marker, version, checkin_mode,
                        check_in_time, check_in_lat, check_in_lng, locations_in_range,
                        primary_location_id, primary_location_name,
                        shift_id, shift_name, shift_start, shift_end, shift_grace_minutes,
                        shift_late_buffer_minutes, shift_standard_hours,
                        is_late, late_minutes, note, auth_reason
                    )
                    VALUES(%s,%s,%s,%s,0,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.work_date,
                        record.status.value,
                        _open_marker(record.status),
                        record.mode.value,
                        record.check_in_time,
                        record.check_in_point.lat,
                        record.check_in_point.lng,
                        json.dumps(list(record.locations_in_range)),
                        record.primary_location_id,
                        record.primary_location_name,
                        shift.shift_id if shift else None,
                        shift.shift_name if shift else None,
                        shift.start_time if shift else None,
                        shift.end_time if shift else None,
                        shift.grace_minutes if shift else None,
                        shift.late_buffer_minutes if shift else None,
                        shift.standard_hours if shift else None,
                        int(record.is_late),
                        record.late_minutes,
                        record.note,
                        record.auth_reason,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if getattr(e, "errno", None) == _ER_DUP_ENTRY:
                raise AlreadyCheckedIn("You have already checked in today") from e
            raise

    def compare_and_set(
        self,
        record: AttendanceRecord,
        *,
        expected_status: AttendanceStatus,
        expected_version: int,
    ) -> bool:
        out = record.check_out_point
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, open_marker=%s, version=version+1,
                    check_out_time=%s, check_out_lat=%s, check_out_lng=%s,
                    total_hours=%s, regular_hours=%s, overtime_hours=%s, break_hours=%s,
                    is_late=%s, late_minutes=%s, is_early_checkout=%s, is_overnight=%s,
                    needs_overtime_approval=%s, overtime_approved=%s, forgot_checkout=%s,
                    auto_checkout=%s, manual_checkout=%s, note=%s, reminders_sent=%s
                WHERE record_id=%s AND status=%s AND version=%s
                """,
                (
                    record.status.value,
                    _open_marker(record.status),
                    record.check_out_time,
                    out.lat if out else None,
                    out.lng if out else None,
                    record.total_hours,
                    record.regular_hours,
                    record.overtime_hours,
                    record.break_hours,
                    int(record.is_late),
                    record.late_minutes,
                    int(record.is_early_checkout),
                    int(record.is_overnight),
                    int(record.needs_overtime_approval),
                    int(record.overtime_approved),
                    int(record.forgot_checkout),
                    int(record.auto_checkout),
                    int(record.manual_checkout),
                    record.note,
                    json.dumps(sorted(record.reminders_sent)),
                    int(record.record_id),
                    expected_status.value,
                    int(expected_version),
                ),
            )
            if cur.rowcount != 1:
                return False

            # History is append-only: rows already stored keep their seq and are ignored.
            for seq, entry in enumerate(record.edit_history):
                cur.execute(
                    """
                    INSERT IGNORE INTO attendance_edit_history(
                        record_id, seq, edited_by, edited_by_name, edited_at, field,
                        old_value, new_value, reason, overtime_approved
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.record_id),
                        seq,
                        entry.edited_by,
                        entry.edited_by_name,
                        entry.edited_at,
                        entry.field,
                        entry.old_value,
                        entry.new_value,
                        entry.reason,
                        None if entry.overtime_approved is None else int(entry.overtime_approved),
                    ),
                )
            return True
