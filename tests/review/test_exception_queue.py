from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, CheckinMode
from src.attendance_engine.attendance_engine.geo.model import GeoPoint
from src.attendance_engine.attendance_engine.review.service import overtime_category, trust_score
from tests.fakes import NEAR_STORE, build_harness


def stored(record_id, **overrides):
    values = dict(
        record_id=record_id,
        user_id="u1",
        work_date=datetime(2025, 3, 1).date(),
        check_in_time=datetime(2025, 3, 1, 9, 0) + timedelta(minutes=record_id),
        check_in_point=GeoPoint(*NEAR_STORE),
        mode=CheckinMode.ONSITE,
        primary_location_id="store-1",
        primary_location_name="Riverside Store",
    )
    values.update(overrides)
    return AttendanceRecord(**values)


def test_views_split_pending_records_by_reason():
    h = build_harness()
    h.attendance.add(stored(1, status=AttendanceStatus.PENDING_APPROVAL, forgot_checkout=True))
    h.attendance.add(stored(2, status=AttendanceStatus.PENDING_APPROVAL, needs_overtime_approval=True))
    h.attendance.add(
        stored(3, status=AttendanceStatus.PENDING_APPROVAL, forgot_checkout=True, needs_overtime_approval=True)
    )
    h.attendance.add(stored(4, status=AttendanceStatus.PENDING_APPROVAL))
    h.attendance.add(stored(5, status=AttendanceStatus.COMPLETED, forgot_checkout=True))

    queue = h.container.exception_queue
    assert [r.record_id for r in queue.forgotten_checkouts()] == [3, 1]
    assert [r.record_id for r in queue.overtime_approvals()] == [2]
    assert [r.record_id for r in queue.integrity_violations()] == [4]


def test_integrity_violation_is_logged(caplog):
    h = build_harness()
    h.attendance.add(stored(7, status=AttendanceStatus.PENDING_APPROVAL))

    with caplog.at_level("WARNING"):
        h.container.exception_queue.integrity_violations()

    assert "Record 7 is pending approval without a reason flag" in caplog.text


def test_pending_overtime_info_compares_capped_and_actual_hours():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE, now=datetime(2025, 3, 3, 10, 0))
    pending = h.service.check_out(record.record_id, *NEAR_STORE, now=datetime(2025, 3, 3, 20, 30))

    info = h.container.exception_queue.pending_overtime_info(pending)

    assert info.approved_hours == Decimal("8.0")
    assert info.actual_hours == Decimal("10.5")
    assert info.overtime_hours == Decimal("2.5")
    assert info.category == "late_closing"


def test_resolve_through_the_queue_removes_the_record_from_the_view():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE, now=datetime(2025, 3, 3, 10, 0))
    h.service.check_out(record.record_id, *NEAR_STORE, now=datetime(2025, 3, 3, 20, 30))
    queue = h.container.exception_queue

    queue.resolve(record.record_id, datetime(2025, 3, 3, 20, 30), "hr", "Stocktake", True)

    assert queue.overtime_approvals() == []


def test_overtime_categories():
    assert overtime_category(Decimal("3.5")) == "extended_event"
    assert overtime_category(Decimal("2.5")) == "late_closing"
    assert overtime_category(Decimal("2")) == "past_closing"


def test_trust_score():
    assert trust_score([stored(i) for i in range(9)]) == 0

    clean = [stored(i) for i in range(10)]
    assert trust_score(clean) == 100

    mixed = [replace(r, forgot_checkout=True) if r.record_id < 2 else r for r in clean]
    mixed = [replace(r, is_late=True) if r.record_id >= 5 else r for r in mixed]
    # 100 - 0.2*50 - 0 - 0.5*20
    assert trust_score(mixed) == 80
