from datetime import datetime, time
from decimal import Decimal

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.core.constants import SYSTEM_EDITOR_ID
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, CheckinMode, NotificationType, Weekday
from src.attendance_engine.attendance_engine.geo.model import GeoPoint
from src.attendance_engine.attendance_engine.locations.model import WorkingHours
from tests.fakes import FAR_AWAY, NEAR_STORE, build_harness, day_shift, every_day, staff, store

SWEEP_AT = datetime(2025, 3, 5, 23, 59)


def open_record_without_shift(record_id):
    # e.g. a record whose shift was removed from the location afterwards
    return AttendanceRecord(
        record_id=record_id,
        user_id="u1",
        work_date=datetime(2025, 3, 3).date(),
        check_in_time=datetime(2025, 3, 3, 8, 0),
        check_in_point=GeoPoint(*NEAR_STORE),
        mode=CheckinMode.ONSITE,
        primary_location_id="store-1",
        primary_location_name="Riverside Store",
    )


def checked_in(h, **kwargs):
    return h.service.check_in("u1", *kwargs.pop("point", NEAR_STORE), **kwargs)


def test_scenario_forgotten_checkout_closes_at_shift_end():
    h = build_harness()
    record = checked_in(h)

    report = h.container.sweep.run(now=SWEEP_AT)

    assert report.processed == 1
    assert report.errors == []
    closed = h.attendance.get_by_id(record.record_id)
    assert closed.status == AttendanceStatus.PENDING_APPROVAL
    assert closed.forgot_checkout
    assert closed.auto_checkout
    assert not closed.needs_overtime_approval
    assert closed.check_out_time == datetime(2025, 3, 3, 18, 0)
    assert closed.total_hours == Decimal("9.1")
    assert closed.edit_history[-1].edited_by == SYSTEM_EDITOR_ID
    assert closed.edit_history[-1].new_value == datetime(2025, 3, 3, 18, 0)
    assert NotificationType.FORGOTTEN_CHECKOUT in h.sink.types()
    assert closed in h.container.exception_queue.forgotten_checkouts()


def test_second_run_is_a_no_op():
    h = build_harness()
    record = checked_in(h)
    h.container.sweep.run(now=SWEEP_AT)
    first = h.attendance.get_by_id(record.record_id)

    report = h.container.sweep.run(now=SWEEP_AT)

    assert report.processed == 0
    assert report.items == ()
    assert h.attendance.get_by_id(record.record_id) == first


def test_dry_run_reports_without_writing():
    h = build_harness()
    record = checked_in(h)

    report = h.container.sweep.run(dry_run=True, now=SWEEP_AT)

    assert report.would_close == 1
    assert report.processed == 0
    assert report.items[0].fallback_checkout == datetime(2025, 3, 3, 18, 0)
    assert h.attendance.get_by_id(record.record_id).is_open
    assert report.as_dict()["dry_run"] is True


def test_recent_records_are_not_stale():
    h = build_harness()
    checked_in(h)
    report = h.container.sweep.run(now=datetime(2025, 3, 3, 20, 0))
    assert report.items == ()


def test_record_closed_in_the_meantime_is_skipped(monkeypatch):
    h = build_harness()
    record = checked_in(h)
    snapshot = h.attendance.get_by_id(record.record_id)
    h.service.check_out(record.record_id, *NEAR_STORE, now=datetime(2025, 3, 3, 17, 55))
    monkeypatch.setattr(h.service, "list_open", lambda: [snapshot])

    report = h.container.sweep.run(now=SWEEP_AT)

    assert report.skipped == 1
    assert h.attendance.get_by_id(record.record_id).check_out_time == datetime(2025, 3, 3, 17, 55)


def test_failure_on_one_record_does_not_stop_the_sweep(monkeypatch):
    h = build_harness(users=[staff(), staff(user_id="u2")])
    first = checked_in(h)
    second = h.service.check_in("u2", *NEAR_STORE, now=datetime(2025, 3, 3, 9, 0))
    real_auto_close = h.service.auto_close

    def flaky(record_id, fallback, reason):
        if record_id == first.record_id:
            raise RuntimeError("disk full")
        return real_auto_close(record_id, fallback, reason)

    monkeypatch.setattr(h.service, "auto_close", flaky)
    report = h.container.sweep.run(now=SWEEP_AT)

    assert report.processed == 1
    assert report.errors == [f"{first.record_id}: disk full"]
    assert not h.attendance.get_by_id(second.record_id).is_open


def test_fallback_without_shift_uses_location_close():
    h = build_harness()
    record = h.attendance.add(open_record_without_shift(41))

    h.container.sweep.run(now=SWEEP_AT)

    assert h.attendance.get_by_id(record.record_id).check_out_time == datetime(2025, 3, 3, 18, 0)


def test_fallback_without_shift_or_close_uses_default_time():
    h = build_harness(users=[staff(allow_checkin_outside=True)])
    record = checked_in(h, point=FAR_AWAY)

    h.container.sweep.run(now=SWEEP_AT)

    closed = h.attendance.get_by_id(record.record_id)
    assert closed.check_out_time == datetime(2025, 3, 3, 18, 0)
    assert closed.forgot_checkout


def test_fallback_after_default_time_uses_standard_day():
    h = build_harness(users=[staff(allow_checkin_outside=True)], now=datetime(2025, 3, 3, 19, 0))
    record = checked_in(h, point=FAR_AWAY)

    h.container.sweep.run(now=SWEEP_AT)

    assert h.attendance.get_by_id(record.record_id).check_out_time == datetime(2025, 3, 4, 3, 0)


def test_fallback_on_closed_day_without_shift():
    hours = every_day(time(7, 0), time(18, 0))
    hours[Weekday.MONDAY] = WorkingHours.closed()
    h = build_harness(locations=[store(working_hours=hours)])
    record = h.attendance.add(open_record_without_shift(42))

    report = h.container.sweep.run(now=SWEEP_AT)

    assert report.processed == 1
    assert h.attendance.get_by_id(record.record_id).check_out_time == datetime(2025, 3, 3, 18, 0)


def test_pre_midnight_grace_check_in_closes_at_next_mornings_shift_end():
    early = day_shift(shift_id="early", shift_name="Early", start_time=time(0, 5), end_time=time(8, 0))
    loc = store(working_hours=every_day(time(7, 0), time(0, 0)), shifts=(early,))
    h = build_harness(locations=[loc], now=datetime(2025, 3, 3, 23, 55))
    record = checked_in(h)
    assert not record.is_late

    report = h.container.sweep.run(now=datetime(2025, 3, 5, 8, 0))

    assert report.processed == 1
    closed = h.attendance.get_by_id(record.record_id)
    assert closed.check_out_time == datetime(2025, 3, 4, 8, 0)
    assert closed.total_hours == Decimal("8.1")
