import threading
from dataclasses import replace
from datetime import datetime

import pytest

from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus
from src.attendance_engine.attendance_engine.core.exceptions import AlreadyCheckedIn, NotCheckedIn
from tests.fakes import NEAR_STORE, build_harness


def test_concurrent_check_ins_create_exactly_one_record():
    h = build_harness()
    barrier = threading.Barrier(2)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            outcomes.append(h.service.check_in("u1", *NEAR_STORE))
        except AlreadyCheckedIn as e:
            outcomes.append(e)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert sum(1 for o in outcomes if isinstance(o, AlreadyCheckedIn)) == 1
    assert len(h.attendance.list_by_status(AttendanceStatus.CHECKED_IN)) == 1


def test_losing_writer_gets_not_checked_in_and_keeps_the_winner():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE)
    human_checkout = datetime(2025, 3, 3, 17, 45)

    def another_process_closes_first(_):
        current = h.attendance.get_by_id(record.record_id)
        h.attendance.add(
            replace(
                current,
                status=AttendanceStatus.COMPLETED,
                check_out_time=human_checkout,
                version=current.version + 1,
            )
        )

    h.attendance.before_compare_and_set = another_process_closes_first

    with pytest.raises(NotCheckedIn):
        h.service.auto_close(record.record_id, datetime(2025, 3, 3, 18, 0), "sweep")

    stored = h.attendance.get_by_id(record.record_id)
    assert stored.check_out_time == human_checkout
    assert stored.status == AttendanceStatus.COMPLETED
    assert stored.edit_history == ()


def test_sweep_and_checkout_race_only_one_wins():
    h = build_harness()
    record = h.service.check_in("u1", *NEAR_STORE)
    barrier = threading.Barrier(2)
    results = []

    def checkout():
        barrier.wait()
        try:
            results.append(("checkout", h.service.check_out(record.record_id, *NEAR_STORE, now=datetime(2025, 3, 3, 17, 0))))
        except NotCheckedIn as e:
            results.append(("checkout", e))

    def sweep():
        barrier.wait()
        try:
            results.append(("sweep", h.service.auto_close(record.record_id, datetime(2025, 3, 3, 18, 0), "sweep")))
        except NotCheckedIn as e:
            results.append(("sweep", e))

    threads = [threading.Thread(target=checkout), threading.Thread(target=sweep)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    failures = [r for _, r in results if isinstance(r, NotCheckedIn)]
    assert len(results) == 2
    assert len(failures) == 1
    assert h.attendance.get_by_id(record.record_id).version == 1
