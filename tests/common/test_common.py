import threading
from datetime import time
from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.attendance_engine.attendance_engine.common.datetime_utils import parse_hhmm, parse_iso_datetime
from src.attendance_engine.attendance_engine.common.locking import KeyedLock
from src.attendance_engine.attendance_engine.common.validators import require_device_coordinates, require_non_empty
from src.attendance_engine.attendance_engine.core.exceptions import InvalidInput
from src.attendance_engine.attendance_engine.core.settings import EngineSettings
from src.attendance_engine.attendance_engine.database.bootstrap import iter_sql_statements
from src.attendance_engine.attendance_engine.locations.model import Location
from src.attendance_engine.attendance_engine.shifts.model import Shift


def test_device_coordinates_reject_null_island_and_ranges():
    assert require_device_coordinates("10.5", 106) == (10.5, 106.0)
    for lat, lng in [(0, 0), (-91, 0), (0, -181), (None, 1)]:
        with pytest.raises(InvalidInput):
            require_device_coordinates(lat, lng)


def test_require_non_empty_strips():
    assert require_non_empty("  ok ", "Reason") == "ok"
    with pytest.raises(InvalidInput):
        require_non_empty("", "Reason")


def test_time_parsing():
    assert parse_hhmm("18:00") == time(18, 0)
    assert parse_hhmm("07:30:15") == time(7, 30, 15)
    with pytest.raises(InvalidInput):
        parse_hhmm("6pm")
    with pytest.raises(InvalidInput):
        parse_iso_datetime("yesterday")


def test_model_validation():
    with pytest.raises(InvalidInput):
        Location(location_id="x", name="X", lat=1, lng=1, radius=0)
    with pytest.raises(InvalidInput):
        Shift(shift_id="s", shift_name="S", start_time=time(9), end_time=time(17), grace_minutes=-1)


def test_engine_settings_from_module():
    module = SimpleNamespace(
        STANDARD_DAY_HOURS=7.5,
        OVERTIME_TOLERANCE_MINUTES="30",
        HOURS_PRECISION="0.25",
        DEFAULT_CHECKOUT_TIME="17:30",
    )
    settings = EngineSettings.from_module(module)

    assert settings.standard_day_hours == Decimal("7.5")
    assert settings.overtime_tolerance_minutes == 30
    assert settings.hours_precision == Decimal("0.25")
    assert settings.default_checkout_time == time(17, 30)
    assert settings.auto_checkout_after_hours == 12
    assert settings.location_timeout_seconds == 10.0


def test_keyed_lock_serializes_same_key_and_cleans_up():
    locks = KeyedLock()
    inside = []
    overlap = []

    def work():
        with locks.hold(("u1", "2025-03-03")):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            threading.Event().wait(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert overlap == []
    assert len(locks) == 0


def test_sql_splitter_ignores_semicolons_in_strings():
    sql = "CREATE TABLE a (x INT);\nINSERT INTO a VALUES ('x;y');\n  \n"
    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "INSERT INTO a VALUES ('x;y')"]
