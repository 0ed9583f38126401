import pytest

from src.attendance_engine.attendance_engine.authorization.service import CheckinAuthorizationService
from src.attendance_engine.attendance_engine.core.exceptions import DependencyUnavailable, InvalidInput
from src.attendance_engine.attendance_engine.geo.model import GeoPoint
from tests.fakes import NEAR_STORE, InMemoryLocations, InMemoryUsers, staff, store


def make(locations=None, users=None):
    return CheckinAuthorizationService(
        locations or InMemoryLocations([store()]),
        users or InMemoryUsers({"u1": staff()}),
    )


def test_directory_failure_fails_closed():
    service = make(locations=InMemoryLocations([store()], fail=True))
    with pytest.raises(DependencyUnavailable):
        service.authorize("u1", GeoPoint(*NEAR_STORE))


def test_permission_lookup_failure_fails_closed():
    service = make(users=InMemoryUsers({"u1": staff()}, fail=True))
    with pytest.raises(DependencyUnavailable):
        service.authorize("u1", GeoPoint(*NEAR_STORE))


def test_unknown_or_inactive_user_is_rejected():
    service = make(users=InMemoryUsers({"u2": staff(user_id="u2", is_active=False)}))
    with pytest.raises(InvalidInput):
        service.get_user("u1")
    with pytest.raises(InvalidInput):
        service.get_user("u2")


def test_get_location_without_id_returns_none():
    assert make().get_location(None) is None
    assert make().get_location("store-1").name == "Riverside Store"
