from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock
from ..core.exceptions import DependencyUnavailable, DomainError, InvalidInput
from ..geo.model import GeoPoint
from ..locations.model import Location
from ..locations.repository import LocationDirectory
from ..users.model import User
from ..users.repository import UserPermissionLookup
from .matcher import LocationMatcher
from .model import AuthResult

logger = logging.getLogger(__name__)


class CheckinAuthorizationService:
    """Feeds the matcher from the location directory and permission lookup.

    Lookup failures fail closed: they raise DependencyUnavailable instead of
    being treated as "no restriction".
    """

    def __init__(
        self,
        locations: LocationDirectory,
        users: UserPermissionLookup,
        *,
        matcher: LocationMatcher | None = None,
        clock: Clock | None = None,
    ):
        self._locations = locations
        self._users = users
        self._matcher = matcher or LocationMatcher()
        self._clock = clock or SystemClock()

    def get_user(self, user_id: str) -> User:
        try:
            user = self._users.get_by_id(user_id)
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Permission lookup failed for user %s", user_id)
            raise DependencyUnavailable("User permissions are unavailable, try again later") from e
        if not user or not user.is_active:
            raise InvalidInput("User does not exist or is inactive")
        return user

    def active_locations(self) -> Sequence[Location]:
        try:
            return list(self._locations.list_active())
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Location directory lookup failed")
            raise DependencyUnavailable("Location directory is unavailable, try again later") from e

    def get_location(self, location_id: Optional[str]) -> Optional[Location]:
        if location_id is None:
            return None
        try:
            return self._locations.get_by_id(location_id)
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Location lookup failed for %s", location_id)
            raise DependencyUnavailable("Location directory is unavailable, try again later") from e

    def authorize(self, user_id: str, point: GeoPoint, *, now: datetime | None = None) -> AuthResult:
        instant = now or self._clock.now()
        user = self.get_user(user_id)
        locations = self.active_locations()

        result = self._matcher.authorize(
            point,
            instant,
            locations,
            user.allowed_location_ids,
            user.allow_checkin_outside,
        )
        if not result.allowed:
            logger.info("Check-in denied for user %s: %s", user_id, result.reason)
        return result
