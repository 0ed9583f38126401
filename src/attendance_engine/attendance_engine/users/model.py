from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Attendance-relevant view of a user.

    Note: identity and credentials live with the auth provider; only the
    check-in permissions are read here.
    """

    user_id: str
    full_name: str
    role: Role = Role.STAFF
    allowed_location_ids: frozenset[str] = frozenset()
    allow_checkin_outside: bool = False
    is_active: bool = True
