from __future__ import annotations

from typing import Optional, Protocol

from .model import User


class UserPermissionLookup(Protocol):
    """Check-in permissions per user.

    Note (DIP): services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError
