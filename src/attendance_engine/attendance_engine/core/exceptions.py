from __future__ import annotations

from typing import Any, Sequence


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is a stable machine-readable tag, ``reason`` the human-readable text
    shown to the user.
    """

    kind = "domain_error"

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason


class PermissionDenied(DomainError):
    """Raised when geofence or shift authorization fails."""

    kind = "permission_denied"

    def __init__(self, reason: str, *, result: Any = None):
        super().__init__(reason)
        self.result = result


class InvalidState(DomainError):
    """Raised when a transition is not valid from the record's current state."""

    kind = "invalid_state"


class AlreadyCheckedIn(InvalidState):
    kind = "already_checked_in"


class NotCheckedIn(InvalidState):
    kind = "not_checked_in"


class ShiftSelectionRequired(InvalidState):
    """More than one shift is open; the caller must pick one of ``candidates``."""

    kind = "shift_selection_required"

    def __init__(self, reason: str, *, candidates: Sequence[Any] = ()):
        super().__init__(reason)
        self.candidates = tuple(candidates)


class InvalidInput(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "invalid_input"


# Kept for callers that speak the older name.
ValidationError = InvalidInput


class ClockSkew(InvalidInput):
    """Raised when a checkout instant precedes the check-in instant."""

    kind = "clock_skew"


class DependencyUnavailable(DomainError):
    """Raised when a collaborator (directory, permission lookup) cannot answer."""

    kind = "dependency_unavailable"


class LocationUnavailable(DependencyUnavailable):
    """Device position could not be obtained (failure, timeout or cancellation)."""

    kind = "location_unavailable"


class AcquisitionInProgress(DomainError):
    kind = "acquisition_in_progress"


class IntegrityError(DomainError):
    """Raised when a record would violate the engine's own invariants."""

    kind = "integrity_error"
