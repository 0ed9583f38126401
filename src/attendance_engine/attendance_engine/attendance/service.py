from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..authorization.model import AuthResult, Authorized
from ..authorization.service import CheckinAuthorizationService
from ..common.datetime_utils import Clock, SystemClock, whole_minutes
from ..common.locking import KeyedLock
from ..common.validators import require_device_coordinates, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, SYSTEM_EDITOR_ID, SYSTEM_EDITOR_NAME
from ..core.enums import AttendanceStatus, CheckinMode, NotificationType
from ..core.exceptions import (
    AlreadyCheckedIn,
    ClockSkew,
    IntegrityError,
    InvalidInput,
    InvalidState,
    NotCheckedIn,
    PermissionDenied,
    ShiftSelectionRequired,
)
from ..core.settings import EngineSettings
from ..geo.model import GeoPoint
from ..hours.base import HoursBreakdown
from ..hours.standard_calculator import StandardHoursCalculator
from ..locations.model import Location
from ..notifications.model import AttendanceEvent
from ..notifications.sink import Notifier
from ..shifts.model import Shift
from ..shifts.window import expected_checkout, pending_reminders
from .factory import CloseStrategyFactory
from .model import AttendanceRecord, EditHistoryEntry
from .repository import AttendanceRepository
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)

CHECKOUT_FIELD = "check_out_time"


class AttendanceService:
    """Lifecycle of attendance records: none -> checked-in -> completed / pending-approval.

    Every transition re-reads the record under the per-(user, day) lock and is
    committed with a compare-and-set on (status, version), so of two concurrent
    terminal transitions exactly one wins and the other gets NotCheckedIn.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        authorization: CheckinAuthorizationService,
        *,
        calculator: StandardHoursCalculator | None = None,
        strategy_factory: CloseStrategyFactory | None = None,
        notifier: Notifier | None = None,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
        locks: KeyedLock | None = None,
    ):
        self._attendance = attendance
        self._authorization = authorization
        self._settings = settings or EngineSettings()
        self._calculator = calculator or StandardHoursCalculator(self._settings)
        self._factory = strategy_factory or CloseStrategyFactory()
        self._notifier = notifier or Notifier()
        self._clock = clock or SystemClock()
        self._locks = locks or KeyedLock()

    # -- queries -----------------------------------------------------------

    def get_record(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise InvalidInput("Attendance record does not exist")
        return record

    def get_current_open(self, user_id: str, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        """The user's open record for today, or yesterday's for overnight shifts."""
        today = (now or self._clock.now()).date()
        for day in (today, today - timedelta(days=1)):
            record = self._attendance.get_open_for_user_and_date(user_id, day)
            if record:
                return record
        return None

    def get_history(self, user_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(user_id, int(limit))

    def list_open(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_status(AttendanceStatus.CHECKED_IN)

    def close_time_for(self, record: AttendanceRecord) -> Optional[datetime]:
        return self._close_context(record)[1]

    def preview_hours(
        self,
        record: AttendanceRecord,
        checkout: datetime,
        *,
        cap_at_close: bool,
    ) -> HoursBreakdown:
        """Hours ``record`` would count if it were closed at ``checkout``; nothing is written."""
        location, close_time = self._close_context(record)
        return self._compute(record, checkout, location, close_time, cap_at_close=cap_at_close)

    # -- check-in ----------------------------------------------------------

    def authorize(self, user_id: str, lat: float, lng: float, *, now: datetime | None = None) -> AuthResult:
        point = GeoPoint(*require_device_coordinates(lat, lng))
        return self._authorization.authorize(user_id, point, now=now or self._clock.now())

    def check_in(
        self,
        user_id: str,
        lat: float,
        lng: float,
        *,
        shift_id: Optional[str] = None,
        note: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        instant = now or self._clock.now()
        point = GeoPoint(*require_device_coordinates(lat, lng))

        result = self._authorization.authorize(user_id, point, now=instant)
        if not isinstance(result, Authorized):
            raise PermissionDenied(result.reason, result=result)

        shift = self._select_shift(result, shift_id)
        work_date = instant.date()
        late = self._calculator.late_minutes(instant, shift)
        primary = result.primary.location if result.primary else None

        draft = AttendanceRecord(
            record_id=0,
            user_id=user_id,
            work_date=work_date,
            check_in_time=instant,
            check_in_point=point,
            mode=result.mode,
            locations_in_range=tuple(str(r.location.location_id) for r in result.locations_in_range),
            primary_location_id=str(primary.location_id) if primary else None,
            primary_location_name=primary.name if primary else None,
            shift=shift,
            is_late=late > 0,
            late_minutes=late,
            note=(note or "").strip() or None,
            auth_reason=result.reason,
        )

        with self._locks.hold((user_id, work_date)):
            if self._attendance.get_open_for_user_and_date(user_id, work_date):
                raise AlreadyCheckedIn("You have already checked in today")
            record_id = self._attendance.create_checkin(draft)

        record = replace(draft, record_id=record_id)
        logger.info(
            "User %s checked in (%s) at %s, record %s",
            user_id,
            record.mode.value,
            record.primary_location_name or "offsite",
            record_id,
        )
        self._notify(
            NotificationType.CHECK_IN,
            record,
            instant,
            data={"mode": record.mode.value, "lat": point.lat, "lng": point.lng, "late_minutes": late},
        )
        return record

    @staticmethod
    def _select_shift(result: Authorized, shift_id: Optional[str]) -> Optional[Shift]:
        if result.mode == CheckinMode.OFFSITE or not result.shifts:
            return None
        if shift_id is not None:
            for shift in result.shifts:
                if str(shift.shift_id) == str(shift_id):
                    return shift
            raise InvalidInput("The selected shift is not open for check-in now")
        if result.needs_shift_selection:
            raise ShiftSelectionRequired("Please choose a shift", candidates=result.shifts)
        return result.selected_shift

    # -- closing transitions -------------------------------------------------

    def check_out(
        self,
        record_id: int,
        lat: float,
        lng: float,
        *,
        note: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        instant = now or self._clock.now()
        point = GeoPoint(*require_device_coordinates(lat, lng))

        current = self._attendance.get_by_id(int(record_id))
        if not current:
            raise NotCheckedIn("No open check-in was found")

        with self._locks.hold((current.user_id, current.work_date)):
            record = self._require_open(record_id)
            location, close_time = self._close_context(record)
            hours = self._compute(record, instant, location, close_time, cap_at_close=False)
            minutes_past = self._calculator.minutes_past_close(instant, close_time)
            decision = self._factory.for_checkout(
                minutes_past_close=minutes_past,
                tolerance_minutes=self._settings.overtime_tolerance_minutes,
            ).decide(minutes_past_close=minutes_past, tolerance_minutes=self._settings.overtime_tolerance_minutes)

            updated = self._apply_decision(record, decision).with_hours(hours)
            updated = replace(
                updated,
                check_out_time=instant,
                check_out_point=point,
                note=self._join_notes(record.note, note),
            )
            updated = self._commit(record, updated)

        logger.info("Record %s checked out -> %s", record.record_id, updated.status.value)
        self._notify(
            NotificationType.CHECK_OUT,
            updated,
            instant,
            data={"total_hours": float(updated.total_hours), "overtime_hours": float(updated.overtime_hours)},
        )
        alerts = self._calculator.overtime_alerts(record.check_in_time, instant)
        if updated.needs_overtime_approval or alerts.any:
            self._notify(
                NotificationType.OVERTIME_THRESHOLD,
                updated,
                instant,
                data={
                    "needs_approval": updated.needs_overtime_approval,
                    "hours_8": alerts.hours_8,
                    "hours_10": alerts.hours_10,
                    "hours_12": alerts.hours_12,
                    "overnight": alerts.is_overnight,
                },
            )
        return updated

    def check_out_current(
        self,
        user_id: str,
        lat: float,
        lng: float,
        *,
        note: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        instant = now or self._clock.now()
        record = self.get_current_open(user_id, now=instant)
        if not record:
            raise NotCheckedIn("You have not checked in yet")
        return self.check_out(record.record_id, lat, lng, note=note, now=instant)

    def auto_close(self, record_id: int, fallback_instant: datetime, reason: str) -> AttendanceRecord:
        """Close a forgotten record at ``fallback_instant``; always lands in pending-approval."""
        current = self._attendance.get_by_id(int(record_id))
        if not current:
            raise NotCheckedIn("No open check-in was found")

        with self._locks.hold((current.user_id, current.work_date)):
            record = self._require_open(record_id)
            location, close_time = self._close_context(record)
            hours = self._compute(record, fallback_instant, location, close_time, cap_at_close=False)
            minutes_past = self._calculator.minutes_past_close(fallback_instant, close_time)
            decision = self._factory.for_auto_close().decide(
                minutes_past_close=minutes_past,
                tolerance_minutes=self._settings.overtime_tolerance_minutes,
            )

            entry = EditHistoryEntry(
                edited_by=SYSTEM_EDITOR_ID,
                edited_by_name=SYSTEM_EDITOR_NAME,
                edited_at=self._clock.now(),
                field=CHECKOUT_FIELD,
                old_value=None,
                new_value=fallback_instant,
                reason=reason,
            )
            updated = self._apply_decision(record, decision).with_hours(hours).with_edit(entry)
            updated = replace(updated, check_out_time=fallback_instant, auto_checkout=True)
            updated = self._commit(record, updated)

        logger.info("Record %s auto-closed at %s (forgotten checkout)", record.record_id, fallback_instant)
        self._notify(
            NotificationType.FORGOTTEN_CHECKOUT,
            updated,
            fallback_instant,
            data={"total_hours": float(updated.total_hours), "reason": reason},
        )
        return updated

    def send_checkout_reminders(self, record_id: int, *, now: datetime | None = None) -> tuple[str, ...]:
        """Deliver the checkout reminders that fell due for an open shift record.

        The keys are stored before the notification goes out, so each reminder
        is sent at most once even when reminder passes overlap.
        """
        instant = now or self._clock.now()
        current = self._attendance.get_by_id(int(record_id))
        if not current or current.shift is None:
            return ()

        with self._locks.hold((current.user_id, current.work_date)):
            record = self._require_open(record_id)
            expected = expected_checkout(record.shift, record.check_in_time)
            due = pending_reminders(expected, record.reminders_sent, instant)
            if not due:
                return ()
            updated = self._commit(record, replace(record, reminders_sent=record.reminders_sent | set(due)))

        logger.info("Record %s: checkout reminder(s) %s", record.record_id, ", ".join(due))
        self._notify(
            NotificationType.CHECKOUT_REMINDER,
            updated,
            instant,
            data={
                "reminders": due,
                "latest": due[-1],
                "expected_checkout": expected.isoformat(),
                "minutes_from_expected": whole_minutes(instant - expected),
            },
        )
        return tuple(due)

    def resolve_pending(
        self,
        record_id: int,
        approved_instant: datetime,
        approver_id: str,
        reason: str,
        approve_overtime_hours: bool,
        *,
        approver_name: Optional[str] = None,
    ) -> AttendanceRecord:
        """HR correction: set the real checkout time and complete the record.

        Without overtime approval the counted hours stop at the location's close
        time. Retrying an already applied resolution returns the record as is.
        """
        reason = require_non_empty(reason, "Reason")
        approve = bool(approve_overtime_hours)

        current = self._attendance.get_by_id(int(record_id))
        if not current:
            raise InvalidInput("Attendance record does not exist")

        with self._locks.hold((current.user_id, current.work_date)):
            record = self.get_record(record_id)
            if record.status == AttendanceStatus.COMPLETED:
                if self._is_applied_resolution(record, approved_instant, approver_id, reason, approve):
                    return record
                raise InvalidState("This record is already completed")
            if approved_instant < record.check_in_time:
                raise ClockSkew("Check-out time cannot be earlier than check-in time")

            location, close_time = self._close_context(record)
            hours = self._compute(record, approved_instant, location, close_time, cap_at_close=not approve)
            entry = EditHistoryEntry(
                edited_by=str(approver_id),
                edited_by_name=approver_name or str(approver_id),
                edited_at=self._clock.now(),
                field=CHECKOUT_FIELD,
                old_value=record.check_out_time,
                new_value=approved_instant,
                reason=reason,
                overtime_approved=approve,
            )
            updated = record.with_hours(hours).with_edit(entry)
            updated = replace(
                updated,
                status=AttendanceStatus.COMPLETED,
                check_out_time=approved_instant,
                manual_checkout=True,
                forgot_checkout=record.forgot_checkout or record.is_open,
                overtime_approved=approve,
            )
            updated = self._commit(record, updated)

        logger.info(
            "Record %s resolved by %s (overtime %s)",
            record.record_id,
            approver_id,
            "approved" if approve else "capped at close",
        )
        return updated

    # -- helpers -----------------------------------------------------------

    def _require_open(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record or record.status != AttendanceStatus.CHECKED_IN:
            raise NotCheckedIn("This record is not checked in")
        return record

    def _close_context(self, record: AttendanceRecord) -> tuple[Optional[Location], Optional[datetime]]:
        location = self._authorization.get_location(record.primary_location_id)
        if location is None:
            return None, None
        return location, location.close_time_for(record.check_in_time.date())

    def _compute(
        self,
        record: AttendanceRecord,
        checkout: datetime,
        location: Optional[Location],
        close_time: Optional[datetime],
        *,
        cap_at_close: bool,
    ) -> HoursBreakdown:
        return self._calculator.compute(
            record.check_in_time,
            checkout,
            shift=record.shift,
            close_time=close_time,
            break_hours=location.break_hours if location else 0,
            cap_at_close=cap_at_close,
        )

    @staticmethod
    def _apply_decision(record: AttendanceRecord, decision: StatusDecision) -> AttendanceRecord:
        if (
            decision.status == AttendanceStatus.PENDING_APPROVAL
            and not decision.forgot_checkout
            and not decision.needs_overtime_approval
        ):
            raise IntegrityError("A pending-approval record must be a forgotten checkout or need overtime approval")
        return replace(
            record,
            status=decision.status,
            needs_overtime_approval=decision.needs_overtime_approval,
            forgot_checkout=decision.forgot_checkout,
            note=AttendanceService._join_notes(record.note, decision.note),
        )

    def _commit(self, before: AttendanceRecord, after: AttendanceRecord) -> AttendanceRecord:
        ok = self._attendance.compare_and_set(
            after,
            expected_status=before.status,
            expected_version=before.version,
        )
        if not ok:
            logger.warning("Record %s was modified concurrently; transition dropped", before.record_id)
            raise NotCheckedIn("This record was already closed by another action")
        return replace(after, version=before.version + 1)

    @staticmethod
    def _is_applied_resolution(
        record: AttendanceRecord,
        approved_instant: datetime,
        approver_id: str,
        reason: str,
        approve: bool,
    ) -> bool:
        if not record.manual_checkout or not record.edit_history:
            return False
        last = record.edit_history[-1]
        return (
            record.check_out_time == approved_instant
            and last.edited_by == str(approver_id)
            and last.new_value == approved_instant
            and last.reason == reason
            and last.overtime_approved == approve
        )

    @staticmethod
    def _join_notes(existing: Optional[str], extra: Optional[str]) -> Optional[str]:
        extra = (extra or "").strip()
        if not extra:
            return existing
        if not existing:
            return extra
        return f"{existing}\n{extra}"

    def _notify(self, kind: NotificationType, record: AttendanceRecord, at: datetime, *, data: dict) -> None:
        self._notifier.notify(
            AttendanceEvent(
                type=kind,
                user_id=record.user_id,
                record_id=record.record_id,
                occurred_at=at,
                location_name=record.primary_location_name,
                data=data,
            )
        )
