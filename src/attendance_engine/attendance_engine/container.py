from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import CloseStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .authorization.matcher import LocationMatcher
from .authorization.service import CheckinAuthorizationService
from .common.datetime_utils import Clock, SystemClock
from .common.locking import KeyedLock
from .core.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .geo.acquisition import PositionAcquirer
from .hours.standard_calculator import StandardHoursCalculator
from .locations.mysql_location_repository import MySQLLocationRepository
from .locations.repository import LocationDirectory
from .notifications.sink import Notifier
from .review.service import ExceptionQueue
from .shifts.window import ShiftWindowEvaluator
from .sweep.reminders import CheckoutReminderPass
from .sweep.service import AutoCheckoutSweep
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserPermissionLookup


@dataclass(frozen=True)
class Container:
    settings: EngineSettings
    clock: Clock

    locations_repo: LocationDirectory
    users_repo: UserPermissionLookup
    attendance_repo: AttendanceRepository

    authorization_service: CheckinAuthorizationService
    attendance_service: AttendanceService
    exception_queue: ExceptionQueue
    sweep: AutoCheckoutSweep
    reminders: CheckoutReminderPass
    position_acquirer: PositionAcquirer

    def close(self) -> None:
        self.position_acquirer.close()


def wire(
    *,
    locations_repo: LocationDirectory,
    users_repo: UserPermissionLookup,
    attendance_repo: AttendanceRepository,
    settings: EngineSettings | None = None,
    clock: Clock | None = None,
    notifier: Notifier | None = None,
) -> Container:
    """Assemble the services around the given repositories."""
    settings = settings or EngineSettings()
    clock = clock or SystemClock()

    authorization_service = CheckinAuthorizationService(
        locations_repo,
        users_repo,
        matcher=LocationMatcher(ShiftWindowEvaluator()),
        clock=clock,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        authorization_service,
        calculator=StandardHoursCalculator(settings),
        strategy_factory=CloseStrategyFactory(),
        notifier=notifier or Notifier(),
        settings=settings,
        clock=clock,
        locks=KeyedLock(),
    )

    return Container(
        settings=settings,
        clock=clock,
        locations_repo=locations_repo,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        authorization_service=authorization_service,
        attendance_service=attendance_service,
        exception_queue=ExceptionQueue(attendance_repo, attendance_service),
        sweep=AutoCheckoutSweep(attendance_service, settings=settings, clock=clock),
        reminders=CheckoutReminderPass(attendance_service, clock=clock),
        position_acquirer=PositionAcquirer(timeout_seconds=settings.location_timeout_seconds),
    )


def build_container(
    *,
    db_config: dict,
    settings: EngineSettings | None = None,
    clock: Clock | None = None,
    notifier: Notifier | None = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        locations_repo=MySQLLocationRepository(conn),
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings=settings,
        clock=clock,
        notifier=notifier,
    )
