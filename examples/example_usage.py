"""Example: use the service layer directly (without Flask).

Controllers are a thin layer; the rules live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.settings import EngineSettings


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=EngineSettings.from_module(settings))

    result = container.attendance_service.authorize("staff", 10.7770, 106.7010)
    print(result.as_dict())

    for record in container.exception_queue.forgotten_checkouts():
        print(record.record_id, record.user_id, record.check_in_time, record.total_hours)


if __name__ == "__main__":
    main()
