"""Run the auto-checkout sweep once (daily cron job), or the checkout reminders.

    python scripts/run_sweep.py [--dry-run]
    python scripts/run_sweep.py --reminders    # every 15 minutes
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.settings import EngineSettings
from src.attendance_engine.attendance_engine.main import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Close open records whose owner forgot to check out.")
    parser.add_argument("--dry-run", action="store_true", help="only report what would be closed")
    parser.add_argument(
        "--reminders",
        action="store_true",
        help="send the checkout reminders that are due instead of closing stale records",
    )
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=EngineSettings.from_module(settings))
    try:
        if args.reminders:
            report = container.reminders.run()
        else:
            report = container.sweep.run(dry_run=args.dry_run)
    finally:
        container.close()
    print(json.dumps(report.as_dict(), indent=2, ensure_ascii=False))
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
