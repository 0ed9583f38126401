import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_engine_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

CRON_SECRET = "test-cron-secret"

STANDARD_DAY_HOURS = 8
OVERTIME_TOLERANCE_MINUTES = 60
HOURS_PRECISION = "0.1"
AUTO_CHECKOUT_AFTER_HOURS = 12
DEFAULT_CHECKOUT_TIME = "18:00"
BREAK_DEDUCTION_THRESHOLD_HOURS = 4
LOCATION_TIMEOUT_SECONDS = 2
