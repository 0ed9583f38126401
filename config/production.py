import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_engine"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

CRON_SECRET = os.getenv("CRON_SECRET", "")

STANDARD_DAY_HOURS = float(os.getenv("STANDARD_DAY_HOURS", "8"))
OVERTIME_TOLERANCE_MINUTES = int(os.getenv("OVERTIME_TOLERANCE_MINUTES", "60"))
HOURS_PRECISION = os.getenv("HOURS_PRECISION", "0.1")
AUTO_CHECKOUT_AFTER_HOURS = int(os.getenv("AUTO_CHECKOUT_AFTER_HOURS", "12"))
DEFAULT_CHECKOUT_TIME = os.getenv("DEFAULT_CHECKOUT_TIME", "18:00")
BREAK_DEDUCTION_THRESHOLD_HOURS = float(os.getenv("BREAK_DEDUCTION_THRESHOLD_HOURS", "4"))
LOCATION_TIMEOUT_SECONDS = float(os.getenv("LOCATION_TIMEOUT_SECONDS", "10"))
