import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

LOCK_BACKEND = "memory"
LOCK_TIMEOUT_SECONDS = 1.0

MAX_BREAKS_PER_DAY = 1
AUTO_END_BREAKS = True
BREAK_SWEEP_TOLERANCE_MINUTES = 5
AUTO_CHECKOUT = True
AUTO_CHECKOUT_AFTER_MINUTES = 60
ABSENT_CUTOFF_MINUTES = 60

LATE_ALERTS = True
ABSENT_ALERTS = True
BREAK_ALERTS = True
