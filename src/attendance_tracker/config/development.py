import os

from . import env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")

# Record locks: "memory" for a single process, "mysql" for GET_LOCK across workers.
LOCK_BACKEND = os.getenv("LOCK_BACKEND", "memory")
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))

MAX_BREAKS_PER_DAY = int(os.getenv("MAX_BREAKS_PER_DAY", "1"))
AUTO_END_BREAKS = env_flag("AUTO_END_BREAKS", "1")
BREAK_SWEEP_TOLERANCE_MINUTES = int(os.getenv("BREAK_SWEEP_TOLERANCE_MINUTES", "5"))
AUTO_CHECKOUT = env_flag("AUTO_CHECKOUT", "0")
AUTO_CHECKOUT_AFTER_MINUTES = int(os.getenv("AUTO_CHECKOUT_AFTER_MINUTES", "60"))
ABSENT_CUTOFF_MINUTES = int(os.getenv("ABSENT_CUTOFF_MINUTES", "60"))

LATE_ALERTS = env_flag("LATE_ALERTS", "1")
ABSENT_ALERTS = env_flag("ABSENT_ALERTS", "1")
BREAK_ALERTS = env_flag("BREAK_ALERTS", "1")
