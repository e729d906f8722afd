"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import BreakType

MINUTES_PER_DAY = 24 * 60

DEFAULT_GRACE_MINUTES = 15
DEFAULT_LATE_THRESHOLD_MINUTES = 30
DEFAULT_BREAK_MAX_MINUTES = 60

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_BREAKS_PER_DAY = 1
DEFAULT_BREAK_SWEEP_TOLERANCE_MINUTES = 5
DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES = 60
DEFAULT_ABSENT_CUTOFF_MINUTES = 60

# Per-type ceilings; the remaining daily allowance still caps them.
BREAK_TYPE_LIMITS = {
    BreakType.COFFEE: 30,
    BreakType.MEAL: 60,
}

MIN_CORRECTION_REASON_LENGTH = 5
