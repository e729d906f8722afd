from __future__ import annotations

from dataclasses import dataclass

from ..core import constants


@dataclass(frozen=True)
class AttendancePolicy:
    """Tunable rules of the attendance engine and its background jobs."""

    lock_timeout_seconds: float = constants.DEFAULT_LOCK_TIMEOUT_SECONDS
    max_breaks_per_day: int = constants.DEFAULT_MAX_BREAKS_PER_DAY
    break_sweep_tolerance_minutes: int = constants.DEFAULT_BREAK_SWEEP_TOLERANCE_MINUTES
    auto_end_breaks: bool = True
    auto_checkout: bool = False
    auto_checkout_after_minutes: int = constants.DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES
    absent_cutoff_minutes: int = constants.DEFAULT_ABSENT_CUTOFF_MINUTES
    late_alerts: bool = True
    absent_alerts: bool = True
    break_alerts: bool = True

    @classmethod
    def from_settings(cls, settings) -> "AttendancePolicy":
        return cls(
            lock_timeout_seconds=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", constants.DEFAULT_LOCK_TIMEOUT_SECONDS)),
            max_breaks_per_day=max(1, int(getattr(settings, "MAX_BREAKS_PER_DAY", constants.DEFAULT_MAX_BREAKS_PER_DAY))),
            break_sweep_tolerance_minutes=int(
                getattr(settings, "BREAK_SWEEP_TOLERANCE_MINUTES", constants.DEFAULT_BREAK_SWEEP_TOLERANCE_MINUTES)
            ),
            auto_end_breaks=bool(getattr(settings, "AUTO_END_BREAKS", True)),
            auto_checkout=bool(getattr(settings, "AUTO_CHECKOUT", False)),
            auto_checkout_after_minutes=int(
                getattr(settings, "AUTO_CHECKOUT_AFTER_MINUTES", constants.DEFAULT_AUTO_CHECKOUT_AFTER_MINUTES)
            ),
            absent_cutoff_minutes=int(getattr(settings, "ABSENT_CUTOFF_MINUTES", constants.DEFAULT_ABSENT_CUTOFF_MINUTES)),
            late_alerts=bool(getattr(settings, "LATE_ALERTS", True)),
            absent_alerts=bool(getattr(settings, "ABSENT_ALERTS", True)),
            break_alerts=bool(getattr(settings, "BREAK_ALERTS", True)),
        )
