class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is a stable identifier callers can switch on; the message is meant
    to be shown to the user as-is.
    """

    code = "DOMAIN_ERROR"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        super().__init__(message or self.default_message)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    default_message = "Resource not found"


class PolicyViolationError(DomainError):
    """Expected, user-facing refusal of an attendance action."""

    code = "POLICY_VIOLATION"


class SessionNotActiveError(PolicyViolationError):
    code = "SESSION_INACTIVE"
    default_message = "This session is not accepting attendance"


class DuplicateSessionError(PolicyViolationError):
    code = "DUPLICATE_SESSION"
    default_message = "A session already exists for this schedule and date"


class InvalidSessionTransitionError(PolicyViolationError):
    code = "INVALID_SESSION_TRANSITION"
    default_message = "Session cannot change to the requested status"


class AlreadyCheckedInError(PolicyViolationError):
    code = "ALREADY_CHECKED_IN"
    default_message = "You have already timed in for this session"


class AlreadyCheckedOutError(PolicyViolationError):
    code = "ALREADY_CHECKED_OUT"
    default_message = "You have already timed out for this session"


class NotCheckedInError(PolicyViolationError):
    code = "NOT_TIMED_IN"
    default_message = "You must time in first"


class OutsideBreakWindowError(PolicyViolationError):
    code = "OUTSIDE_BREAK_WINDOW"
    default_message = "Breaks are not allowed at this time"


class BreakAlreadyUsedError(PolicyViolationError):
    code = "BREAK_ALREADY_USED"
    default_message = "You have already used your break allowance"


class BreakAlreadyActiveError(PolicyViolationError):
    code = "ALREADY_ON_BREAK"
    default_message = "You are already on break"


class NoActiveBreakError(PolicyViolationError):
    code = "NO_ACTIVE_BREAK"
    default_message = "You are not on break"


class ConcurrencyError(DomainError):
    code = "CONCURRENCY_ERROR"
    default_message = "Another update is in progress, please retry"


class ConcurrentModificationError(ConcurrencyError):
    code = "CONCURRENT_MODIFICATION"
