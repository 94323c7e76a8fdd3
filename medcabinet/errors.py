"""
Schedule Errors

Validation errors are expected, recoverable input-rejection outcomes. Each one
carries a machine-readable code and the field that failed so the caller can
point the user at the offending rule.
"""

from typing import Any, Dict, Optional


class ScheduleValidationError(Exception):
    """Raised when a schedule definition cannot be resolved."""

    EMPTY_WEEKDAYS = "empty_weekdays"
    INVALID_INTERVAL_STEP = "invalid_interval_step"
    INVALID_WINDOW_STEP = "invalid_window_step"
    EMPTY_TIMES = "empty_times"
    END_BEFORE_START = "end_before_start"
    INVALID_COUNT_TARGET = "invalid_count_target"
    COUNT_TARGET_REQUIRED = "count_target_required"
    EXPIRY_MISSING = "expiry_missing"
    HORIZON_EXCEEDED = "horizon_exceeded"

    def __init__(
        self,
        code: str,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "details": self.details,
        }


class EndModeUnavailableError(Exception):
    """Raised when an end mode cannot be activated in the current session."""

    def __init__(self, mode: str, message: str):
        self.mode = mode
        self.message = message
        super().__init__(message)
