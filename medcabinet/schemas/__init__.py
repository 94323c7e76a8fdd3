"""Pydantic schemas for recurrence rules and schedules."""

from .rules import (
    CountTargetEnd,
    DaySelectionRule,
    EndCondition,
    EndMode,
    ExpiryLinkedEnd,
    ExplicitTimesRule,
    IntervalRule,
    ManualEnd,
    TimeSelectionRule,
    Weekday,
    WeekdaysRule,
    WindowRule,
)
from .schedule import (
    Dose,
    IntakeEvent,
    MedicineSnapshot,
    ResolvedSchedule,
    ResolveRequest,
    Schedule,
    ScheduleCreate,
    ScheduleDefinition,
    ScheduleStatus,
    ScheduleWarning,
    StockSnapshot,
)

__all__ = [
    "CountTargetEnd",
    "DaySelectionRule",
    "Dose",
    "EndCondition",
    "EndMode",
    "ExpiryLinkedEnd",
    "ExplicitTimesRule",
    "IntakeEvent",
    "IntervalRule",
    "ManualEnd",
    "MedicineSnapshot",
    "ResolvedSchedule",
    "ResolveRequest",
    "Schedule",
    "ScheduleCreate",
    "ScheduleDefinition",
    "ScheduleStatus",
    "ScheduleWarning",
    "StockSnapshot",
    "TimeSelectionRule",
    "Weekday",
    "WeekdaysRule",
    "WindowRule",
]
