"""Recurrence rule schemas: day selection, time selection and end conditions."""
from pydantic import BaseModel, Field
from datetime import date, time
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union


class Weekday(str, Enum):
    """Weekday flags, in ISO order (Monday first)."""
    MO = "mo"
    TU = "tu"
    WE = "we"
    TH = "th"
    FR = "fr"
    SA = "sa"
    SU = "su"

    @property
    def iso_index(self) -> int:
        """Index compatible with date.weekday() (Monday == 0)."""
        return list(Weekday).index(self)


class WeekdaysRule(BaseModel):
    """Intake on every listed weekday."""
    kind: Literal["weekdays"] = "weekdays"
    weekdays: List[Weekday] = Field(default_factory=list)


class IntervalRule(BaseModel):
    """Intake every `step` units, starting on the start date."""
    kind: Literal["interval"] = "interval"
    step: int = 1
    unit: Literal["day", "week", "month", "year"] = "day"


DaySelectionRule = Annotated[Union[WeekdaysRule, IntervalRule], Field(discriminator="kind")]


class ExplicitTimesRule(BaseModel):
    """Intake at explicit times of day."""
    kind: Literal["times"] = "times"
    times: List[time] = Field(default_factory=list)


class WindowRule(BaseModel):
    """Intake every `step_hours` between start and end; wraps past midnight when end <= start."""
    kind: Literal["window"] = "window"
    start: time
    end: time
    step_hours: float


TimeSelectionRule = Annotated[Union[ExplicitTimesRule, WindowRule], Field(discriminator="kind")]


class EndMode(str, Enum):
    """Tag of the active end condition."""
    MANUAL = "manual"
    EXPIRY = "expiry"
    COUNT = "count"


class ManualEnd(BaseModel):
    mode: Literal["manual"] = "manual"
    end_date: date


class ExpiryLinkedEnd(BaseModel):
    """Ends on the medicine's expiry date."""
    mode: Literal["expiry"] = "expiry"


class CountTargetEnd(BaseModel):
    """Ends once `count` intakes are reached, or when the stock runs out."""
    mode: Literal["count"] = "count"
    count: Optional[int] = None


EndCondition = Annotated[Union[ManualEnd, ExpiryLinkedEnd, CountTargetEnd], Field(discriminator="mode")]
