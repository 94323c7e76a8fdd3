"""Schedule schemas: stock snapshots, definitions, resolved schedules and intake events."""
from pydantic import BaseModel, Field
from datetime import date, time
from enum import Enum
from typing import List, Optional

from medcabinet.schemas.rules import DaySelectionRule, EndCondition, EndMode, TimeSelectionRule


class StockSnapshot(BaseModel):
    """Remaining stock; units_per_intake None/0 means stock is not tracked."""
    total_units: float = Field(default=0, ge=0)
    units_per_intake: Optional[float] = None


class MedicineSnapshot(BaseModel):
    """Read-only view of a medicine record."""
    id: str
    name: str
    form: Optional[str] = None
    total_units: float = 0
    expiry_date: Optional[date] = None


class Dose(BaseModel):
    """Per-intake dose: `form_quantity` units of `form`, optionally `amount` `unit` of substance."""
    form_quantity: Optional[float] = None
    form: Optional[str] = None
    amount: Optional[float] = None
    unit: Optional[str] = None


class ScheduleDefinition(BaseModel):
    """User-edited recurrence description, transient until confirmed."""
    start_date: date
    days: DaySelectionRule
    times: TimeSelectionRule
    end: EndCondition
    end_date: Optional[date] = None  # currently chosen end date, bounds count targets


class ScheduleWarning(str, Enum):
    """Non-blocking conditions surfaced to the caller."""
    ENDS_AFTER_EXPIRY = "ends_after_expiry"
    COUNT_CLAMPED = "count_clamped"
    STOCK_INSUFFICIENT = "stock_insufficient"
    EXPIRY_MISSING = "expiry_missing"


class ResolvedSchedule(BaseModel):
    """Concrete, bounded result of resolving a ScheduleDefinition."""
    intake_days: List[date] = Field(default_factory=list)
    times_of_day: List[time] = Field(default_factory=list)
    required_count: int = 0
    end_date: Optional[date] = None
    active_end_mode: EndMode = EndMode.MANUAL
    end_mode_count: Optional[int] = None  # user-entered target, kept even when stock overrides it
    warnings: List[ScheduleWarning] = Field(default_factory=list)

    @property
    def times_per_day(self) -> int:
        return len(self.times_of_day)


class ScheduleStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Schedule(BaseModel):
    """Confirmed schedule aggregate as persisted."""
    id: str
    medicine_id: str
    name: str
    dose: Dose = Field(default_factory=Dose)
    definition: ScheduleDefinition
    resolved: ResolvedSchedule
    status: ScheduleStatus = ScheduleStatus.ACTIVE


class IntakeEvent(BaseModel):
    """One concrete (day, time) dosing occurrence."""
    id: str
    schedule_id: str
    medicine_id: Optional[str] = None
    medicine_name: str = ""
    intake_day: date
    intake_time: time
    dose_description: str = ""


class ResolveRequest(BaseModel):
    """Preview request: resolve a definition against a medicine's stock."""
    definition: ScheduleDefinition
    medicine_id: Optional[str] = None
    dose: Dose = Field(default_factory=Dose)


class ScheduleCreate(BaseModel):
    """Confirmation request for a schedule of one medicine."""
    name: Optional[str] = Field(None, max_length=200)
    definition: ScheduleDefinition
    dose: Dose = Field(default_factory=Dose)
    schedule_id: Optional[str] = None  # set when editing an existing schedule
    user_name: Optional[str] = None
    language: str = "en"
