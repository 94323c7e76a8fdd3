"""Schedule service: preview, confirm and remove medicine schedules."""
import uuid
from datetime import date
from typing import List, Optional

from pydantic import ValidationError

from medcabinet.schemas.schedule import (
    Dose,
    IntakeEvent,
    MedicineSnapshot,
    ResolvedSchedule,
    Schedule,
    ScheduleCreate,
    ScheduleDefinition,
    StockSnapshot,
)
from medcabinet.services.end_resolver import ScheduleEndResolver
from medcabinet.services.reminder_projector import ReminderContext, ReminderProjector, describe_dose
from medcabinet.storage.blob_store import BlobStore, load_json, save_json
from medcabinet.utils.logger import schedule_logger as logger

MEDICINES_KEY = "medicines_v1"
SCHEDULES_KEY = "schedules_v1"


class MedicineStore:
    """Read-only access to the medicine records owned by the surrounding application."""

    def __init__(self, store: BlobStore):
        self.store = store

    async def list_medicines(self) -> List[MedicineSnapshot]:
        medicines = []
        for raw in await load_json(self.store, MEDICINES_KEY, default=[]):
            try:
                medicines.append(MedicineSnapshot.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed medicine record", error=str(e))
        return medicines

    async def get(self, medicine_id: str) -> Optional[MedicineSnapshot]:
        for medicine in await self.list_medicines():
            if medicine.id == medicine_id:
                return medicine
        return None


class ScheduleService:
    """Service class for schedule operations backed by a blob store."""

    def __init__(
        self,
        store: BlobStore,
        projector: ReminderProjector,
        resolver: Optional[ScheduleEndResolver] = None,
    ):
        self.store = store
        self.projector = projector
        self.resolver = resolver or ScheduleEndResolver()
        self.medicines = MedicineStore(store)

    async def _load(self) -> List[Schedule]:
        schedules = []
        for raw in await load_json(self.store, SCHEDULES_KEY, default=[]):
            try:
                schedules.append(Schedule.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed schedule record", error=str(e))
        return schedules

    async def _save(self, schedules: List[Schedule]) -> None:
        await save_json(self.store, SCHEDULES_KEY, [s.model_dump(mode="json") for s in schedules])

    async def list_schedules(self, medicine_id: Optional[str] = None) -> List[Schedule]:
        """List confirmed schedules, optionally for one medicine."""
        schedules = await self._load()
        if medicine_id is not None:
            schedules = [s for s in schedules if s.medicine_id == medicine_id]
        return schedules

    async def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        for schedule in await self._load():
            if schedule.id == schedule_id:
                return schedule
        return None

    @staticmethod
    def stock_for(medicine: Optional[MedicineSnapshot], dose: Optional[Dose]) -> StockSnapshot:
        """Stock snapshot of a medicine consumed `dose.form_quantity` units per intake."""
        if medicine is None:
            return StockSnapshot()
        return StockSnapshot(
            total_units=max(medicine.total_units, 0),
            units_per_intake=dose.form_quantity if dose else None,
        )

    async def preview(
        self,
        definition: ScheduleDefinition,
        medicine_id: Optional[str] = None,
        dose: Optional[Dose] = None,
        today: Optional[date] = None,
    ) -> ResolvedSchedule:
        """
        Resolve a definition without persisting anything.

        An unknown or missing medicine resolves against untracked stock with
        no expiry date.
        """
        medicine = await self.medicines.get(medicine_id) if medicine_id else None
        return self.resolver.resolve(
            definition,
            stock=self.stock_for(medicine, dose),
            expiry_date=medicine.expiry_date if medicine else None,
            today=today,
        )

    async def confirm(
        self,
        medicine_id: str,
        payload: ScheduleCreate,
        today: Optional[date] = None,
    ) -> Optional[Schedule]:
        """
        Resolve, persist and (re)schedule reminders for one schedule.

        Returns:
            The stored schedule, or None when the medicine is unknown

        Raises:
            ScheduleValidationError: If the definition cannot be resolved
        """
        medicine = await self.medicines.get(medicine_id)
        if medicine is None:
            return None

        resolved = self.resolver.resolve(
            payload.definition,
            stock=self.stock_for(medicine, payload.dose),
            expiry_date=medicine.expiry_date,
            today=today,
        )

        schedule = Schedule(
            id=payload.schedule_id or uuid.uuid4().hex,
            medicine_id=medicine.id,
            name=payload.name or medicine.name,
            dose=payload.dose,
            definition=payload.definition,
            resolved=resolved,
        )

        schedules = [s for s in await self._load() if s.id != schedule.id]
        schedules.append(schedule)
        await self._save(schedules)

        context = ReminderContext(user_name=payload.user_name, language=payload.language)
        events = self._events(schedule, medicine.name, context)
        scheduled = await self.projector.reschedule(schedule.id, events, context)

        logger.info(
            "Schedule confirmed",
            schedule_id=schedule.id,
            medicine_id=medicine.id,
            intakes=len(events),
            reminders=scheduled,
            warnings=[w.value for w in resolved.warnings],
        )
        return schedule

    def _events(self, schedule: Schedule, medicine_name: str, context: ReminderContext) -> List[IntakeEvent]:
        return self.projector.project(
            schedule.resolved,
            schedule.id,
            medicine_id=schedule.medicine_id,
            medicine_name=medicine_name,
            dose_description=describe_dose(schedule.dose, context),
        )

    async def intakes_for_schedule(self, schedule_id: str) -> Optional[List[IntakeEvent]]:
        """Intake events of a stored schedule, or None when it is unknown."""
        schedule = await self.get_schedule(schedule_id)
        if schedule is None:
            return None
        medicine = await self.medicines.get(schedule.medicine_id)
        medicine_name = medicine.name if medicine else schedule.name
        return self._events(schedule, medicine_name, ReminderContext())

    async def delete_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule and cancel its reminders."""
        schedules = await self._load()
        remaining = [s for s in schedules if s.id != schedule_id]
        if len(remaining) == len(schedules):
            return False

        await self.projector.cancel_schedule(schedule_id)
        await self._save(remaining)
        logger.info("Schedule deleted", schedule_id=schedule_id)
        return True

    async def on_medicine_deleted(self, medicine_id: str) -> int:
        """Drop every schedule of a removed medicine along with its reminders."""
        schedules = await self._load()
        removed = [s for s in schedules if s.medicine_id == medicine_id]
        for schedule in removed:
            await self.projector.cancel_schedule(schedule.id)

        if removed:
            await self._save([s for s in schedules if s.medicine_id != medicine_id])
        logger.info("Medicine schedules removed", medicine_id=medicine_id, removed=len(removed))
        return len(removed)
