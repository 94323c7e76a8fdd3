"""
Reminder Projector

Expands resolved schedules into intake events and keeps at most one external
reminder per intake event. The intake -> reminder id table is persisted in the
blob store as a JSON array of [intake_id, reminder_id] pairs.
"""

import asyncio
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

import pytz

from medcabinet import config
from medcabinet.i18n.format_unit import UnitTable, format_quantity, format_unit, units_for
from medcabinet.providers.base_provider import ReminderFacility
from medcabinet.schemas.schedule import Dose, IntakeEvent, ResolvedSchedule
from medcabinet.storage.blob_store import BlobStore, load_json, save_json
from medcabinet.utils.logger import reminder_logger as logger
from medcabinet.utils.metrics import metrics_collector

REMINDER_IDS_KEY = "scheduled_notification_ids_v1"


@dataclass
class ReminderContext:
    """Naming and formatting collaborator for reminder texts."""
    user_name: Optional[str] = None
    language: str = "en"
    title: str = "Time to take your medicine"
    title_with_name: str = "{name}, time to take your medicine"
    body: str = "{medicine}: {dosage}"
    no_dosage: str = "as prescribed"
    units: Optional[UnitTable] = None
    channel: str = config.REMINDER_CHANNEL

    def __post_init__(self):
        if self.units is None:
            self.units = units_for(self.language)


def intake_event_id(schedule_id: str, day: date, intake_time) -> str:
    """Stable identity of the (day, time) occurrence of a schedule."""
    return f"{schedule_id}:{day.isoformat()}T{intake_time.strftime('%H:%M')}"


def describe_dose(dose: Optional[Dose], context: ReminderContext) -> str:
    """Render "2 tablets - 500 mg" style dose labels."""
    if dose is None:
        return ""

    dosage_text = ""
    if dose.amount and dose.unit:
        dosage_text = f"{format_quantity(dose.amount)} {dose.unit}"
    if dose.form_quantity and dose.form:
        form_text = format_unit(context.units, dose.form_quantity, context.language, dose.form)
        prefix = f"{format_quantity(dose.form_quantity)} {form_text}"
        dosage_text = f"{prefix} - {dosage_text}" if dosage_text else prefix
    return dosage_text


def events_by_day(events: List[IntakeEvent]) -> "OrderedDict[date, List[IntakeEvent]]":
    """Group events by intake day, keeping their order."""
    grouped: "OrderedDict[date, List[IntakeEvent]]" = OrderedDict()
    for event in events:
        grouped.setdefault(event.intake_day, []).append(event)
    return grouped


class ReminderProjector:
    """Project intake events onto a reminder facility."""

    def __init__(
        self,
        facility: ReminderFacility,
        store: BlobStore,
        timezone: str = config.TIMEZONE,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.facility = facility
        self.store = store
        self.timezone = pytz.timezone(timezone)
        self._now = now or (lambda: datetime.now(pytz.utc))
        self.records: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @staticmethod
    def project(
        resolved: ResolvedSchedule,
        schedule_id: str,
        medicine_id: Optional[str] = None,
        medicine_name: str = "",
        dose_description: str = "",
    ) -> List[IntakeEvent]:
        """
        Expand intake days x times of day into intake events.

        Events are ordered by (day, time) and stop at the required count, so a
        count-limited last day may be partial. Times after midnight of a
        wrapping window stay on their own calendar day and come first.
        """
        events: List[IntakeEvent] = []
        day_times = sorted(resolved.times_of_day)
        for day in resolved.intake_days:
            for intake_time in day_times:
                if len(events) >= resolved.required_count:
                    return events
                events.append(IntakeEvent(
                    id=intake_event_id(schedule_id, day, intake_time),
                    schedule_id=schedule_id,
                    medicine_id=medicine_id,
                    medicine_name=medicine_name,
                    intake_day=day,
                    intake_time=intake_time,
                    dose_description=dose_description,
                ))
        return events

    def trigger_at(self, event: IntakeEvent) -> datetime:
        """Timezone-aware trigger instant of an event."""
        return self.timezone.localize(datetime.combine(event.intake_day, event.intake_time))

    async def load(self) -> None:
        """Reload the persisted reminder table as-is."""
        pairs = await load_json(self.store, REMINDER_IDS_KEY, default=[])
        try:
            self.records = {str(intake_id): str(reminder_id) for intake_id, reminder_id in pairs}
        except (TypeError, ValueError) as e:
            logger.error("Reminder table is malformed, starting empty", error=str(e))
            self.records = {}
        logger.info("Reminder table loaded", count=len(self.records))

    async def _save(self) -> None:
        try:
            await save_json(self.store, REMINDER_IDS_KEY, [[k, v] for k, v in self.records.items()])
        except Exception as e:
            # Best effort: in-memory state is kept
            logger.exception("Failed to save reminder table", error=str(e))

    async def _release(self, event_id: str) -> bool:
        """Cancel the reminder of an event and drop its record, without persisting."""
        reminder_id = self.records.pop(event_id, None)
        if reminder_id is None:
            return False
        try:
            await self.facility.cancel(reminder_id)
        except Exception as e:
            logger.error("Failed to cancel reminder", intake_id=event_id, reminder_id=reminder_id, error=str(e))
        metrics_collector.reminder_cancelled()
        return True

    def _texts(self, event: IntakeEvent, context: ReminderContext):
        title = context.title_with_name.format(name=context.user_name) if context.user_name else context.title
        body = context.body.format(
            medicine=event.medicine_name,
            dosage=event.dose_description or context.no_dosage,
        )
        return title, body

    async def schedule_all(self, events: List[IntakeEvent], context: Optional[ReminderContext] = None) -> int:
        """
        Schedule one reminder per future event.

        An event already holding a reminder has it cancelled first. A refused
        or failing event is skipped and the others proceed.

        Returns:
            Number of reminders scheduled
        """
        context = context or ReminderContext()

        if not await self.facility.request_permission():
            logger.warning("Reminder permission not granted", events=len(events))
            return 0

        now = self._now()
        scheduled = 0
        for event in events:
            trigger = self.trigger_at(event)
            if trigger <= now:
                metrics_collector.reminder_skipped_past()
                continue

            await self._release(event.id)

            title, body = self._texts(event, context)
            data = {
                "destination": "schedule",
                "intake_id": event.id,
                "schedule_id": event.schedule_id,
                "medicine_id": event.medicine_id,
            }
            try:
                reminder_id = await self.facility.schedule(title, body, data, trigger, context.channel)
            except Exception as e:
                metrics_collector.reminder_failed()
                logger.error("Failed to schedule reminder", intake_id=event.id, error=str(e))
                continue

            if not reminder_id:
                metrics_collector.reminder_failed()
                logger.warning("Reminder facility refused intake", intake_id=event.id)
                continue

            self.records[event.id] = reminder_id
            metrics_collector.reminder_scheduled()
            scheduled += 1

        await self._save()
        logger.info("Reminders scheduled", scheduled=scheduled, events=len(events))
        return scheduled

    async def cancel(self, event_id: str) -> None:
        """Cancel the reminder of one intake event, if any."""
        if await self._release(event_id):
            await self._save()
            logger.info("Reminder cancelled", intake_id=event_id)

    async def cancel_all(self) -> None:
        """Cancel every tracked reminder and clear the table."""
        await self.facility.cancel_all()
        metrics_collector.reminder_cancelled(len(self.records))
        self.records.clear()
        await self._save()
        logger.info("All reminders cancelled")

    @asynccontextmanager
    async def _serialized(self, schedule_id: str):
        """Hold the schedule lock; the lock is dropped once no pass uses it."""
        lock = self._locks.setdefault(schedule_id, asyncio.Lock())
        self._lock_users[schedule_id] = self._lock_users.get(schedule_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[schedule_id] -= 1
            if self._lock_users[schedule_id] == 0:
                del self._lock_users[schedule_id]
                del self._locks[schedule_id]

    def _schedule_event_ids(self, schedule_id: str) -> List[str]:
        prefix = f"{schedule_id}:"
        return [event_id for event_id in self.records if event_id.startswith(prefix)]

    async def _cancel_schedule_unlocked(self, schedule_id: str) -> int:
        cancelled = 0
        for event_id in self._schedule_event_ids(schedule_id):
            if await self._release(event_id):
                cancelled += 1
        await self._save()
        return cancelled

    async def cancel_schedule(self, schedule_id: str) -> int:
        """Cancel every reminder of one schedule."""
        async with self._serialized(schedule_id):
            cancelled = await self._cancel_schedule_unlocked(schedule_id)
        logger.info("Schedule reminders cancelled", schedule_id=schedule_id, cancelled=cancelled)
        return cancelled

    async def reschedule(
        self,
        schedule_id: str,
        events: List[IntakeEvent],
        context: Optional[ReminderContext] = None,
    ) -> int:
        """
        Replace the reminders of one schedule: cancel all, then schedule all.

        Passes for the same schedule run one after another; different
        schedules proceed independently.
        """
        async with self._serialized(schedule_id):
            await self._cancel_schedule_unlocked(schedule_id)
            return await self.schedule_all(events, context)
