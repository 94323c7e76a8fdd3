"""Tests for blob persistence and the Dapr reminder facility."""

from datetime import datetime, timedelta

import pytest
import pytz
from sqlmodel import Session

from medcabinet.dapr.client import DaprEventPublisher
from medcabinet.db.config import build_engine
from medcabinet.db.init import init_db
from medcabinet.models.blob import BlobEntry
from medcabinet.providers.base_provider import DaprReminderFacility
from medcabinet.storage.blob_store import InMemoryBlobStore, SqlBlobStore, load_json, save_json


class _RecordingPublisher(DaprEventPublisher):
    def __init__(self):
        super().__init__(pubsub_name="test-pubsub", dev_mode=True)
        self.events = []

    def publish_event(self, topic, event_type, data, source="medcabinet"):
        self.events.append((topic, event_type, data))
        return super().publish_event(topic, event_type, data, source)


@pytest.fixture
def sql_store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'blobs.db'}")
    init_db(engine)
    return SqlBlobStore(engine)


class TestSqlBlobStore:
    @pytest.mark.asyncio
    async def test_set_then_get_and_overwrite(self, sql_store):
        assert await sql_store.get("schedules_v1") is None

        await sql_store.set("schedules_v1", b"[]")
        await sql_store.set("schedules_v1", b'[{"id": "s-1"}]')

        assert await sql_store.get("schedules_v1") == b'[{"id": "s-1"}]'

    @pytest.mark.asyncio
    async def test_writes_stamp_update_time(self, sql_store):
        before = datetime.now(pytz.utc).replace(tzinfo=None) - timedelta(seconds=1)

        await sql_store.set("medicines_v1", b"[]")
        await sql_store.set("medicines_v1", b"[1]")

        with Session(sql_store.engine) as session:
            entry = session.get(BlobEntry, "medicines_v1")
            assert entry.value == b"[1]"
            assert entry.updated_at.replace(tzinfo=None) >= before

    @pytest.mark.asyncio
    async def test_json_helpers(self, sql_store):
        await save_json(sql_store, "scheduled_notification_ids_v1", [["a:2030-01-01T08:00", "r-1"]])

        assert await load_json(sql_store, "scheduled_notification_ids_v1") == [["a:2030-01-01T08:00", "r-1"]]
        assert await load_json(sql_store, "unknown", default=[]) == []


@pytest.mark.asyncio
async def test_undecodable_json_returns_default():
    store = InMemoryBlobStore({"medicines_v1": b"\xff\xfe"})

    assert await load_json(store, "medicines_v1", default=[]) == []


class TestDaprReminderFacility:
    @pytest.mark.asyncio
    async def test_schedule_publishes_reminder_event(self):
        publisher = _RecordingPublisher()
        facility = DaprReminderFacility(publisher=publisher, enabled=True)
        trigger = datetime.now(pytz.utc) + timedelta(hours=1)

        reminder_id = await facility.schedule("Title", "Body", {"intake_id": "x"}, trigger, "reminders")

        assert reminder_id
        topic, event_type, data = publisher.events[0]
        assert event_type == "reminder.scheduled"
        assert data["reminder_id"] == reminder_id
        assert data["trigger"] == trigger.isoformat()

    @pytest.mark.asyncio
    async def test_past_trigger_is_refused(self):
        publisher = _RecordingPublisher()
        facility = DaprReminderFacility(publisher=publisher, enabled=True)

        reminder_id = await facility.schedule(
            "Title", "Body", {}, datetime.now(pytz.utc) - timedelta(minutes=1), "reminders"
        )

        assert reminder_id is None
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_disabled_delivery_denies_permission(self):
        facility = DaprReminderFacility(publisher=_RecordingPublisher(), enabled=False)

        assert await facility.request_permission() is False

    @pytest.mark.asyncio
    async def test_cancel_events(self):
        publisher = _RecordingPublisher()
        facility = DaprReminderFacility(publisher=publisher, enabled=True)

        await facility.cancel("r-1")
        await facility.cancel_all()

        assert [event_type for _, event_type, _ in publisher.events] == ["reminder.cancelled", "reminder.cleared"]
