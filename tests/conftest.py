"""Shared fakes and fixtures for the scheduling tests."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
import pytz

from medcabinet.providers.base_provider import ReminderFacility
from medcabinet.services.reminder_projector import ReminderProjector
from medcabinet.storage.blob_store import InMemoryBlobStore

FIXED_NOW = datetime(2030, 1, 1, 0, 0, tzinfo=pytz.utc)


class FakeReminderFacility(ReminderFacility):
    """In-memory facility recording every call; ids are reminder-1, reminder-2, ..."""

    def __init__(self, granted: bool = True, fail_for: Optional[List[str]] = None, refuse_for=None):
        self.granted = granted
        self.fail_for = set(fail_for or [])
        self.refuse_for = set(refuse_for or [])
        self.active: Dict[str, Dict[str, Any]] = {}
        self.cancelled: List[str] = []
        self.cleared = 0
        self._counter = 0

    async def request_permission(self) -> bool:
        return self.granted

    async def schedule(self, title, body, data, trigger, channel) -> Optional[str]:
        if data["intake_id"] in self.fail_for:
            raise RuntimeError("facility unavailable")
        if data["intake_id"] in self.refuse_for:
            return None
        self._counter += 1
        reminder_id = f"reminder-{self._counter}"
        self.active[reminder_id] = {
            "title": title,
            "body": body,
            "data": data,
            "trigger": trigger,
            "channel": channel,
        }
        return reminder_id

    async def cancel(self, reminder_id: str) -> None:
        self.cancelled.append(reminder_id)
        self.active.pop(reminder_id, None)

    async def cancel_all(self) -> None:
        self.cleared += 1
        self.active.clear()


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def seed_medicines(store: InMemoryBlobStore, medicines: List[Dict[str, Any]]) -> None:
    store.blobs["medicines_v1"] = json.dumps(medicines).encode("utf-8")


@pytest.fixture
def facility():
    return FakeReminderFacility()


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def projector(facility, store):
    return ReminderProjector(facility, store, timezone="UTC", now=lambda: FIXED_NOW)


@pytest.fixture
def clock():
    return FakeClock()
