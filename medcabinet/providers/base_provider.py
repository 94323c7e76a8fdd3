"""
Base Reminder Facility.

Abstract base class for the notification facility reminders are scheduled on.
"""

import abc
import uuid
from datetime import datetime
from typing import Dict, Any, Optional
import logging

import pytz

from medcabinet import config
from medcabinet.dapr.client import DaprEventPublisher, dapr_publisher

logger = logging.getLogger(__name__)


class ReminderFacility(abc.ABC):
    """Abstract base class for reminder facilities."""

    @abc.abstractmethod
    async def request_permission(self) -> bool:
        """
        Ask for permission to deliver reminders.

        Returns:
            True if granted, False if denied
        """
        pass

    @abc.abstractmethod
    async def schedule(
        self,
        title: str,
        body: str,
        data: Dict[str, Any],
        trigger: datetime,
        channel: str,
    ) -> Optional[str]:
        """
        Schedule one reminder.

        Args:
            title: Reminder title
            body: Reminder body
            data: Payload delivered with the reminder
            trigger: Timezone-aware trigger instant, must be in the future
            channel: Delivery channel

        Returns:
            External reminder id, or None when the facility refused it
        """
        pass

    @abc.abstractmethod
    async def cancel(self, reminder_id: str) -> None:
        """Cancel one scheduled reminder."""
        pass

    @abc.abstractmethod
    async def cancel_all(self) -> None:
        """Cancel every scheduled reminder."""
        pass


class DaprReminderFacility(ReminderFacility):
    """Reminder facility delivering through reminder events on Dapr pub/sub."""

    def __init__(
        self,
        publisher: DaprEventPublisher = dapr_publisher,
        enabled: bool = config.REMINDERS_ENABLED,
    ):
        self.publisher = publisher
        self.enabled = enabled

    async def request_permission(self) -> bool:
        if not self.enabled:
            logger.warning("Reminder delivery is disabled")
        return self.enabled

    async def schedule(
        self,
        title: str,
        body: str,
        data: Dict[str, Any],
        trigger: datetime,
        channel: str,
    ) -> Optional[str]:
        if trigger <= datetime.now(pytz.utc):
            logger.warning("Trigger date is in the past, skipping reminder")
            return None

        reminder_id = str(uuid.uuid4())
        self.publisher.publish_reminder_scheduled({
            "reminder_id": reminder_id,
            "title": title,
            "body": body,
            "data": data,
            "trigger": trigger.isoformat(),
            "channel": channel,
        })
        logger.info(f"Reminder scheduled: {reminder_id} for {trigger.isoformat()}")
        return reminder_id

    async def cancel(self, reminder_id: str) -> None:
        self.publisher.publish_reminder_cancelled({"reminder_id": reminder_id})

    async def cancel_all(self) -> None:
        self.publisher.publish_reminders_cleared()
