"""Dapr client for publishing reminder events through the Dapr sidecar."""
import json
import uuid
from datetime import datetime
from typing import Dict, Any, Optional
import logging

from dapr.clients import DaprClient

from medcabinet import config

logger = logging.getLogger(__name__)


class DaprEventPublisher:
    """Publishes reminder events via Dapr pub/sub."""

    def __init__(self, pubsub_name: str = config.PUBSUB_NAME, dev_mode: Optional[bool] = None):
        """Initialize Dapr event publisher."""
        self.pubsub_name = pubsub_name
        self.dev_mode = config.ENVIRONMENT == "development" if dev_mode is None else dev_mode
        if self.dev_mode:
            logger.warning("Running in development mode without Dapr integration.")

    def publish_event(self, topic: str, event_type: str, data: Dict[str, Any], source: str = "medcabinet"):
        """Publish an event to a topic via Dapr pub/sub."""
        event_envelope = {
            "event_id": str(uuid.uuid4()),
            "type": event_type,
            "timestamp": datetime.utcnow().isoformat(),
            "source": source,
            "data": data
        }

        if self.dev_mode:
            # Development mode: log the event instead of publishing
            logger.info(f"[DEV MODE] Would publish to topic '{topic}': {event_type} from {source} with data {data}")
            return {"success": True, "event_id": event_envelope["event_id"]}

        try:
            with DaprClient() as client:
                client.publish_event(
                    pubsub_name=self.pubsub_name,
                    topic_name=topic,
                    data=json.dumps(event_envelope, default=str),
                    data_content_type="application/json"
                )

            logger.info(f"Published event {event_type} to topic {topic}")
            return {"success": True, "event_id": event_envelope["event_id"]}

        except Exception as e:
            logger.error(f"Failed to publish event to topic {topic}: {str(e)}")
            raise

    def publish_reminder_scheduled(self, reminder_data: Dict[str, Any]):
        """Publish reminder.scheduled event."""
        return self.publish_event(
            topic=config.REMINDER_TOPIC,
            event_type="reminder.scheduled",
            data=reminder_data
        )

    def publish_reminder_cancelled(self, reminder_data: Dict[str, Any]):
        """Publish reminder.cancelled event."""
        return self.publish_event(
            topic=config.REMINDER_TOPIC,
            event_type="reminder.cancelled",
            data=reminder_data
        )

    def publish_reminders_cleared(self):
        """Publish reminder.cleared event."""
        return self.publish_event(
            topic=config.REMINDER_TOPIC,
            event_type="reminder.cleared",
            data={}
        )


# Global instance
dapr_publisher = DaprEventPublisher()
